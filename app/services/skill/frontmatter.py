"""
Frontmatter scanning for SKILL documents.
"""

import re
from dataclasses import dataclass

FRONTMATTER_DELIMITER = "---"

# Opening '---' line, optional metadata lines, closing '---' line, optional body.
FRONTMATTER_PATTERN = re.compile(r"\A---\n(?:(?P<frontmatter>.*?)\n)?---(?:\n(?P<body>.*))?\Z", re.DOTALL)


@dataclass(frozen=True)
class ScannedDocument:
    frontmatter: str
    body: str


def normalize_text(raw: str) -> str:
    """Convert CRLF/CR line endings to LF and trim surrounding whitespace."""
    return raw.replace("\r\n", "\n").replace("\r", "\n").strip()


def scan_frontmatter(raw: str) -> ScannedDocument | None:
    """
    Split a SKILL document into its frontmatter block and body.

    Args:
        raw: The raw document text

    Returns:
        The scanned document, or None when the text does not open with a
        delimited metadata block. Callers falling back should treat the whole
        text as the body (see ``split_document``).
    """
    match = FRONTMATTER_PATTERN.match(normalize_text(raw))
    if not match:
        return None

    return ScannedDocument(
        frontmatter=match.group("frontmatter") or "",
        body=match.group("body") or "",
    )


def split_document(raw: str) -> tuple[ScannedDocument, bool]:
    """
    Scan a document, falling back to an empty frontmatter and the whole text as body.

    Returns:
        tuple of (document, has_frontmatter)
    """
    scanned = scan_frontmatter(raw)
    if scanned is None:
        return ScannedDocument(frontmatter="", body=normalize_text(raw)), False
    return scanned, True
