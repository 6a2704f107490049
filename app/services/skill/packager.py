"""
Utilities for packaging skills into canonical SKILL documents and zip archives.
"""

import logging
import re
import zipfile
from dataclasses import dataclass
from io import BytesIO

from app.services.skill.fields import QUOTE_CHARS
from app.services.skill.models import DEFAULT_CATEGORY, Skill

logger = logging.getLogger(__name__)

# Constants
DOCUMENT_FILENAME = "SKILL.md"
DEFAULT_SLUG = "my-skill"
MAX_SLUG_LENGTH = 64
# Fixed entry timestamp so identical skills produce byte-identical archives.
ARCHIVE_ENTRY_DATE_TIME = (1980, 1, 1, 0, 0, 0)


@dataclass(frozen=True)
class BuiltSkill:
    document: str
    archive: bytes
    filename: str


def slugify_skill_name(name: str) -> str:
    """
    Convert a skill name to a lowercase, hyphenated identifier.

    Args:
        name: The display name of the skill

    Returns:
        Up to 64 characters of [a-z0-9-], without leading, trailing or
        repeated hyphens; "my-skill" when nothing usable is left
    """
    slug = re.sub(r"[^a-z0-9\s-]", "", (name or "").lower())
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug).strip("-")
    slug = slug[:MAX_SLUG_LENGTH].rstrip("-")
    return slug or DEFAULT_SLUG


def _single_line(value: str | None) -> str:
    """Collapse any whitespace run (newlines included) to a single space."""
    return " ".join((value or "").split())


def _frontmatter_scalar(value: str | None) -> str:
    """
    Render a scalar value for the frontmatter.

    Values are written unquoted. One that is itself wrapped in matching
    quotes is wrapped again in the other quote character, so the pair the
    reader strips is the added one and the original quotes survive.
    """
    value = _single_line(value)
    if len(value) >= 2 and value[0] == value[-1] and value[0] in QUOTE_CHARS:
        outer = "'" if value[0] == '"' else '"'
        return f"{outer}{value}{outer}"
    return value


def _clean_items(items: list[str]) -> list[str]:
    cleaned = (_single_line(item) for item in items)
    return [item for item in cleaned if item]


def _normalize_block(text: str | None) -> str:
    return (text or "").replace("\r\n", "\n").replace("\r", "\n").strip()


def build_frontmatter(skill: Skill) -> str:
    tags = ", ".join(f'"{tag}"' for tag in _clean_items(skill.tags))
    lines = [
        f"name: {_frontmatter_scalar(skill.name)}",
        f"description: {_frontmatter_scalar(skill.description)}".rstrip(),
        f"category: {_frontmatter_scalar(skill.category) or DEFAULT_CATEGORY}",
        f"tags: [{tags}]",
    ]
    return "\n".join(["---", *lines, "---"])


def build_skill_document(skill: Skill) -> str:
    """
    Render a skill as canonical SKILL document text.

    Layout: frontmatter (name, description, category, tags), a '# <name>'
    heading, the description paragraph, a '## Triggers' list of quoted
    phrases and a '## Instructions' section holding the instructions.
    Scalars are collapsed onto one line and the instructions are trimmed, so
    rendering a re-parsed document reproduces the same text.

    Args:
        skill: The skill to render

    Returns:
        The document text, ending in a newline
    """
    name = _single_line(skill.name)
    description = _single_line(skill.description)
    triggers = "\n".join(f'- "{trigger}"' for trigger in _clean_items(skill.triggers))

    blocks = [
        build_frontmatter(skill),
        f"# {name}",
        description,
        "## Triggers",
        triggers,
        "## Instructions",
        _normalize_block(skill.instructions),
    ]
    return "\n\n".join(block for block in blocks if block) + "\n"


def create_skill_zip(skill: Skill, document: str | None = None) -> BytesIO:
    """
    Package a skill's document and resources into a zip archive.

    The document sits at the archive root as SKILL.md; each resource is
    written unchanged to '<folder>/<filename>'. Resources are expected to
    have passed admission already and to carry their bytes in ``content``.

    Args:
        skill: The skill to package
        document: Pre-rendered document text (rendered from the skill when omitted)

    Returns:
        BytesIO: A buffer containing the zip archive, named '<slug>.zip'
    """
    if document is None:
        document = build_skill_document(skill)

    slug = slugify_skill_name(skill.name)
    logger.info(f"Creating skill zip for {slug} with {len(skill.resources)} resources")

    output_buffer = BytesIO()
    with zipfile.ZipFile(output_buffer, "w", zipfile.ZIP_DEFLATED) as zip_out:
        zip_out.writestr(_zip_info(DOCUMENT_FILENAME), document.encode("utf-8"))
        for resource in skill.resources:
            if resource.content is None and resource.storage_path:
                logger.warning(f"Resource {resource.archive_path} has no content loaded; writing an empty file")
            zip_out.writestr(_zip_info(resource.archive_path), resource.content_bytes())

    output_buffer.seek(0)
    output_buffer.name = f"{slug}.zip"
    logger.debug(f"Skill zip for {slug}: {len(output_buffer.getvalue()) / 1024:.2f} KB")
    return output_buffer


def _zip_info(path: str) -> zipfile.ZipInfo:
    info = zipfile.ZipInfo(path, date_time=ARCHIVE_ENTRY_DATE_TIME)
    info.compress_type = zipfile.ZIP_DEFLATED
    info.external_attr = 0o644 << 16
    return info


def build_skill(skill: Skill) -> BuiltSkill:
    """Render the canonical document and the archive for a skill in one call."""
    document = build_skill_document(skill)
    archive = create_skill_zip(skill, document)
    return BuiltSkill(document=document, archive=archive.getvalue(), filename=archive.name)
