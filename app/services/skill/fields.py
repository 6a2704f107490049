"""
Tolerant field extraction from a frontmatter block.

Each field has its own independent extractor. None of them raise: a field
that cannot be found, or is malformed, is simply left absent.
"""

import re

from app.services.skill.models import ExtractedFields

SCALAR_FIELDS = ("name", "description", "category")
LIST_FIELDS = ("tags", "triggers")

QUOTE_CHARS = "\"'"


def _scalar_pattern(key: str) -> re.Pattern[str]:
    return re.compile(rf"^{key}:[ \t]*(?P<value>[^\n]*)$", re.MULTILINE)


def _block_list_pattern(key: str) -> re.Pattern[str]:
    return re.compile(rf"^{key}:[ \t]*\n(?P<items>(?:[ \t]+-[^\n]*(?:\n|\Z))+)", re.MULTILINE)


def _inline_list_pattern(key: str) -> re.Pattern[str]:
    return re.compile(rf"^{key}:[ \t]*\[(?P<items>[^\n]*?)\][ \t]*$", re.MULTILINE)


SCALAR_PATTERNS = {key: _scalar_pattern(key) for key in SCALAR_FIELDS}
BLOCK_LIST_PATTERNS = {key: _block_list_pattern(key) for key in LIST_FIELDS}
INLINE_LIST_PATTERNS = {key: _inline_list_pattern(key) for key in LIST_FIELDS}

BLOCK_ITEM_PREFIX = re.compile(r"""^\s*-\s*["']?""")
BLOCK_ITEM_SUFFIX = re.compile(r"""["']?\s*$""")
INLINE_ITEM_QUOTES = re.compile(r"""^["']|["']$""")


def strip_quotes(value: str) -> str:
    """Strip one matching pair of surrounding single or double quotes, then trim."""
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in QUOTE_CHARS:
        value = value[1:-1]
    return value.strip()


def parse_block_items(lines: str) -> list[str]:
    """Turn indented dash lines into values, dropping entries left empty."""
    items = []
    for line in lines.split("\n"):
        item = BLOCK_ITEM_SUFFIX.sub("", BLOCK_ITEM_PREFIX.sub("", line))
        if item:
            items.append(item)
    return items


def parse_inline_items(contents: str) -> list[str]:
    items = []
    for element in contents.split(","):
        item = INLINE_ITEM_QUOTES.sub("", element.strip()).strip()
        if item:
            items.append(item)
    return items


def extract_scalar(frontmatter: str, key: str) -> str | None:
    match = SCALAR_PATTERNS[key].search(frontmatter)
    if not match:
        return None
    value = strip_quotes(match.group("value"))
    return value or None


def extract_list(frontmatter: str, key: str) -> list[str] | None:
    """
    Extract a list field, trying block-list syntax first and inline-array syntax second.

    Returns:
        The items in document order, an empty list when the key is present
        without usable items, or None when neither syntax matches.
    """
    block_match = BLOCK_LIST_PATTERNS[key].search(frontmatter)
    if block_match:
        return parse_block_items(block_match.group("items"))

    inline_match = INLINE_LIST_PATTERNS[key].search(frontmatter)
    if inline_match:
        return parse_inline_items(inline_match.group("items"))

    return None


def extract_name(frontmatter: str) -> str | None:
    return extract_scalar(frontmatter, "name")


def extract_description(frontmatter: str) -> str | None:
    return extract_scalar(frontmatter, "description")


def extract_category(frontmatter: str) -> str | None:
    return extract_scalar(frontmatter, "category")


def extract_tags(frontmatter: str) -> list[str] | None:
    return extract_list(frontmatter, "tags")


def extract_triggers(frontmatter: str) -> list[str] | None:
    return extract_list(frontmatter, "triggers")


def extract_fields(frontmatter: str) -> ExtractedFields:
    """Pull every known field out of a frontmatter block."""
    return ExtractedFields(
        name=extract_name(frontmatter),
        description=extract_description(frontmatter),
        category=extract_category(frontmatter),
        tags=extract_tags(frontmatter),
        triggers=extract_triggers(frontmatter),
    )
