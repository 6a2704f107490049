"""
Parsing SKILL documents into Skill drafts.
"""

import re
from dataclasses import dataclass

from app.services.skill.fields import extract_fields, parse_block_items
from app.services.skill.frontmatter import split_document
from app.services.skill.models import DEFAULT_CATEGORY, DEFAULT_SKILL_NAME, Skill

TITLE_PATTERN = re.compile(r"\A#[ \t]+\S")
TRIGGERS_HEADING_PATTERN = re.compile(r"^## Triggers[ \t]*$", re.MULTILINE)
INSTRUCTIONS_HEADING_PATTERN = re.compile(r"^## Instructions[ \t]*$", re.MULTILINE)
LIST_LINE_PATTERN = re.compile(r"^[ \t]*-")


@dataclass(frozen=True)
class CanonicalBody:
    triggers: list[str]
    instructions: str


def _triggers_search_start(body: str, description: str | None) -> int:
    """
    Position after the title line and the description paragraph, if present.

    The description paragraph is skipped when it repeats the frontmatter
    description, so a description reading '## Triggers' is not mistaken
    for the section heading.
    """
    title_end = body.find("\n")
    if title_end == -1:
        return len(body)

    rest = body[title_end:].lstrip("\n")
    paragraph = rest.split("\n", 1)[0]
    if description and paragraph.strip() == description.strip():
        return len(body) - len(rest) + len(paragraph)
    return title_end


def read_canonical_body(body: str, description: str | None = None) -> CanonicalBody | None:
    """
    Read the body layout written by ``build_skill_document``.

    The body must open with a '# ' title and hold a '## Triggers' section
    made only of dash lines, followed by a '## Instructions' section.
    When the frontmatter ``description`` is given, the paragraph repeating
    it under the title is never read as a heading.

    Returns:
        The triggers and instructions, or None when the body is laid out differently
    """
    body = body.strip()
    if not TITLE_PATTERN.match(body):
        return None

    triggers_heading = TRIGGERS_HEADING_PATTERN.search(body, _triggers_search_start(body, description))
    if not triggers_heading:
        return None

    instructions_heading = INSTRUCTIONS_HEADING_PATTERN.search(body, triggers_heading.end())
    if not instructions_heading:
        return None

    trigger_lines = body[triggers_heading.end() : instructions_heading.start()]
    if any(line.strip() and not LIST_LINE_PATTERN.match(line) for line in trigger_lines.split("\n")):
        return None

    return CanonicalBody(
        triggers=parse_block_items(trigger_lines.strip("\n")),
        instructions=body[instructions_heading.end() :].strip(),
    )


def parse_skill_document(raw: str) -> Skill:
    """
    Parse a SKILL document into a Skill draft.

    Never raises on malformed content. Without frontmatter the whole text
    becomes the instructions of a skill named "Imported Skill".

    Args:
        raw: The raw document text

    Returns:
        Skill draft without resources
    """
    document, has_frontmatter = split_document(raw)
    if not has_frontmatter:
        return Skill(name=DEFAULT_SKILL_NAME, category=DEFAULT_CATEGORY, instructions=document.body)

    fields = extract_fields(document.frontmatter)
    canonical = read_canonical_body(document.body, fields.description)

    triggers = fields.triggers
    if triggers is None:
        triggers = canonical.triggers if canonical else []

    return Skill(
        name=fields.name or DEFAULT_SKILL_NAME,
        description=fields.description or "",
        category=fields.category or DEFAULT_CATEGORY,
        tags=fields.tags or [],
        triggers=triggers,
        instructions=canonical.instructions if canonical else document.body.strip(),
    )
