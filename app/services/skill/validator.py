"""
Content and security validation for SKILL documents.
"""

import logging
import re

from app.services.skill.fields import extract_fields
from app.services.skill.frontmatter import split_document
from app.services.skill.models import ExtractedFields, ValidationResult

logger = logging.getLogger(__name__)

# Constants for validation
MIN_CONTENT_LENGTH = 100

MISSING_FRONTMATTER = "Missing YAML frontmatter (---...---)"
MISSING_NAME = "Missing required field: name"
MISSING_DESCRIPTION = "Missing recommended field: description"
MISSING_TRIGGERS = "Missing recommended field: triggers"
EMPTY_TRIGGERS = "Triggers array is empty"
MISSING_INSTRUCTIONS_SECTION = "No clear instructions section found (expected # Instructions heading)"
SHORT_CONTENT = "Skill content is very short - consider adding more detail"
DYNAMIC_CODE_EXECUTION = "Security issue: Dynamic code execution detected"
CLIENT_STORAGE_ACCESS = "Security note: Client-side storage access detected"

DYNAMIC_CODE_PATTERNS: set[str] = {
    "eval(",
    "exec(",
}

CLIENT_STORAGE_PATTERNS: set[str] = {
    "document.cookie",
    "localStorage",
}

INSTRUCTIONS_HEADING_PATTERN = re.compile(r"^#{1,6}[ \t]*(Instructions|Overview|Usage)\b", re.IGNORECASE | re.MULTILINE)
URL_PATTERN = re.compile(r"""https?://[^\s"']+""")


def _check_fields(fields: ExtractedFields) -> tuple[list[str], list[str]]:
    """Check required and recommended frontmatter fields."""
    errors: list[str] = []
    warnings: list[str] = []

    if fields.name is None:
        errors.append(MISSING_NAME)

    if fields.description is None:
        warnings.append(MISSING_DESCRIPTION)

    if fields.triggers is None:
        warnings.append(MISSING_TRIGGERS)
    elif not fields.triggers:
        warnings.append(EMPTY_TRIGGERS)

    return errors, warnings


def _check_instructions_section(body: str) -> str | None:
    if not INSTRUCTIONS_HEADING_PATTERN.search(body):
        return MISSING_INSTRUCTIONS_SECTION
    return None


def _check_content_length(body: str) -> str | None:
    if len(body) < MIN_CONTENT_LENGTH:
        return SHORT_CONTENT
    return None


def _check_for_dynamic_code(content: str) -> str | None:
    if any(pattern in content for pattern in DYNAMIC_CODE_PATTERNS):
        return DYNAMIC_CODE_EXECUTION
    return None


def _check_for_client_storage(content: str) -> str | None:
    if any(pattern in content for pattern in CLIENT_STORAGE_PATTERNS):
        return CLIENT_STORAGE_ACCESS
    return None


def _check_for_urls(content: str) -> str | None:
    urls = URL_PATTERN.findall(content)
    if urls:
        return f"External URLs detected ({len(urls)}): Review for security"
    return None


def _build_info(fields: ExtractedFields) -> dict[str, object]:
    info = {
        "name": fields.name,
        "description": fields.description,
        "triggers": fields.triggers,
    }
    return {key: value for key, value in info.items() if value is not None}


def validate_skill_content(content: str | bytes) -> ValidationResult:
    """
    Validate a SKILL document and extract whatever metadata it carries.

    Every check runs regardless of the outcome of the others, so a document
    without frontmatter still gets its body checked. Only a missing
    frontmatter block, a missing name and dynamic code execution markers are
    errors; everything else is a warning.

    Args:
        content: The raw document text

    Returns:
        ValidationResult with errors, warnings and the extracted info
    """
    result = ValidationResult()

    if isinstance(content, bytes):
        content = content.decode("utf-8", errors="replace")

    document, has_frontmatter = split_document(content)
    fields = ExtractedFields()

    if not has_frontmatter:
        result.add_error(MISSING_FRONTMATTER)
    else:
        fields = extract_fields(document.frontmatter)
        errors, warnings = _check_fields(fields)
        result.errors.extend(errors)
        result.warnings.extend(warnings)

    for check in (_check_instructions_section, _check_content_length):
        warning = check(document.body)
        if warning:
            result.add_warning(warning)

    # Security heuristics look at the whole document, frontmatter included.
    full_text = f"{document.frontmatter}\n{document.body}"

    error = _check_for_dynamic_code(full_text)
    if error:
        result.add_error(error)

    for check in (_check_for_client_storage, _check_for_urls):
        warning = check(full_text)
        if warning:
            result.add_warning(warning)

    result.info.update(_build_info(fields))

    logger.debug(f"Validated skill content: {len(result.errors)} errors, {len(result.warnings)} warnings")
    return result
