"""
Skill package parsing, validation and packaging services.
"""

from app.services.skill.archive import DocumentNotFound, InvalidArchiveError, LocatedDocument, locate_skill_document
from app.services.skill.fields import extract_fields
from app.services.skill.frontmatter import scan_frontmatter
from app.services.skill.importer import (
    SkillImport,
    duplicate_skill,
    import_skill_archive,
    import_skill_file,
    import_skill_text,
    inspect_skill_file,
)
from app.services.skill.models import ResourceFolder, Skill, SkillResource, ValidationResult
from app.services.skill.packager import build_skill, build_skill_document, create_skill_zip, slugify_skill_name
from app.services.skill.parser import parse_skill_document
from app.services.skill.resources import ResourceAccepted, ResourceRejected, admit_resource
from app.services.skill.validator import validate_skill_content

__all__ = [
    "DocumentNotFound",
    "InvalidArchiveError",
    "LocatedDocument",
    "ResourceAccepted",
    "ResourceFolder",
    "ResourceRejected",
    "Skill",
    "SkillImport",
    "SkillResource",
    "ValidationResult",
    "admit_resource",
    "build_skill",
    "build_skill_document",
    "create_skill_zip",
    "duplicate_skill",
    "extract_fields",
    "import_skill_archive",
    "import_skill_file",
    "import_skill_text",
    "inspect_skill_file",
    "locate_skill_document",
    "parse_skill_document",
    "scan_frontmatter",
    "slugify_skill_name",
    "validate_skill_content",
]
