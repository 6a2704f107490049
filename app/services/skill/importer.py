"""
Entry points shared by the inspector, importers, export and duplication.

Every caller goes through these functions so they all apply the same
parsing, validation and admission rules.
"""

import logging
from dataclasses import dataclass, field
from pathlib import PurePosixPath

from app.services.skill.archive import DocumentNotFound, SkillArchive
from app.services.skill.models import Skill, SkillResource, ValidationResult
from app.services.skill.packager import build_skill_document
from app.services.skill.parser import parse_skill_document
from app.services.skill.resources import (
    MAX_RESOURCE_SIZE_BYTES,
    ResourceAccepted,
    ResourceRejected,
    admit_resource,
)
from app.services.skill.validator import validate_skill_content

logger = logging.getLogger(__name__)

TEXT_EXTENSIONS = {".md", ".txt"}
ARCHIVE_EXTENSIONS = {".zip", ".skill"}
IGNORED_ARCHIVE_PREFIXES = ("__MACOSX/",)
COPY_SUFFIX = " (Copy)"

UNSUPPORTED_FILE_TYPE = "Unsupported file type. Please upload a .md, .txt or .zip file."


@dataclass
class SkillImport:
    """Outcome of importing one document or archive."""

    validation: ValidationResult
    skill: Skill | None = None
    document_path: str | None = None
    rejected: list[ResourceRejected] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.skill is not None and self.validation.valid


def decode_text(data: bytes | str) -> str:
    if isinstance(data, str):
        return data
    return data.decode("utf-8", errors="replace")


def import_skill_text(content: bytes | str) -> SkillImport:
    """Parse and validate a pasted or uploaded SKILL document."""
    text = decode_text(content)
    return SkillImport(validation=validate_skill_content(text), skill=parse_skill_document(text))


def _is_ignored(path: str) -> bool:
    name = PurePosixPath(path).name
    return path.startswith(IGNORED_ARCHIVE_PREFIXES) or name.startswith(".")


def _admit_archive_resources(
    archive: SkillArchive, document_path: str, directory: str
) -> tuple[list[SkillResource], list[ResourceRejected]]:
    """
    Admit the files under subfolders next to the document as resources.

    Files sitting beside the document (README.md, config files) are not
    resources; anything one folder deeper is offered to admission, which
    rejects folders outside the allow-list. Each entry is first admitted
    on its header size and only read when that passes, and the read stops
    just past the per-file limit.
    """
    resources: list[SkillResource] = []
    rejected: list[ResourceRejected] = []
    for path in archive.paths:
        if path == document_path or not path.startswith(directory) or _is_ignored(path):
            continue

        relative = path[len(directory) :]
        if "/" not in relative:
            continue

        folder, filename = relative.split("/", 1)
        header = SkillResource(folder=folder, filename=filename, size_bytes=archive.size(path))
        result = admit_resource(resources, header)
        if isinstance(result, ResourceAccepted):
            content = archive.read(path, limit=MAX_RESOURCE_SIZE_BYTES)
            result = admit_resource(resources, SkillResource(folder=folder, filename=filename, content=content))

        if isinstance(result, ResourceRejected):
            rejected.append(result)
        else:
            resources = result.resources
    return resources, rejected


def import_skill_archive(data: bytes) -> SkillImport:
    """
    Import a skill from zip archive bytes.

    Args:
        data: The archive bytes

    Returns:
        SkillImport carrying the parsed skill with its admitted resources.
        When no document can be located, ``skill`` is None and the
        validation result holds a single error naming the entry count.

    Raises:
        InvalidArchiveError: If the bytes cannot be opened as an archive
    """
    with SkillArchive(data) as archive:
        located = archive.locate()

        if isinstance(located, DocumentNotFound):
            validation = ValidationResult(errors=[located.message], info={"resourceCount": located.resource_count})
            return SkillImport(validation=validation)

        logger.info(f"Importing skill document {located.path} from archive")
        text = located.text()
        skill = parse_skill_document(text)
        validation = validate_skill_content(text)

        resources, rejected = _admit_archive_resources(archive, located.path, located.directory)

    for rejection in rejected:
        validation.add_warning(f"Skipped resource {rejection.resource.archive_path}: {rejection.reason}")

    skill.resources = resources
    validation.info["resourceCount"] = len(resources)

    logger.info(f"Imported skill {skill.name!r} with {len(resources)} resources ({len(rejected)} skipped)")
    return SkillImport(validation=validation, skill=skill, document_path=located.path, rejected=rejected)


def import_skill_file(filename: str, data: bytes) -> SkillImport:
    """
    Import an uploaded file, choosing the text or archive path from its extension.

    Raises:
        InvalidArchiveError: If an archive upload cannot be opened
    """
    extension = PurePosixPath(filename or "").suffix.lower()

    if extension in TEXT_EXTENSIONS:
        return import_skill_text(data)

    if extension in ARCHIVE_EXTENSIONS:
        return import_skill_archive(data)

    logger.warning(f"Unsupported upload type for {filename!r}")
    return SkillImport(validation=ValidationResult(errors=[UNSUPPORTED_FILE_TYPE]))


def inspect_skill_file(filename: str, data: bytes) -> ValidationResult:
    return import_skill_file(filename, data).validation


def duplicate_skill(skill: Skill) -> Skill:
    """
    Copy a skill through its canonical document, suffixing the name with " (Copy)".

    Resources are carried over as copies, storage paths included, so
    already-uploaded files are not uploaded again.
    """
    duplicate = parse_skill_document(build_skill_document(skill))
    duplicate.name = f"{duplicate.name}{COPY_SUFFIX}"
    duplicate.resources = skill.copy().resources
    return duplicate
