"""
Admission control for skill resource files.

The controller is a pure gate: it decides whether a candidate resource may
join a skill's resource set, and returns the resulting set. Persisting the
bytes is left to the caller, after admission succeeds.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum

from app.services.skill.models import ResourceFolder, SkillResource

logger = logging.getLogger(__name__)

# Constants for admission
MAX_RESOURCE_SIZE_BYTES = 1024 * 1024
MAX_SKILL_SIZE_BYTES = 5 * 1024 * 1024
ALLOWED_FOLDERS: set[str] = {folder.value for folder in ResourceFolder}


class RejectionCode(StrEnum):
    INVALID_FOLDER = "INVALID_FOLDER"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    SKILL_TOO_LARGE = "SKILL_TOO_LARGE"


REJECTION_REASONS: dict[RejectionCode, str] = {
    RejectionCode.INVALID_FOLDER: "Invalid folder type",
    RejectionCode.FILE_TOO_LARGE: "File exceeds per-file limit of 1MB",
    RejectionCode.SKILL_TOO_LARGE: "Skill exceeds total skill limit of 5MB",
}


@dataclass(frozen=True)
class ResourceAccepted:
    resource: SkillResource
    resources: list[SkillResource]
    replaced: bool = False


@dataclass(frozen=True)
class ResourceRejected:
    code: RejectionCode
    resource: SkillResource

    @property
    def reason(self) -> str:
        return REJECTION_REASONS[self.code]


type AdmissionResult = ResourceAccepted | ResourceRejected


def _check_folder(candidate: SkillResource) -> bool:
    return candidate.folder in ALLOWED_FOLDERS


def _check_file_size(candidate: SkillResource) -> bool:
    return (candidate.size_bytes or 0) <= MAX_RESOURCE_SIZE_BYTES


def _check_total_size(existing: list[SkillResource], candidate: SkillResource) -> bool:
    total_size = sum(resource.size_bytes or 0 for resource in existing)
    return total_size + (candidate.size_bytes or 0) <= MAX_SKILL_SIZE_BYTES


def _upsert(existing: list[SkillResource], candidate: SkillResource) -> tuple[list[SkillResource], bool]:
    resources = []
    replaced = False
    for resource in existing:
        if resource.key == candidate.key:
            resources.append(candidate)
            replaced = True
        else:
            resources.append(resource)
    if not replaced:
        resources.append(candidate)
    return resources, replaced


def admit_resource(existing_resources: Iterable[SkillResource], candidate: SkillResource) -> AdmissionResult:
    """
    Decide whether a resource may be added to a skill.

    Checks run in order and stop at the first failure: folder allow-list,
    per-file size, then the skill's cumulative size. The cumulative check
    counts every existing resource, including one the candidate would replace.

    Args:
        existing_resources: The skill's current resources (an accurate snapshot)
        candidate: The resource being added

    Returns:
        ResourceAccepted with the new resource set (the candidate replacing
        any resource with the same folder and filename), or ResourceRejected
    """
    existing = list(existing_resources)

    if not _check_folder(candidate):
        logger.warning(f"Rejected resource {candidate.filename}: invalid folder {candidate.folder!r}")
        return ResourceRejected(RejectionCode.INVALID_FOLDER, candidate)

    if not _check_file_size(candidate):
        logger.warning(f"Rejected resource {candidate.archive_path}: {candidate.size_bytes} bytes")
        return ResourceRejected(RejectionCode.FILE_TOO_LARGE, candidate)

    if not _check_total_size(existing, candidate):
        logger.warning(f"Rejected resource {candidate.archive_path}: skill total would exceed budget")
        return ResourceRejected(RejectionCode.SKILL_TOO_LARGE, candidate)

    resources, replaced = _upsert(existing, candidate)
    logger.debug(f"Admitted resource {candidate.archive_path} ({candidate.size_bytes} bytes, replaced={replaced})")
    return ResourceAccepted(resource=candidate, resources=resources, replaced=replaced)

