"""
Data model shared by every skill package operation.
"""

from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any

DEFAULT_CATEGORY = "Imported"
DEFAULT_SKILL_NAME = "Imported Skill"
DEFAULT_MIME_TYPE = "application/octet-stream"

MIME_TYPES: dict[str, str] = {
    "md": "text/markdown",
    "txt": "text/plain",
    "js": "application/javascript",
    "ts": "application/typescript",
    "py": "text/x-python",
    "json": "application/json",
    "yaml": "application/x-yaml",
    "yml": "application/x-yaml",
    "html": "text/html",
    "css": "text/css",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "svg": "image/svg+xml",
    "pdf": "application/pdf",
}


class ResourceFolder(StrEnum):
    """Folders a resource file may be attached under."""

    SCRIPTS = "scripts"
    REFERENCES = "references"
    ASSETS = "assets"
    TEMPLATES = "templates"
    EXAMPLES = "examples"


def guess_mime_type(filename: str) -> str:
    """Map a filename's extension to a MIME type, falling back to a generic binary type."""
    if "." not in filename:
        return DEFAULT_MIME_TYPE
    extension = filename.rsplit(".", 1)[1].lower()
    return MIME_TYPES.get(extension, DEFAULT_MIME_TYPE)


def content_size(content: str | bytes | None) -> int:
    if content is None:
        return 0
    if isinstance(content, str):
        return len(content.encode("utf-8"))
    return len(content)


@dataclass
class SkillResource:
    """
    An auxiliary file attached to a skill.

    ``folder`` is kept as a plain string so unknown values can reach the
    admission controller, which is the one place they are rejected.
    ``size_bytes`` always follows ``content`` when content is present; it is
    only taken as given for resources whose bytes live in storage.
    ``mime_type`` is derived from ``filename`` when not given.
    """

    folder: str
    filename: str
    content: str | bytes | None = None
    size_bytes: int | None = None
    mime_type: str | None = None
    storage_path: str | None = None

    def __post_init__(self) -> None:
        if self.content is not None or self.size_bytes is None:
            self.size_bytes = content_size(self.content)
        if self.size_bytes < 0:
            raise ValueError(f"size_bytes must be >= 0, got {self.size_bytes}")
        if not self.mime_type:
            self.mime_type = guess_mime_type(self.filename)

    @property
    def key(self) -> tuple[str, str]:
        return self.folder, self.filename

    @property
    def archive_path(self) -> str:
        return f"{self.folder}/{self.filename}"

    @property
    def is_uploaded(self) -> bool:
        return bool(self.storage_path)

    def content_bytes(self) -> bytes:
        if self.content is None:
            return b""
        if isinstance(self.content, str):
            return self.content.encode("utf-8")
        return self.content


@dataclass
class Skill:
    """A structured skill, as parsed from a SKILL document or entered directly."""

    name: str
    description: str = ""
    category: str = DEFAULT_CATEGORY
    tags: list[str] = field(default_factory=list)
    triggers: list[str] = field(default_factory=list)
    instructions: str = ""
    resources: list[SkillResource] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.instructions is None:
            self.instructions = ""
        if self.description is None:
            self.description = ""

    @property
    def total_resource_size(self) -> int:
        return sum(resource.size_bytes or 0 for resource in self.resources)

    def copy(self, **changes: Any) -> "Skill":
        """Return a copy with fresh lists so the copy can be mutated independently."""
        duplicate = replace(
            self,
            tags=list(self.tags),
            triggers=list(self.triggers),
            resources=[replace(resource) for resource in self.resources],
        )
        for attribute, value in changes.items():
            setattr(duplicate, attribute, value)
        return duplicate


@dataclass
class ExtractedFields:
    """
    Best-effort fields pulled out of a frontmatter block.

    ``None`` means the field was absent. An empty list for ``triggers`` or
    ``tags`` means the key was present with no usable entries.
    """

    name: str | None = None
    description: str | None = None
    category: str | None = None
    tags: list[str] | None = None
    triggers: list[str] | None = None


@dataclass
class ValidationResult:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    info: dict[str, Any] = field(default_factory=dict)

    @property
    def valid(self) -> bool:
        return not self.errors

    def add_error(self, message: str) -> None:
        self.errors.append(message)

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "info": {key: value for key, value in self.info.items() if value is not None},
        }
