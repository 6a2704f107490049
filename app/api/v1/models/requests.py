import base64
import binascii
from typing import Self

from pydantic import BaseModel, Field, field_validator, model_validator

from app.services.skill.models import DEFAULT_CATEGORY, Skill, SkillResource


class SkillResourceModel(BaseModel):
    """Skill resource payload. Text goes in ``content``, binary in ``content_base64``."""

    folder: str
    filename: str = Field(min_length=1)
    content: str | None = None
    content_base64: str | None = None
    size_bytes: int | None = Field(default=None, ge=0)
    mime_type: str | None = None
    storage_path: str | None = None

    @model_validator(mode="after")
    def check_single_content(self) -> Self:
        if self.content is not None and self.content_base64 is not None:
            raise ValueError("Provide either content or content_base64, not both")
        return self

    @field_validator("content_base64")
    @classmethod
    def validate_base64(cls, value: str | None) -> str | None:
        if value is None:
            return value
        try:
            base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError("content_base64 is not valid base64") from e
        return value

    def to_resource(self) -> SkillResource:
        content: str | bytes | None = self.content
        if self.content_base64 is not None:
            content = base64.b64decode(self.content_base64)

        return SkillResource(
            folder=self.folder,
            filename=self.filename,
            content=content,
            size_bytes=self.size_bytes,
            mime_type=self.mime_type,
            storage_path=self.storage_path,
        )

    @classmethod
    def from_resource(cls, resource: SkillResource) -> "SkillResourceModel":
        content = resource.content
        content_base64 = None
        if isinstance(content, bytes):
            try:
                content = content.decode("utf-8")
            except UnicodeDecodeError:
                content_base64 = base64.b64encode(content).decode("ascii")
                content = None

        return cls(
            folder=resource.folder,
            filename=resource.filename,
            content=content,
            content_base64=content_base64,
            size_bytes=resource.size_bytes,
            mime_type=resource.mime_type,
            storage_path=resource.storage_path,
        )


class SkillModel(BaseModel):
    """Skill payload."""

    name: str
    description: str = ""
    category: str = DEFAULT_CATEGORY
    tags: list[str] = []
    triggers: list[str] = []
    instructions: str = ""
    resources: list[SkillResourceModel] = []

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        """Name is required and must not be blank."""
        if not value.strip():
            raise ValueError("Skill name must not be empty")
        return value.strip()

    @field_validator("instructions", "description", mode="before")
    @classmethod
    def none_to_empty(cls, value: str | None) -> str:
        return value or ""

    @model_validator(mode="after")
    def check_unique_resources(self) -> Self:
        keys = [(resource.folder, resource.filename) for resource in self.resources]
        if len(keys) != len(set(keys)):
            raise ValueError("Resources must be unique per folder and filename")
        return self

    def to_skill(self) -> Skill:
        return Skill(
            name=self.name,
            description=self.description,
            category=self.category or DEFAULT_CATEGORY,
            tags=list(self.tags),
            triggers=list(self.triggers),
            instructions=self.instructions,
            resources=[resource.to_resource() for resource in self.resources],
        )

    @classmethod
    def from_skill(cls, skill: Skill) -> "SkillModel":
        return cls(
            name=skill.name,
            description=skill.description,
            category=skill.category,
            tags=skill.tags,
            triggers=skill.triggers,
            instructions=skill.instructions,
            resources=[SkillResourceModel.from_resource(resource) for resource in skill.resources],
        )


class AddResourceRequestModel(BaseModel):
    """Add resource request model."""

    skill_name: str
    owner: str = "anonymous"
    existing: list[SkillResourceModel] = []
    candidate: SkillResourceModel
