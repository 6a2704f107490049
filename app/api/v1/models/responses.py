from typing import Any

from pydantic import BaseModel

from app.api.v1.models.requests import SkillModel, SkillResourceModel
from app.services.skill.models import ValidationResult


class ValidationResultModel(BaseModel):
    """Validation result response schema."""

    valid: bool
    errors: list[str]
    warnings: list[str]
    info: dict[str, Any]

    @classmethod
    def from_result(cls, result: ValidationResult) -> "ValidationResultModel":
        return cls(**result.to_dict())


class SkillImportResponseModel(BaseModel):
    """Parsed or imported skill response schema."""

    skill: SkillModel | None = None
    validation: ValidationResultModel
    document_path: str | None = None


class ResourceAdmissionResponseModel(BaseModel):
    """Resource admission response schema."""

    resource: SkillResourceModel
    resources: list[SkillResourceModel]
    replaced: bool
    uploaded: bool
