"""
Skill endpoints for parsing, importing, exporting, duplicating and attaching resources.
"""

import logging
from typing import Annotated
from uuid import uuid4

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile, status
from fastapi.responses import JSONResponse, PlainTextResponse, Response, StreamingResponse
from starlette.datastructures import UploadFile as StarletteUploadFile

from app.api.v1.models.requests import AddResourceRequestModel, SkillModel, SkillResourceModel
from app.api.v1.models.responses import (
    ResourceAdmissionResponseModel,
    SkillImportResponseModel,
    ValidationResultModel,
)
from app.api.v1.uploads import read_upload
from app.clients.storage_client import StorageClient
from app.core.config import settings
from app.services.skill.importer import SkillImport, duplicate_skill, import_skill_archive, import_skill_text
from app.services.skill.library import SkillLibraryImporter
from app.services.skill.packager import build_skill
from app.services.skill.resources import ResourceRejected, admit_resource
from app.services.skill.storage import load_resource_contents, persist_resources, upload_resource

router = APIRouter()
logger = logging.getLogger(__name__)


def _import_response(skill_import: SkillImport) -> SkillImportResponseModel:
    return SkillImportResponseModel(
        skill=SkillModel.from_skill(skill_import.skill) if skill_import.skill else None,
        validation=ValidationResultModel.from_result(skill_import.validation),
        document_path=skill_import.document_path,
    )


@router.post("/parse", response_model=SkillImportResponseModel)
async def parse_skill(
    file: Annotated[UploadFile | None, File()] = None,
    content: Annotated[str | None, Form()] = None,
) -> SkillImportResponseModel:
    """
    Parse a pasted or uploaded SKILL document into a skill draft.

    Returns:
        The draft together with its validation result
    """
    if file is not None:
        data = await read_upload(file)
        skill_import = import_skill_text(data)
    elif content:
        skill_import = import_skill_text(content)
    else:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file or content provided")

    return _import_response(skill_import)


@router.post("/import", response_model=SkillImportResponseModel)
async def import_skill(
    file: Annotated[UploadFile, File()],
    owner: Annotated[str, Form()] = "anonymous",
) -> JSONResponse:
    """
    Import a skill from an uploaded archive.

    Admitted resources are uploaded under the owner's namespace when an
    object store is configured.

    Returns:
        JSONResponse: 200 with the skill, its admitted resources and
        validation result; 422 when the archive holds no SKILL.md; 400 when
        the archive cannot be opened
    """
    data = await read_upload(file)
    logger.info(f"Importing skill archive {file.filename} ({len(data)} bytes)")

    skill_import = import_skill_archive(data)
    if skill_import.skill and settings.storage_enabled:
        skill_import.skill.resources = persist_resources(
            skill_import.skill.resources, StorageClient(), owner, skill_import.skill.name
        )

    status_code = status.HTTP_200_OK if skill_import.skill else status.HTTP_422_UNPROCESSABLE_ENTITY
    return JSONResponse(status_code=status_code, content=_import_response(skill_import).model_dump())


@router.post("/import/batch")
async def import_skill_library(request: Request) -> StreamingResponse:
    """
    Import many skill files at once, streaming progress as NDJSON.

    Every uploaded file in the form is imported independently; a failing
    file is reported and the rest continue.
    """
    request_id = getattr(request.state, "request_id", None) or str(uuid4())
    form = await request.form()

    entries = []
    for _, value in form.multi_items():
        if isinstance(value, StarletteUploadFile):
            entries.append((value.filename or "", await read_upload(value)))

    logger.info(f"Received {len(entries)} files for library import - request_id: {request_id}")
    return SkillLibraryImporter(request_id).import_files(entries)


@router.post("/document", response_class=PlainTextResponse)
async def render_skill_document(data: SkillModel) -> PlainTextResponse:
    """Render a skill as its canonical SKILL document."""
    built = build_skill(data.to_skill())
    return PlainTextResponse(built.document, media_type="text/markdown; charset=utf-8")


@router.post("/export")
async def export_skill(data: SkillModel) -> Response:
    """
    Export a skill as a zip archive holding SKILL.md and its resources.

    Resources that only carry a storage path are fetched from the object
    store first.
    """
    skill = data.to_skill()

    if settings.storage_enabled:
        skill.resources = load_resource_contents(skill.resources, StorageClient())

    built = build_skill(skill)
    logger.info(f"Exported skill {skill.name!r} as {built.filename}")
    return Response(
        content=built.archive,
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{built.filename}"'},
    )


@router.post("/duplicate", response_model=SkillModel)
async def duplicate(data: SkillModel) -> SkillModel:
    """Duplicate a skill, suffixing its name with ' (Copy)'."""
    return SkillModel.from_skill(duplicate_skill(data.to_skill()))


@router.post("/resources", response_model=ResourceAdmissionResponseModel)
async def add_resource(data: AddResourceRequestModel) -> JSONResponse:
    """
    Admit a resource into a skill's resource set, uploading it when storage is configured.

    Returns:
        JSONResponse: 200 with the resulting resource set, 400 with the
        rejection reason, or 502 if the upload fails
    """
    existing = [resource.to_resource() for resource in data.existing]
    candidate = data.candidate.to_resource()

    result = admit_resource(existing, candidate)
    if isinstance(result, ResourceRejected):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"status": "error", "code": result.code.value, "message": result.reason},
        )

    resource = result.resource
    resources = result.resources
    uploaded = False

    if settings.storage_enabled and not resource.is_uploaded:
        resource = upload_resource(StorageClient(), data.owner, data.skill_name, resource)
        resources = [resource if item.key == resource.key else item for item in resources]
        uploaded = True

    response = ResourceAdmissionResponseModel(
        resource=SkillResourceModel.from_resource(resource),
        resources=[SkillResourceModel.from_resource(item) for item in resources],
        replaced=result.replaced,
        uploaded=uploaded,
    )
    return JSONResponse(status_code=status.HTTP_200_OK, content=response.model_dump())
