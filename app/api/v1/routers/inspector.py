"""
Inspector endpoint: validate a SKILL document or archive and report diagnostics.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, File, Form, UploadFile, status
from fastapi.responses import JSONResponse

from app.api.v1.models.responses import ValidationResultModel
from app.api.v1.uploads import read_upload
from app.services.skill.archive import CORRUPT_ARCHIVE_MESSAGE, InvalidArchiveError
from app.services.skill.importer import inspect_skill_file
from app.services.skill.models import ValidationResult
from app.services.skill.validator import validate_skill_content

router = APIRouter()
logger = logging.getLogger(__name__)

NO_INPUT = "No file or content provided"


def _error_response(message: str, status_code: int) -> JSONResponse:
    result = ValidationResult(errors=[message])
    return JSONResponse(status_code=status_code, content=result.to_dict())


@router.post("", response_model=ValidationResultModel)
async def inspect_skill(
    file: Annotated[UploadFile | None, File()] = None,
    content: Annotated[str | None, Form()] = None,
) -> JSONResponse:
    """
    Inspect an uploaded file (.md, .txt, .zip, .skill) or pasted content.

    Returns:
        JSONResponse: The validation result. Diagnostics on the content are
        returned with 200; a corrupt archive or missing input is a 400.
    """
    if file is not None:
        data = await read_upload(file)
        logger.info(f"Inspecting uploaded file {file.filename} ({len(data)} bytes)")
        try:
            result = inspect_skill_file(file.filename or "", data)
        except InvalidArchiveError as e:
            logger.warning(f"Corrupt archive uploaded for inspection: {e}")
            return _error_response(CORRUPT_ARCHIVE_MESSAGE, status.HTTP_400_BAD_REQUEST)
    elif content:
        result = validate_skill_content(content)
    else:
        return _error_response(NO_INPUT, status.HTTP_400_BAD_REQUEST)

    return JSONResponse(status_code=status.HTTP_200_OK, content=result.to_dict())
