"""
Helpers for reading uploaded files within the configured size cap.
"""

from fastapi import HTTPException, UploadFile, status

from app.core.config import settings


async def read_upload(file: UploadFile) -> bytes:
    """
    Read an uploaded file, refusing anything larger than MAX_UPLOAD_SIZE_BYTES.

    Raises:
        HTTPException: 413 if the upload exceeds the limit
    """
    data = await file.read(settings.MAX_UPLOAD_SIZE_BYTES + 1)
    if len(data) > settings.MAX_UPLOAD_SIZE_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Upload exceeds {settings.MAX_UPLOAD_SIZE_BYTES} bytes",
        )
    return data
