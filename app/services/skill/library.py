import logging
from collections.abc import AsyncIterator

from fastapi.responses import StreamingResponse

from app.core.response import ProgressEvent, encode_event
from app.services.skill.archive import InvalidArchiveError
from app.services.skill.importer import SkillImport, import_skill_file

logger = logging.getLogger(__name__)


def _import_response(
    filename: str, skill_import: SkillImport, processed_count: int, total_count: int
) -> ProgressEvent:
    # Keep the progress between 0.1 and 0.9 while files are being imported
    progress = 0.1 + (processed_count / total_count) * 0.8
    validation = skill_import.validation.to_dict()

    if skill_import.skill is None:
        return {
            "message": f"Failed to import {filename} ({processed_count}/{total_count})",
            "data": {
                "filename": filename,
                "validation": validation,
                "processed": processed_count,
                "total": total_count,
            },
            "success": False,
            "code": "SKILL_IMPORT_FAILED",
            "progress": progress,
        }

    return {
        "message": f"Skill {skill_import.skill.name} imported ({processed_count}/{total_count})",
        "data": {
            "filename": filename,
            "skill_name": skill_import.skill.name,
            "document_path": skill_import.document_path,
            "resource_count": len(skill_import.skill.resources),
            "validation": validation,
            "processed": processed_count,
            "total": total_count,
        },
        "success": skill_import.validation.valid,
        "code": "SKILL_IMPORTED" if skill_import.validation.valid else "SKILL_IMPORT_FAILED",
        "progress": progress,
    }


def _corrupt_archive_response(filename: str, error: Exception, processed_count: int, total_count: int) -> ProgressEvent:
    progress = 0.1 + (processed_count / total_count) * 0.8
    return {
        "message": f"Failed to import {filename} ({processed_count}/{total_count})",
        "data": {
            "filename": filename,
            "error": str(error),
            "error_type": error.__class__.__name__,
            "processed": processed_count,
            "total": total_count,
        },
        "success": False,
        "code": "ARCHIVE_INVALID",
        "progress": progress,
    }


class SkillLibraryImporter:
    """Imports a batch of uploaded skill files, streaming one NDJSON event per file."""

    def __init__(self, request_id: str):
        self.request_id = request_id

    def import_files(self, entries: list[tuple[str, bytes]]) -> StreamingResponse:
        file_count = len(entries)

        async def response_stream() -> AsyncIterator[bytes]:
            imported_count = 0
            try:
                initial_data: ProgressEvent = {
                    "message": "Importing skills...",
                    "data": {"total_files": file_count},
                    "success": True,
                    "progress": 0.01,
                    "code": "IMPORT_STARTED",
                }
                logger.info(f"Starting library import of {file_count} files - request_id: {self.request_id}")
                yield encode_event(initial_data, request_id=self.request_id)

                for processed_count, (filename, data) in enumerate(entries, start=1):
                    try:
                        skill_import = import_skill_file(filename, data)
                    except InvalidArchiveError as e:
                        logger.warning(f"Skipping corrupt archive {filename}: {e}")
                        yield encode_event(
                            _corrupt_archive_response(filename, e, processed_count, file_count),
                            request_id=self.request_id,
                        )
                        continue

                    response = _import_response(filename, skill_import, processed_count, file_count)
                    if response["success"]:
                        imported_count += 1
                    yield encode_event(response, request_id=self.request_id)

                final_data: ProgressEvent = {
                    "message": "Library import finished",
                    "data": {
                        "total_files": file_count,
                        "imported_files": imported_count,
                        "status": "completed",
                    },
                    "success": True,
                    "code": "IMPORT_COMPLETED",
                    "progress": 1.0,
                }
                yield encode_event(final_data, request_id=self.request_id)

            except Exception as e:
                logger.error(f"Error importing skill library: {str(e)}", exc_info=True)
                error_data: ProgressEvent = {
                    "message": "Error importing skills",
                    "data": {
                        "error": str(e),
                        "error_type": e.__class__.__name__,
                    },
                    "success": False,
                    "code": "IMPORT_ERROR",
                }
                yield encode_event(error_data, request_id=self.request_id)

        return StreamingResponse(response_stream(), media_type="application/x-ndjson")
