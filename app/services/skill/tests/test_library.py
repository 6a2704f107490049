"""
Tests for batch library imports streamed as NDJSON.
"""

import json
import zipfile
from io import BytesIO
from typing import Any

import pytest
from fastapi.responses import StreamingResponse
from pytest_mock import MockerFixture

from app.services.skill.library import SkillLibraryImporter

SKILL_DOCUMENT = (
    "---\n"
    "name: Poem Writer\n"
    "description: Writes short poems\n"
    'triggers: ["write a poem"]\n'
    "---\n"
    "# Instructions\n"
    "Ask the user for a topic, pick a meter that fits it and write a short poem. Keep it under twenty lines.\n"
)


def make_zip(files: dict[str, str]) -> bytes:
    buffer = BytesIO()
    with zipfile.ZipFile(buffer, "w") as zip_file:
        for path, content in files.items():
            zip_file.writestr(path, content)
    return buffer.getvalue()


async def collect_events(response: StreamingResponse) -> list[dict[str, Any]]:
    """Read every NDJSON line from a streaming response."""
    events = []
    async for chunk in response.body_iterator:
        if isinstance(chunk, bytes):
            chunk = chunk.decode("utf-8")
        for line in chunk.strip().split("\n"):
            if line:
                events.append(json.loads(line))
    return events


@pytest.fixture
def importer() -> SkillLibraryImporter:
    """Return an importer with a fixed request id."""
    return SkillLibraryImporter(request_id="test-request-id")


@pytest.mark.asyncio
async def test_import_files_success(importer: SkillLibraryImporter) -> None:
    """Test every file produces one event between the start and completion events."""
    response = importer.import_files(
        [
            ("poem.md", SKILL_DOCUMENT.encode()),
            ("poem.zip", make_zip({"SKILL.md": SKILL_DOCUMENT, "scripts/meter.py": "print()"})),
        ]
    )

    assert response.media_type == "application/x-ndjson"
    events = await collect_events(response)

    assert [event["code"] for event in events] == [
        "IMPORT_STARTED",
        "SKILL_IMPORTED",
        "SKILL_IMPORTED",
        "IMPORT_COMPLETED",
    ]
    assert all(event["request_id"] == "test-request-id" for event in events)
    assert events[0]["data"] == {"total_files": 2}
    assert events[2]["data"]["resource_count"] == 1
    assert events[2]["data"]["document_path"] == "SKILL.md"
    assert events[-1]["data"]["imported_files"] == 2
    assert events[-1]["progress"] == 1.0


@pytest.mark.asyncio
async def test_import_files_continues_after_failures(importer: SkillLibraryImporter) -> None:
    """Test failing files are reported without stopping the batch."""
    response = importer.import_files(
        [
            ("broken.zip", b"not a zip"),
            ("empty.zip", make_zip({"notes.txt": "x"})),
            ("plain.md", b"# Just a heading\nSome text"),
            ("poem.md", SKILL_DOCUMENT.encode()),
        ]
    )

    events = await collect_events(response)
    codes = [event["code"] for event in events]

    assert codes == [
        "IMPORT_STARTED",
        "ARCHIVE_INVALID",
        "SKILL_IMPORT_FAILED",
        "SKILL_IMPORT_FAILED",
        "SKILL_IMPORTED",
        "IMPORT_COMPLETED",
    ]
    assert events[1]["data"]["error_type"] == "InvalidArchiveError"
    assert events[2]["data"]["validation"]["errors"] == ["No SKILL.md found in archive (1 files)"]
    assert events[3]["data"]["skill_name"] == "Imported Skill"
    assert events[-1]["data"]["imported_files"] == 1

    progress = [event["progress"] for event in events]
    assert progress == sorted(progress)


@pytest.mark.asyncio
async def test_import_files_encrypted_archive(importer: SkillLibraryImporter) -> None:
    """Test a password-protected archive is reported as invalid and the batch goes on."""
    data = bytearray(make_zip({"SKILL.md": SKILL_DOCUMENT}))
    data[data.find(b"PK\x01\x02") + 8] |= 0x01  # general purpose flag: encrypted

    response = importer.import_files([("locked.zip", bytes(data)), ("poem.md", SKILL_DOCUMENT.encode())])

    events = await collect_events(response)

    assert [event["code"] for event in events] == [
        "IMPORT_STARTED",
        "ARCHIVE_INVALID",
        "SKILL_IMPORTED",
        "IMPORT_COMPLETED",
    ]
    assert events[1]["data"]["error_type"] == "InvalidArchiveError"
    assert events[-1]["data"]["imported_files"] == 1


@pytest.mark.asyncio
async def test_import_files_unexpected_error(importer: SkillLibraryImporter, mocker: MockerFixture) -> None:
    """Test an unexpected error ends the stream with an error event."""
    mocker.patch("app.services.skill.library.import_skill_file", side_effect=RuntimeError("boom"))

    events = await collect_events(importer.import_files([("poem.md", b"x")]))

    assert [event["code"] for event in events] == ["IMPORT_STARTED", "IMPORT_ERROR"]
    assert events[-1]["success"] is False
    assert events[-1]["data"] == {"error": "boom", "error_type": "RuntimeError"}
