"""
Tests for the skill endpoints.
"""

import json
import zipfile
from collections.abc import Callable
from io import BytesIO
from typing import Any

import pytest
import requests
import requests_mock
from fastapi import status
from fastapi.testclient import TestClient

from app.core.config import settings
from app.services.skill.models import Skill
from app.services.skill.packager import build_skill_document

MIB = 1024 * 1024


@pytest.fixture(scope="module")
def api_path() -> str:
    """Return the skills API path."""
    return f"{settings.API_PREFIX}/v1/skills"


@pytest.fixture
def skill_payload() -> dict[str, Any]:
    """Return a skill request payload."""
    return {
        "name": "Poem Writer",
        "description": "Writes short poems",
        "category": "Writing",
        "tags": ["poetry"],
        "triggers": ["write a poem"],
        "instructions": "Ask for a topic, then write the poem.",
        "resources": [{"folder": "scripts", "filename": "meter.py", "content": "print('meter')"}],
    }


class TestParseSkill:
    """Tests for POST /skills/parse."""

    def test_parse_content(self, client: TestClient, api_path: str, skill_document: str) -> None:
        """Test pasted content is parsed into a draft."""
        response = client.post(f"{api_path}/parse", data={"content": skill_document})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["skill"]["name"] == "Poem Writer"
        assert data["skill"]["category"] == "Imported"
        assert data["skill"]["triggers"] == ["write a poem"]
        assert data["validation"]["valid"] is True
        assert data["document_path"] is None

    def test_parse_upload(self, client: TestClient, api_path: str) -> None:
        """Test an uploaded text file without frontmatter still gives a draft."""
        response = client.post(f"{api_path}/parse", files={"file": ("notes.txt", b"Just instructions", "text/plain")})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["skill"]["name"] == "Imported Skill"
        assert data["skill"]["instructions"] == "Just instructions"
        assert data["validation"]["valid"] is False

    def test_parse_without_input(self, client: TestClient, api_path: str) -> None:
        """Test a request with neither file nor content is a 400."""
        response = client.post(f"{api_path}/parse", data={"content": ""})
        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestImportSkill:
    """Tests for POST /skills/import."""

    def test_import_archive(
        self, client: TestClient, api_path: str, skill_document: str, make_zip: Callable, storage_disabled: None
    ) -> None:
        """Test an archive is imported with its resources."""
        archive = make_zip(
            {"SKILL.md": skill_document, "scripts/meter.py": "print('meter')", "bin/tool": "x"}
        )

        response = client.post(f"{api_path}/import", files={"file": ("poem.zip", archive, "application/zip")})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["document_path"] == "SKILL.md"
        assert data["skill"]["resources"] == [
            {
                "folder": "scripts",
                "filename": "meter.py",
                "content": "print('meter')",
                "content_base64": None,
                "size_bytes": 14,
                "mime_type": "text/x-python",
                "storage_path": None,
            }
        ]
        assert "Skipped resource bin/tool: Invalid folder type" in data["validation"]["warnings"]
        assert data["validation"]["info"]["resourceCount"] == 1

    def test_import_binary_resource(
        self, client: TestClient, api_path: str, skill_document: str, make_zip: Callable, storage_disabled: None
    ) -> None:
        """Test binary resources are returned base64 encoded."""
        archive = make_zip({"SKILL.md": skill_document, "assets/logo.png": b"\x89PNG\xff"})

        response = client.post(f"{api_path}/import", files={"file": ("poem.zip", archive, "application/zip")})

        resource = response.json()["skill"]["resources"][0]
        assert resource["content"] is None
        assert resource["content_base64"] == "iVBOR/8="

    def test_import_uploads_resources(  # noqa: PLR0913
        self,
        client: TestClient,
        api_path: str,
        skill_document: str,
        make_zip: Callable,
        storage_enabled: str,
        requests_mock: requests_mock.Mocker,
    ) -> None:
        """Test admitted resources are uploaded when an object store is configured."""
        requests_mock.post(f"{storage_enabled}/object/skill_resources/user-1/poem-writer/scripts/meter.py")
        archive = make_zip({"SKILL.md": skill_document, "scripts/meter.py": "print('meter')"})

        response = client.post(
            f"{api_path}/import",
            files={"file": ("poem.zip", archive, "application/zip")},
            data={"owner": "user-1"},
        )

        assert response.status_code == status.HTTP_200_OK
        resource = response.json()["skill"]["resources"][0]
        assert resource["storage_path"] == "skill_resources/user-1/poem-writer/scripts/meter.py"
        assert requests_mock.call_count == 1

    def test_import_without_document(self, client: TestClient, api_path: str, make_zip: Callable) -> None:
        """Test an archive without a skill document is a 422."""
        archive = make_zip({"a.txt": "a", "b.txt": "b"})

        response = client.post(f"{api_path}/import", files={"file": ("poem.zip", archive, "application/zip")})

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        data = response.json()
        assert data["skill"] is None
        assert data["validation"]["errors"] == ["No SKILL.md found in archive (2 files)"]
        assert data["validation"]["info"] == {"resourceCount": 2}

    def test_import_corrupt_archive(self, client: TestClient, api_path: str) -> None:
        """Test a corrupt archive is a 400."""
        response = client.post(f"{api_path}/import", files={"file": ("poem.zip", b"garbage", "application/zip")})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "ARCHIVE_INVALID"


class TestImportSkillLibrary:
    """Tests for POST /skills/import/batch."""

    def test_batch_import(self, client: TestClient, api_path: str, skill_document: str, make_zip: Callable) -> None:
        """Test every uploaded file is reported in the NDJSON stream."""
        files = [
            ("files", ("poem.md", skill_document.encode(), "text/markdown")),
            ("files", ("poem.zip", make_zip({"SKILL.md": skill_document}), "application/zip")),
            ("files", ("broken.zip", b"garbage", "application/zip")),
        ]

        response = client.post(f"{api_path}/import/batch", files=files)

        assert response.status_code == status.HTTP_200_OK
        assert response.headers["content-type"].startswith("application/x-ndjson")

        events = [json.loads(line) for line in response.text.splitlines() if line]
        assert [event["code"] for event in events] == [
            "IMPORT_STARTED",
            "SKILL_IMPORTED",
            "SKILL_IMPORTED",
            "ARCHIVE_INVALID",
            "IMPORT_COMPLETED",
        ]
        assert events[-1]["data"]["imported_files"] == 2
        assert {event["request_id"] for event in events} == {response.headers["x-request-id"]}


class TestRenderSkillDocument:
    """Tests for POST /skills/document."""

    def test_render_document(self, client: TestClient, api_path: str, skill_payload: dict[str, Any]) -> None:
        """Test the canonical document is returned as markdown."""
        response = client.post(f"{api_path}/document", json=skill_payload)

        assert response.status_code == status.HTTP_200_OK
        assert response.headers["content-type"].startswith("text/markdown")
        expected = build_skill_document(
            Skill(
                name="Poem Writer",
                description="Writes short poems",
                category="Writing",
                tags=["poetry"],
                triggers=["write a poem"],
                instructions="Ask for a topic, then write the poem.",
            )
        )
        assert response.text == expected

    def test_blank_name_is_rejected(self, client: TestClient, api_path: str, skill_payload: dict[str, Any]) -> None:
        """Test a blank name fails request validation."""
        skill_payload["name"] = "   "
        response = client.post(f"{api_path}/document", json=skill_payload)
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_duplicate_resources_are_rejected(
        self, client: TestClient, api_path: str, skill_payload: dict[str, Any]
    ) -> None:
        """Test two resources with the same folder and filename fail request validation."""
        skill_payload["resources"].append({"folder": "scripts", "filename": "meter.py", "content": "again"})
        response = client.post(f"{api_path}/document", json=skill_payload)
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


class TestExportSkill:
    """Tests for POST /skills/export."""

    def test_export(
        self, client: TestClient, api_path: str, skill_payload: dict[str, Any], storage_disabled: None
    ) -> None:
        """Test the archive holds the document and resources."""
        response = client.post(f"{api_path}/export", json=skill_payload)

        assert response.status_code == status.HTTP_200_OK
        assert response.headers["content-type"] == "application/zip"
        assert response.headers["content-disposition"] == 'attachment; filename="poem-writer.zip"'

        with zipfile.ZipFile(BytesIO(response.content)) as zip_file:
            assert zip_file.namelist() == ["SKILL.md", "scripts/meter.py"]
            assert zip_file.read("scripts/meter.py") == b"print('meter')"

    def test_export_loads_stored_resources(
        self,
        client: TestClient,
        api_path: str,
        skill_payload: dict[str, Any],
        storage_enabled: str,
        requests_mock: requests_mock.Mocker,
    ) -> None:
        """Test resources that only carry a storage path are downloaded first."""
        skill_payload["resources"] = [
            {"folder": "assets", "filename": "logo.png", "size_bytes": 4, "storage_path": "skill_resources/a/logo.png"}
        ]
        requests_mock.get(f"{storage_enabled}/object/skill_resources/a/logo.png", content=b"\x89PNG")

        response = client.post(f"{api_path}/export", json=skill_payload)

        assert response.status_code == status.HTTP_200_OK
        with zipfile.ZipFile(BytesIO(response.content)) as zip_file:
            assert zip_file.read("assets/logo.png") == b"\x89PNG"

    def test_export_storage_failure(
        self,
        client: TestClient,
        api_path: str,
        skill_payload: dict[str, Any],
        storage_enabled: str,
        requests_mock: requests_mock.Mocker,
    ) -> None:
        """Test a failed download is a 502."""
        skill_payload["resources"] = [
            {"folder": "assets", "filename": "logo.png", "storage_path": "skill_resources/a/logo.png"}
        ]
        requests_mock.get(f"{storage_enabled}/object/skill_resources/a/logo.png", status_code=500)

        response = client.post(f"{api_path}/export", json=skill_payload)

        assert response.status_code == status.HTTP_502_BAD_GATEWAY


class TestDuplicateSkill:
    """Tests for POST /skills/duplicate."""

    def test_duplicate(self, client: TestClient, api_path: str, skill_payload: dict[str, Any]) -> None:
        """Test the copy is suffixed and keeps its resources."""
        response = client.post(f"{api_path}/duplicate", json=skill_payload)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["name"] == "Poem Writer (Copy)"
        assert data["triggers"] == ["write a poem"]
        assert data["resources"][0]["filename"] == "meter.py"


class TestAddResource:
    """Tests for POST /skills/resources."""

    def test_add_resource(self, client: TestClient, api_path: str, storage_disabled: None) -> None:
        """Test an admitted resource joins the set."""
        payload = {
            "skill_name": "Poem Writer",
            "existing": [{"folder": "references", "filename": "forms.md", "content": "# Forms"}],
            "candidate": {"folder": "scripts", "filename": "run.py", "content": "print()"},
        }

        response = client.post(f"{api_path}/resources", json=payload)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["replaced"] is False
        assert data["uploaded"] is False
        assert data["resource"]["size_bytes"] == 7
        assert data["resource"]["mime_type"] == "text/x-python"
        assert [resource["filename"] for resource in data["resources"]] == ["forms.md", "run.py"]

    def test_replace_resource(self, client: TestClient, api_path: str, storage_disabled: None) -> None:
        """Test a resource with the same folder and filename is replaced."""
        payload = {
            "skill_name": "Poem Writer",
            "existing": [{"folder": "scripts", "filename": "run.py", "content": "old"}],
            "candidate": {"folder": "scripts", "filename": "run.py", "content": "new"},
        }

        data = client.post(f"{api_path}/resources", json=payload).json()

        assert data["replaced"] is True
        assert [resource["content"] for resource in data["resources"]] == ["new"]

    @pytest.mark.parametrize(
        ("existing", "candidate", "code", "message"),
        [
            ([], {"folder": "bin", "filename": "tool", "content": "x"}, "INVALID_FOLDER", "Invalid folder type"),
            (
                [],
                {"folder": "assets", "filename": "big.bin", "size_bytes": 2 * MIB},
                "FILE_TOO_LARGE",
                "File exceeds per-file limit of 1MB",
            ),
            (
                [{"folder": "assets", "filename": "a.bin", "size_bytes": 5 * MIB - 10, "storage_path": "x/a.bin"}],
                {"folder": "scripts", "filename": "run.py", "content": "print('hello world')"},
                "SKILL_TOO_LARGE",
                "Skill exceeds total skill limit of 5MB",
            ),
        ],
    )
    def test_rejected_resource(  # noqa: PLR0913
        self,
        client: TestClient,
        api_path: str,
        existing: list[dict[str, Any]],
        candidate: dict[str, Any],
        code: str,
        message: str,
    ) -> None:
        """Test rejections are a 400 carrying the reason."""
        payload = {"skill_name": "Poem Writer", "existing": existing, "candidate": candidate}

        response = client.post(f"{api_path}/resources", json=payload)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {"status": "error", "code": code, "message": message}

    def test_declared_size_does_not_override_content(self, client: TestClient, api_path: str) -> None:
        """Test a resource with inline content is sized from the content, not the declared size."""
        payload = {
            "skill_name": "Poem Writer",
            "candidate": {"folder": "assets", "filename": "big.bin", "content": "a" * (2 * MIB), "size_bytes": 1},
        }

        response = client.post(f"{api_path}/resources", json=payload)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "FILE_TOO_LARGE"

    def test_upload_admitted_resource(
        self, client: TestClient, api_path: str, storage_enabled: str, requests_mock: requests_mock.Mocker
    ) -> None:
        """Test an admitted resource is uploaded when storage is configured."""
        requests_mock.post(f"{storage_enabled}/object/skill_resources/user-1/poem-writer/scripts/run.py")
        payload = {
            "skill_name": "Poem Writer",
            "owner": "user-1",
            "candidate": {"folder": "scripts", "filename": "run.py", "content": "print()"},
        }

        response = client.post(f"{api_path}/resources", json=payload)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["uploaded"] is True
        assert data["resource"]["storage_path"] == "skill_resources/user-1/poem-writer/scripts/run.py"
        assert data["resources"][0]["storage_path"] == data["resource"]["storage_path"]

    def test_upload_failure(
        self, client: TestClient, api_path: str, storage_enabled: str, requests_mock: requests_mock.Mocker
    ) -> None:
        """Test a failed upload is a 502."""
        requests_mock.post(
            f"{storage_enabled}/object/skill_resources/anonymous/poem-writer/scripts/run.py",
            exc=requests.exceptions.ConnectTimeout("timed out"),
        )
        payload = {
            "skill_name": "Poem Writer",
            "candidate": {"folder": "scripts", "filename": "run.py", "content": "print()"},
        }

        response = client.post(f"{api_path}/resources", json=payload)

        assert response.status_code == status.HTTP_502_BAD_GATEWAY
        assert response.json()["code"] == "STORAGE_ERROR"
