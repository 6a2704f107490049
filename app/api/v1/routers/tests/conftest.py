"""
Shared fixtures for API router tests.
"""

import zipfile
from collections.abc import Callable
from io import BytesIO

import pytest
from fastapi.testclient import TestClient
from pytest_mock import MockerFixture

from app.core.config import settings
from app.main import app

SKILL_DOCUMENT = (
    "---\n"
    "name: Poem Writer\n"
    "description: Writes short poems\n"
    'triggers: ["write a poem"]\n'
    "---\n"
    "# Instructions\n"
    "Ask the user for a topic, pick a meter that fits it and write a short poem. Keep it under twenty lines.\n"
)


@pytest.fixture(scope="module")
def client() -> TestClient:
    """Create a test client for the app."""
    return TestClient(app)


@pytest.fixture
def skill_document() -> str:
    """Return a SKILL document that passes validation without warnings."""
    return SKILL_DOCUMENT


@pytest.fixture
def make_zip() -> Callable[[dict[str, str | bytes]], bytes]:
    """Return a helper building in-memory zip archives."""

    def _make_zip(files: dict[str, str | bytes]) -> bytes:
        buffer = BytesIO()
        with zipfile.ZipFile(buffer, "w") as zip_file:
            for path, content in files.items():
                zip_file.writestr(path, content)
        return buffer.getvalue()

    return _make_zip


@pytest.fixture
def storage_enabled(mocker: MockerFixture) -> str:
    """Point the object store at a fake URL and return it."""
    base_url = "https://storage.example.com/storage/v1"
    mocker.patch.object(settings, "STORAGE_BASE_URL", base_url)
    mocker.patch.object(settings, "STORAGE_API_KEY", "secret")
    return base_url


@pytest.fixture
def storage_disabled(mocker: MockerFixture) -> None:
    """Make sure no object store is configured."""
    mocker.patch.object(settings, "STORAGE_BASE_URL", "")
