"""
Persisting resource bytes to the object store and loading them back.
"""

import logging
from dataclasses import replace

import requests

from app.clients.storage_client import StorageClient
from app.services.skill.models import SkillResource
from app.services.skill.packager import slugify_skill_name

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the object store rejects a request or cannot be reached."""


def resource_storage_key(owner: str, skill_name: str, resource: SkillResource) -> str:
    return f"{owner}/{slugify_skill_name(skill_name)}/{resource.folder}/{resource.filename}"


def upload_resource(client: StorageClient, owner: str, skill_name: str, resource: SkillResource) -> SkillResource:
    """
    Upload one admitted resource and return a copy carrying its storage path.

    Raises:
        StorageError: If the upload fails
    """
    key = resource_storage_key(owner, skill_name, resource)

    try:
        response = client.upload_object(key, resource.content_bytes(), resource.mime_type or "application/octet-stream")
    except requests.exceptions.RequestException as e:
        logger.error(f"Error uploading resource {resource.archive_path}: {e}")
        raise StorageError(f"Failed to upload {resource.archive_path}: {e}") from e

    if not response.ok:
        logger.error(f"Object store rejected {resource.archive_path}: {response.status_code} {response.text}")
        raise StorageError(f"Failed to upload {resource.archive_path}: HTTP {response.status_code}")

    logger.info(f"Uploaded resource {resource.archive_path} to {client.storage_path(key)}")
    return replace(resource, storage_path=client.storage_path(key))


def persist_resources(
    resources: list[SkillResource], client: StorageClient, owner: str, skill_name: str
) -> list[SkillResource]:
    """
    Upload every resource that has no storage path yet.

    Resources that already carry a storage path are passed through untouched.

    Raises:
        StorageError: If any upload fails
    """
    persisted = []
    for resource in resources:
        if resource.is_uploaded:
            persisted.append(resource)
            continue
        persisted.append(upload_resource(client, owner, skill_name, resource))
    return persisted


def load_resource_contents(resources: list[SkillResource], client: StorageClient) -> list[SkillResource]:
    """
    Fetch the bytes of resources that only carry a storage path.

    Raises:
        StorageError: If a download fails
    """
    loaded = []
    for resource in resources:
        if resource.content is not None or not resource.is_uploaded:
            loaded.append(resource)
            continue

        try:
            response = client.download_object(resource.storage_path or "")
        except requests.exceptions.RequestException as e:
            logger.error(f"Error downloading resource {resource.storage_path}: {e}")
            raise StorageError(f"Failed to download {resource.archive_path}: {e}") from e

        if not response.ok:
            logger.error(f"Object store returned {response.status_code} for {resource.storage_path}")
            raise StorageError(f"Failed to download {resource.archive_path}: HTTP {response.status_code}")

        loaded.append(replace(resource, content=response.content))
    return loaded
