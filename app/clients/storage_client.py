import requests
from requests import Response

from app.core.config import settings

REQUEST_TIMEOUT_SECONDS = 30


class StorageClient:
    base_url: str = ""
    headers: dict[str, str] = {}
    bucket: str = ""

    def __init__(self, api_key: str | None = None, bucket: str | None = None):
        api_key = api_key if api_key is not None else settings.STORAGE_API_KEY
        self.headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self.base_url = settings.STORAGE_BASE_URL
        self.bucket = bucket or settings.STORAGE_BUCKET

    def storage_path(self, key: str) -> str:
        return f"{self.bucket}/{key}"

    def upload_object(self, key: str, content: bytes, content_type: str) -> Response:
        url = f"{self.base_url}/object/{self.storage_path(key)}"

        headers = {
            **self.headers,
            "Content-Type": content_type,
            "x-upsert": "true",
        }

        return requests.post(url, headers=headers, data=content, timeout=REQUEST_TIMEOUT_SECONDS)

    def download_object(self, storage_path: str) -> Response:
        url = f"{self.base_url}/object/{storage_path}"

        return requests.get(url, headers=self.headers, timeout=REQUEST_TIMEOUT_SECONDS)
