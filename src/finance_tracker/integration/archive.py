import asyncio
import os
import re
import secrets
import time
from abc import ABC, abstractmethod
from urllib.parse import quote

import httpx

from finance_tracker.core.configuration import AppConfig
from finance_tracker.errors import ArchiveError
from finance_tracker.logger import get_logger

logger = get_logger(__name__)

BLOB_API_VERSION = "2021-08-06"

_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def archive_name(filename: str, *, now_ms: int | None = None, token: str | None = None) -> str:
    """``<epoch ms>-<random hex>-<sanitized basename>``, unique per upload."""
    base = os.path.basename(filename or "") or "upload.csv"
    safe = _UNSAFE_NAME_CHARS.sub("_", base).strip("._") or "upload.csv"
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    token = token or secrets.token_hex(4)
    return f"{stamp}-{token}-{safe}"


class UploadArchive(ABC):
    @abstractmethod
    async def store(self, filename: str, payload: bytes) -> str | None:
        """Keep a copy of the raw upload and return where it went."""
        pass

    async def aclose(self) -> None:
        return None


class NullArchive(UploadArchive):
    async def store(self, filename: str, payload: bytes) -> str | None:
        return None


class LocalArchive(UploadArchive):
    def __init__(self, directory: str):
        self.directory = directory

    def _write(self, name: str, payload: bytes) -> str:
        os.makedirs(self.directory, exist_ok=True)
        path = os.path.join(self.directory, name)
        with open(path, "xb") as handle:
            handle.write(payload)
        return path

    async def store(self, filename: str, payload: bytes) -> str | None:
        name = archive_name(filename)
        try:
            path = await asyncio.to_thread(self._write, name, payload)
        except OSError as exc:
            raise ArchiveError(f"Could not write {name}: {exc}") from exc
        logger.info("[ARCHIVE] Stored %d bytes at %s.", len(payload), path)
        return path


class BlobArchive(UploadArchive):
    """Uploads to an Azure Blob Storage container through its REST API.

    ``container_url`` is ``https://<account>.blob.core.windows.net/<container>``
    and ``sas_token`` a SAS query string with create/write permission.
    """

    def __init__(
        self,
        container_url: str,
        sas_token: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ):
        self.container_url = container_url.rstrip("/")
        self.sas_token = (sas_token or "").lstrip("?")
        self.timeout = timeout
        self._client = client
        self._client_lock = asyncio.Lock()

    async def aclose(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def _get_client(self) -> httpx.AsyncClient:
        client = self._client
        if client is not None and not client.is_closed:
            return client

        async with self._client_lock:
            client = self._client
            if client is None or client.is_closed:
                client = httpx.AsyncClient()
                self._client = client
            return client

    def blob_url(self, name: str) -> str:
        return f"{self.container_url}/{quote(name)}"

    async def store(self, filename: str, payload: bytes) -> str | None:
        name = archive_name(filename)
        url = self.blob_url(name)
        request_url = f"{url}?{self.sas_token}" if self.sas_token else url
        headers = {
            "x-ms-blob-type": "BlockBlob",
            "x-ms-version": BLOB_API_VERSION,
            "Content-Type": "text/csv",
        }

        client = await self._get_client()
        try:
            response = await client.put(
                request_url,
                content=payload,
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ArchiveError(
                f"Blob upload of {name} returned {exc.response.status_code}."
            ) from exc
        except httpx.HTTPError as exc:
            raise ArchiveError(f"Blob upload of {name} failed: {exc}") from exc

        logger.info("[ARCHIVE] Uploaded %d bytes to %s.", len(payload), url)
        return url


def build_archive(config: AppConfig) -> UploadArchive:
    if config.archive_container_url:
        return BlobArchive(config.archive_container_url, config.archive_sas_token)
    if config.archive_dir:
        return LocalArchive(config.archive_dir)
    return NullArchive()
