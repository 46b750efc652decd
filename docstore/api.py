"""
Async client for the document store REST API.

Every request carries the app credentials as HTTP Basic auth. Non-2xx
responses raise DocumentStoreError; JSON bodies are returned decoded.

Usage:
    async with DocumentStoreAPI(config.rest_base_url, user, password) as api:
        await api.upload(Path("logo.png"), "/images/logo.png")
        print(await api.search("logo"))
"""

from __future__ import annotations
import json
from pathlib import Path
from types import TracebackType
from typing import Any, Dict, Optional, Type

import aiohttp
from tqdm import tqdm

from shared.log import get_logger
from shared.utils import join_url

logger = get_logger(__name__)

_CHUNK_SIZE = 64 * 1024


class DocumentStoreError(Exception):
    """Raised when the document store answers with a non-2xx status."""

    def __init__(self, status: int, message: str, method: str = "", url: str = "") -> None:
        super().__init__(f"{method} {url} failed with {status}: {message}".strip())
        self.status = status
        self.message = message
        self.method = method
        self.url = url


class DocumentStoreAPI:
    def __init__(self, base_url: str, user: str, password: str, timeout: float = 30.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.auth = aiohttp.BasicAuth(user, password)
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "DocumentStoreAPI":
        if self._session is None:
            self._session = aiohttp.ClientSession(auth=self.auth, timeout=self.timeout)
        return self

    async def __aexit__(self, exc_type: Optional[Type[BaseException]],
                        exc: Optional[BaseException], tb: Optional[TracebackType]) -> None:
        await self.close()

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
        self._session = None

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None:
            raise RuntimeError("DocumentStoreAPI used outside of 'async with'")
        return self._session

    def documents_url(self, remote_path: str) -> str:
        return join_url(self.base_url, "documents", remote_path)

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        logger.debug("%s %s", method, url)
        async with self.session.request(method, url, **kwargs) as resp:
            body = await resp.text()
            if resp.status >= 400:
                logger.warning("%s %s -> %s", method, url, resp.status)
                raise DocumentStoreError(resp.status, body or (resp.reason or ""), method, url)
            if not body:
                return None
            try:
                return json.loads(body)
            except json.JSONDecodeError:
                return body

    # ========================================
    #           DOCUMENTS
    # ========================================

    async def upload(self, local_path: Path, remote_path: str) -> Any:
        """PUT a local file to ``documents/<remote_path>`` as multipart field 'document'."""
        local_path = Path(local_path)
        with open(local_path, "rb") as f:
            form = aiohttp.FormData()
            form.add_field("document", f, filename=local_path.name)
            return await self._request("PUT", self.documents_url(remote_path), data=form)

    async def download(self, remote_path: str, dest: Path, progress: bool = False) -> int:
        """Stream ``documents/<remote_path>`` into ``dest``; returns bytes written."""
        url = self.documents_url(remote_path)
        dest = Path(dest)
        dest.parent.mkdir(parents=True, exist_ok=True)
        written = 0
        async with self.session.get(url) as resp:
            if resp.status >= 400:
                raise DocumentStoreError(resp.status, await resp.text(), "GET", url)
            with open(dest, "wb") as out, tqdm(
                total=resp.content_length, unit="B", unit_scale=True,
                desc=dest.name, disable=not progress,
            ) as bar:
                async for chunk in resp.content.iter_chunked(_CHUNK_SIZE):
                    out.write(chunk)
                    written += len(chunk)
                    bar.update(len(chunk))
        logger.info("Downloaded %s (%d bytes) to %s", remote_path, written, dest)
        return written

    async def delete(self, remote_path: str) -> Any:
        return await self._request("DELETE", self.documents_url(remote_path))

    async def metadata(self, remote_path: str) -> Any:
        return await self._request("GET", self.documents_url(remote_path),
                                   params={"details_only": "true"})

    async def calculate_hash(self, remote_path: str) -> Any:
        return await self._request("PATCH", self.documents_url(remote_path))

    async def sync_hashes(self, reset: bool = True) -> Any:
        return await self._request("POST", join_url(self.base_url, "sync_hashes"),
                                   params={"reset": "true" if reset else "false"})

    async def search(self, query: str) -> Any:
        return await self._request("GET", join_url(self.base_url, "search"),
                                   params={"query": query})

    # ========================================
    #           PREFERENCES & TRANSFERS
    # ========================================

    async def set_preference(self, key: str, value: str) -> Any:
        return await self._request("PUT", join_url(self.base_url, "preferences"),
                                   json={"key": key, "value": value})

    async def transfer(self, from_: str, to: str, document: str) -> Any:
        payload: Dict[str, str] = {"from": from_, "to": to, "document": document}
        return await self._request("POST", join_url(self.base_url, "transfers"), json=payload)

    async def transfer_logs(self) -> Any:
        return await self._request("GET", join_url(self.base_url, "transfers"))
