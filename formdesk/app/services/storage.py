"""Object storage for uploaded assets.

`put` stores bytes under a path namespaced by form id and returns the public
URI; `get` resolves a URI back to bytes. URIs that point at this store are
read from disk, anything else (an operator may paste a URL while editing a
response) is fetched over HTTP.
"""
# app/services/storage.py
import os
from typing import Optional

import httpx

from formdesk.app.core.config import settings
from formdesk.app.core.exceptions import AssetNotFound


class LocalObjectStorage:
    def __init__(self, root: str, public_base: str, timeout: float = 15.0,
                 client: Optional[httpx.AsyncClient] = None):
        self.root = root
        self.public_base = public_base.rstrip("/")
        self.timeout = timeout
        self._client = client

    def _disk_path(self, path: str) -> str:
        full = os.path.abspath(os.path.join(self.root, path))
        if not full.startswith(os.path.abspath(self.root) + os.sep):
            raise AssetNotFound(path)
        return full

    async def put(self, path: str, data: bytes) -> str:
        full = self._disk_path(path)
        os.makedirs(os.path.dirname(full), exist_ok=True)
        with open(full, "wb") as f:
            f.write(data)
        return f"{self.public_base}/{path}"

    async def get(self, uri: str) -> bytes:
        if uri.startswith(self.public_base + "/"):
            full = self._disk_path(uri[len(self.public_base) + 1:])
            try:
                with open(full, "rb") as f:
                    return f.read()
            except FileNotFoundError as e:
                raise AssetNotFound(uri) from e
        return await self._fetch(uri)

    async def _fetch(self, uri: str) -> bytes:
        try:
            if self._client is not None:
                resp = await self._client.get(uri, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(follow_redirects=True) as client:
                    resp = await client.get(uri, timeout=self.timeout)
            resp.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            # InvalidURL is not an HTTPError subclass
            raise AssetNotFound(uri) from e
        return resp.content


_storage: LocalObjectStorage | None = None


def get_storage() -> LocalObjectStorage:
    """Return the process-wide object store configured from settings."""
    global _storage
    if _storage is None:
        _storage = LocalObjectStorage(
            root=settings.UPLOAD_DIR,
            public_base=settings.BACKEND_URL.rstrip("/") + settings.UPLOAD_URL_PREFIX,
            timeout=settings.ASSET_FETCH_TIMEOUT,
        )
    return _storage
