"""Local file storage for uploaded pictures."""

import asyncio
import logging
import secrets
import time
from pathlib import Path, PurePosixPath

logger = logging.getLogger(__name__)


class FileStoreError(Exception):
    """Raised when a file cannot be stored or removed."""


class LocalFileStore:
    """Stores uploads on local disk and serves them under ``/public``."""

    def __init__(self, root_dir: str, public_base_url: str):
        self.root = Path(root_dir).resolve()
        self.public_base_url = public_base_url.rstrip("/")

    def url_for(self, name: str) -> str:
        return f"{self.public_base_url}/public/{name}"

    def name_from_url(self, url: str | None) -> str | None:
        """Return the stored file name for one of our URLs, or None for anything else."""
        prefix = f"{self.public_base_url}/public/"
        if not url or not url.startswith(prefix):
            return None
        name = url[len(prefix) :]
        return name if self._is_safe_name(name) else None

    @staticmethod
    def _is_safe_name(name: str) -> bool:
        return bool(name) and "/" not in name and "\\" not in name and name not in (".", "..")

    @staticmethod
    def _new_name(filename: str | None) -> str:
        suffix = "".join(PurePosixPath(filename or "").suffixes)
        return f"{int(time.time() * 1000)}-{secrets.token_hex(4)}{suffix.lower()}"

    def _write(self, name: str, data: bytes) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        (self.root / name).write_bytes(data)

    def _remove(self, name: str) -> bool:
        path = self.root / name
        if not path.exists():
            return False
        path.unlink()
        return True

    async def save(self, data: bytes, filename: str | None = None) -> str:
        """Store bytes under a generated name and return the public URL."""
        if not data:
            raise FileStoreError("Empty upload")
        name = self._new_name(filename)
        try:
            await asyncio.to_thread(self._write, name, data)
        except OSError as e:
            raise FileStoreError(f"Could not write {name}: {e}") from e
        logger.info(f"Stored upload as {name} ({len(data)} bytes)")
        return self.url_for(name)

    async def replace(self, old_url: str | None, data: bytes, filename: str | None = None) -> str:
        """Store a new file, then remove the old one if it was ours."""
        url = await self.save(data, filename)
        await self.delete(old_url)
        return url

    async def delete(self, url: str | None) -> bool:
        """Remove a stored file. URLs that are not ours are left alone."""
        name = self.name_from_url(url)
        if name is None:
            return False
        try:
            removed = await asyncio.to_thread(self._remove, name)
        except OSError as e:
            raise FileStoreError(f"Could not remove {name}: {e}") from e
        if removed:
            logger.info(f"Removed stored file {name}")
        return removed
