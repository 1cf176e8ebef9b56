# ABOUTME: Filesystem ImageStore writing each file atomically via temp file and rename
# ABOUTME: Blocking I/O runs in worker threads so distinct files are written concurrently

import asyncio
import contextlib
import os
import re
import tempfile
from pathlib import Path, PurePosixPath

from trade_journal.content.base import StorageError, StoredImage
from trade_journal.utils.logging import get_logger

_UNSAFE_FILENAME_RE = re.compile(r"[^A-Za-z0-9._-]")


class LocalImageStore:
    """Stores image bytes under ``<root>/<subdir>/`` and serves them from ``public_base_url``."""

    def __init__(self, root: Path | str, public_base_url: str = "/uploads", subdir: str = "images"):
        self.root = Path(root)
        self.subdir = subdir.strip("/")
        self.public_base_url = public_base_url.rstrip("/")
        self.logger = get_logger(__name__)

    def public_url(self, relative_path: str) -> str:
        return f"{self.public_base_url}/{relative_path.lstrip('/')}"

    def path_for(self, relative_path: str) -> Path:
        return self.root / PurePosixPath(relative_path)

    async def put(self, data: bytes, suggested_name: str) -> StoredImage:
        filename = self._safe_filename(suggested_name)
        relative_path = f"{self.subdir}/{filename}" if self.subdir else filename

        try:
            await asyncio.to_thread(self._write_atomic, self.path_for(relative_path), data)
        except OSError as e:
            self.logger.error("Failed to write image", filename=filename, error=str(e), error_type=type(e).__name__)
            raise StorageError(f"Could not write {relative_path}: {e}") from e

        self.logger.debug("Stored image", filename=filename, size=len(data))
        return StoredImage(
            filename=filename,
            stored_relative_path=relative_path,
            public_url=self.public_url(relative_path),
        )

    @staticmethod
    def _safe_filename(name: str) -> str:
        base = PurePosixPath(name.replace("\\", "/")).name
        cleaned = _UNSAFE_FILENAME_RE.sub("_", base).lstrip(".")
        if not cleaned:
            raise StorageError(f"Unusable filename: {name!r}")
        return cleaned

    @staticmethod
    def _write_atomic(target: Path, data: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=".tmp-", suffix=".part")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            # Linking fails with FileExistsError if the target already exists.
            os.link(tmp_name, target)
        finally:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)

