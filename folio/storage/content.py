"""Blob store for page bodies and uploaded assets, laid out by key under a root dir."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path, PurePosixPath

logger = logging.getLogger("folio.content")


def validate_key(key: str) -> str:
    """Reject keys that are empty or would escape the store root."""
    if any(part in ("", ".", "..") for part in key.split("/")):
        raise ValueError(f"Invalid content key: {key!r}")
    return key


class ContentStore:
    def __init__(self, root: Path) -> None:
        self._root = root
        self._root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self._root.joinpath(*PurePosixPath(validate_key(key)).parts)

    def put(self, key: str, data: bytes) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_name(path.name + ".tmp")
        tmp_path.write_bytes(data)
        tmp_path.rename(path)
        logger.info("Stored %s (%d bytes)", key, len(data))

    def get(self, key: str) -> bytes | None:
        path = self._path(key)
        if not path.is_file():
            return None
        return path.read_bytes()

    def delete_prefix(self, prefix: str) -> None:
        """Remove every blob under `prefix` (a key directory)."""
        path = self._path(prefix)
        if path.is_dir():
            shutil.rmtree(path)
            logger.info("Removed content under %s", prefix)
