"""Filesystem Blob Store — overflow storage for oversized evidence text.

Invariants:
    - Paths are relative to the store root; absolute paths and ".." are rejected
    - Text is written and read as UTF-8, byte-for-byte (hash-stable)
    - Writes go to a temp file then os.replace: readers never see a partial blob
    - All OS failures surface as BlobStoreError

Design Decisions:
    - Blocking file IO runs in asyncio.to_thread: no event-loop stalls, no extra dependency
"""

import asyncio
import logging
import os
import uuid
from pathlib import Path, PurePosixPath

from rxguard.core.errors import BlobStoreError

logger = logging.getLogger(__name__)

LABEL_BLOB_PREFIX = "rxguard/labels"


def label_blob_path(doc_id: str) -> str:
    """Deterministic overflow location for a label doc."""
    return f"{LABEL_BLOB_PREFIX}/{doc_id}.txt"


class FileBlobStore:
    """BlobStore rooted at a local directory."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def _resolve(self, path: str) -> Path:
        rel = PurePosixPath(path)
        if rel.is_absolute() or ".." in rel.parts:
            raise BlobStoreError("path escapes blob root", path)
        return self.root.joinpath(*rel.parts)

    async def read_text(self, path: str) -> str:
        target = self._resolve(path)
        try:
            data = await asyncio.to_thread(target.read_bytes)
        except OSError as e:
            raise BlobStoreError(str(e), path)
        return data.decode("utf-8")

    async def write_text(self, path: str, text: str) -> None:
        target = self._resolve(path)
        try:
            await asyncio.to_thread(_atomic_write, target, text.encode("utf-8"))
        except OSError as e:
            raise BlobStoreError(str(e), path)
        logger.info("Evidence blob written", extra={"path": path})


def _atomic_write(target: Path, data: bytes) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp = target.with_name(f".{target.name}.{uuid.uuid4().hex}.tmp")
    tmp.write_bytes(data)
    os.replace(tmp, target)
