"""Temporary staging storage for downloaded files (core domain).

Staged files live only between download completion and upload. Acquisition
is scoped: the file is deleted when the owning ``with`` block exits, whatever
the reason.
"""

from __future__ import annotations

import asyncio
import logging
import os
import posixpath
import re
import tempfile
from contextlib import contextmanager
from typing import BinaryIO, Iterator, Optional
from urllib.parse import unquote, urlsplit

from core.errors import TransferFailed

LOGGER = logging.getLogger(__name__)

FALLBACK_FILE_NAME = "downloaded_file"
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")
_MAX_HINT_CHARS = 64


def filename_from_url(url: str) -> str:
    """Return the decoded last path segment of a URL, or a fallback name."""

    path = unquote(urlsplit(url).path)
    name = posixpath.basename(path.rstrip("/")).strip()
    if not name or name in {".", ".."}:
        return FALLBACK_FILE_NAME
    return name


def _sanitize_hint(name_hint: str) -> str:
    cleaned = _UNSAFE_CHARS.sub("_", name_hint).strip("._")
    return cleaned[-_MAX_HINT_CHARS:] or "file"


class StagedFile:
    """Ownership token over one temporary file."""

    def __init__(self, handle: BinaryIO, path: str) -> None:
        self._handle = handle
        self.path = path
        self.bytes_written = 0
        self.released = False

    async def write(self, chunk: bytes) -> None:
        # Disk I/O runs in a worker thread to keep the event loop responsive.
        await asyncio.to_thread(self._handle.write, chunk)
        self.bytes_written += len(chunk)

    def rewind(self) -> BinaryIO:
        """Flush pending writes and return the handle positioned at offset 0."""

        self._handle.flush()
        self._handle.seek(0)
        return self._handle

    def release(self) -> None:
        """Close and delete the file. Must happen exactly once."""

        if self.released:
            raise RuntimeError(f"Staged file already released: {self.path}")
        self.released = True
        try:
            self._handle.close()
        finally:
            try:
                os.remove(self.path)
            except FileNotFoundError:
                LOGGER.warning("Staged file vanished before release: %s", self.path)


class StagingStore:
    """Hands out uniquely named temporary files under one directory."""

    def __init__(self, root: Optional[str] = None) -> None:
        self._root = root or None

    @property
    def root(self) -> str:
        return self._root or tempfile.gettempdir()

    @contextmanager
    def acquire(self, name_hint: str) -> Iterator[StagedFile]:
        """Yield a fresh staged file and release it when the block exits."""

        try:
            if self._root:
                os.makedirs(self._root, exist_ok=True)
            handle = tempfile.NamedTemporaryFile(
                mode="w+b",
                prefix="telegram-",
                suffix=f"-{_sanitize_hint(name_hint)}",
                dir=self._root,
                delete=False,
            )
        except OSError as exc:
            raise TransferFailed(f"Could not create staging file: {exc}", during="staging") from exc
        staged = StagedFile(handle, handle.name)
        LOGGER.debug("Staging %s at %s", name_hint, staged.path)
        try:
            yield staged
        finally:
            staged.release()
