"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any integration-specific types.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import AsyncIterator, Optional

from core.errors import RelayError


@dataclass(frozen=True)
class RelayRequest:
    """One accepted relay command."""

    url: str
    chat_id: int
    message_id: int
    max_file_size: int


class RelayPhase(enum.Enum):
    IDLE = "idle"
    PROBING = "probing"
    GATED = "gated"
    DOWNLOADING = "downloading"
    STAGED = "staged"
    UPLOADING = "uploading"
    DONE = "done"
    FAILED = "failed"


@dataclass
class RelaySession:
    """Mutable state owned by a single pipeline run."""

    status_message_id: Optional[int] = None
    bytes_transferred: int = 0
    total_size: Optional[int] = None
    last_notified_at: Optional[float] = None
    phase: RelayPhase = RelayPhase.IDLE
    failure: Optional[RelayError] = None


@dataclass(frozen=True)
class ProgressEvent:
    """Download progress; percent is None when the total size is unknown."""

    percent: Optional[float]
    bytes_read: int = 0
    total: Optional[int] = None

    @property
    def indeterminate(self) -> bool:
        return self.percent is None


@dataclass(frozen=True)
class FetchedBody:
    """An open response body as handed out by a fetcher adapter."""

    content_length: Optional[int]
    chunks: AsyncIterator[bytes]


@dataclass(frozen=True)
class CommandMessage:
    """Minimal inbound message context used by the dispatcher."""

    chat_id: int
    message_id: int
    text: str
    sender_id: Optional[int] = None
