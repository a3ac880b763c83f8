"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

DEFAULT_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class RelayConfig:
    """Relay pipeline settings, fixed for the lifetime of the process."""

    max_file_size: int
    status_interval: float = 2.0
    staging_dir: Optional[str] = None
    chunk_size: int = DEFAULT_CHUNK_SIZE


@dataclass(frozen=True)
class CommandConfig:
    """Command dispatch settings consumed by the dispatcher."""

    prefix: str = "/url"
    allowed_chats: frozenset[int] = field(default_factory=frozenset)
