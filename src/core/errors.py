"""Relay error taxonomy.

Adapters translate library exceptions into these types at the port boundary
so the pipeline can map each failure to a distinct status text.
"""

from __future__ import annotations


class RelayError(Exception):
    """Base class for failures that end a relay."""


class ProbeFailed(RelayError):
    """The metadata probe could not determine the resource size."""


class TooLarge(RelayError):
    """The declared size exceeds the configured ceiling."""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(f"Declared size {size} exceeds limit {limit}")
        self.size = size
        self.limit = limit


class TransferFailed(RelayError):
    """Streaming the body into staging storage failed.

    ``during`` is one of ``"staging"``, ``"download"``, ``"save"`` or
    ``"empty"`` (the body had no bytes, which Telegram cannot upload).
    """

    def __init__(self, message: str, during: str = "download") -> None:
        super().__init__(message)
        self.during = during


class UploadFailed(RelayError):
    """The chat gateway did not accept the staged document."""

    def __init__(self, message: str, too_large: bool = False) -> None:
        super().__init__(message)
        self.too_large = too_large


class GatewayUnavailable(Exception):
    """The chat platform could not be reached."""
