"""Core relay pipeline.

This module is integration-agnostic. It only relies on ports for the chat
gateway and the network fetcher.

The pipeline enforces a strict order:
1) Send the single status message
2) Probe the declared size and reject oversized resources
3) Stream the body through a progress tap into a staged file
4) Rewind and upload the staged file as a reply to the command
5) Edit the status message with the terminal outcome

The staged file is released on every exit path, including cancellation.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from core.config import RelayConfig
from core.errors import GatewayUnavailable, ProbeFailed, RelayError, TooLarge, TransferFailed
from core.models import ProgressEvent, RelayPhase, RelayRequest, RelaySession
from core.ports import ChatGatewayPort, FetcherPort
from core.progress import ProgressTap, Throttle
from core.size_gate import SizeGate
from core.staging import StagedFile, StagingStore, filename_from_url
from core.status import STARTING, SUCCESS, UPLOADING, StatusChannel, describe_failure

LOGGER = logging.getLogger(__name__)


class RelayPipeline:
    """Orchestrates probe, download, staging, upload and status reporting."""

    def __init__(
        self,
        gateway: ChatGatewayPort,
        fetcher: FetcherPort,
        config: RelayConfig,
        staging: Optional[StagingStore] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._gateway = gateway
        self._fetcher = fetcher
        self._config = config
        self._staging = staging or StagingStore(config.staging_dir)
        self._clock = clock

    async def run(self, request: RelayRequest) -> RelaySession:
        """Relay one URL into the chat and return the finished session."""

        session = RelaySession()
        status = StatusChannel(self._gateway, request.chat_id)

        session.phase = RelayPhase.PROBING
        try:
            session.status_message_id = await status.open(STARTING)
        except GatewayUnavailable:
            LOGGER.warning("Could not send initial status to chat %s", request.chat_id, exc_info=True)
            session.phase = RelayPhase.FAILED
            return session

        gate = SizeGate(self._fetcher, request.max_file_size)
        try:
            session.total_size = await gate.check(request.url)
        except (ProbeFailed, TooLarge) as exc:
            LOGGER.info("Relay of %s rejected: %s", request.url, exc)
            session.phase = RelayPhase.GATED
            session.failure = exc
            await status.update(describe_failure(exc))
            return session

        try:
            await self._transfer(request, session, status)
        except RelayError as exc:
            LOGGER.warning("Relay of %s failed in %s: %s", request.url, session.phase.value, exc)
            session.phase = RelayPhase.FAILED
            session.failure = exc
            await status.update(describe_failure(exc))
            return session

        session.phase = RelayPhase.DONE
        await status.update(SUCCESS)
        LOGGER.info(
            "Relayed %s to chat %s (%s bytes)",
            request.url,
            request.chat_id,
            session.bytes_transferred,
        )
        return session

    async def _transfer(
        self,
        request: RelayRequest,
        session: RelaySession,
        status: StatusChannel,
    ) -> None:
        file_name = filename_from_url(request.url)
        with self._staging.acquire(file_name) as staged:
            session.phase = RelayPhase.DOWNLOADING
            await self._download(request, session, status, staged)
            if staged.bytes_written == 0:
                raise TransferFailed("Server returned an empty body", during="empty")

            session.phase = RelayPhase.STAGED
            await status.update(UPLOADING)
            try:
                handle = staged.rewind()
            except OSError as exc:
                raise TransferFailed(f"Could not flush staged file: {exc}", during="save") from exc

            session.phase = RelayPhase.UPLOADING
            await self._gateway.send_document(
                request.chat_id,
                handle,
                file_name,
                reply_to=request.message_id,
            )

    async def _download(
        self,
        request: RelayRequest,
        session: RelaySession,
        status: StatusChannel,
        staged: StagedFile,
    ) -> None:
        throttle = Throttle(self._config.status_interval, status, clock=self._clock)
        try:
            async with self._fetcher.open(request.url) as body:
                total = session.total_size
                if total is None and body.content_length and body.content_length > 0:
                    total = body.content_length
                    session.total_size = total
                if total is None:
                    await status.on_progress(ProgressEvent(percent=None))

                tap = ProgressTap(body.chunks, total, throttle)
                async for chunk in tap:
                    try:
                        await staged.write(chunk)
                    except OSError as exc:
                        raise TransferFailed(f"Could not write staged file: {exc}", during="save") from exc
                    session.bytes_transferred = tap.bytes_read
                    session.last_notified_at = throttle.last_fired
        except OSError as exc:
            raise TransferFailed(f"Download failed: {exc}", during="download") from exc

        await throttle.flush(tap.current())
        session.last_notified_at = throttle.last_fired
