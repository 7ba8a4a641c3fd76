"""
Worker offloading for blocking spell checks.

The coordinator's check blocks on process spawn and pipe I/O, so it runs
on a thread pool. Asyncio callers await the worker's future; when they are
cancelled or the check overruns its deadline the session is aborted: a
running engine is killed so the worker unblocks and performs the regular
cleanup, and an engine still being spawned is released without a check.
"""

from __future__ import annotations

import asyncio
from concurrent.futures import Future, ThreadPoolExecutor

from services.libs.pipespell_service_libs.logging_utils import create_service_logger

from services.pipespell_service.exceptions import EngineTimeoutError
from services.pipespell_service.implementations.spell_check_coordinator import (
    SpellCheckCoordinator,
)
from services.pipespell_service.models import CheckRequest, SuggestionRecord
from services.pipespell_service.protocols import CheckRunnerProtocol

logger = create_service_logger("pipespell_service.implementations.async_runner")


class ThreadedCheckRunner(CheckRunnerProtocol):
    """Runs coordinator checks on a bounded thread pool."""

    def __init__(
        self,
        coordinator: SpellCheckCoordinator,
        max_workers: int = 4,
        check_timeout: float | None = 30.0,
    ) -> None:
        self.coordinator = coordinator
        self.check_timeout = check_timeout
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="pipespell-check"
        )
        logger.info(
            "ThreadedCheckRunner initialized",
            max_workers=max_workers,
            check_timeout=check_timeout,
        )

    def submit(self, request: CheckRequest) -> Future[list[SuggestionRecord]]:
        """Schedule a check and return its future."""
        return self._executor.submit(self.coordinator.check, request)

    async def run(self, request: CheckRequest) -> list[SuggestionRecord]:
        """
        Run a check on a worker and suspend until it finishes.

        Raises:
            EngineTimeoutError: If the check exceeds ``check_timeout``
            CheckError: Any failure raised by the coordinator
        """
        session = self.coordinator.open_session(request)
        future = self._executor.submit(self.coordinator.check, request, session)

        try:
            async with asyncio.timeout(self.check_timeout):
                return await asyncio.wrap_future(future)
        except TimeoutError as e:
            session.abort()
            logger.warning(
                "Spell check timed out, engine aborted",
                language=request.language,
                timeout_seconds=self.check_timeout,
            )
            raise EngineTimeoutError(
                f"Spell check did not complete within {self.check_timeout}s",
                timeout_seconds=self.check_timeout or 0.0,
                cause=e,
            ) from e
        except asyncio.CancelledError:
            session.abort()
            logger.warning("Spell check cancelled, engine aborted", language=request.language)
            raise

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait, cancel_futures=True)
        logger.info("ThreadedCheckRunner shut down")
