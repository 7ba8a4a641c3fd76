"""
Spell check coordinator.

Runs one complete, one-shot check: a fresh engine session is started, the
request text is submitted line by line, every reply block is decoded and
the session is stopped again whatever happened. Callers get either the
full list of misspelled terms or a single CheckError.
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from typing import Any

from services.libs.pipespell_service_libs.logging_utils import create_service_logger

from services.pipespell_service.config import Settings
from services.pipespell_service.exceptions import CheckError, PipeIOError, ProcessStartError
from services.pipespell_service.implementations.engine_session import EngineSession
from services.pipespell_service.models import CheckRequest, SuggestionRecord
from services.pipespell_service.protocol_codec import (
    decode_line,
    encode_text,
    is_block_terminator,
)
from services.pipespell_service.protocols import (
    ProcessSpawnerProtocol,
    SpellCheckCoordinatorProtocol,
)

logger = create_service_logger("pipespell_service.implementations.spell_check_coordinator")


class SpellCheckCoordinator(SpellCheckCoordinatorProtocol):
    """Public entry point for synchronous spell checks."""

    def __init__(
        self,
        settings: Settings,
        spawner: ProcessSpawnerProtocol,
        metrics: dict[str, Any] | None = None,
    ) -> None:
        self.settings = settings
        self.spawner = spawner
        self.metrics = metrics

    def open_session(self, request: CheckRequest) -> EngineSession:
        """Create an unstarted session configured for the request."""
        return EngineSession(
            self.spawner,
            request.language,
            request.charset,
            command=self.settings.ENGINE_COMMAND,
            extra_args=self.settings.ENGINE_EXTRA_ARGS,
            banner_marker=self.settings.ENGINE_BANNER_MARKER,
            product_token=self.settings.ENGINE_PRODUCT_TOKEN,
            startup_timeout=self.settings.ENGINE_STARTUP_TIMEOUT_SECONDS,
            read_timeout=self.settings.ENGINE_READ_TIMEOUT_SECONDS,
            metrics=self.metrics,
        )

    def check(
        self, request: CheckRequest, session: EngineSession | None = None
    ) -> list[SuggestionRecord]:
        """
        Check the request's text and return its misspelled terms.

        Args:
            request: Text, language and charset to check
            session: Session to run on; a fresh one is opened when None

        Returns:
            Misspelled terms in input line order, each stamped with its line

        Raises:
            ProcessStartError: If the engine could not be started
            PipeIOError: If the pipe broke, closed or timed out mid-exchange
            ProtocolError: If a reply line could not be decoded
        """
        if session is None:
            session = self.open_session(request)

        check_start = time.perf_counter()
        session.clear_error()

        if not session.started and not session.start():
            error = session.last_error or ProcessStartError("Engine session could not be started")
            self._record_outcome("start_failure", request, check_start)
            raise error from error.cause

        records: list[SuggestionRecord] = []
        try:
            for line_number, line in enumerate(encode_text(request.text), start=1):
                session.write_line(line)
                for record in self._read_reply_block(session):
                    if record.is_misspelled:
                        records.append(record.model_copy(update={"line_number": line_number}))
        except PipeIOError as e:
            engine_errors = session.collect_engine_errors()
            if engine_errors:
                e.add_detail(" ".join(engine_errors))
            session.record_error(e)
        except CheckError as e:
            session.record_error(e)
        except Exception as e:
            session.record_error(CheckError(f"Unexpected failure during check: {e}", cause=e))
        finally:
            session.stop()

        error = session.last_error
        if error is not None:
            self._record_outcome(type(error).__name__, request, check_start)
            raise error from error.cause

        self._record_outcome("success", request, check_start)
        if self.metrics is not None:
            self.metrics["misspellings_found"].observe(len(records))

        logger.info(
            "Spell check completed",
            language=request.language,
            lines=len(encode_text(request.text)),
            misspellings=len(records),
        )
        return records

    def _read_reply_block(self, session: EngineSession) -> Iterator[SuggestionRecord]:
        while True:
            line = session.read_line()
            if line is None:
                raise PipeIOError("Engine closed its output before the reply was complete")
            if is_block_terminator(line):
                return
            yield decode_line(line)

    def _record_outcome(self, status: str, request: CheckRequest, check_start: float) -> None:
        if self.metrics is None:
            return
        self.metrics["spellcheck_total"].labels(status=status).inc()
        self.metrics["spellcheck_duration_seconds"].labels(language=request.language).observe(
            time.perf_counter() - check_start
        )
