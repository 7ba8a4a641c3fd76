"""
Engine session: one supervised engine process for one language and charset.

This module owns the child process lifecycle (start, stop, restart), the
banner handshake and raw line I/O against the process's standard streams.
Failures are converted into the CheckError family; nothing here decodes
reply lines.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from services.libs.pipespell_service_libs.logging_utils import create_service_logger

from services.pipespell_service.exceptions import (
    CheckError,
    EngineTimeoutError,
    PipeIOError,
    ProcessStartError,
)
from services.pipespell_service.models import DEFAULT_CHARSET
from services.pipespell_service.protocol_codec import encode_line, is_valid_banner
from services.pipespell_service.protocols import EngineProcessProtocol, ProcessSpawnerProtocol

logger = create_service_logger("pipespell_service.implementations.engine_session")

PIPE_MODE_FLAG = "-a"
_MAX_DIAGNOSTIC_LINES = 10
_DIAGNOSTIC_READ_TIMEOUT = 0.2


class EngineSession:
    """
    Supervises one engine child process.

    ``started`` is only ever True while all three streams are open and the
    engine has printed a valid banner. Changing ``language`` or ``charset``
    on a started session restarts it before the new value is used.
    """

    def __init__(
        self,
        spawner: ProcessSpawnerProtocol,
        language: str,
        charset: str = DEFAULT_CHARSET,
        *,
        command: str = "aspell",
        extra_args: Sequence[str] = (),
        banner_marker: str = "@",
        product_token: str = "Aspell",
        startup_timeout: float | None = 10.0,
        read_timeout: float | None = 10.0,
        metrics: dict[str, Any] | None = None,
    ) -> None:
        self._spawner = spawner
        self._language = language
        self._charset = charset
        self.command = command
        self.extra_args = list(extra_args)
        self.banner_marker = banner_marker
        self.product_token = product_token
        self.startup_timeout = startup_timeout
        self.read_timeout = read_timeout
        self.metrics = metrics

        self._process: EngineProcessProtocol | None = None
        self._started = False
        self._aborted = False
        self._banner: str | None = None
        self._last_error: CheckError | None = None
        self._recent_errors: list[str] = []

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def started(self) -> bool:
        return self._started

    @property
    def aborted(self) -> bool:
        return self._aborted

    @property
    def language(self) -> str:
        return self._language

    @language.setter
    def language(self, language: str) -> None:
        self._language = language
        if self._started:
            self.restart()

    @property
    def charset(self) -> str:
        return self._charset

    @charset.setter
    def charset(self, charset: str) -> None:
        self._charset = charset
        if self._started:
            self.restart()

    @property
    def banner(self) -> str | None:
        """Banner printed by the engine at the last successful start."""
        return self._banner

    @property
    def pid(self) -> int | None:
        process = self._process
        return process.pid if process is not None else None

    @property
    def last_error(self) -> CheckError | None:
        return self._last_error

    @property
    def recent_errors(self) -> list[str]:
        """Engine stderr lines collected at the last failed start or exchange."""
        return list(self._recent_errors)

    def has_error(self) -> bool:
        return self._last_error is not None

    def clear_error(self) -> None:
        self._last_error = None

    def record_error(self, error: CheckError) -> None:
        self._last_error = error
        logger.error(
            f"Engine session error: {error.message}",
            language=self._language,
            error_type=type(error).__name__,
            cause=repr(error.cause) if error.cause is not None else None,
        )

    def build_command(self) -> list[str]:
        return [self.command, f"--lang={self._language}", PIPE_MODE_FLAG, *self.extra_args]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> bool:
        """
        Spawn the engine and validate its banner.

        Returns:
            True when the session is started; on failure ``last_error`` holds
            a ProcessStartError and no process is left behind
        """
        if self._started:
            logger.warning("Engine session is already started", language=self._language)
            return True

        command = self.build_command()
        self._recent_errors = []
        logger.debug("Starting engine session", command=command, charset=self._charset)

        try:
            if self._aborted:
                raise ProcessStartError("Engine session was aborted")
            self._process = self._spawner.spawn(command, self._charset)
            if self._aborted:
                raise ProcessStartError("Engine session was aborted while spawning")
            banner = self._process.stdout.readline(timeout=self.startup_timeout)

            if not is_valid_banner(banner, self.banner_marker, self.product_token):
                self._recent_errors = self.collect_engine_errors()
                self._release()
                message = f"There is a problem with the {self.product_token} signature"
                if self._recent_errors:
                    message = f"{message}: {' '.join(self._recent_errors)}"
                self.record_error(ProcessStartError(message))
            else:
                self._banner = banner
                self._started = True

        except ProcessStartError as e:
            self._release()
            self.record_error(e)
        except Exception as e:
            self._release()
            self.record_error(ProcessStartError(f"Failed to start engine: {e}", cause=e))

        if self.metrics is not None:
            outcome = "success" if self._started else "failure"
            self.metrics["engine_starts_total"].labels(outcome=outcome).inc()

        if self._started:
            logger.info(
                "Engine session started",
                language=self._language,
                charset=self._charset,
                pid=self.pid,
                banner=self._banner,
            )
        return self._started

    def stop(self) -> None:
        """Close the three streams and terminate the process, each step independently."""
        if not self._started:
            logger.warning("Engine session is not started", language=self._language)
            return

        self._release()
        logger.info("Engine session stopped", language=self._language)

    def restart(self) -> None:
        if self._started:
            self.stop()
        self.start()

    def abort(self) -> None:
        """
        Kill the engine process without touching its streams.

        Safe to call from another thread while the owning thread is blocked
        on a read: the read then sees end of stream and the owner cleans up.
        An aborted session refuses to start or write, so an abort that lands
        while the engine is still being spawned is not lost.
        """
        self._aborted = True
        process = self._process
        if process is None:
            return
        try:
            process.kill()
            logger.warning("Engine process aborted", language=self._language, pid=process.pid)
        except Exception as e:
            logger.error(f"Failed to abort engine process: {e}", exc_info=True)

    # ------------------------------------------------------------------
    # Line I/O
    # ------------------------------------------------------------------

    def write_line(self, line: str) -> None:
        """
        Send one line of text as a pipe-mode data line.

        Raises:
            ValueError: If the line contains a line break
            PipeIOError: If the session is not started, was aborted or the pipe is broken
        """
        data = encode_line(line)
        process = self._require_process()
        try:
            process.stdin.flush()
            process.stdin.write(data)
            process.stdin.flush()
        except (OSError, ValueError) as e:
            raise PipeIOError(f"Failed to write to engine: {e}", cause=e) from e

    def read_line(self) -> str | None:
        """
        Read one line from the engine's output, None at end of stream.

        Raises:
            EngineTimeoutError: If no line arrives within ``read_timeout``
            PipeIOError: If the session is not started or the stream is broken
        """
        process = self._require_process()
        try:
            return process.stdout.readline(timeout=self.read_timeout)
        except TimeoutError as e:
            raise EngineTimeoutError(
                f"Engine did not answer within {self.read_timeout}s",
                timeout_seconds=self.read_timeout or 0.0,
                cause=e,
            ) from e
        except (OSError, ValueError) as e:
            raise PipeIOError(f"Failed to read from engine: {e}", cause=e) from e

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_process(self) -> EngineProcessProtocol:
        if self._aborted:
            raise PipeIOError("Engine session was aborted")
        process = self._process
        if not self._started or process is None:
            raise PipeIOError("Engine session is not started")
        return process

    def collect_engine_errors(self) -> list[str]:
        """Drain what the engine wrote to stderr, bounded in lines and wait time."""
        process = self._process
        if process is None:
            return []

        lines: list[str] = []
        try:
            while len(lines) < _MAX_DIAGNOSTIC_LINES:
                line = process.stderr.readline(timeout=_DIAGNOSTIC_READ_TIMEOUT)
                if line is None:
                    break
                if line.strip():
                    lines.append(line.strip())
        except (TimeoutError, OSError, ValueError):
            pass
        self._recent_errors = lines
        return lines

    def _release(self) -> None:
        process = self._process
        if process is not None:
            steps = (
                ("stdout", process.stdout.close),
                ("stdin", process.stdin.close),
                ("stderr", process.stderr.close),
                ("process", process.terminate),
            )
            for resource, release in steps:
                try:
                    release()
                except Exception as e:
                    logger.error(
                        f"Failed to release engine {resource}: {e}",
                        language=self._language,
                        exc_info=True,
                    )
                    if self.metrics is not None:
                        self.metrics["engine_cleanup_failures_total"].labels(
                            resource=resource
                        ).inc()

        self._process = None
        self._started = False
