"""
Protocol definitions for Pipespell Service dependency injection.

This module defines behavioral contracts using typing.Protocol for the
engine process capability and the check components, so the real engine
can be replaced by a scripted one in development mode and tests.
"""

from __future__ import annotations

from collections.abc import Sequence
from concurrent.futures import Future
from typing import Protocol

from services.pipespell_service.models import CheckRequest, SuggestionRecord


class EngineLineReader(Protocol):
    """Line-oriented reader over one of the engine's output streams."""

    def readline(self, timeout: float | None = None) -> str | None:
        """
        Read one decoded line without its terminator.

        Args:
            timeout: Seconds to wait for a complete line; unbounded when None

        Returns:
            The line, or None once the stream has ended

        Raises:
            TimeoutError: If no complete line arrived within the timeout
            OSError: If the stream is broken or closed
        """
        ...

    def close(self) -> None: ...


class EngineLineWriter(Protocol):
    """Writer over the engine's standard input, encoding with the session charset."""

    def write(self, data: str) -> None: ...

    def flush(self) -> None: ...

    def close(self) -> None: ...


class EngineProcessProtocol(Protocol):
    """A spawned engine process and its three standard streams."""

    stdin: EngineLineWriter
    stdout: EngineLineReader
    stderr: EngineLineReader

    @property
    def pid(self) -> int | None: ...

    def is_running(self) -> bool: ...

    def terminate(self) -> None:
        """Stop the process, escalating to a kill if it does not exit in time."""
        ...

    def kill(self) -> None:
        """Kill the process immediately. Safe to call from another thread."""
        ...


class ProcessSpawnerProtocol(Protocol):
    """Capability that creates engine processes."""

    def spawn(self, args: Sequence[str], charset: str) -> EngineProcessProtocol:
        """
        Start the engine.

        Args:
            args: Full command line, executable first
            charset: Charset used to encode input and decode output

        Raises:
            OSError: If the executable cannot be started
        """
        ...


class SpellCheckCoordinatorProtocol(Protocol):
    """Synchronous entry point that runs one complete check."""

    def check(self, request: CheckRequest) -> list[SuggestionRecord]:
        """
        Check the request's text and return the misspelled terms in order.

        Raises:
            CheckError: If the engine could not be started, the pipe broke or
                a reply could not be decoded
        """
        ...


class CheckRunnerProtocol(Protocol):
    """Offloads blocking checks to workers."""

    def submit(self, request: CheckRequest) -> Future[list[SuggestionRecord]]: ...

    async def run(self, request: CheckRequest) -> list[SuggestionRecord]: ...

    def shutdown(self, wait: bool = True) -> None: ...
