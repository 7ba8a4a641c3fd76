"""
Stub engine for development and testing.

This module simulates the pipe-mode engine in memory so the service can run
where the engine binary is not installed. It prints a banner, flags a small
fixed set of misspellings and answers every submitted data line with a reply
block terminated by an empty line.
"""

from __future__ import annotations

import queue
import re
import threading
from collections.abc import Mapping, Sequence

from services.libs.pipespell_service_libs.logging_utils import create_service_logger

from services.pipespell_service.protocols import ProcessSpawnerProtocol

logger = create_service_logger("pipespell_service.implementations.stub_engine")

STUB_BANNER = "@(#) International Ispell Version 3.1.20 (but really Aspell 0.60.8 stub)"

DEFAULT_STUB_MISSPELLINGS: dict[str, list[str]] = {
    "helo": ["hello", "help"],
    "teh": ["the", "ten", "tech"],
    "recieve": ["receive", "relieve"],
    "speling": ["spelling", "spieling"],
    "wrld": [],
}

_COMMAND_CHARACTERS = frozenset("*&@+-~#!%`$")
_WORD_PATTERN = re.compile(r"[^\W\d_]+(?:'[^\W\d_]+)*")


class _StubReader:
    def __init__(self) -> None:
        self._lines: queue.Queue[str | None] = queue.Queue()
        self._closed = False

    def push(self, line: str | None) -> None:
        self._lines.put(line)

    def readline(self, timeout: float | None = None) -> str | None:
        if self._closed:
            raise OSError("read from closed stub stream")
        try:
            line = self._lines.get(timeout=timeout)
        except queue.Empty as e:
            raise TimeoutError(f"No complete line within {timeout}s") from e
        if line is None:
            # end of stream stays visible to later reads
            self._lines.put(None)
        return line

    def close(self) -> None:
        self._closed = True


class _StubWriter:
    def __init__(self, process: StubEngineProcess) -> None:
        self._process = process
        self._pending = ""
        self._closed = False

    def write(self, data: str) -> None:
        if self._closed or not self._process.is_running():
            raise BrokenPipeError("stub engine is not accepting input")
        self._pending += data

    def flush(self) -> None:
        while "\n" in self._pending:
            line, _, self._pending = self._pending.partition("\n")
            self._process.answer(line)

    def close(self) -> None:
        self._closed = True


class StubEngineProcess:
    """In-memory engine answering in the pipe-mode reply format."""

    def __init__(
        self,
        language: str,
        misspellings: Mapping[str, list[str]],
        available: bool = True,
    ) -> None:
        self.language = language
        self.misspellings = {word.lower(): list(s) for word, s in misspellings.items()}
        self.stdout = _StubReader()
        self.stderr = _StubReader()
        self.stdin = _StubWriter(self)
        self._running = True
        self.commands: list[str] = []

        if available:
            self.stdout.push(STUB_BANNER)
        else:
            self.stderr.push(
                f'Error: No word lists can be found for the language "{language}".'
            )
            self._exit()

    @property
    def pid(self) -> int | None:
        return None

    def is_running(self) -> bool:
        return self._running

    def answer(self, line: str) -> None:
        """
        Answer one submitted line the way the engine's pipe mode does.

        A line behind the ``^`` marker is data; any other line starting with
        a command character is recorded and gets no reply. Offsets are 0-based and
        count the marker.
        """
        if line[:1] in _COMMAND_CHARACTERS:
            self.commands.append(line)
            return
        for match in _WORD_PATTERN.finditer(line):
            word = match.group(0)
            position = match.start()
            suggestions = self.misspellings.get(word.lower())
            if suggestions is None:
                self.stdout.push("*")
            elif suggestions:
                self.stdout.push(
                    f"& {word} {len(suggestions)} {position}: {', '.join(suggestions)}"
                )
            else:
                self.stdout.push(f"# {word} {position}")
        self.stdout.push("")

    def terminate(self) -> None:
        self._exit()

    def kill(self) -> None:
        self._exit()

    def _exit(self) -> None:
        if self._running:
            self._running = False
            self.stdout.push(None)
            self.stderr.push(None)


class StubProcessSpawner(ProcessSpawnerProtocol):
    """
    Spawner returning StubEngineProcess instances.

    Args:
        misspellings: Words to flag, mapped to their suggestions (empty list
            for a word without suggestions)
        languages: Languages the stub has dictionaries for; all when None
    """

    def __init__(
        self,
        misspellings: Mapping[str, list[str]] | None = None,
        languages: Sequence[str] | None = None,
    ) -> None:
        self.misspellings = dict(
            misspellings if misspellings is not None else DEFAULT_STUB_MISSPELLINGS
        )
        self.languages = set(languages) if languages is not None else None
        self.spawn_count = 0
        self._lock = threading.Lock()
        logger.info("StubProcessSpawner initialized", words=len(self.misspellings))

    def spawn(self, args: Sequence[str], charset: str) -> StubEngineProcess:
        with self._lock:
            self.spawn_count += 1
        language = next(
            (arg.split("=", 1)[1] for arg in args if arg.startswith("--lang=")), ""
        )
        available = self.languages is None or language in self.languages
        logger.debug("Stub engine spawned", language=language, available=available)
        return StubEngineProcess(language, self.misspellings, available=available)
