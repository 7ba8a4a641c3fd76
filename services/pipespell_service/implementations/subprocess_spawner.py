"""
Engine processes backed by ``subprocess.Popen``.

Reads go straight to the pipe file descriptors through ``select`` so every
blocking read can be bounded by a deadline, and a reader never holds a
stream lock that would keep another thread from closing or killing the
process.
"""

from __future__ import annotations

import codecs
import os
import select
import subprocess
import time
from collections.abc import Mapping, Sequence
from typing import IO

from services.libs.pipespell_service_libs.logging_utils import create_service_logger

from services.pipespell_service.protocols import ProcessSpawnerProtocol

logger = create_service_logger("pipespell_service.implementations.subprocess_spawner")

_READ_CHUNK_SIZE = 4096


class PipeLineReader:
    """Decodes lines from a pipe with an optional per-line deadline."""

    def __init__(self, stream: IO[bytes], charset: str) -> None:
        self._stream = stream
        self._fd = stream.fileno()
        self._decoder = codecs.getincrementaldecoder(charset)(errors="replace")
        self._buffer = ""
        self._eof = False

    def readline(self, timeout: float | None = None) -> str | None:
        deadline = None if timeout is None else time.monotonic() + timeout

        while "\n" not in self._buffer and not self._eof:
            remaining = None if deadline is None else deadline - time.monotonic()
            if remaining is not None and remaining <= 0:
                raise TimeoutError(f"No complete line within {timeout}s")

            ready, _, _ = select.select([self._fd], [], [], remaining)
            if not ready:
                raise TimeoutError(f"No complete line within {timeout}s")

            chunk = os.read(self._fd, _READ_CHUNK_SIZE)
            if chunk:
                self._buffer += self._decoder.decode(chunk)
            else:
                self._eof = True
                self._buffer += self._decoder.decode(b"", final=True)

        if "\n" in self._buffer:
            line, _, self._buffer = self._buffer.partition("\n")
            return line.rstrip("\r")
        if self._buffer:
            line, self._buffer = self._buffer, ""
            return line
        return None

    def close(self) -> None:
        self._stream.close()


class PipeLineWriter:
    """Encodes text with the session charset; unmappable characters become '?'."""

    def __init__(self, stream: IO[bytes], charset: str) -> None:
        self._stream = stream
        self._charset = charset

    def write(self, data: str) -> None:
        self._stream.write(data.encode(self._charset, errors="replace"))

    def flush(self) -> None:
        self._stream.flush()

    def close(self) -> None:
        self._stream.close()


class SubprocessEngineProcess:
    """A running engine child process."""

    def __init__(
        self,
        popen: subprocess.Popen[bytes],
        charset: str,
        terminate_grace_seconds: float = 2.0,
    ) -> None:
        if popen.stdin is None or popen.stdout is None or popen.stderr is None:
            raise OSError("Engine process was started without piped standard streams")

        self._popen = popen
        self._terminate_grace_seconds = terminate_grace_seconds
        self.stdin = PipeLineWriter(popen.stdin, charset)
        self.stdout = PipeLineReader(popen.stdout, charset)
        self.stderr = PipeLineReader(popen.stderr, charset)

    @property
    def pid(self) -> int | None:
        return self._popen.pid

    def is_running(self) -> bool:
        return self._popen.poll() is None

    def terminate(self) -> None:
        if self._popen.poll() is not None:
            return

        self._popen.terminate()
        try:
            self._popen.wait(timeout=self._terminate_grace_seconds)
        except subprocess.TimeoutExpired:
            logger.warning(
                "Engine did not exit after SIGTERM, forcing kill",
                pid=self._popen.pid,
                grace_seconds=self._terminate_grace_seconds,
            )
            self._popen.kill()
            self._popen.wait()

    def kill(self) -> None:
        if self._popen.poll() is None:
            self._popen.kill()


class SubprocessSpawner(ProcessSpawnerProtocol):
    """Spawns the engine binary with piped stdin, stdout and stderr."""

    def __init__(
        self,
        env: Mapping[str, str] | None = None,
        terminate_grace_seconds: float = 2.0,
    ) -> None:
        self.env = dict(env) if env is not None else None
        self.terminate_grace_seconds = terminate_grace_seconds

    def spawn(self, args: Sequence[str], charset: str) -> SubprocessEngineProcess:
        # Fail on an unknown charset before a process exists
        codecs.lookup(charset)

        popen = subprocess.Popen(
            list(args),
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            env=self.env,
        )
        logger.debug("Engine process spawned", pid=popen.pid, command=list(args))

        try:
            return SubprocessEngineProcess(popen, charset, self.terminate_grace_seconds)
        except Exception:
            popen.kill()
            popen.wait()
            raise
