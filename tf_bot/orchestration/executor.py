"""Process execution primitive shared by every pipeline stage."""

from __future__ import annotations

import codecs
import logging
import subprocess
import sys
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Callable, Protocol, Sequence

logger = logging.getLogger(__name__)

ChunkCallback = Callable[[bytes], None]

_READ_SIZE = 8192


@dataclass(frozen=True)
class ExecOptions:
    cwd: str | Path | None = None
    ignore_non_zero_exit: bool = False
    on_stdout: ChunkCallback | None = None
    on_stderr: ChunkCallback | None = None


# Reported when the process could not be started at all, as a shell does.
SPAWN_FAILED_EXIT_CODE = 127


class CommandFailedError(RuntimeError):
    def __init__(self, argv: Sequence[str], exit_code: int, message: str = "") -> None:
        super().__init__(message or f"The process '{argv[0]}' failed with exit code {exit_code}")
        self.argv = list(argv)
        self.exit_code = exit_code


class CommandExecutor(Protocol):
    def run(self, binary: str, args: Sequence[str], options: ExecOptions) -> int: ...


class SubprocessExecutor:
    """Runs a command, streaming both pipes to callbacks while it executes.

    Output is echoed to ``echo_stream`` as it arrives so the job log shows the
    tool's progress live.
    """

    def __init__(self, echo_stream: IO[str] | None = None, echo: bool = True) -> None:
        self.echo_stream = echo_stream
        self.echo = echo
        self._echo_lock = threading.Lock()

    def run(self, binary: str, args: Sequence[str], options: ExecOptions) -> int:
        argv = [binary, *args]
        logger.info("[command]%s", " ".join(argv))
        try:
            process = subprocess.Popen(
                argv,
                cwd=str(options.cwd) if options.cwd else None,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except OSError as exc:
            raise CommandFailedError(
                argv,
                SPAWN_FAILED_EXIT_CODE,
                f"Unable to start '{argv[0]}': {exc}",
            ) from exc
        readers = [
            threading.Thread(
                target=self._drain, args=(process.stdout, options.on_stdout), daemon=True
            ),
            threading.Thread(
                target=self._drain, args=(process.stderr, options.on_stderr), daemon=True
            ),
        ]
        for reader in readers:
            reader.start()
        exit_code = process.wait()
        for reader in readers:
            reader.join()

        if exit_code != 0 and not options.ignore_non_zero_exit:
            raise CommandFailedError(argv, exit_code)
        return exit_code

    def _drain(self, stream: IO[bytes] | None, callback: ChunkCallback | None) -> None:
        if stream is None:
            return
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        with stream:
            while True:
                chunk = stream.read1(_READ_SIZE)  # type: ignore[attr-defined]
                if not chunk:
                    break
                if callback is not None:
                    callback(chunk)
                if self.echo:
                    self._echo(decoder.decode(chunk))
        if self.echo:
            self._echo(decoder.decode(b"", final=True))

    def _echo(self, text: str) -> None:
        if not text:
            return
        target = self.echo_stream or sys.stdout
        with self._echo_lock:
            target.write(text)
            target.flush()
