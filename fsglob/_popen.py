"""Run a subprocess with its output captured, redirected or stream-processed.

:class:`Command` gathers everything about the process to run and where its
output goes in plain fields, so a configured command can be run several
times. Each of stdout and stderr can be captured into the result, written to
a file, handed to a reader callback, or any combination of those.
"""

from __future__ import annotations

import io
import os
import signal
import subprocess
import threading
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import IO, NamedTuple

from ._exceptions import CommandError, CommandTimeoutError
from ._log import get_logger

log = get_logger(__name__)

_CHUNK_SIZE = 64 * 1024
_POLL_INTERVAL = 0.05

StreamReader = Callable[[IO[bytes]], object]


class CommandResult(NamedTuple):
    returncode: int
    stdout: str
    stderr: str


@dataclass
class Command:
    """A process to run and the routing of its output streams.

    ``stdout`` and ``stderr`` are captured into the :class:`CommandResult`
    unless discarded or written to a file. A reader callback receives a
    binary stream of the output; if it raises, the process is terminated
    and the exception propagates from :meth:`run`.
    """

    command: str
    arguments: Sequence[str] = ()
    directory: str = ""
    env: Mapping[str, str] = field(default_factory=dict)
    overwrite_env: bool = False

    discard_stdout: bool = False
    write_stdout_to_file: str = ""
    stdout_reader: StreamReader | None = None

    discard_stderr: bool = False
    write_stderr_to_file: str = ""
    stderr_reader: StreamReader | None = None

    # signal sent before SIGKILL when the grace period is not zero
    kill_grace_period: float = 0.0
    pre_kill_signal: int = signal.SIGINT
    no_process_group: bool = False
    encoding: str = "utf-8"

    def __post_init__(self) -> None:
        if self.kill_grace_period < 0:
            raise ValueError(
                f"Invalid kill_grace_period value: {self.kill_grace_period!r}. "
                "Expected a non-negative number of seconds."
            )

    @property
    def argv(self) -> list[str]:
        return [self.command, *self.arguments]

    def run(self, timeout: float | None = None, *, check: bool = False) -> CommandResult:
        """Run the command to completion and return its status and captured output.

        Raises :class:`CommandTimeoutError` if it is still running after
        *timeout* seconds, and :class:`subprocess.CalledProcessError` on a
        non-zero exit status when *check* is true.
        """
        if timeout is not None and timeout <= 0:
            raise ValueError(f"Invalid timeout value: {timeout!r}. Expected a positive number.")

        abort = threading.Event()
        stdout_route = _OutputRoute(
            "stdout", self.discard_stdout, self.write_stdout_to_file, self.stdout_reader, abort
        )
        stderr_route = _OutputRoute(
            "stderr", self.discard_stderr, self.write_stderr_to_file, self.stderr_reader, abort
        )
        with stdout_route, stderr_route:
            proc = self._start(stdout_route.target, stderr_route.target)
            stdout_route.start(proc.stdout)
            stderr_route.start(proc.stderr)

            timed_out = self._wait(proc, timeout, abort)

            stdout_route.join()
            stderr_route.join()

        stdout = stdout_route.captured(self.encoding)
        stderr = stderr_route.captured(self.encoding)
        for route in (stdout_route, stderr_route):
            if route.error is not None:
                raise route.error
        if timed_out:
            raise CommandTimeoutError(self.command, timeout or 0.0, stdout, stderr)
        if check and proc.returncode != 0:
            raise subprocess.CalledProcessError(proc.returncode, self.argv, stdout, stderr)
        return CommandResult(proc.returncode, stdout, stderr)

    # -- process lifecycle --

    def _start(self, stdout: int | IO[bytes], stderr: int | IO[bytes]) -> subprocess.Popen[bytes]:
        env = None
        if self.env:
            env = {} if self.overwrite_env else dict(os.environ)
            env.update(self.env)
        try:
            proc = subprocess.Popen(
                self.argv,
                cwd=self.directory or None,
                env=env,
                stdin=subprocess.DEVNULL,
                stdout=stdout,
                stderr=stderr,
                start_new_session=not self.no_process_group and os.name != "nt",
            )
        except OSError as err:
            raise CommandError(
                err.errno, f"failed to start command '{self.command}': {err.strerror}"
            ) from err
        log.debug("started %s (pid %d)", self.argv, proc.pid)
        return proc

    def _wait(
        self, proc: subprocess.Popen[bytes], timeout: float | None, abort: threading.Event
    ) -> bool:
        """Wait for *proc* to exit; return True if it had to be stopped on timeout."""
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            try:
                proc.wait(timeout=_POLL_INTERVAL)
                return False
            except subprocess.TimeoutExpired:
                pass
            if abort.is_set():
                log.debug("output reader failed, stopping pid %d", proc.pid)
                self._terminate(proc)
                return False
            if deadline is not None and time.monotonic() >= deadline:
                log.debug("pid %d timed out after %s seconds", proc.pid, timeout)
                self._terminate(proc)
                return True

    def _terminate(self, proc: subprocess.Popen[bytes]) -> None:
        if self.kill_grace_period > 0:
            self._signal(proc, self.pre_kill_signal)
            try:
                proc.wait(timeout=self.kill_grace_period)
                return
            except subprocess.TimeoutExpired:
                log.debug("pid %d still running after grace period, killing", proc.pid)
        self._signal(proc, signal.SIGKILL if os.name != "nt" else signal.SIGTERM)
        proc.wait()

    def _signal(self, proc: subprocess.Popen[bytes], sig: int) -> None:
        if proc.poll() is not None:
            return
        try:
            if self.no_process_group or os.name == "nt":
                proc.send_signal(sig)
            else:
                os.killpg(proc.pid, sig)
        except ProcessLookupError:
            pass


# ---------------------------------------------------------------------------
#  Output routing
# ---------------------------------------------------------------------------


class _OutputRoute:
    """Fans one output stream of a process out to a file, a reader and a buffer."""

    def __init__(
        self,
        name: str,
        discard: bool,
        filename: str,
        reader: StreamReader | None,
        abort: threading.Event,
    ) -> None:
        self._name = name
        self._filename = filename
        self._reader = reader
        self._abort = abort
        self._file: IO[bytes] | None = None
        self._buffer: io.BytesIO | None = None if discard or filename else io.BytesIO()
        self._threads: list[threading.Thread] = []
        self.error: BaseException | None = None

    def __enter__(self) -> _OutputRoute:
        if self._filename:
            try:
                self._file = open(self._filename, "wb")
            except OSError as err:
                raise CommandError(
                    err.errno,
                    f"failed to open {self._name} file '{self._filename}': {err.strerror}",
                ) from err
        return self

    def __exit__(self, *exc_info: object) -> None:
        if self._file is not None:
            self._file.close()

    @property
    def target(self) -> int | IO[bytes]:
        """The ``stdout``/``stderr`` argument to pass to :class:`subprocess.Popen`."""
        if self._reader is None and self._buffer is None:
            return self._file if self._file is not None else subprocess.DEVNULL
        return subprocess.PIPE

    def start(self, pipe: IO[bytes] | None) -> None:
        if pipe is None:
            return
        reader_pipe: IO[bytes] | None = None
        if self._reader is not None:
            read_fd, write_fd = os.pipe()
            reader_pipe = os.fdopen(write_fd, "wb")
            self._spawn(self._serve_reader, os.fdopen(read_fd, "rb"))
        self._spawn(self._pump, pipe, reader_pipe)

    def _spawn(self, target: Callable[..., None], *args: object) -> None:
        thread = threading.Thread(target=target, args=args, name=f"fsglob-{self._name}", daemon=True)
        thread.start()
        self._threads.append(thread)

    def _pump(self, pipe: IO[bytes], reader_pipe: IO[bytes] | None) -> None:
        with pipe:
            try:
                while chunk := pipe.read1(_CHUNK_SIZE):  # type: ignore[attr-defined]
                    if self._file is not None:
                        self._file.write(chunk)
                    if self._buffer is not None:
                        self._buffer.write(chunk)
                    if reader_pipe is not None:
                        reader_pipe.write(chunk)
                        reader_pipe.flush()
            finally:
                if reader_pipe is not None:
                    reader_pipe.close()

    def _serve_reader(self, stream: IO[bytes]) -> None:
        assert self._reader is not None
        with stream:
            try:
                self._reader(stream)
            except Exception as err:
                self.error = err
                self._abort.set()
            # keep the pump unblocked until the process is gone
            while stream.read(_CHUNK_SIZE):
                pass

    def join(self) -> None:
        for thread in self._threads:
            thread.join()

    def captured(self, encoding: str) -> str:
        if self._buffer is None:
            return ""
        return self._buffer.getvalue().decode(encoding, errors="replace")
