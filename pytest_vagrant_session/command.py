from __future__ import annotations

import logging
import queue
import subprocess
import threading
from dataclasses import dataclass
from typing import IO, Callable, Iterator

from pytest_vagrant_session.exceptions import (
    StreamError,
    VagrantCommandFailed,
    VagrantLaunchError,
)
from pytest_vagrant_session.log import get_logger

logger = get_logger(__name__)

DEFAULT_BUFFER_SIZE = 64
_POLL_INTERVAL = 0.1
_CLOSED = object()


def _decode(data: bytes | None) -> str:
    # vagrant output is not guaranteed to be UTF-8; bad bytes never fail a read
    return (data or b"").decode("utf-8", errors="replace")


@dataclass(frozen=True)
class CommandOutput:
    """One event of a streamed command: either a line or an error."""

    line: str = ""
    error: BaseException | None = None


class OutputStream:
    """
    Ordered channel of CommandOutput events fed by a running command.

    Iterate until exhaustion to be sure the process has exited. A stream that
    ends without an error event means the command succeeded. Calling close()
    abandons the stream: the process keeps running to completion, its output
    is discarded and the completion callback still fires.
    """

    def __init__(self, buffer_size: int = DEFAULT_BUFFER_SIZE) -> None:
        self._queue: queue.Queue[object] = queue.Queue(maxsize=buffer_size)
        self._abandoned = threading.Event()
        self._exhausted = False
        self._reaper: threading.Thread | None = None

    def __iter__(self) -> Iterator[CommandOutput]:
        while not self.closed:
            try:
                item = self._queue.get(timeout=_POLL_INTERVAL)
            except queue.Empty:
                continue
            if item is _CLOSED:
                self._exhausted = True
                return
            yield item  # type: ignore[misc]

    def __enter__(self) -> OutputStream:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._exhausted or self._abandoned.is_set()

    def close(self) -> None:
        self._abandoned.set()
        # unblock producers waiting on a full queue
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                break

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the process to be reaped. Returns False on timeout."""
        if self._reaper is None:
            return True
        self._reaper.join(timeout)
        return not self._reaper.is_alive()

    def _put(self, item: object) -> bool:
        while not self._abandoned.is_set():
            try:
                self._queue.put(item, timeout=_POLL_INTERVAL)
                return True
            except queue.Full:
                continue
        return False


class Command:
    """
    A single vagrant invocation in a working directory.

    Exactly one of on_success / on_failure fires per command, once the
    process has finished (or failed to start).
    """

    def __init__(
        self,
        cwd: str,
        *,
        executable: str = "vagrant",
        log: logging.Logger | None = None,
        on_success: Callable[[], None] | None = None,
        on_failure: Callable[[BaseException], None] | None = None,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
    ) -> None:
        self.cwd = cwd
        self.executable = executable
        self.on_success = on_success
        self.on_failure = on_failure
        self.buffer_size = buffer_size
        self.argv: list[str] = []
        self._log = log or logger
        self._started = False
        self._done_called = False
        self._lock = threading.Lock()
        self._stream_error: StreamError | None = None

    def _init(self, args: tuple[str, ...]) -> None:
        if self._started:
            raise RuntimeError(f"command already started: {self.argv}")
        self._started = True
        self.argv = [self.executable, *args]
        self._log.debug("%s: executing: %s", self.cwd, self.argv)

    def run(self, *args: str) -> str:
        """Run to completion and return the combined stdout and stderr."""
        self._init(args)
        try:
            cp = subprocess.run(
                self.argv,
                cwd=self.cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                check=True,
            )
        except OSError as e:
            err: BaseException = VagrantLaunchError(f"could not start {self.argv}: {e}")
            self._done(err)
            raise err from e
        except subprocess.CalledProcessError as e:
            err = VagrantCommandFailed(self.argv, e.returncode, _decode(e.output))
            self._done(err)
            raise err from e
        except BaseException as e:
            self._done(e)
            raise

        out = _decode(cp.stdout)
        self._log.debug("execution of %s was successful: %s", self.argv, out)
        self._done(None)
        return out

    def start(self, *args: str) -> OutputStream:
        """
        Start the command and return a stream carrying both stdout and stderr
        line by line. A non-zero exit status arrives as the last event.

        Lines of one pipe keep their order; stdout and stderr lines are
        interleaved in whatever order the readers get them.
        """
        self._init(args)
        try:
            proc = subprocess.Popen(
                self.argv,
                cwd=self.cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            err = VagrantLaunchError(f"could not start {self.argv}: {e}")
            self._done(err)
            raise err from e

        stream = OutputStream(self.buffer_size)
        readers = [
            threading.Thread(
                target=self._read_lines,
                args=(pipe, stream),
                name=f"vagrant-{name}",
                daemon=True,
            )
            for name, pipe in (("stdout", proc.stdout), ("stderr", proc.stderr))
        ]
        for reader in readers:
            reader.start()

        reaper = threading.Thread(
            target=self._reap,
            args=(proc, readers, stream),
            name="vagrant-reaper",
            daemon=True,
        )
        stream._reaper = reaper
        reaper.start()
        return stream

    def _read_lines(self, pipe: IO[bytes], stream: OutputStream) -> None:
        with pipe:
            try:
                for raw in pipe:
                    if self._stream_error is not None or stream.closed:
                        # keep draining so the process never blocks on a full pipe
                        continue
                    line = _decode(raw.rstrip(b"\n").removesuffix(b"\r"))
                    self._log.debug("%s", line)
                    # Held across a blocking put: while this reader waits on a
                    # full queue the other one waits here too. No line may
                    # follow a stream error.
                    with self._lock:
                        if self._stream_error is None:
                            stream._put(CommandOutput(line=line))
            except OSError as e:
                self._fail_stream(e, stream)

    def _fail_stream(self, exc: BaseException, stream: OutputStream) -> None:
        with self._lock:
            if self._stream_error is not None:
                return
            err = StreamError(f"reading output of {self.argv}: {exc}")
            err.__cause__ = exc
            self._stream_error = err
            stream._put(CommandOutput(error=err))

    def _reap(
        self,
        proc: subprocess.Popen[bytes],
        readers: list[threading.Thread],
        stream: OutputStream,
    ) -> None:
        err: VagrantCommandFailed | None = None
        try:
            for reader in readers:
                reader.join()
            returncode = proc.wait()
            if returncode != 0:
                err = VagrantCommandFailed(self.argv, returncode)
            self._done(err or self._stream_error)
        finally:
            if err is not None:
                stream._put(CommandOutput(error=err))
            stream._put(_CLOSED)

    def _done(self, err: BaseException | None) -> None:
        if self._done_called:
            return
        self._done_called = True

        if err is None:
            if self.on_success is not None:
                self.on_success()
            return

        self._log.debug("execution of %s failed: %s", self.argv, err)
        if self.on_failure is not None:
            self.on_failure(err)
