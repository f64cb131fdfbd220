import threading
from typing import Dict, Optional

from ..errors import FileShrunkError, TailInputError, TailOpenError, TailReadError
from ..utils import log_warn
from .line_buffer import LineBuffer
from .tail_fs import TailFileSystem, TailStream


class TailReader:
    """
    Producer side of the tail: keeps a stream open on the target path and pushes
    every complete line into the LineBuffer.

    Notes:
    - End of stream means "reopen": remember the offset, close, pause
      reopen_delay_s, reopen the same path and seek back. A rotated file is just
      whatever the path resolves to on the next open.
    - The stop event is checked once per loop iteration, while blocked on a full
      buffer and during the reopen pause / retry backoff.
    - The stream and the offset are only touched from the reader thread while it
      runs; close() is for the lifecycle, after the thread has been joined.
    """

    def __init__(
        self,
        path: str,
        *,
        fs: TailFileSystem,
        buffer: LineBuffer,
        reopen_delay_s: float = 1.0,
        shrink_policy: str = "restart",
        error_policy: str = "fail",
        retry_backoff_s: float = 1.0,
        max_retries: int = 5,
    ) -> None:
        self._path = str(path)
        self._fs = fs
        self._buffer = buffer
        self._reopen_delay_s = max(0.0, float(reopen_delay_s))
        self._shrink_policy = str(shrink_policy or "restart")
        self._error_policy = str(error_policy or "fail")
        self._retry_backoff_s = max(0.0, float(retry_backoff_s))
        self._max_retries = max(0, int(max_retries))

        self._stream: Optional[TailStream] = None
        self._offset: int = 0
        self._thread: Optional[threading.Thread] = None

        self._lines_read = 0
        self._reopen_count = 0
        self._shrink_count = 0
        self._retry_count = 0
        self._last_error: str = ""
        self._failure: Optional[BaseException] = None

    @property
    def path(self) -> str:
        return self._path

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def thread(self) -> Optional[threading.Thread]:
        return self._thread

    @property
    def failure(self) -> Optional[BaseException]:
        return self._failure

    def stats(self) -> Dict[str, object]:
        return {
            "offset": int(self._offset),
            "lines_read": int(self._lines_read),
            "reopen_count": int(self._reopen_count),
            "shrink_count": int(self._shrink_count),
            "retry_count": int(self._retry_count),
            "stream_open": self._stream is not None,
            "last_error": str(self._last_error or ""),
        }

    def open(self, *, start_at_end: bool = False) -> None:
        """
        Initial open, called synchronously from activate() so a missing file
        fails the activation instead of the background thread.

        With start_at_end the cursor lands after the last complete line, so an
        unfinished last line is still delivered whole once the writer ends it.
        """
        self._open_at(0)
        if not start_at_end:
            return
        try:
            end = self._last_line_end(int(self._stream.size()))
            self._stream.seek(end)
        except OSError as e:
            self.close()
            raise TailOpenError(self._path, "seek_failed") from e
        self._offset = end

    def _last_line_end(self, size: int) -> int:
        # Scan a growing window back from the end; the first complete line read
        # from a window start is the tail of a line, the last one ends at the boundary.
        step = 4096
        while True:
            lo = max(0, size - step)
            self._stream.seek(lo)
            boundary = None
            while self._stream.read_line() is not None:
                boundary = self._stream.position()
            if boundary is not None:
                return int(boundary)
            if lo == 0:
                return 0
            step *= 2

    def start(self, stop_event: threading.Event) -> threading.Thread:
        if self._thread is not None and self._thread.is_alive():
            return self._thread
        t = threading.Thread(
            target=self.run,
            args=(stop_event,),
            name="tail-reader",
            daemon=True,
        )
        self._thread = t
        t.start()
        return t

    def run(self, stop_event: threading.Event) -> None:
        try:
            self._loop(stop_event)
        except Exception as e:
            # Keep the thread from dying silently; the lifecycle re-raises it.
            self._fail(e)

    def close(self) -> None:
        s = self._stream
        self._stream = None
        if s is not None:
            s.close()

    def _fail(self, e: BaseException) -> None:
        self._failure = e
        self._last_error = str(e) or type(e).__name__
        log_warn("reader_failed", f"reader stopped: {self._last_error}", min_interval_s=0.0)

    def _loop(self, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            if self._stream is None:
                try:
                    self._open_at(self._offset)
                except TailOpenError as e:
                    if not self._retry_or_raise(e, stop_event):
                        return
                    continue

            try:
                line = self._stream.read_line()
                pos = self._stream.position() if line is not None else self._offset
            except OSError as e:
                err = TailReadError(self._path, self._offset)
                err.__cause__ = e
                if not self._retry_or_raise(err, stop_event):
                    return
                continue

            if line is None:
                # Caught up with the writer (or the file was rotated away).
                self.close()
                if stop_event.wait(self._reopen_delay_s):
                    return
                self._reopen_count += 1
                continue

            if not self._buffer.push(line, stop_requested=stop_event.is_set):
                return
            self._offset = int(pos)
            self._lines_read += 1
            self._retry_count = 0

    def _retry_or_raise(self, err: TailInputError, stop_event: threading.Event) -> bool:
        """
        Apply error_policy to a reader failure.

        Returns False when the stop event fired during the backoff.
        """
        self._last_error = str(err)
        if self._error_policy != "retry":
            raise err
        self._retry_count += 1
        if self._max_retries > 0 and self._retry_count > self._max_retries:
            raise err
        log_warn(
            "reader_retry",
            f"{err} (retry {self._retry_count}, backoff {self._retry_backoff_s:g}s)",
        )
        try:
            self.close()
        except OSError:
            self._stream = None
        return not stop_event.wait(self._retry_backoff_s)

    def _open_at(self, offset: int) -> None:
        try:
            stream = self._fs.open(self._path)
        except OSError as e:
            raise TailOpenError(self._path, "open_failed") from e

        try:
            target = self._resume_offset(stream, int(offset))
            stream.seek(target)
        except FileShrunkError:
            stream.close()
            raise
        except OSError as e:
            if self._shrink_policy == "fail":
                stream.close()
                raise TailOpenError(self._path, "seek_failed") from e
            # The remembered offset is unusable on the new file; start over.
            try:
                stream.seek(0)
            except OSError as e2:
                stream.close()
                raise TailOpenError(self._path, "seek_failed") from e2
            log_warn("seek_failed", f"seek to {offset} failed, restarting at 0: {self._path}")
            target = 0

        self._stream = stream
        self._offset = int(target)

    def _resume_offset(self, stream: TailStream, offset: int) -> int:
        if offset <= 0:
            return 0
        size = int(stream.size())
        if offset <= size:
            return offset
        # Truncated or rotated to a shorter file.
        self._shrink_count += 1
        if self._shrink_policy == "fail":
            raise FileShrunkError(self._path, offset, size)
        target = size if self._shrink_policy == "clamp" else 0
        log_warn(
            "file_shrunk",
            f"file shrank below offset {offset} (size {size}), resuming at {target}: {self._path}",
        )
        return target
