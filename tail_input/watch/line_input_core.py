import threading
import time
from typing import Callable, Dict, Optional

from ..config import TailInputConfig
from ..control.reader_factory import build_tail_reader
from ..control.reader_lifecycle import request_stop_and_join
from ..errors import ConfigError, LifecycleError
from ..utils import log_info
from .input_status import build_input_status
from .line_buffer import LineBuffer
from .line_drain import drain_lines
from .tail_fs import LocalFileSystem, TailFileSystem
from .tail_reader import TailReader


STATE_NEW = "new"
STATE_IDLE = "idle"
STATE_ACTIVE = "active"
STATE_STOPPING = "stopping"
STATE_STOPPED = "stopped"
STATE_TORN_DOWN = "torn_down"


class LineTailInput:
    """
    Tail one file and hand its new lines to a callback, driven by a host.

    Lifecycle (each once, in this order):
      setup() -> activate() -> drain() * N -> deactivate() -> teardown()

    - activate() opens the file and starts the reader thread.
    - drain() is called repeatedly by the host; it only touches the buffer.
    - deactivate() stops and joins the reader, then closes the stream.

    Pass on_line, or subclass and override process_line().
    """

    def __init__(
        self,
        config: TailInputConfig,
        on_line: Optional[Callable[[str], None]] = None,
        *,
        fs: Optional[TailFileSystem] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._cfg = config
        self._on_line = on_line
        self._fs = fs
        self._sleep = sleep

        self._lock = threading.Lock()
        self._state = STATE_NEW
        self._buffer: Optional[LineBuffer] = None
        self._reader: Optional[TailReader] = None
        self._stop_event: Optional[threading.Event] = None
        self._lines_delivered = 0
        self._failure_reported = False
        self._last_error: str = ""

    @property
    def state(self) -> str:
        with self._lock:
            return self._state

    @property
    def config(self) -> TailInputConfig:
        return self._cfg

    def process_line(self, line: str) -> None:
        """
        Called once per line, in file order, never concurrently with itself.
        """
        if self._on_line is None:
            raise NotImplementedError("process_line")
        self._on_line(line)

    def _expect(self, *states: str) -> str:
        with self._lock:
            st = self._state
        if st not in states:
            raise LifecycleError(f"invalid state {st!r} (expected {' or '.join(states)})")
        return st

    def _set_state(self, st: str) -> None:
        with self._lock:
            self._state = st

    def setup(self) -> None:
        self._expect(STATE_NEW)
        cfg = self._cfg.validate()
        if self._on_line is None and type(self).process_line is LineTailInput.process_line:
            raise ConfigError("on_line callback is required")
        self._buffer = LineBuffer(int(cfg.buffer_capacity), poll_s=float(cfg.push_poll_s))
        if self._fs is None:
            self._fs = LocalFileSystem(encoding=str(cfg.encoding or "utf-8"))
        self._reader = build_tail_reader(cfg=cfg, fs=self._fs, buffer=self._buffer)
        self._set_state(STATE_IDLE)

    def activate(self) -> None:
        """
        Open the target file and start the reader thread.

        Open/seek failures raise TailOpenError here and leave the input idle.
        """
        self._expect(STATE_IDLE)
        reader = self._reader
        reader.open(start_at_end=bool(self._cfg.start_at_end))
        stop_event = threading.Event()
        with self._lock:
            self._stop_event = stop_event
            self._state = STATE_ACTIVE
        reader.start(stop_event)
        log_info(f"tailing {reader.path} from offset {reader.offset}")

    def drain(self) -> int:
        """
        Deliver up to max_lines_per_drain buffered lines; returns how many.

        Raises the reader's failure once everything it buffered was delivered.
        """
        self._expect(STATE_ACTIVE)
        buf = self._buffer
        reader = self._reader
        failure = reader.failure
        if failure is not None and len(buf) == 0:
            self._failure_reported = True
            self._last_error = str(failure)
            raise failure
        return drain_lines(
            buf,
            self._deliver,
            max_lines=int(self._cfg.max_lines_per_drain),
            idle_sleep_s=float(self._cfg.idle_sleep_s),
            sleep=self._sleep,
        )

    def _deliver(self, line: str) -> None:
        self._lines_delivered += 1
        self.process_line(line)

    def deactivate(self) -> None:
        """
        Stop the reader thread, wait for it to exit, then release the stream.

        Important: the stream is only closed after the join succeeded; on a join
        timeout we stay in "stopping" so a later call can retry.
        """
        self._expect(STATE_ACTIVE, STATE_STOPPING)
        self._set_state(STATE_STOPPING)
        reader = self._reader
        with self._lock:
            ev = self._stop_event
        still_running = request_stop_and_join(
            stop_event=ev,
            thread=reader.thread,
            join_timeout_s=float(self._cfg.stop_timeout_s),
        )
        if still_running:
            self._last_error = "stop_timeout"
            raise LifecycleError("stop_timeout")
        try:
            reader.close()
        finally:
            self._set_state(STATE_STOPPED)
        log_info(f"stopped {reader.path} at offset {reader.offset}")

        failure = reader.failure
        if failure is not None and not self._failure_reported:
            self._failure_reported = True
            self._last_error = str(failure)
            raise failure

    def teardown(self) -> None:
        self._expect(STATE_STOPPED, STATE_IDLE)
        try:
            if self._fs is not None:
                self._fs.close()
        finally:
            self._set_state(STATE_TORN_DOWN)

    def status(self) -> Dict[str, object]:
        with self._lock:
            st = self._state
        buf = self._buffer
        reader = self._reader
        t = reader.thread if reader is not None else None
        return build_input_status(
            state=st,
            path=str(self._cfg.path or ""),
            buffered=len(buf) if buf is not None else 0,
            capacity=buf.capacity if buf is not None else int(self._cfg.buffer_capacity or 0),
            high_water=buf.high_water if buf is not None else 0,
            max_lines_per_drain=int(self._cfg.max_lines_per_drain or 0),
            lines_delivered=int(self._lines_delivered),
            reader_alive=bool(t is not None and t.is_alive()),
            reader_stats=reader.stats() if reader is not None else None,
            last_error=self._last_error,
        )
