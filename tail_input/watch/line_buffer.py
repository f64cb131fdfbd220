import queue
import threading
from typing import Callable, Optional


class LineBuffer:
    """
    有界 FIFO：reader 线程写入、drain 读取。

    说明：
    - 满了以后 push() 阻塞等待（背压），不丢弃、不重排。
    - 阻塞期间按 poll_s 周期检查 stop_requested，避免 deactivate 时 reader 卡死在 put 上。
    - pop_if_available() 永不阻塞。
    """

    def __init__(self, capacity: int, *, poll_s: float = 0.1) -> None:
        n = int(capacity)
        if n < 1:
            raise ValueError(f"capacity must be >= 1 (got {capacity})")
        self._capacity = n
        self._poll_s = max(0.001, float(poll_s))
        self._q: "queue.Queue[str]" = queue.Queue(maxsize=n)
        self._lock = threading.Lock()
        self._high_water = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def high_water(self) -> int:
        with self._lock:
            return self._high_water

    def __len__(self) -> int:
        return self._q.qsize()

    def push(self, line: str, stop_requested: Optional[Callable[[], bool]] = None) -> bool:
        """
        Append a line, blocking while the buffer is full.

        Returns False (line not enqueued) if stop_requested() became true while waiting.
        """
        while True:
            if stop_requested is not None and stop_requested():
                return False
            try:
                self._q.put(line, timeout=self._poll_s)
                break
            except queue.Full:
                continue
        n = self._q.qsize()
        with self._lock:
            if n > self._high_water:
                self._high_water = n
        return True

    def pop_if_available(self) -> Optional[str]:
        try:
            return self._q.get_nowait()
        except queue.Empty:
            return None
