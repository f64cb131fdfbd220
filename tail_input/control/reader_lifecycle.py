from __future__ import annotations

import threading
from typing import Optional


def request_stop_and_join(
    *,
    stop_event: Optional[threading.Event],
    thread: Optional[threading.Thread],
    join_timeout_s: float,
) -> bool:
    """
    Request the reader thread to stop and join it.

    join_timeout_s <= 0 waits until the thread has actually exited; the stop is
    cooperative, so a reader sleeping in its reopen pause wakes up through the
    event and exits promptly.

    Returns:
      still_running: True if the thread is still alive after the join attempt.
    """
    ev = stop_event
    t = thread
    if ev is not None:
        ev.set()
    if t is not None and t.is_alive() and t is not threading.current_thread():
        timeout = float(join_timeout_s or 0.0)
        t.join(timeout=timeout if timeout > 0 else None)
    return bool(t is not None and t.is_alive())
