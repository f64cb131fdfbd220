import time
from typing import Callable

from ..errors import LineCallbackError
from .line_buffer import LineBuffer


def drain_lines(
    buffer: LineBuffer,
    on_line: Callable[[str], None],
    *,
    max_lines: int,
    idle_sleep_s: float,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """
    把缓冲区中的行交给下游回调，单次最多 max_lines 行。

    - 缓冲区空了就提前结束；一行都没有时 sleep(idle_sleep_s)，避免调度方空转。
    - 回调抛异常时包装成 LineCallbackError 立即抛出；该行视为已投递，
      剩余的行留在缓冲区，等下一次调用。
    - 只访问缓冲区，不碰文件。
    """
    limit = max(1, int(max_lines))
    count = 0
    while count < limit:
        line = buffer.pop_if_available()
        if line is None:
            break
        count += 1
        try:
            on_line(line)
        except Exception as e:
            raise LineCallbackError(line, e) from e
    if count == 0 and idle_sleep_s > 0:
        sleep(float(idle_sleep_s))
    return count
