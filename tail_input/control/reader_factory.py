from ..config import TailInputConfig
from ..watch.line_buffer import LineBuffer
from ..watch.tail_fs import TailFileSystem
from ..watch.tail_reader import TailReader


def build_tail_reader(*, cfg: TailInputConfig, fs: TailFileSystem, buffer: LineBuffer) -> TailReader:
    """
    Assemble a TailReader from a validated config.

    Kept out of the lifecycle class so tests can build a reader around a fake
    filesystem with exactly the same parameter mapping.
    """
    return TailReader(
        str(cfg.path),
        fs=fs,
        buffer=buffer,
        reopen_delay_s=float(cfg.reopen_delay_s),
        shrink_policy=str(cfg.shrink_policy or "restart"),
        error_policy=str(cfg.error_policy or "fail"),
        retry_backoff_s=float(cfg.retry_backoff_s),
        max_retries=int(cfg.max_retries),
    )
