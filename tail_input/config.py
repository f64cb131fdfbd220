import json
import os
import tempfile
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, Optional

from .errors import ConfigError


SHRINK_POLICIES = ("restart", "clamp", "fail")
ERROR_POLICIES = ("fail", "retry")


@dataclass
class TailInputConfig:
    # The single file being tailed. Required; fixed once setup() ran.
    path: str = ""

    # Max lines held in memory between the reader thread and drain().
    buffer_capacity: int = 100
    # Max lines handed to the callback per drain() call.
    max_lines_per_drain: int = 100

    # Pause between hitting end of file and reopening the path.
    reopen_delay_s: float = 1.0
    # drain() sleeps this long when nothing was buffered.
    idle_sleep_s: float = 0.1
    # How often a reader blocked on a full buffer re-checks the stop flag.
    push_poll_s: float = 0.1
    # 0 = deactivate() waits for the reader thread without a deadline.
    stop_timeout_s: float = 0.0

    # Initial open only: start from the current end of file (tail -f) instead of 0.
    start_at_end: bool = False
    encoding: str = "utf-8"

    # Reopened file shorter than the remembered offset:
    # - restart: read the new file from 0
    # - clamp  : seek to the new end of file
    # - fail   : stop the reader with FileShrunkError
    shrink_policy: str = "restart"

    # Reader I/O errors:
    # - fail : record and stop the reader; the host sees it via drain()/deactivate()
    # - retry: back off, reopen at the remembered offset (max_retries in a row, 0 = forever)
    error_policy: str = "fail"
    retry_backoff_s: float = 1.0
    max_retries: int = 5

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def validate(self) -> "TailInputConfig":
        if not str(self.path or "").strip():
            raise ConfigError("path is required")
        if int(self.buffer_capacity) < 1:
            raise ConfigError(f"buffer_capacity must be >= 1 (got {self.buffer_capacity})")
        if int(self.max_lines_per_drain) < 1:
            raise ConfigError(f"max_lines_per_drain must be >= 1 (got {self.max_lines_per_drain})")
        for name in ("reopen_delay_s", "idle_sleep_s", "stop_timeout_s", "retry_backoff_s"):
            if float(getattr(self, name)) < 0:
                raise ConfigError(f"{name} must be >= 0")
        if float(self.push_poll_s) <= 0:
            raise ConfigError("push_poll_s must be > 0")
        if int(self.max_retries) < 0:
            raise ConfigError("max_retries must be >= 0")
        if self.shrink_policy not in SHRINK_POLICIES:
            raise ConfigError(f"unknown shrink_policy: {self.shrink_policy}")
        if self.error_policy not in ERROR_POLICIES:
            raise ConfigError(f"unknown error_policy: {self.error_policy}")
        try:
            "".encode(self.encoding)
        except LookupError:
            raise ConfigError(f"unknown encoding: {self.encoding}") from None
        return self

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "TailInputConfig":
        def _to_int(v: Any, default: int) -> int:
            try:
                if v is None:
                    return int(default)
                if isinstance(v, bool):
                    return int(v)
                if isinstance(v, (int, float)):
                    return int(v)
                s = str(v).strip()
                if not s:
                    return int(default)
                try:
                    return int(s)
                except Exception:
                    return int(float(s))
            except Exception:
                return int(default)

        def _to_float(v: Any, default: float) -> float:
            try:
                if v is None:
                    return float(default)
                if isinstance(v, bool):
                    return float(int(v))
                if isinstance(v, (int, float)):
                    return float(v)
                s = str(v).strip()
                if not s:
                    return float(default)
                return float(s)
            except Exception:
                return float(default)

        # Policies are kept verbatim (lowercased) so validate() can reject typos
        # instead of silently falling back to a default.
        sp = str(d.get("shrink_policy") or "restart").strip().lower()
        ep = str(d.get("error_policy") or "fail").strip().lower()
        return TailInputConfig(
            path=str(d.get("path") or "").strip(),
            buffer_capacity=_to_int(d.get("buffer_capacity"), 100),
            max_lines_per_drain=_to_int(d["max_lines_per_drain"] if "max_lines_per_drain" in d else d.get("max_line_emit"), 100),
            reopen_delay_s=_to_float(d.get("reopen_delay_s"), 1.0),
            idle_sleep_s=_to_float(d.get("idle_sleep_s"), 0.1),
            push_poll_s=_to_float(d.get("push_poll_s"), 0.1),
            stop_timeout_s=_to_float(d.get("stop_timeout_s"), 0.0),
            start_at_end=bool(d.get("start_at_end") or False),
            encoding=str(d.get("encoding") or "utf-8").strip(),
            shrink_policy=sp,
            error_policy=ep,
            retry_backoff_s=_to_float(d.get("retry_backoff_s"), 1.0),
            max_retries=_to_int(d.get("max_retries"), 5),
        )


def default_config_home() -> Path:
    """
    Where tail_input stores its config.json by default.

    Kept inside the current project directory (./config/tail_input) so it moves
    together with the project; pass --config-home to use another directory.
    """
    try:
        return (Path.cwd() / "config" / "tail_input").resolve()
    except Exception:
        return Path.cwd() / "config" / "tail_input"


def config_path(config_home: Path) -> Path:
    return config_home / "config.json"


def _try_load_current_config(config_home: Path) -> Optional[TailInputConfig]:
    p = config_path(config_home)
    try:
        raw = p.read_text(encoding="utf-8")
        obj = json.loads(raw)
        if not isinstance(obj, dict):
            return None
        return TailInputConfig.from_dict(obj)
    except Exception:
        return None


def load_config(config_home: Path) -> TailInputConfig:
    """
    Load config.json (best-effort). A missing or unreadable file yields the
    defaults; validation happens later, at setup().
    """
    cfg = _try_load_current_config(config_home)
    if cfg is not None:
        return cfg
    return TailInputConfig()


def save_config(config_home: Path, cfg: TailInputConfig) -> None:
    p = config_path(config_home)
    try:
        p.parent.mkdir(parents=True, exist_ok=True)
    except Exception:
        return
    data = json.dumps(cfg.to_dict(), ensure_ascii=False, indent=2) + "\n"
    tmp_dir = p.parent if p.parent.exists() else Path(tempfile.gettempdir())
    try:
        fd, tmp_path = tempfile.mkstemp(prefix="tail_input.", suffix=".tmp", dir=str(tmp_dir))
        os.close(fd)
        Path(tmp_path).write_text(data, encoding="utf-8")
        Path(tmp_path).replace(p)
    except Exception:
        try:
            p.write_text(data, encoding="utf-8")
        except Exception:
            return
