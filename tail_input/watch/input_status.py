from __future__ import annotations

from typing import Any, Dict, Optional


def build_input_status(
    *,
    state: str,
    path: str,
    buffered: int,
    capacity: int,
    high_water: int,
    max_lines_per_drain: int,
    lines_delivered: int,
    reader_alive: bool,
    reader_stats: Optional[Dict[str, Any]] = None,
    last_error: str = "",
) -> Dict[str, object]:
    """
    Build the LineTailInput status payload.

    Notes:
    - Keep field names and types stable; the CLI prints this on exit.
    - This function should be pure (no IO, no locks, no side-effects).
    """
    rs = reader_stats if isinstance(reader_stats, dict) else {}
    out: Dict[str, object] = {
        "state": str(state or ""),
        "path": str(path or ""),
        "buffered": int(buffered or 0),
        "capacity": int(capacity or 0),
        "high_water": int(high_water or 0),
        "max_lines_per_drain": int(max_lines_per_drain or 0),
        "lines_delivered": int(lines_delivered or 0),
        "reader_alive": bool(reader_alive),
        "offset": int(rs.get("offset") or 0),
        "lines_read": int(rs.get("lines_read") or 0),
        "reopen_count": int(rs.get("reopen_count") or 0),
        "shrink_count": int(rs.get("shrink_count") or 0),
        "retry_count": int(rs.get("retry_count") or 0),
        "last_error": str(last_error or rs.get("last_error") or ""),
    }
    return out
