import argparse
import json
import signal
import sys
import threading
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .config import ERROR_POLICIES, SHRINK_POLICIES, TailInputConfig, default_config_home, load_config, save_config
from .control.config_patch import apply_config_patch
from .errors import ConfigError, TailInputError, TailOpenError
from .line_input import LineTailInput
from .watch.line_input_core import STATE_IDLE, STATE_STOPPED


def _parse_args(argv):
    p = argparse.ArgumentParser(
        prog="tail_input",
        description="Follow one file (across rotation) and print each new line to stdout.",
    )
    p.add_argument("path", nargs="?", default=None, help="file to tail (default: path from config.json)")
    p.add_argument("--config-home", default=str(default_config_home()), help="config directory (default: ./config/tail_input)")
    p.add_argument("--save-config", action="store_true", help="persist the effective config to config.json")
    p.add_argument("--buffer-capacity", type=int, default=None, help="max buffered lines (default: 100)")
    p.add_argument("--max-lines-per-drain", type=int, default=None, help="max lines delivered per drain (default: 100)")
    p.add_argument("--reopen-delay", type=float, default=None, help="seconds to wait before reopening at end of file (default: 1.0)")
    p.add_argument("--idle-sleep", type=float, default=None, help="drain backoff when nothing is buffered (default: 0.1)")
    p.add_argument("--stop-timeout", type=float, default=None, help="max seconds to wait for the reader on stop (default: 0 = no limit)")
    p.add_argument("--start-at-end", action="store_true", default=None, help="skip existing content on the first open")
    p.add_argument("--encoding", default=None, help="text encoding (default: utf-8)")
    p.add_argument("--shrink-policy", choices=list(SHRINK_POLICIES), default=None, help="file shorter than offset on reopen (default: restart)")
    p.add_argument("--error-policy", choices=list(ERROR_POLICIES), default=None, help="reader I/O errors (default: fail)")
    p.add_argument("--retry-backoff", type=float, default=None, help="seconds between retries with --error-policy retry (default: 1.0)")
    p.add_argument("--max-retries", type=int, default=None, help="consecutive retries before giving up, 0 = forever (default: 5)")
    p.add_argument("--status", action="store_true", help="print a JSON status line to stderr on exit")
    return p.parse_args(argv)


def build_config(args) -> Tuple[TailInputConfig, Path]:
    """
    Persisted config.json first, then whatever was given on the command line.
    """
    config_home = Path(args.config_home).expanduser()
    cfg = load_config(config_home)
    patch: Dict[str, Any] = {
        "path": args.path,
        "buffer_capacity": args.buffer_capacity,
        "max_lines_per_drain": args.max_lines_per_drain,
        "reopen_delay_s": args.reopen_delay,
        "idle_sleep_s": args.idle_sleep,
        "stop_timeout_s": args.stop_timeout,
        "start_at_end": args.start_at_end,
        "encoding": args.encoding,
        "shrink_policy": args.shrink_policy,
        "error_policy": args.error_policy,
        "retry_backoff_s": args.retry_backoff,
        "max_retries": args.max_retries,
    }
    res = apply_config_patch(current_cfg=cfg, patch=patch)
    return res.cfg, config_home


def run_host(inp: LineTailInput, stop_event: threading.Event) -> int:
    """
    Reference host: call drain() until stop_event is set.

    drain() sleeps on its own when nothing is buffered, so this is not a busy loop.
    Returns the number of delivered lines.
    """
    total = 0
    while not stop_event.is_set():
        total += int(inp.drain() or 0)
    return total


def _emit_stdout(line: str) -> None:
    sys.stdout.write(line + "\n")
    sys.stdout.flush()


def main(argv=None) -> int:
    raw_argv = list(sys.argv[1:] if argv is None else argv)
    args = _parse_args(raw_argv)
    cfg, config_home = build_config(args)

    inp = LineTailInput(cfg, on_line=_emit_stdout)
    try:
        inp.setup()
    except ConfigError as e:
        print(f"[tail] ERROR: {e}", file=sys.stderr)
        return 2
    if args.save_config:
        save_config(config_home, cfg)
        print(f"[tail] saved {config_home / 'config.json'}", file=sys.stderr)

    stop_event = threading.Event()

    def _handle_sigint(_sig, _frame):
        stop_event.set()

    signal.signal(signal.SIGINT, _handle_sigint)
    signal.signal(signal.SIGTERM, _handle_sigint)

    try:
        inp.activate()
    except TailOpenError as e:
        print(f"[tail] ERROR: {e}", file=sys.stderr)
        inp.teardown()
        return 1

    rc = 0
    try:
        run_host(inp, stop_event)
    except TailInputError as e:
        print(f"[tail] ERROR: {e}", file=sys.stderr)
        rc = 1
    finally:
        try:
            inp.deactivate()
        except TailInputError as e:
            print(f"[tail] ERROR: {e}", file=sys.stderr)
            rc = 1
        if inp.state in (STATE_STOPPED, STATE_IDLE):
            inp.teardown()

    if args.status:
        _print_status(inp.status())
    return rc


def _print_status(st: Optional[Dict[str, object]]) -> None:
    try:
        print(json.dumps(st or {}, ensure_ascii=False), file=sys.stderr)
    except Exception:
        pass
