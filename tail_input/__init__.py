from typing import Any

__all__ = ["main"]


def main(argv: Any = None) -> int:
    # Lazy import so hosts that only embed LineTailInput don't pull in argparse/signal.
    from .cli import main as _main

    return int(_main(argv))
