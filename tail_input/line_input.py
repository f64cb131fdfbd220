"""
LineTailInput facade.

The implementation lives in `tail_input.watch.line_input_core`; this module is
the stable import path for hosts:

  - from tail_input.line_input import LineTailInput
"""

from .watch.line_input_core import LineTailInput

__all__ = [
    "LineTailInput",
]
