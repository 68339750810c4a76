"""Utility modules for p4file."""

from p4file.utils.output import (
    console,
    error,
    info,
    print_diff,
    success,
    warning,
)
from p4file.utils.p4 import P4Runner, parse_ztag

__all__ = [
    "P4Runner",
    "console",
    "error",
    "info",
    "parse_ztag",
    "print_diff",
    "success",
    "warning",
]
