"""Command-line argument lookup and directory helpers."""

from __future__ import annotations

import os
import re
import sys
from typing import Optional, Sequence

_FLOAT_PREFIX = re.compile(
    r"\s*[+-]?(?:inf(?:inity)?|nan|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)",
    re.IGNORECASE,
)
_INT_PREFIX = re.compile(r"\s*[+-]?\d+")


def find_arg(argv: Sequence[str], name: str) -> int:
    """Index of ``name`` in ``argv`` (program name excluded), or -1."""
    for index, value in enumerate(argv[1:], start=1):
        if value == name:
            return index
    return -1


def _value_after(argv: Sequence[str], name: str) -> Optional[str]:
    index = find_arg(argv, name) + 1
    if 0 < index < len(argv):
        return argv[index]
    return None


def _leading_float(text: str) -> float:
    match = _FLOAT_PREFIX.match(text)
    return float(match.group().strip()) if match else 0.0


def _leading_int(text: str) -> int:
    match = _INT_PREFIX.match(text)
    return int(match.group()) if match else 0


def arg_string(argv: Sequence[str], name: str, default: Optional[str] = None) -> Optional[str]:
    """The word following ``name``, or ``default`` if absent."""
    value = _value_after(argv, name)
    return default if value is None else value


def arg_float(argv: Sequence[str], name: str, default: Optional[float] = None) -> Optional[float]:
    """The number following ``name``; its longest numeric prefix, 0.0 if none."""
    value = _value_after(argv, name)
    return default if value is None else _leading_float(value)


def arg_int(argv: Sequence[str], name: str, default: Optional[int] = None) -> Optional[int]:
    """The integer following ``name``; its leading digits, 0 if none."""
    value = _value_after(argv, name)
    return default if value is None else _leading_int(value)


def shader_dir(path) -> str:
    """Return the shader directory, raising if it does not exist."""
    directory = os.fspath(path)
    if not os.path.exists(directory):
        raise FileNotFoundError(f"shader directory not found: {directory}")
    return directory


def base_dir(executable=None) -> str:
    """The part of the executable's path before its last ``build`` directory."""
    path = os.fspath(executable) if executable is not None else os.path.realpath(sys.argv[0])
    marker = f"{os.sep}build{os.sep}"
    cut = path.rfind(marker)
    return path if cut < 0 else path[:cut]