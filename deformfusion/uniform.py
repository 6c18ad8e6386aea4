"""Typed shader uniform values."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Union

import numpy as np

UniformValue = Union[int, float, np.ndarray]


class UniformType(Enum):
    """The kinds of value a uniform can carry."""

    INT = auto()
    FLOAT = auto()
    VEC2 = auto()
    VEC3 = auto()
    VEC4 = auto()
    MAT4 = auto()
    NONE = auto()


_SHAPES = {
    (2,): UniformType.VEC2,
    (3,): UniformType.VEC3,
    (4,): UniformType.VEC4,
    (4, 4): UniformType.MAT4,
}


@dataclass(frozen=True, eq=False)
class Uniform:
    """A named uniform value together with its type."""

    name: str
    type: UniformType
    value: UniformValue


def make_uniform(name: str, value) -> Uniform:
    """Build a uniform, inferring its type from ``value``.

    Integers (and booleans) become ``INT``, floats become ``FLOAT``, vectors
    of length 2, 3 or 4 become ``VEC2``/``VEC3``/``VEC4`` and a 4x4 matrix
    becomes ``MAT4``. Anything else raises.
    """
    if isinstance(value, (bool, int, np.integer)):
        return Uniform(name, UniformType.INT, int(value))
    if isinstance(value, (float, np.floating)):
        return Uniform(name, UniformType.FLOAT, float(value))
    if isinstance(value, (str, bytes)):
        raise TypeError(f"uniform {name!r}: unsupported value type {type(value).__name__}")
    try:
        array = np.array(value, dtype=np.float32)
    except (TypeError, ValueError) as exc:
        raise TypeError(f"uniform {name!r}: unsupported value {value!r}") from exc
    kind = _SHAPES.get(array.shape)
    if kind is None:
        raise ValueError(f"uniform {name!r}: unsupported shape {array.shape}")
    array.setflags(write=False)
    return Uniform(name, kind, array)