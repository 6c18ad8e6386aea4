"""Binary layout of a surfel vertex: three packed vec4 of float32.

Layout::

    vec3 position, float confidence
    float color (24-bit integer encoded as float), float unused,
    float init_time, float timestamp
    vec3 normal, float radius
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Tuple

_LAYOUT = struct.Struct("<12f")

SIZE = _LAYOUT.size

Vec3 = Tuple[float, float, float]


@dataclass
class Surfel:
    """One surfel as stored in a vertex buffer."""

    position: Vec3 = (0.0, 0.0, 0.0)
    confidence: float = 0.0
    color: float = 0.0
    init_time: float = 0.0
    timestamp: float = 0.0
    normal: Vec3 = (0.0, 0.0, 0.0)
    radius: float = 0.0


def pack_surfel(surfel: Surfel) -> bytes:
    """Encode a surfel into its ``SIZE``-byte binary form."""
    position = tuple(surfel.position)
    normal = tuple(surfel.normal)
    if len(position) != 3 or len(normal) != 3:
        raise ValueError("position and normal must have three components")
    return _LAYOUT.pack(
        *position,
        surfel.confidence,
        surfel.color,
        0.0,
        surfel.init_time,
        surfel.timestamp,
        *normal,
        surfel.radius,
    )


def unpack_surfel(data) -> Surfel:
    """Decode a surfel from exactly ``SIZE`` bytes."""
    raw = bytes(data)
    if len(raw) != SIZE:
        raise ValueError(f"surfel data must be {SIZE} bytes, got {len(raw)}")
    v = _LAYOUT.unpack(raw)
    return Surfel(
        position=(v[0], v[1], v[2]),
        confidence=v[3],
        color=v[4],
        init_time=v[6],
        timestamp=v[7],
        normal=(v[8], v[9], v[10]),
        radius=v[11],
    )