"""Rotation-vector and rigid-update helpers for odometry."""

from __future__ import annotations

import sys
from typing import Tuple

import numpy as np


def rodrigues(rotation_vector) -> np.ndarray:
    """The 3x3 rotation matrix for an axis-angle vector.

    Vectors shorter than machine epsilon give the identity.
    """
    vector = np.asarray(rotation_vector, dtype=np.float64).ravel()
    if vector.shape != (3,):
        raise ValueError("rotation vector must have three components")
    theta = float(np.linalg.norm(vector))
    if theta < sys.float_info.epsilon:
        return np.eye(3)
    rx, ry, rz = vector / theta
    c = np.cos(theta)
    s = np.sin(theta)
    outer = np.array([[rx * rx, rx * ry, rx * rz], [rx * ry, ry * ry, ry * rz], [rx * rz, ry * rz, rz * rz]])
    cross = np.array([[0.0, -rz, ry], [rz, 0.0, -rx], [-ry, rx, 0.0]])
    return c * np.eye(3) + (1.0 - c) * outer + s * cross


def compute_update_se3(result_rt, result) -> Tuple[np.ndarray, np.ndarray]:
    """Compose a small twist onto an accumulated transform.

    ``result`` holds translation (first three) and rotation vector (last
    three). Returns the updated 4x4 transform in double precision and the
    same transform as a single-precision rigid 4x4 matrix.
    """
    accumulated = np.asarray(result_rt, dtype=np.float64)
    twist = np.asarray(result, dtype=np.float64).ravel()
    if accumulated.shape != (4, 4):
        raise ValueError("accumulated transform must be 4x4")
    if twist.shape != (6,):
        raise ValueError("update must have six components")

    step = np.eye(4)
    step[:3, :3] = rodrigues(twist[3:])
    step[:3, 3] = twist[:3]
    updated = step @ accumulated

    odom = np.eye(4, dtype=np.float32)
    odom[:3, :3] = updated[:3, :3].astype(np.float32)
    odom[:3, 3] = updated[:3, 3].astype(np.float32)
    return updated, odom