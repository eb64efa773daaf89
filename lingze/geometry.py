"""4x4 transform matrices (column-vector convention) and a simple camera."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np


def _vec3(values) -> np.ndarray:
    vec = np.asarray(values, dtype=float)
    if vec.shape != (3,):
        raise ValueError(f"expected three components, got shape {vec.shape}")
    return vec


def translation(offset) -> np.ndarray:
    """Return a matrix that translates points by ``offset``."""
    matrix = np.eye(4)
    matrix[:3, 3] = _vec3(offset)
    return matrix


def rotation(angle: float, axis) -> np.ndarray:
    """Return a matrix rotating by ``angle`` radians around ``axis`` (right-handed)."""
    direction = _vec3(axis)
    norm = np.linalg.norm(direction)
    if norm == 0.0:
        raise ValueError("rotation axis must not be zero")
    x, y, z = direction / norm
    c = math.cos(angle)
    s = math.sin(angle)
    cross = np.array([[0.0, -z, y], [z, 0.0, -x], [-y, x, 0.0]])
    unit = np.array([x, y, z])
    matrix = np.eye(4)
    matrix[:3, :3] = c * np.eye(3) + (1.0 - c) * np.outer(unit, unit) + s * cross
    return matrix


def scaling(factors) -> np.ndarray:
    """Return a matrix scaling each axis by the matching factor."""
    matrix = np.eye(4)
    matrix[:3, :3] = np.diag(_vec3(factors))
    return matrix


def quaternion_matrix(w: float, x: float, y: float, z: float) -> np.ndarray:
    """Return the rotation matrix of the quaternion ``w + xi + yj + zk``."""
    xx, yy, zz = x * x, y * y, z * z
    xy, xz, yz = x * y, x * z, y * z
    wx, wy, wz = w * x, w * y, w * z
    matrix = np.eye(4)
    matrix[:3, :3] = [
        [1.0 - 2.0 * (yy + zz), 2.0 * (xy - wz), 2.0 * (xz + wy)],
        [2.0 * (xy + wz), 1.0 - 2.0 * (xx + zz), 2.0 * (yz - wx)],
        [2.0 * (xz - wy), 2.0 * (yz + wx), 1.0 - 2.0 * (xx + yy)],
    ]
    return matrix


@dataclass
class Camera:
    """A camera placed at ``pos`` with a yaw and a pitch in radians."""

    pos: np.ndarray = field(default_factory=lambda: np.zeros(3))
    vert_angle: float = 0.0
    hor_angle: float = 0.0

    def transform_matrix(self) -> np.ndarray:
        """Return the camera-to-world matrix."""
        return (
            translation(self.pos)
            @ rotation(self.hor_angle, (0.0, 1.0, 0.0))
            @ rotation(self.vert_angle, (1.0, 0.0, 0.0))
        )