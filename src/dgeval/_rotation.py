"""Euler/quaternion conversion for authored rotate orders.

Rotate channels are Euler angles in degrees. Rotate order ``xyz`` means the
X rotation is applied first, then Y, then Z, about fixed axes; this is the
extrinsic sequence ``"xyz"`` of :class:`scipy.spatial.transform.Rotation`.
"""

from __future__ import annotations

import warnings
from enum import IntEnum
from typing import Protocol

import numpy as np
from scipy.spatial.transform import Rotation, Slerp

type Vec3 = tuple[float, float, float]
type Quat = tuple[float, float, float, float]


class RotateOrder(IntEnum):
    """Rotate-order codes as stored in the ``rotateOrder`` attribute."""

    XYZ = 0
    YZX = 1
    ZXY = 2
    XZY = 3
    YXZ = 4
    ZYX = 5

    @classmethod
    def from_code(cls, code: float) -> RotateOrder:
        """Round and clamp an authored code into the valid range."""
        return cls(min(max(round(code), 0), 5))

    @property
    def sequence(self) -> str:
        return self.name.lower()


def _to_sequence_angles(euler_deg: Vec3, order: RotateOrder) -> list[float]:
    by_axis = dict(zip("xyz", euler_deg, strict=True))
    return [by_axis[axis] for axis in order.sequence]


def _from_sequence_angles(angles: np.ndarray, order: RotateOrder) -> Vec3:
    by_axis = dict(zip(order.sequence, (float(a) for a in angles), strict=True))
    return (by_axis["x"], by_axis["y"], by_axis["z"])


def _as_euler(rotation: Rotation, order: RotateOrder) -> np.ndarray:
    with warnings.catch_warnings():
        # Gimbal lock still yields a valid decomposition.
        warnings.simplefilter("ignore", UserWarning)
        return rotation.as_euler(order.sequence, degrees=True)


def euler_to_quaternion(euler_deg: Vec3, order: RotateOrder = RotateOrder.XYZ) -> Quat:
    """Convert Euler degrees to a scalar-last quaternion ``(x, y, z, w)``."""
    q = Rotation.from_euler(order.sequence, _to_sequence_angles(euler_deg, order), degrees=True).as_quat()
    return (float(q[0]), float(q[1]), float(q[2]), float(q[3]))


def quaternion_to_euler(quat: Quat, order: RotateOrder = RotateOrder.XYZ) -> Vec3:
    """Convert a scalar-last quaternion back to Euler degrees in ``order``."""
    return _from_sequence_angles(_as_euler(Rotation.from_quat(quat), order), order)


def slerp_euler(r1: Vec3, r2: Vec3, weight: float, order: RotateOrder = RotateOrder.XYZ) -> Vec3:
    """Spherically interpolate two Euler rotations and return Euler degrees.

    Example:
        >>> x, y, z = slerp_euler((0.0, 0.0, 0.0), (90.0, 0.0, 0.0), 0.5)
        >>> round(x, 6), round(y, 6), round(z, 6)
        (45.0, 0.0, 0.0)

    """
    keys = Rotation.from_euler(
        order.sequence,
        [_to_sequence_angles(r1, order), _to_sequence_angles(r2, order)],
        degrees=True,
    )
    blended = Slerp([0.0, 1.0], keys)([weight])
    return _from_sequence_angles(_as_euler(blended, order)[0], order)


class RotationBlender(Protocol):
    """Collaborator used by the pair-blend formula for quaternion blending."""

    def __call__(self, r1: Vec3, r2: Vec3, weight: float, order: RotateOrder) -> Vec3: ...
