"""Angle composition and planar offset rotation about the vertical axis."""

from typing import Tuple

import numpy as np

FULL_TURN = 360.0


def compose_angle(original: float, delta: float) -> float:
    """Return ``(original + delta) mod 360`` normalized to ``[0, 360)``."""
    result = (original + delta) % FULL_TURN
    # a tiny negative sum can round up to a full turn
    if result >= FULL_TURN:
        return 0.0
    return result


def compose_orientation(original: Tuple[float, float, float],
                        delta: Tuple[float, float, float]) -> Tuple[float, float, float]:
    """Compose every axis of an orientation triplet with ``compose_angle``"""
    return (
        compose_angle(original[0], delta[0]),
        compose_angle(original[1], delta[1]),
        compose_angle(original[2], delta[2]),
    )


def rotate_offsets(offsets: np.ndarray, yaw_degrees: float) -> np.ndarray:
    """
    Rotate an ``(N, 2)`` array of (x, z) offsets for an anchor yaw.

    Each offset keeps its polar radius; its polar angle is advanced by the
    negated yaw, so a positive world yaw turns the offsets the other way.
    """
    offsets = np.asarray(offsets, dtype=float).reshape(-1, 2)
    radius = np.hypot(offsets[:, 0], offsets[:, 1])
    angle = np.arctan2(offsets[:, 1], offsets[:, 0]) + np.radians(-yaw_degrees)
    return np.column_stack((radius * np.cos(angle), radius * np.sin(angle)))


def rotate_offset(offset_x: float, offset_z: float, yaw_degrees: float) -> Tuple[float, float]:
    """Rotate a single (x, z) offset, see ``rotate_offsets``"""
    rotated = rotate_offsets(np.array([[offset_x, offset_z]]), yaw_degrees)
    return float(rotated[0, 0]), float(rotated[0, 1])
