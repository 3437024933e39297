from __future__ import annotations

from typing import MutableSequence, Sequence, TypeVar

import numpy as np


DEVICE_UNITS_PER_INCH = 2540
POINTS_PER_INCH = 72.0
LWD_UNITS_PER_INCH = 96.0
INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1

_Ys = TypeVar("_Ys", MutableSequence[float], np.ndarray)


def inches_to_device(inches: float) -> int:
    """Device units for a length in inches, truncated toward zero."""
    return int(DEVICE_UNITS_PER_INCH * inches)


def points_to_device(points: float) -> int:
    return inches_to_device(points / POINTS_PER_INCH)


def flip_y(ys: _Ys, height: float) -> _Ys:
    """Convert bottom-left-origin ordinates to top-left origin in place.

    Applying it twice with the same `height` restores the input.
    """
    if isinstance(ys, np.ndarray):
        np.subtract(height, ys, out=ys, casting="unsafe")
        return ys
    for i, y in enumerate(ys):
        ys[i] = height - y
    return ys


def round_half_away(values: Sequence[float] | np.ndarray) -> np.ndarray:
    """Nearest integer with halves rounded away from zero (C `lround`).

    Results saturate at the signed 32-bit range every EMF coordinate field uses.
    """
    arr = np.asarray(values, dtype=np.float64)
    rounded = np.sign(arr) * np.floor(np.abs(arr) + 0.5)
    return np.clip(rounded, INT32_MIN, INT32_MAX).astype(np.int64)


def lround(value: float) -> int:
    return int(round_half_away([value])[0])


def to_device_points(xs: Sequence[float], ys: Sequence[float], height: float) -> np.ndarray:
    """Flip, round and pack caller coordinates into an (n, 2) int32 array."""
    if len(xs) != len(ys):
        raise ValueError("xs and ys must have the same length")
    flipped = flip_y(np.array(ys, dtype=np.float64), height)
    points = np.empty((len(xs), 2), dtype="<i4")
    points[:, 0] = round_half_away(xs)
    points[:, 1] = round_half_away(flipped)
    return points


def bounds_of(points: np.ndarray) -> tuple[int, int, int, int]:
    if points.size == 0:
        return (0, 0, 0, 0)
    mins = points.min(axis=0)
    maxs = points.max(axis=0)
    return (int(mins[0]), int(mins[1]), int(maxs[0]), int(maxs[1]))
