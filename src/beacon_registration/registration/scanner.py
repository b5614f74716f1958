"""
Scanner data model.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from ..utils.transforms import TRANSFORM_DTYPE, to_homogeneous


@dataclass(frozen=True, eq=False)
class Scanner:
    """
    Beacons reported by one scanner in its local frame.

    Attributes:
        index: Position of the scanner in the input
        beacons: (N, 3) int64 array, read-only
    """

    index: int
    beacons: np.ndarray

    def __post_init__(self):
        beacons = np.array(self.beacons, dtype=TRANSFORM_DTYPE, copy=True)
        if beacons.size == 0:
            beacons = beacons.reshape(0, 3)
        if beacons.ndim != 2 or beacons.shape[1] != 3:
            raise ValueError(f"Expected Nx3 beacon array, got shape {beacons.shape}")
        beacons.setflags(write=False)
        object.__setattr__(self, "beacons", beacons)

    def __len__(self) -> int:
        return int(self.beacons.shape[0])

    @property
    def homogeneous(self) -> np.ndarray:
        """(N, 4) beacons with a constant fourth component of 1."""
        return to_homogeneous(self.beacons)

    def max_abs_coordinate(self) -> int:
        return int(np.abs(self.beacons).max()) if len(self) else 0
