"""
Scanner orientations.

A scanner may face any of the six signed axis directions and be rolled in
four steps about that direction, giving 24 proper rotations. Mirrored
orientations never occur.
"""

from __future__ import annotations

from functools import lru_cache

import numpy as np

from ..utils.transforms import TRANSFORM_DTYPE, is_proper_rotation

# Which signed axis becomes the new x-axis (first column of each matrix).
_FACINGS = (
    ((1, 0, 0), (0, 1, 0), (0, 0, 1)),     # +x
    ((-1, 0, 0), (0, -1, 0), (0, 0, 1)),   # -x
    ((0, 1, 0), (-1, 0, 0), (0, 0, 1)),    # -y
    ((0, -1, 0), (1, 0, 0), (0, 0, 1)),    # +y
    ((0, 0, 1), (0, 1, 0), (-1, 0, 0)),    # -z
    ((0, 0, -1), (0, 1, 0), (1, 0, 0)),    # +z
)

# Quarter turns about the x-axis.
_ROLLS = (
    ((1, 0, 0), (0, 1, 0), (0, 0, 1)),
    ((1, 0, 0), (0, -1, 0), (0, 0, -1)),
    ((1, 0, 0), (0, 0, -1), (0, 1, 0)),
    ((1, 0, 0), (0, 0, 1), (0, -1, 0)),
)

N_ORIENTATIONS = len(_FACINGS) * len(_ROLLS)


def _homogeneous(block) -> np.ndarray:
    M = np.eye(4, dtype=TRANSFORM_DTYPE)
    M[:3, :3] = np.asarray(block, dtype=TRANSFORM_DTYPE)
    return M


@lru_cache(maxsize=1)
def _build_orientations() -> np.ndarray:
    orientations = np.empty((N_ORIENTATIONS, 4, 4), dtype=TRANSFORM_DTYPE)
    n_facings = len(_FACINGS)
    for i, facing in enumerate(_FACINGS):
        for j, roll in enumerate(_ROLLS):
            orientations[i + j * n_facings] = _homogeneous(facing) @ _homogeneous(roll)

    for k, M in enumerate(orientations):
        if not is_proper_rotation(M):
            raise RuntimeError(f"Orientation {k} is not a proper rotation:\n{M}")
    if len({M.tobytes() for M in orientations}) != N_ORIENTATIONS:
        raise RuntimeError("Generated orientations are not pairwise distinct")

    orientations.setflags(write=False)
    return orientations


def generate_orientations() -> np.ndarray:
    """
    Return the 24 orientation matrices as a read-only (24, 4, 4) int64 array.

    Index ``i + 6 * j`` holds ``facing[i] @ roll[j]``; the order never changes
    between calls.
    """
    return _build_orientations()
