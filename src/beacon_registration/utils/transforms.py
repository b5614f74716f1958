"""
Homogeneous transform helpers.

Transforms are 4x4 ``int64`` matrices: a signed-permutation rotation block
plus an integer translation column. Composition is ordinary matrix
multiplication, ``compose(A, B) @ p == A @ (B @ p)``.
"""

from __future__ import annotations

from functools import reduce
from typing import Sequence

import numpy as np

from ..acceleration.jit_kernels import apply_transform_jit

TRANSFORM_DTYPE = np.int64


def identity_transform() -> np.ndarray:
    return np.eye(4, dtype=TRANSFORM_DTYPE)


def translation_matrix(offset: Sequence[int]) -> np.ndarray:
    """Translation by ``offset`` as a 4x4 matrix."""
    offset = np.asarray(offset, dtype=TRANSFORM_DTYPE).reshape(-1)
    if offset.shape[0] < 3:
        raise ValueError(f"Expected 3 offset components, got {offset.shape[0]}")
    T = identity_transform()
    T[:3, 3] = offset[:3]
    return T


def compose(*transforms: np.ndarray) -> np.ndarray:
    """Matrix product of the given transforms, applied right to left."""
    if not transforms:
        return identity_transform()
    return reduce(np.matmul, (np.asarray(t, dtype=TRANSFORM_DTYPE) for t in transforms))


def invert_rigid(transform: np.ndarray) -> np.ndarray:
    """
    Exact inverse of a rotation + translation transform.

    The rotation block is orthogonal with integer entries, so its transpose is
    its inverse and no floating point is involved.
    """
    transform = np.asarray(transform, dtype=TRANSFORM_DTYPE)
    if transform.shape != (4, 4):
        raise ValueError(f"Transform must be 4x4 matrix, got {transform.shape}")
    R_inv = transform[:3, :3].T
    inv = identity_transform()
    inv[:3, :3] = R_inv
    inv[:3, 3] = -(R_inv @ transform[:3, 3])
    return inv


def apply_transform(points: np.ndarray, transform: np.ndarray) -> np.ndarray:
    """Apply a 4x4 transform to an (N, 3) integer point array."""
    points = np.ascontiguousarray(points, dtype=TRANSFORM_DTYPE)
    if points.size == 0:
        return points.reshape(0, 3)
    return apply_transform_jit(points, np.ascontiguousarray(transform, dtype=TRANSFORM_DTYPE))


def to_homogeneous(points: np.ndarray) -> np.ndarray:
    """(N, 3) -> (N, 4) with a constant fourth component of 1."""
    points = np.asarray(points, dtype=TRANSFORM_DTYPE).reshape(-1, 3)
    return np.column_stack([points, np.ones(len(points), dtype=TRANSFORM_DTYPE)])


def is_proper_rotation(matrix: np.ndarray) -> bool:
    """
    True when the 3x3 block is a signed permutation with determinant +1
    and the translation column is zero.
    """
    matrix = np.asarray(matrix)
    if matrix.shape != (4, 4):
        return False
    R = matrix[:3, :3]
    if not np.all(np.isin(R, (-1, 0, 1))):
        return False
    nonzero = R != 0
    if not (np.all(nonzero.sum(axis=0) == 1) and np.all(nonzero.sum(axis=1) == 1)):
        return False
    if np.any(matrix[:3, 3] != 0) or np.any(matrix[3, :3] != 0) or matrix[3, 3] != 1:
        return False
    return int(round(np.linalg.det(R))) == 1
