"""JIT-compiled kernels for the registration search.

All kernels work on ``int64`` coordinates so that every comparison is exact.
Candidate triples are indexed as (reference beacon ``a``, orientation ``o``,
candidate beacon ``b``); the candidate translation of a triple is
``reference[a] - rotated[o, b]``.
"""

from __future__ import annotations

import numba
import numpy as np


def _jit(nopython: bool = True, parallel: bool = False, cache: bool = False):
    """Shared decorator so every kernel compiles with the same options.

    Kernels run inside worker processes pass ``cache=True`` so each worker
    loads the compiled code from disk instead of recompiling it.
    """
    return numba.jit(nopython=nopython, parallel=parallel, cache=cache)


@_jit(nopython=True, parallel=False)
def apply_transform_jit(points: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    """Apply 4x4 transformation matrix to points (JIT-compiled).

    Args:
        points: (N, 3) array of XYZ coordinates.
        matrix: (4, 4) transformation matrix of the same dtype.

    Returns:
        Transformed points (N, 3).
    """
    n = points.shape[0]
    # Inputs may be read-only views of scanner data
    result = np.empty((n, 3), dtype=points.dtype)

    for i in range(n):
        x = points[i, 0]
        y = points[i, 1]
        z = points[i, 2]
        result[i, 0] = matrix[0, 0] * x + matrix[0, 1] * y + matrix[0, 2] * z + matrix[0, 3]
        result[i, 1] = matrix[1, 0] * x + matrix[1, 1] * y + matrix[1, 2] * z + matrix[1, 3]
        result[i, 2] = matrix[2, 0] * x + matrix[2, 1] * y + matrix[2, 2] * z + matrix[2, 3]

    return result


@_jit(nopython=True, parallel=False)
def rotate_under_orientations_jit(points: np.ndarray, orientations: np.ndarray) -> np.ndarray:
    """Rotate points under every orientation.

    Args:
        points: (N, 3) array of coordinates.
        orientations: (O, 4, 4) orientation matrices.

    Returns:
        (O, N, 3) array where ``[o]`` holds the points under orientation ``o``.
    """
    n_orient = orientations.shape[0]
    n = points.shape[0]
    rotated = np.empty((n_orient, n, 3), dtype=points.dtype)
    for o in range(n_orient):
        rotated[o] = apply_transform_jit(points, orientations[o])
    return rotated


@_jit(nopython=True, parallel=False, cache=True)
def _in_range(x, y, z, sensing_range) -> bool:
    return (
        x >= -sensing_range and x <= sensing_range
        and y >= -sensing_range and y <= sensing_range
        and z >= -sensing_range and z <= sensing_range
    )


@_jit(nopython=True, parallel=False, cache=True)
def evaluate_candidate_jit(
    reference: np.ndarray,
    rotated_candidate: np.ndarray,
    dx,
    dy,
    dz,
    covered: np.ndarray,
    sensing_range,
):
    """Score one candidate translation.

    ``covered`` is caller-owned scratch of length ``len(reference)``.

    Returns:
        (overlap, contradiction). Evaluation stops at the first contradiction,
        so the overlap is partial in that case.
    """
    n_ref = reference.shape[0]
    n_cand = rotated_candidate.shape[0]

    for j in range(n_ref):
        covered[j] = False

    overlap = 0
    for i in range(n_cand):
        tx = rotated_candidate[i, 0] + dx
        ty = rotated_candidate[i, 1] + dy
        tz = rotated_candidate[i, 2] + dz

        found = False
        for j in range(n_ref):
            if reference[j, 0] == tx and reference[j, 1] == ty and reference[j, 2] == tz:
                found = True
                covered[j] = True
                break

        if found:
            overlap += 1
        elif _in_range(tx, ty, tz, sensing_range):
            return overlap, True

    # The candidate scanner sits at (dx, dy, dz); it must see every reference
    # beacon inside its own cube.
    for j in range(n_ref):
        if not covered[j] and _in_range(
            reference[j, 0] - dx, reference[j, 1] - dy, reference[j, 2] - dz, sensing_range
        ):
            return overlap, True

    return overlap, False


@_jit(nopython=True, parallel=True)
def evaluate_candidates_jit(
    reference: np.ndarray,
    rotated: np.ndarray,
    sensing_range,
    min_overlap,
):
    """Evaluate every (a, o, b) candidate in parallel.

    Lanes are (a, o) pairs; each lane owns its ``covered`` scratch so lanes
    never share mutable state.

    Args:
        reference: (A, 3) reference beacons.
        rotated: (O, B, 3) candidate beacons under each orientation.
        sensing_range: Half-width of the sensing cube.
        min_overlap: Matches required to accept a candidate.

    Returns:
        (accepted, overlaps), both shaped (A, O, B).
    """
    n_ref = reference.shape[0]
    n_orient = rotated.shape[0]
    n_cand = rotated.shape[1]

    accepted = np.zeros((n_ref, n_orient, n_cand), dtype=np.bool_)
    overlaps = np.zeros((n_ref, n_orient, n_cand), dtype=np.int32)

    for lane in numba.prange(n_ref * n_orient):
        a = lane // n_orient
        o = lane % n_orient
        covered = np.zeros(n_ref, dtype=np.bool_)
        for b in range(n_cand):
            dx = reference[a, 0] - rotated[o, b, 0]
            dy = reference[a, 1] - rotated[o, b, 1]
            dz = reference[a, 2] - rotated[o, b, 2]
            overlap, contradiction = evaluate_candidate_jit(
                reference, rotated[o], dx, dy, dz, covered, sensing_range
            )
            overlaps[a, o, b] = overlap
            accepted[a, o, b] = overlap >= min_overlap and not contradiction

    return accepted, overlaps


@_jit(nopython=True, parallel=False, cache=True)
def evaluate_candidate_block_jit(
    reference: np.ndarray,
    rotated: np.ndarray,
    a_start,
    a_stop,
    sensing_range,
    min_overlap,
):
    """Serial evaluation of the candidates whose reference beacon lies in
    ``[a_start, a_stop)``. Used by worker processes.

    Returns:
        (accepted, overlaps), both shaped (a_stop - a_start, O, B).
    """
    n_ref = reference.shape[0]
    n_orient = rotated.shape[0]
    n_cand = rotated.shape[1]
    n_block = a_stop - a_start

    accepted = np.zeros((n_block, n_orient, n_cand), dtype=np.bool_)
    overlaps = np.zeros((n_block, n_orient, n_cand), dtype=np.int32)
    covered = np.zeros(n_ref, dtype=np.bool_)

    for k in range(n_block):
        a = a_start + k
        for o in range(n_orient):
            for b in range(n_cand):
                dx = reference[a, 0] - rotated[o, b, 0]
                dy = reference[a, 1] - rotated[o, b, 1]
                dz = reference[a, 2] - rotated[o, b, 2]
                overlap, contradiction = evaluate_candidate_jit(
                    reference, rotated[o], dx, dy, dz, covered, sensing_range
                )
                overlaps[k, o, b] = overlap
                accepted[k, o, b] = overlap >= min_overlap and not contradiction

    return accepted, overlaps


@_jit(nopython=True, parallel=False)
def find_first_candidate_jit(
    reference: np.ndarray,
    rotated: np.ndarray,
    sensing_range,
    min_overlap,
):
    """Scan candidates in (a, o, b) order and stop at the first accepted one.

    Returns:
        (a, o, b, overlap), or (-1, -1, -1, 0) when nothing is accepted.
    """
    n_ref = reference.shape[0]
    n_orient = rotated.shape[0]
    n_cand = rotated.shape[1]
    covered = np.zeros(n_ref, dtype=np.bool_)

    for a in range(n_ref):
        for o in range(n_orient):
            for b in range(n_cand):
                dx = reference[a, 0] - rotated[o, b, 0]
                dy = reference[a, 1] - rotated[o, b, 1]
                dz = reference[a, 2] - rotated[o, b, 2]
                overlap, contradiction = evaluate_candidate_jit(
                    reference, rotated[o], dx, dy, dz, covered, sensing_range
                )
                if overlap >= min_overlap and not contradiction:
                    return a, o, b, overlap

    return -1, -1, -1, 0
