"""
Shared fixtures: a two-scanner scene with a known registration.

Scanner A reports 12 shared beacons plus one beacon outside B's cube.
Scanner B reports the same 12 beacons in its own frame plus one beacon that
lies outside A's cube once registered. B sits at ``t`` in A's frame and is
rotated by ``R`` (90 degrees about z), so ``translate(t) @ R`` maps B into A.
"""

import sys
from pathlib import Path

import numpy as np
import pytest

sys.path.append(str(Path(__file__).parent.parent / "src"))

from beacon_registration.registration import Scanner
from beacon_registration.utils.transforms import apply_transform, invert_rigid, translation_matrix

SHARED_BEACONS = np.array([
    [404, -388, -301],
    [128, 143, 309],
    [390, 217, -152],
    [212, -364, 380],
    [459, 85, 27],
    [153, -42, -233],
    [327, 366, 198],
    [271, -205, 114],
    [486, -311, -377],
    [178, 259, -61],
    [345, 12, 342],
    [233, -97, -398],
], dtype=np.int64)

ROTATION_Z90 = np.array([
    [0, -1, 0, 0],
    [1, 0, 0, 0],
    [0, 0, 1, 0],
    [0, 0, 0, 1],
], dtype=np.int64)

SCANNER_B_POSITION = np.array([600, 0, 0], dtype=np.int64)

# In A's frame: outside B's cube (x - 600 < -1000)
A_EXTRA = np.array([[-800, 0, 0]], dtype=np.int64)
# In A's frame: outside A's cube, inside B's
B_EXTRA_OUT_OF_RANGE = np.array([[1500, 0, 0]], dtype=np.int64)
# In A's frame: inside both cubes with no counterpart in A
B_EXTRA_CONTRADICTING = np.array([[300, 300, 300]], dtype=np.int64)


def expected_transform() -> np.ndarray:
    return translation_matrix(SCANNER_B_POSITION) @ ROTATION_Z90


def to_b_frame(points_in_a: np.ndarray) -> np.ndarray:
    return apply_transform(points_in_a, invert_rigid(expected_transform()))


def make_pair(b_extra: np.ndarray, a_extra: np.ndarray = A_EXTRA):
    scanner_a = Scanner(index=0, beacons=np.vstack([SHARED_BEACONS, a_extra]))
    # The extra beacon goes last so that a contradiction is found only after
    # all 12 shared beacons have matched
    scanner_b = Scanner(index=1, beacons=np.vstack([to_b_frame(SHARED_BEACONS), to_b_frame(b_extra)]))
    return scanner_a, scanner_b


@pytest.fixture
def consistent_pair():
    return make_pair(B_EXTRA_OUT_OF_RANGE)


@pytest.fixture
def contradicting_pair():
    return make_pair(B_EXTRA_CONTRADICTING)
