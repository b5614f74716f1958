"""
Generate a synthetic scanner field with known poses.

- Scanners are placed along the x-axis so that consecutive scanners' sensing
  cubes intersect and scanners two apart do not.
- Each consecutive pair shares beacons placed inside the intersection of
  their cubes; every scanner also gets beacons anywhere in its own cube.
- Every scanner reports all beacons inside its cube, in a randomly chosen
  orientation, so the true registrations never contradict.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from ..registration.orientations import generate_orientations
from ..registration.scanner import Scanner
from ..utils.transforms import apply_transform, compose, invert_rigid, translation_matrix


@dataclass
class SyntheticScannerField:
    scanners: List[Scanner]
    positions: np.ndarray  # (N, 3) scanner origins in the world frame
    orientations: np.ndarray  # (N,) orientation index per scanner
    beacons: np.ndarray  # (M, 3) distinct world beacons

    def world_transform(self, index: int) -> np.ndarray:
        """Scanner-local to world transform of one scanner."""
        rotation = generate_orientations()[self.orientations[index]]
        return translation_matrix(self.positions[index]) @ rotation

    def relative_transform(self, reference: int, candidate: int) -> np.ndarray:
        """Transform from ``candidate``'s frame into ``reference``'s frame."""
        return compose(invert_rigid(self.world_transform(reference)), self.world_transform(candidate))


def _sample_box(rng: np.random.Generator, low: np.ndarray, high: np.ndarray, n: int) -> np.ndarray:
    return rng.integers(low, high + 1, size=(n, 3), dtype=np.int64)


def generate_scanner_chain(
    n_scanners: int = 4,
    *,
    spacing: int = 1100,
    shared_per_pair: int = 15,
    unique_per_scanner: int = 10,
    sensing_range: int = 1000,
    jitter: int = 60,
    seed: Optional[int] = 0,
) -> SyntheticScannerField:
    """
    Build a chain of scanners with guaranteed pairwise overlap between neighbours.

    Args:
        n_scanners: Number of scanners
        spacing: Distance along x between consecutive scanners; must be below
            2 * sensing_range for neighbours to overlap
        shared_per_pair: Beacons placed in each neighbour intersection
        unique_per_scanner: Extra beacons per scanner cube
        sensing_range: Half-width of each sensing cube
        jitter: Maximum random offset of scanner positions on y and z
        seed: RNG seed

    Returns:
        SyntheticScannerField with scanners and ground truth
    """
    if n_scanners < 1:
        raise ValueError("n_scanners must be at least 1")
    if n_scanners > 1 and spacing + jitter >= 2 * sensing_range:
        raise ValueError("spacing too large: neighbouring sensing cubes would not intersect")

    rng = np.random.default_rng(seed)
    R = np.int64(sensing_range)

    positions = np.zeros((n_scanners, 3), dtype=np.int64)
    positions[:, 0] = np.arange(n_scanners, dtype=np.int64) * spacing
    if jitter > 0:
        positions[:, 1:] = rng.integers(-jitter, jitter + 1, size=(n_scanners, 2))

    world = []
    for i in range(n_scanners):
        world.append(_sample_box(rng, positions[i] - R, positions[i] + R, unique_per_scanner))
    for i in range(n_scanners - 1):
        low = np.maximum(positions[i], positions[i + 1]) - R
        high = np.minimum(positions[i], positions[i + 1]) + R
        world.append(_sample_box(rng, low, high, shared_per_pair))
    beacons = np.unique(np.vstack(world), axis=0)

    orientations = rng.integers(0, len(generate_orientations()), size=n_scanners)
    field = SyntheticScannerField(scanners=[], positions=positions, orientations=orientations, beacons=beacons)

    for i in range(n_scanners):
        visible = beacons[np.all(np.abs(beacons - positions[i]) <= R, axis=1)]
        local = apply_transform(visible, invert_rigid(field.world_transform(i)))
        # Shuffle so report order carries no information
        field.scanners.append(Scanner(index=i, beacons=local[rng.permutation(len(local))]))

    return field
