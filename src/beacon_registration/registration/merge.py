"""
Global Merge

Maps every scanner's beacons into the shared frame and deduplicates them.
Transforms hold integers only, so deduplication uses exact coordinate
equality.
"""

from __future__ import annotations

from typing import List, Mapping, Optional, Sequence, Tuple

import numpy as np

from ..errors import DisconnectedGraphError
from ..utils.logging import setup_logger
from ..utils.transforms import apply_transform
from .scanner import Scanner

logger = setup_logger(__name__)


class GlobalBeaconSet:
    """Deduplicated beacons in the shared frame."""

    def __init__(self, points: Optional[np.ndarray] = None):
        self._chunks: List[np.ndarray] = []
        self._points: Optional[np.ndarray] = None
        if points is not None:
            self.add(points)

    def add(self, points: np.ndarray) -> None:
        points = np.asarray(points, dtype=np.int64).reshape(-1, 3)
        if len(points):
            self._chunks.append(points)
            self._points = None

    @property
    def points(self) -> np.ndarray:
        """Distinct beacons as a lexicographically sorted (M, 3) array."""
        if self._points is None:
            if self._chunks:
                self._points = np.unique(np.vstack(self._chunks), axis=0)
            else:
                self._points = np.empty((0, 3), dtype=np.int64)
            self._chunks = [self._points] if len(self._points) else []
        return self._points

    def __len__(self) -> int:
        return int(self.points.shape[0])

    def __contains__(self, point) -> bool:
        point = np.asarray(point, dtype=np.int64).reshape(3)
        return bool(np.any(np.all(self.points == point, axis=1)))

    def __repr__(self) -> str:
        return f"GlobalBeaconSet({len(self)} beacons)"


def merge_beacons(scanners: Sequence[Scanner], frame_map: Mapping[int, np.ndarray]) -> GlobalBeaconSet:
    """
    Transform all beacons into the shared frame and deduplicate them.

    Args:
        scanners: Scanners indexed by position
        frame_map: Resolved transform per scanner index

    Returns:
        GlobalBeaconSet with the distinct beacons

    Raises:
        DisconnectedGraphError: If any scanner has no resolved transform
    """
    missing = [i for i in range(len(scanners)) if i not in frame_map]
    if missing:
        raise DisconnectedGraphError(missing, reference=getattr(frame_map, "reference", 0))

    beacons = GlobalBeaconSet()
    n_reported = 0
    for i, scanner in enumerate(scanners):
        beacons.add(apply_transform(scanner.beacons, frame_map[i]))
        n_reported += len(scanner)

    logger.info(f"Merged {n_reported} reported beacons into {len(beacons)} distinct beacons")
    return beacons


def scanner_positions(frame_map: Mapping[int, np.ndarray]) -> List[Tuple[int, np.ndarray]]:
    """Origin of each scanner in the shared frame, ordered by scanner index."""
    return [(i, np.asarray(frame_map[i][:3, 3], dtype=np.int64)) for i in sorted(frame_map)]
