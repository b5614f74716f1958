"""
Registration Graph

Resolves every scanner's transform into the frame of a reference scanner by a
breadth-first traversal. Edges of the graph (pairs of overlapping scanners)
are not known up front; they are discovered by running pairwise registration
from each newly resolved anchor against every unresolved scanner.
"""

from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass
from typing import Dict, Iterator, List, Mapping, Sequence

import numpy as np

from ..errors import DisconnectedGraphError
from ..utils.logging import setup_logger
from ..utils.transforms import identity_transform
from .pairwise import PairwiseRegistration
from .scanner import Scanner

logger = setup_logger(__name__)


class ScannerFrameMap(Mapping[int, np.ndarray]):
    """
    Write-once mapping from scanner index to its transform into the shared frame.

    Reading an index that was never assigned raises KeyError.
    """

    def __init__(self, reference: int = 0):
        self.reference = reference
        self._transforms: Dict[int, np.ndarray] = {}
        self.assign(reference, identity_transform())

    def assign(self, index: int, transform: np.ndarray) -> None:
        if index in self._transforms:
            raise ValueError(f"Scanner {index} already has a resolved transform")
        transform = np.array(transform, dtype=np.int64, copy=True)
        if transform.shape != (4, 4):
            raise ValueError(f"Transform must be 4x4 matrix, got {transform.shape}")
        transform.setflags(write=False)
        self._transforms[index] = transform

    def __getitem__(self, index: int) -> np.ndarray:
        return self._transforms[index]

    def __iter__(self) -> Iterator[int]:
        return iter(self._transforms)

    def __len__(self) -> int:
        return len(self._transforms)

    def __repr__(self) -> str:
        return f"ScannerFrameMap(reference={self.reference}, resolved={sorted(self._transforms)})"


@dataclass(frozen=True)
class RegistrationEdge:
    anchor: int
    target: int
    overlap: int


class RegistrationGraph:
    """
    Breadth-first propagation of pairwise registrations.

    Example:
        graph = RegistrationGraph(scanners, PairwiseRegistration())
        frame_map = graph.resolve()
    """

    def __init__(
        self,
        scanners: Sequence[Scanner],
        registration: PairwiseRegistration,
        reference: int = 0,
    ):
        if not scanners:
            raise ValueError("At least one scanner is required")
        if not 0 <= reference < len(scanners):
            raise ValueError(f"Reference scanner {reference} out of range for {len(scanners)} scanners")

        self.scanners = list(scanners)
        self.registration = registration
        self.reference = reference
        self.frame_map = ScannerFrameMap(reference)
        self.edges: List[RegistrationEdge] = []
        self.attempts = 0

    @property
    def unregistered(self) -> List[int]:
        return [i for i in range(len(self.scanners)) if i not in self.frame_map]

    def resolve(self) -> ScannerFrameMap:
        """
        Resolve the transform of every scanner.

        Returns:
            The completed ScannerFrameMap

        Raises:
            DisconnectedGraphError: If some scanners cannot be reached from the
                reference through valid registrations
        """
        n_scanners = len(self.scanners)
        logger.info(f"Registering {n_scanners} scanners against reference scanner {self.reference}")
        start_time = time.time()

        anchors = deque([self.reference])
        while anchors:
            n = anchors.popleft()
            for m in range(n_scanners):
                if m in self.frame_map:
                    continue

                self.attempts += 1
                result = self.registration.register(self.scanners[n], self.scanners[m])
                if result is None:
                    continue

                self.frame_map.assign(m, self.frame_map[n] @ result.transform)
                self.edges.append(RegistrationEdge(anchor=n, target=m, overlap=result.overlap))
                anchors.append(m)
                logger.debug(
                    f"Registered scanner {m} via anchor {n} "
                    f"(overlap {result.overlap}, orientation {result.orientation_index})"
                )

        elapsed = time.time() - start_time
        logger.info(
            f"Resolved {len(self.frame_map)}/{n_scanners} scanners "
            f"with {self.attempts} pairwise attempts in {elapsed:.2f}s"
        )

        missing = self.unregistered
        if missing:
            logger.error(f"Overlap graph is disconnected; unregistered scanners: {missing}")
            raise DisconnectedGraphError(missing, reference=self.reference)

        return self.frame_map
