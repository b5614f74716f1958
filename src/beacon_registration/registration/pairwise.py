"""
Pairwise Registration

Finds the rigid transform (orientation + integer translation) that maps a
candidate scanner's local frame into a reference scanner's frame.

Every triple (reference beacon a, orientation o, candidate beacon b) proposes
the translation that makes b coincide with a under o. A proposal is accepted
when at least ``min_overlap`` beacons coincide exactly and no beacon
contradicts it:
- a translated candidate beacon inside the reference cube with no exact match
- a reference beacon inside the candidate cube that was never matched

The first accepted triple in (a, o, b) order wins.

Backends:
- jit: full candidate map on a parallel numba kernel, then reduction
- process: the same map split into blocks over worker processes
- sequential: in-order scan that stops at the first accepted candidate
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

import numpy as np

from ..acceleration.jit_kernels import (
    evaluate_candidate_block_jit,
    evaluate_candidates_jit,
    find_first_candidate_jit,
    rotate_under_orientations_jit,
)
from ..acceleration.parallel_executor import CandidateBlock, ParallelExecutor, split_candidate_blocks
from ..errors import ResourceExhaustionError
from ..utils.config import AppConfig
from ..utils.logging import setup_logger
from ..utils.transforms import TRANSFORM_DTYPE, translation_matrix
from .orientations import generate_orientations
from .scanner import Scanner

logger = setup_logger(__name__)

BACKENDS = ("jit", "process", "sequential")

# One accepted flag (bool) and one overlap count (int32) per candidate
_BYTES_PER_CANDIDATE = np.dtype(np.bool_).itemsize + np.dtype(np.int32).itemsize


@dataclass
class RegistrationResult:
    """Accepted registration of a candidate scanner onto a reference scanner."""

    transform: np.ndarray  # 4x4, candidate frame -> reference frame
    overlap: int
    orientation_index: int
    reference_beacon: int
    candidate_beacon: int

    @property
    def translation(self) -> np.ndarray:
        """Position of the candidate scanner in the reference frame."""
        return self.transform[:3, 3]

    @property
    def rotation(self) -> np.ndarray:
        return self.transform[:3, :3]


def evaluate_candidate_block(
    block: CandidateBlock,
    *,
    reference: np.ndarray,
    rotated: np.ndarray,
    sensing_range: int,
    min_overlap: int,
) -> Tuple[np.ndarray, np.ndarray]:
    """Worker function for the process backend (module level for pickling)."""
    return evaluate_candidate_block_jit(
        reference, rotated, block.start, block.stop, sensing_range, min_overlap
    )


def _as_beacons(scanner: Union[Scanner, np.ndarray]) -> np.ndarray:
    if isinstance(scanner, Scanner):
        beacons = scanner.beacons
    else:
        beacons = np.asarray(scanner, dtype=TRANSFORM_DTYPE).reshape(-1, 3)
    return np.ascontiguousarray(beacons, dtype=TRANSFORM_DTYPE)


@dataclass
class PairwiseRegistration:
    min_overlap: int = 12
    sensing_range: int = 1000
    backend: str = "jit"  # jit | process | sequential
    n_workers: Optional[int] = None
    memory_limit_gb: Optional[float] = None
    orientations: np.ndarray = field(default_factory=generate_orientations, repr=False)
    _executor: Optional[ParallelExecutor] = field(default=None, init=False, repr=False)

    def __post_init__(self):
        if self.backend not in BACKENDS:
            raise ValueError(f"Unknown registration backend '{self.backend}', expected one of {BACKENDS}")
        if self.min_overlap < 1:
            raise ValueError(f"min_overlap must be positive, got {self.min_overlap}")
        self.orientations = np.ascontiguousarray(self.orientations, dtype=TRANSFORM_DTYPE)

    @classmethod
    def from_config(cls, cfg: AppConfig) -> "PairwiseRegistration":
        return cls(
            min_overlap=cfg.registration.min_overlap,
            sensing_range=cfg.registration.sensing_range,
            backend=cfg.registration.backend,
            n_workers=cfg.parallel.n_workers,
            memory_limit_gb=cfg.parallel.memory_limit_gb,
        )

    @property
    def executor(self) -> ParallelExecutor:
        if self._executor is None:
            self._executor = ParallelExecutor(n_workers=self.n_workers)
        return self._executor

    def close(self) -> None:
        """Shut down the worker pool of the process backend, if one was started."""
        if self._executor is not None:
            self._executor.close()

    def register(
        self,
        reference: Union[Scanner, np.ndarray],
        candidate: Union[Scanner, np.ndarray],
    ) -> Optional[RegistrationResult]:
        """
        Register ``candidate`` onto ``reference``.

        Args:
            reference: Scanner (or (N, 3) beacons) whose frame is the target
            candidate: Scanner (or (M, 3) beacons) to be mapped into that frame

        Returns:
            RegistrationResult, or None when no candidate transform is accepted

        Raises:
            ResourceExhaustionError: If the candidate buffers exceed the memory
                limit or cannot be allocated
        """
        ref = _as_beacons(reference)
        cand = _as_beacons(candidate)

        if len(ref) == 0 or len(cand) == 0:
            logger.debug("PairwiseRegistration: empty scanner; nothing to register.")
            return None

        rotated = self.rotate_candidate(cand)

        if self.backend == "sequential":
            a, o, b, overlap = find_first_candidate_jit(ref, rotated, self.sensing_range, self.min_overlap)
            if a < 0:
                return None
            return self._result(ref, rotated, int(a), int(o), int(b), int(overlap))

        accepted, overlaps = self._evaluate(ref, rotated)
        hits = np.flatnonzero(accepted.ravel())
        if hits.size == 0:
            return None

        # C order of (a, o, b) is the tie-break order
        a, o, b = np.unravel_index(hits[0], accepted.shape)
        logger.debug(f"PairwiseRegistration: {hits.size} accepted candidates, keeping ({a}, {o}, {b})")
        return self._result(ref, rotated, int(a), int(o), int(b), int(overlaps[a, o, b]))

    def evaluate_candidates(
        self,
        reference: Union[Scanner, np.ndarray],
        candidate: Union[Scanner, np.ndarray],
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Evaluate the full candidate map.

        Returns:
            (accepted, overlaps), both shaped (|reference|, 24, |candidate|)
        """
        ref = _as_beacons(reference)
        cand = _as_beacons(candidate)
        n_orient = len(self.orientations)
        if len(ref) == 0 or len(cand) == 0:
            shape = (len(ref), n_orient, len(cand))
            return np.zeros(shape, dtype=np.bool_), np.zeros(shape, dtype=np.int32)
        return self._evaluate(ref, self.rotate_candidate(cand))

    def rotate_candidate(self, candidate: Union[Scanner, np.ndarray]) -> np.ndarray:
        """Candidate beacons under every orientation, shaped (24, M, 3)."""
        return rotate_under_orientations_jit(_as_beacons(candidate), self.orientations)

    def candidate_buffer_bytes(self, n_reference: int, n_candidate: int) -> int:
        return int(n_reference) * len(self.orientations) * int(n_candidate) * _BYTES_PER_CANDIDATE

    # ------------------------ Helpers ------------------------
    def _evaluate(self, ref: np.ndarray, rotated: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        self._check_buffer(len(ref), rotated.shape[1])
        try:
            if self.backend == "process":
                return self._evaluate_blocks(ref, rotated)
            return evaluate_candidates_jit(ref, rotated, self.sensing_range, self.min_overlap)
        except MemoryError as e:
            raise ResourceExhaustionError(
                f"Allocation of candidate buffers for {len(ref)}x{len(self.orientations)}x{rotated.shape[1]} "
                f"candidates failed"
            ) from e

    def _evaluate_blocks(self, ref: np.ndarray, rotated: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        blocks = split_candidate_blocks(len(ref), self.executor.n_workers)
        results = self.executor.map_blocks(
            blocks=blocks,
            worker_fn=evaluate_candidate_block,
            worker_kwargs={
                "reference": ref,
                "rotated": rotated,
                "sensing_range": self.sensing_range,
                "min_overlap": self.min_overlap,
            },
        )
        accepted = np.concatenate([r[0] for r in results], axis=0)
        overlaps = np.concatenate([r[1] for r in results], axis=0)
        return accepted, overlaps

    def _check_buffer(self, n_reference: int, n_candidate: int) -> None:
        if self.memory_limit_gb is None:
            return
        needed = self.candidate_buffer_bytes(n_reference, n_candidate)
        limit = self.memory_limit_gb * 1024 ** 3
        if needed > limit:
            raise ResourceExhaustionError(
                f"Candidate buffers need {needed / 1024 ** 3:.3f} GB, "
                f"above the configured limit of {self.memory_limit_gb} GB"
            )

    def _result(
        self,
        ref: np.ndarray,
        rotated: np.ndarray,
        a: int,
        o: int,
        b: int,
        overlap: int,
    ) -> RegistrationResult:
        diff = ref[a] - rotated[o, b]
        T = translation_matrix(diff) @ self.orientations[o]
        return RegistrationResult(
            transform=T,
            overlap=overlap,
            orientation_index=o,
            reference_beacon=a,
            candidate_beacon=b,
        )
