"""
End-to-end reconstruction: registration graph followed by global merge.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .registration.graph import RegistrationEdge, RegistrationGraph, ScannerFrameMap
from .registration.merge import GlobalBeaconSet, merge_beacons
from .registration.pairwise import PairwiseRegistration
from .registration.scanner import Scanner
from .utils.config import AppConfig
from .utils.logging import setup_logger

logger = setup_logger(__name__)


@dataclass
class Reconstruction:
    frame_map: ScannerFrameMap
    beacons: GlobalBeaconSet
    edges: List[RegistrationEdge] = field(default_factory=list)

    @property
    def beacon_count(self) -> int:
        return len(self.beacons)


def reconstruct(
    scanners: Sequence[Scanner],
    cfg: Optional[AppConfig] = None,
    *,
    registration: Optional[PairwiseRegistration] = None,
) -> Reconstruction:
    """
    Register all scanners into the reference frame and merge their beacons.

    Args:
        scanners: Parsed scanners, indexed by position
        cfg: Application config (defaults when None)
        registration: Pre-built PairwiseRegistration overriding the config
            (its worker pool is closed once the graph is resolved)

    Raises:
        DisconnectedGraphError: If some scanners cannot be registered
        ResourceExhaustionError: If candidate buffers cannot be allocated
    """
    cfg = cfg or AppConfig()
    registration = registration or PairwiseRegistration.from_config(cfg)
    logger.info(
        f"Reconstructing {len(scanners)} scanners (backend={registration.backend}, "
        f"min_overlap={registration.min_overlap}, sensing_range={registration.sensing_range})"
    )

    graph = RegistrationGraph(scanners, registration, reference=cfg.registration.reference_scanner)
    try:
        frame_map = graph.resolve()
    finally:
        registration.close()
    beacons = merge_beacons(scanners, frame_map)
    return Reconstruction(frame_map=frame_map, beacons=beacons, edges=list(graph.edges))
