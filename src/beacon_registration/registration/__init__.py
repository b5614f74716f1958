"""
Registration Module

Aligns scanners into one shared frame:
- orientations: the 24 axis-aligned scanner orientations
- pairwise: exact-match registration of one scanner onto another
- graph: breadth-first propagation of registrations from a reference scanner
- merge: mapping of all beacons into the shared frame with deduplication
"""

from .scanner import Scanner
from .orientations import generate_orientations, N_ORIENTATIONS
from .pairwise import PairwiseRegistration, RegistrationResult
from .graph import RegistrationGraph, ScannerFrameMap, RegistrationEdge
from .merge import GlobalBeaconSet, merge_beacons, scanner_positions

__all__ = [
    "Scanner",
    "generate_orientations",
    "N_ORIENTATIONS",
    "PairwiseRegistration",
    "RegistrationResult",
    "RegistrationGraph",
    "ScannerFrameMap",
    "RegistrationEdge",
    "GlobalBeaconSet",
    "merge_beacons",
    "scanner_positions",
]
