"""
Beacon Registration Package

Reconstructs one shared 3D frame from scanners that each report nearby
beacons in their own unknown orientation and position. Scanners are
registered pairwise by exact matching over the 24 axis-aligned orientations,
registrations are propagated breadth-first from a reference scanner, and all
beacons are merged into one deduplicated set.
"""

__version__ = "0.1.0"

from .errors import DisconnectedGraphError, ResourceExhaustionError, ScannerParseError
from .registration import *
from .preprocessing import *
from .pipeline import Reconstruction, reconstruct

__all__ = [
    "registration",
    "preprocessing",
    "acceleration",
    "utils",
    "reconstruct",
    "Reconstruction",
    "DisconnectedGraphError",
    "ResourceExhaustionError",
    "ScannerParseError",
]
