"""
Utility Functions Module

This module provides common utility functions used across the project.
- Logging setup
- Typed configuration loading
- Homogeneous transform helpers
- Export of merged beacons and scanner transforms
"""

from .logging import setup_logger
from .config import AppConfig, load_config
from .transforms import (
    identity_transform,
    translation_matrix,
    compose,
    invert_rigid,
    apply_transform,
    to_homogeneous,
    is_proper_rotation,
)
from .export import (
    export_beacons_to_csv,
    export_frame_map,
    save_transform_matrix,
    load_transform_matrix,
)

__all__ = [
    "setup_logger",
    "AppConfig",
    "load_config",
    "identity_transform",
    "translation_matrix",
    "compose",
    "invert_rigid",
    "apply_transform",
    "to_homogeneous",
    "is_proper_rotation",
    "export_beacons_to_csv",
    "export_frame_map",
    "save_transform_matrix",
    "load_transform_matrix",
]
