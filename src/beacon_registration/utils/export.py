"""
Export utilities for merged beacons and resolved scanner transforms.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Mapping

import numpy as np

from .logging import setup_logger

logger = setup_logger(__name__)


def export_beacons_to_csv(points: np.ndarray, output_file: str | Path) -> Path:
    """Write beacons as ``x,y,z`` lines, the same record format as the input.

    Args:
        points: (N, 3) integer array
        output_file: Destination path; parent directories are created

    Returns:
        Path of the written file
    """
    output_path = Path(output_file)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    points = np.asarray(points, dtype=np.int64).reshape(-1, 3)
    np.savetxt(output_path, points, fmt="%d", delimiter=",")
    logger.info(f"Wrote {len(points)} beacons to {output_path}")
    return output_path


def save_transform_matrix(transform: np.ndarray, output_file: str | Path) -> None:
    """Save a transformation matrix to a text file.

    Args:
        transform: 4x4 transformation matrix
        output_file: Path to output file
    """
    np.savetxt(output_file, np.asarray(transform, dtype=np.int64), fmt="%d", header="4x4 transformation matrix")
    logger.debug(f"Saved transformation matrix to {output_file}")


def load_transform_matrix(input_file: str | Path) -> np.ndarray:
    """Load a transformation matrix from a text file.

    Args:
        input_file: Path to input file

    Returns:
        4x4 transformation matrix
    """
    transform = np.loadtxt(input_file, dtype=np.int64)
    if transform.shape != (4, 4):
        raise ValueError(f"Expected 4x4 matrix, got shape {transform.shape}")
    logger.debug(f"Loaded transformation matrix from {input_file}")
    return transform


def export_frame_map(frame_map: Mapping[int, np.ndarray], output_dir: str | Path) -> List[Path]:
    """Write one ``scanner_<i>_transform.txt`` per resolved scanner."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    written: List[Path] = []
    for index in sorted(frame_map):
        path = output_dir / f"scanner_{index}_transform.txt"
        save_transform_matrix(frame_map[index], path)
        written.append(path)

    logger.info(f"Wrote {len(written)} scanner transforms to {output_dir}")
    return written
