"""
Scanner Report Loader

This module parses scanner reports into Scanner objects.

Format: one block per scanner, a header line (content ignored) followed by
``x,y,z`` integer lines, terminated by a blank line or end of input.

    --- scanner 0 ---
    404,-588,-901
    528,-643,409

    --- scanner 1 ---
    686,422,578
"""

from __future__ import annotations

import re
import sys
from pathlib import Path
from typing import Iterable, List, Optional, TextIO

import numpy as np

from ..errors import ScannerParseError
from ..registration.scanner import Scanner
from ..utils.logging import setup_logger

logger = setup_logger(__name__)

_RECORD = re.compile(r"^\s*([+-]?\d+)\s*,\s*([+-]?\d+)\s*,\s*([+-]?\d+)\s*$")


class ScannerReportLoader:
    """
    Loads scanner reports from text.

    Features:
    - Header lines are skipped whatever their content
    - Coordinates are validated against the sensing range
    - Errors carry the 1-based line number of the offending record
    """

    def __init__(self, *, sensing_range: Optional[int] = 1000):
        """
        Initialize the loader.

        Args:
            sensing_range: Reject coordinates whose magnitude exceeds this value
                on any axis (None disables the check)
        """
        self.sensing_range = sensing_range

    def load(self, file_path: str | Path) -> List[Scanner]:
        """
        Load scanners from a file.

        Raises:
            FileNotFoundError: If the file does not exist
            ScannerParseError: If a record is malformed or out of range
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        logger.info(f"Loading scanner reports from {file_path}")
        with file_path.open("r", encoding="utf-8") as f:
            return self.parse_lines(f)

    def load_stream(self, stream: Optional[TextIO] = None) -> List[Scanner]:
        """Load scanners from an open text stream (stdin by default)."""
        return self.parse_lines(stream if stream is not None else sys.stdin)

    def parse(self, text: str) -> List[Scanner]:
        return self.parse_lines(text.splitlines())

    def parse_lines(self, lines: Iterable[str]) -> List[Scanner]:
        scanners: List[Scanner] = []
        current: Optional[List[List[int]]] = None

        def close_block() -> None:
            if current is None:
                return
            scanner = Scanner(index=len(scanners), beacons=np.array(current, dtype=np.int64).reshape(-1, 3))
            if len(scanner) == 0:
                logger.warning(f"Scanner {scanner.index} reports no beacons")
            scanners.append(scanner)

        for line_number, raw in enumerate(lines, start=1):
            line = raw.strip()
            if not line:
                close_block()
                current = None
                continue

            if current is None:
                # First non-blank line of a block is its header
                current = []
                continue

            match = _RECORD.match(line)
            if match is None:
                raise ScannerParseError(f"expected 'x,y,z' integer record, got {line!r}", line_number)

            point = [int(v) for v in match.groups()]
            if self.sensing_range is not None and max(abs(v) for v in point) > self.sensing_range:
                raise ScannerParseError(
                    f"beacon {tuple(point)} lies outside the sensing range of +/-{self.sensing_range}",
                    line_number,
                )
            current.append(point)

        close_block()

        logger.info(
            f"Loaded {len(scanners)} scanners with {sum(len(s) for s in scanners)} beacon reports"
        )
        return scanners


def format_scanner_reports(scanners: Iterable[Scanner]) -> str:
    """Inverse of ``ScannerReportLoader.parse``."""
    blocks = []
    for scanner in scanners:
        lines = [f"--- scanner {scanner.index} ---"]
        lines.extend(f"{x},{y},{z}" for x, y, z in scanner.beacons.tolist())
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks) + "\n"
