"""
Exceptions raised by the beacon registration pipeline.

A pairwise registration that finds no transform is not an error; it is
reported as ``None`` by ``PairwiseRegistration.register``.
"""

from __future__ import annotations

from typing import Iterable, Optional


class ScannerParseError(ValueError):
    """Malformed or out-of-range record in a scanner report."""

    def __init__(self, message: str, line_number: Optional[int] = None):
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)
        self.line_number = line_number


class DisconnectedGraphError(RuntimeError):
    """Some scanners could not be registered to the reference scanner."""

    def __init__(self, unregistered: Iterable[int], reference: int = 0):
        self.unregistered = sorted(int(i) for i in unregistered)
        self.reference = reference
        super().__init__(
            f"{len(self.unregistered)} scanner(s) share no valid registration path with "
            f"reference scanner {reference}: {self.unregistered}"
        )


class ResourceExhaustionError(RuntimeError):
    """Candidate buffers for a scanner pair could not be allocated."""
