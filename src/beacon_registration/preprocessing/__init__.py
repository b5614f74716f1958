"""
Data Preprocessing Module

This module handles scanner input:
- Parsing of scanner reports into Scanner objects
- Generation of synthetic scanner fields with known poses
"""

from .loader import ScannerReportLoader, format_scanner_reports
from .synthetic import SyntheticScannerField, generate_scanner_chain

__all__ = [
    "ScannerReportLoader",
    "format_scanner_reports",
    "SyntheticScannerField",
    "generate_scanner_chain",
]
