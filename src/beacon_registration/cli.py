"""
Command-line entry point.

Reads scanner reports from a file or stdin, reconstructs the shared frame and
prints the number of distinct beacons to stdout. Logs go to stderr.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .errors import DisconnectedGraphError, ResourceExhaustionError, ScannerParseError
from .pipeline import reconstruct
from .preprocessing.loader import ScannerReportLoader
from .utils.config import AppConfig, load_config
from .utils.export import export_beacons_to_csv, export_frame_map
from .utils.logging import set_package_level, setup_logger

EXIT_OK = 0
EXIT_DISCONNECTED = 1
EXIT_INPUT = 2
EXIT_RESOURCES = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="beacon-registration",
        description="Register scanners into one frame and count distinct beacons",
    )
    parser.add_argument(
        "input",
        nargs="?",
        default=None,
        help="Scanner report file (reads stdin when omitted)",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to YAML configuration file (defaults to config/default.yaml)",
    )
    parser.add_argument(
        "--backend",
        choices=["jit", "process", "sequential"],
        default=None,
        help="Override registration.backend from the config",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Worker processes for the 'process' backend",
    )
    parser.add_argument(
        "--export-dir",
        type=str,
        default=None,
        help="Write beacons.csv and per-scanner transforms to this directory",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Override logging.level from the config",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        cfg: AppConfig = load_config(args.config, allow_missing=args.config is None)
    except (FileNotFoundError, ValueError) as e:
        print(f"beacon-registration: {e}", file=sys.stderr)
        return EXIT_INPUT

    if args.backend:
        cfg.registration.backend = args.backend
    if args.workers is not None:
        cfg.parallel.n_workers = args.workers
    if args.log_level:
        cfg.logging.level = args.log_level

    log_level = getattr(logging, cfg.logging.level.upper(), logging.INFO)
    logger = setup_logger(__name__, level=log_level)
    set_package_level(log_level, cfg.logging.file)

    loader = ScannerReportLoader(sensing_range=cfg.registration.sensing_range)
    try:
        scanners = loader.load(args.input) if args.input else loader.load_stream(sys.stdin)
    except (FileNotFoundError, ScannerParseError) as e:
        logger.error(f"Could not read scanner reports: {e}")
        return EXIT_INPUT

    if not scanners:
        logger.error("Input contains no scanners")
        return EXIT_INPUT

    try:
        result = reconstruct(scanners, cfg)
    except DisconnectedGraphError as e:
        logger.error(str(e))
        return EXIT_DISCONNECTED
    except ResourceExhaustionError as e:
        logger.error(f"Out of resources: {e}")
        return EXIT_RESOURCES
    except ValueError as e:
        logger.error(str(e))
        return EXIT_INPUT

    if args.export_dir:
        out_dir = Path(args.export_dir)
        export_beacons_to_csv(result.beacons.points, out_dir / "beacons.csv")
        export_frame_map(result.frame_map, out_dir)

    print(result.beacon_count)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
