#!/usr/bin/env python3
"""
Run one flight report over the flights CSV and print the ranked table.

The CSV is streamed in chunks so the full year fits in memory. With --workers
greater than 1 the chunks are split across worker threads and the partial
aggregates are merged at the end; the output is the same either way.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from flight_records import CsvFlightSource
from plot_generation import PlotSink
from reference_data import load_reference_data
from report_catalog import LIVE_REPORTS, REPORTS, ReportOptions, build_report, report_names
from report_config import (
    DATA_PATH,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_LIMIT,
    DEFAULT_WORKERS,
    LIVE_REFRESH_EVERY,
    MAX_LIMIT,
    MIN_LIMIT,
    PLOT_DIR,
    REFERENCE_DIR,
    SAMPLE_PATH,
)
from report_driver import LiveReport, ReportDriver
from report_errors import ReportError
from report_sinks import ConsoleSink, MultiSink

logger = logging.getLogger("flight_reports")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Rank airports, carriers, routes and planes from flight data."
    )
    parser.add_argument(
        "report",
        nargs="?",
        choices=report_names(),
        metavar="REPORT",
        help="Report to run (see --list).",
    )
    parser.add_argument("--list", action="store_true", help="List the available reports and exit.")
    parser.add_argument("--data", type=Path, default=None, help=f"Flights CSV (default {DATA_PATH}).")
    parser.add_argument(
        "--sample",
        action="store_true",
        help="Use the smaller sample file for a quick run.",
    )
    parser.add_argument(
        "--nrows",
        type=int,
        default=None,
        help="Only read the first N rows (for smoke testing).",
    )
    parser.add_argument(
        "--chunk-size",
        type=int,
        default=DEFAULT_CHUNK_SIZE,
        help="Chunk size for streaming the CSV. Lower this if memory is tight.",
    )
    parser.add_argument(
        "--top",
        type=int,
        default=DEFAULT_LIMIT,
        help=f"How many rows to show ({MIN_LIMIT}-{MAX_LIMIT}).",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=DEFAULT_WORKERS,
        help="Number of partitions aggregated in parallel (1 = sequential).",
    )
    parser.add_argument("--origin", help="Only flights leaving this airport code.")
    parser.add_argument("--destination", help="Only flights arriving at this airport code.")
    parser.add_argument("--carrier", help="Only flights of this carrier code.")
    parser.add_argument("--airport", help="Airport for live-airport-metrics.")
    parser.add_argument("--year", type=int, default=None, help="Only flights in this year.")
    parser.add_argument("--state", help="Only flights leaving airports in this state.")
    parser.add_argument("--max-distance", type=int, default=None, help="Only flights up to this many miles.")
    parser.add_argument(
        "--reference-dir",
        type=Path,
        default=REFERENCE_DIR,
        help="Directory holding airports.csv, carriers.csv and plane-data.csv.",
    )
    parser.add_argument("--plot", action="store_true", help=f"Also save a bar chart under {PLOT_DIR}/.")
    parser.add_argument(
        "--refresh-every",
        type=int,
        default=LIVE_REFRESH_EVERY,
        help="Live reports redraw after this many matching flights.",
    )
    parser.add_argument("--verbose", action="store_true", help="Log progress to stderr.")

    args = parser.parse_args(argv)
    if not args.list and args.report is None:
        parser.error("a report name is required (see --list)")
    if not MIN_LIMIT <= args.top <= MAX_LIMIT:
        parser.error(f"--top must be between {MIN_LIMIT} and {MAX_LIMIT}")
    if args.workers < 1:
        parser.error("--workers must be at least 1")
    if args.plot and args.report in LIVE_REPORTS:
        parser.error("--plot is not available for live reports")
    return args


def print_catalog() -> None:
    print("Reports:")
    for name, (_, required) in {**REPORTS, **LIVE_REPORTS}.items():
        needs = f"  (needs --{', --'.join(r.replace('_', '-') for r in required)})" if required else ""
        print(f"  {name}{needs}")


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        level=logging.INFO if args.verbose else logging.WARNING,
    )
    if args.list:
        print_catalog()
        return 0

    reference = load_reference_data(args.reference_dir)
    options = ReportOptions(
        origin=args.origin,
        destination=args.destination,
        carrier=args.carrier,
        airport=args.airport,
        year=args.year,
        state=args.state,
        max_distance=args.max_distance,
    )
    path = args.data or (SAMPLE_PATH if args.sample else DATA_PATH)
    source = CsvFlightSource(path, chunk_size=args.chunk_size, nrows=args.nrows)
    console = ConsoleSink(reference, refresh_every=args.refresh_every)

    try:
        report = build_report(args.report, reference, options)
        driver = ReportDriver(workers=args.workers)
        if isinstance(report, LiveReport):
            driver.run_live(report, source, console)
        else:
            sink = MultiSink(console, PlotSink(PLOT_DIR, reference)) if args.plot else console
            driver.run(report, source, sink, limit=args.top)
    except ReportError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except ValueError as exc:
        # missing report options
        print(f"error: {exc}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
