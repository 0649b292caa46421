"""
Row sinks: where ranked report rows end up.

ConsoleSink prints a table per report and, for live reports, a single line that
is redrawn in place as the metrics change.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Dict, List, Optional, Sequence, TextIO

import numpy as np
import pandas as pd

from ranking_pipeline import RankedRow
from reference_data import ReferenceData
from report_config import LIVE_REFRESH_EVERY

logger = logging.getLogger(__name__)


class RowSink:
    def emit(self, report, rows: Sequence[RankedRow]) -> Any:
        raise NotImplementedError

    def update(self, report, metrics) -> None:
        raise NotImplementedError

    def finish(self, report, metrics) -> None:
        raise NotImplementedError


def key_display(report, key, reference: Optional[ReferenceData] = None) -> str:
    if report.key_format is not None:
        return report.key_format(key)
    if reference is not None and report.key_kind:
        return reference.display_name(report.key_kind, key)
    return str(key)


def rows_to_frame(
    report, rows: Sequence[RankedRow], reference: Optional[ReferenceData] = None
) -> pd.DataFrame:
    """One DataFrame row per ranked row: key, ranking value (if any), extra columns."""
    columns = [report.key_label]
    if report.metric is not None:
        columns.append(report.value_label)
    columns.extend(name for name, _ in report.columns)

    records: List[Dict[str, Any]] = []
    for row in rows:
        entry: Dict[str, Any] = {report.key_label: key_display(report, row.key, reference)}
        if report.metric is not None:
            entry[report.value_label] = row.value
        # undefined rates come through as None; NaN prints as na_rep
        entry.update({name: np.nan if value is None else value for name, value in row.columns.items()})
        records.append(entry)
    return pd.DataFrame(records, columns=columns)


def _format_float(value: float) -> str:
    return f"{value:,.1f}"


class ConsoleSink(RowSink):
    def __init__(
        self,
        reference: Optional[ReferenceData] = None,
        stream: Optional[TextIO] = None,
        refresh_every: int = LIVE_REFRESH_EVERY,
    ) -> None:
        self.reference = reference
        self.stream = stream or sys.stdout
        self.refresh_every = max(1, refresh_every)
        self._updates = 0
        self._live_started = False

    def emit(self, report, rows: Sequence[RankedRow]) -> pd.DataFrame:
        frame = rows_to_frame(report, rows, self.reference)
        print(f"\n{report.title}:", file=self.stream)
        if frame.empty:
            print("  No matching flights.", file=self.stream)
        else:
            print(
                frame.to_string(index=False, na_rep="", float_format=_format_float),
                file=self.stream,
            )
        return frame

    def _start_live(self, report) -> None:
        if self._live_started:
            return
        self._live_started = True
        print(f"\n{report.title}\n", file=self.stream)
        header = "\t".join(f"{name:>10}" for name, _ in report.columns)
        print(header, file=self.stream)
        print("-" * (len(header.expandtabs()) + 2), file=self.stream)

    def _live_line(self, report, metrics) -> str:
        return "\t".join(f"{read(metrics):>10,}" for _, read in report.columns)

    def update(self, report, metrics) -> None:
        self._start_live(report)
        self._updates += 1
        if self._updates % self.refresh_every:
            return
        print("\r" + self._live_line(report, metrics), end="", file=self.stream, flush=True)

    def finish(self, report, metrics) -> None:
        self._start_live(report)
        # Always end on the final totals, even when the last update was coalesced.
        print("\r" + self._live_line(report, metrics), file=self.stream, flush=True)
        logger.info("%s: %d matching flights", report.name, metrics.total_flights)


class MultiSink(RowSink):
    """Send the same rows to several sinks in order."""

    def __init__(self, *sinks: RowSink) -> None:
        self.sinks = sinks

    def emit(self, report, rows: Sequence[RankedRow]) -> list:
        return [sink.emit(report, rows) for sink in self.sinks]

    def update(self, report, metrics) -> None:
        for sink in self.sinks:
            sink.update(report, metrics)

    def finish(self, report, metrics) -> None:
        for sink in self.sinks:
            sink.finish(report, metrics)
