#!/usr/bin/env python3
"""
Plot ranked flight report rows as horizontal bar charts (PNG).

One image per report, named after the report, written to the plot directory.
The bar length is the ranking value; reports ordered by key (distance ranges,
carrier metrics) plot their first numeric column instead.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence

import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns

from ranking_pipeline import RankedRow
from reference_data import ReferenceData
from report_config import PLOT_DIR
from report_sinks import RowSink, rows_to_frame

sns.set_theme(style="whitegrid")

logger = logging.getLogger(__name__)

BAR_COLOR = "#4c72b0"


def plot_column(report, frame: pd.DataFrame) -> Optional[str]:
    """Name of the column to draw: the ranking value, else the first numeric column."""
    if report.metric is not None:
        return report.value_label
    numeric = frame.drop(columns=[report.key_label]).select_dtypes("number")
    return numeric.columns[0] if len(numeric.columns) else None


def plot_ranked_rows(report, frame: pd.DataFrame, path: Path) -> Optional[Path]:
    column = plot_column(report, frame)
    if frame.empty or column is None:
        logger.info("%s: nothing to plot", report.name)
        return None
    values = pd.to_numeric(frame[column], errors="coerce").fillna(0)
    height = max(4, 0.4 * len(frame))
    plt.figure(figsize=(9, height))
    sns.barplot(y=frame[report.key_label].astype(str), x=values, orient="h", color=BAR_COLOR)
    plt.xlabel(column)
    plt.ylabel(report.key_label)
    plt.title(report.title)
    plt.yticks(fontsize=9)
    plt.tight_layout()
    path.parent.mkdir(parents=True, exist_ok=True)
    plt.savefig(path, dpi=200)
    plt.close()
    logger.info("%s: saved plot to %s", report.name, path)
    return path


class PlotSink(RowSink):
    """Writes `<plot_dir>/<report name>.png` for each emitted report."""

    def __init__(self, plot_dir: Path = PLOT_DIR, reference: Optional[ReferenceData] = None) -> None:
        self.plot_dir = Path(plot_dir)
        self.reference = reference

    def emit(self, report, rows: Sequence[RankedRow]) -> Optional[Path]:
        frame = rows_to_frame(report, rows, self.reference)
        return plot_ranked_rows(report, frame, self.plot_dir / f"{report.name}.png")
