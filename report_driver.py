"""
Runs one report over a flight record source.

Sequential mode folds the whole source through a single GroupingEngine.
Parallel mode splits the source into disjoint partitions, lets each worker fill
its own engine, waits for all of them and then merges the sealed partial
results. Both produce the same groups because combine is associative and
commutative. Live mode keeps a single Metrics for one subject and hands it to
the sink after every matching record.
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from functools import reduce
from typing import Any, Callable, Dict, Hashable, Iterable, List, Optional, Tuple

from flight_metrics import Aggregate, Metrics, MetricsKind
from flight_records import FlightRecord, RecordSource
from grouping_engine import AggregateFactory, Classifier, GroupingEngine, merge_groups
from ranking_pipeline import Column, MetricFn, RankedRow, rank, validate_limit

logger = logging.getLogger(__name__)

Predicate = Callable[[FlightRecord], bool]


@dataclass(frozen=True)
class Report:
    """Everything needed to turn a record source into ranked rows."""

    name: str
    title: str
    classify: Classifier
    factory: AggregateFactory
    metric: Optional[MetricFn] = None
    descending: bool = True
    where: Optional[Predicate] = None
    columns: Tuple[Column, ...] = ()
    key_label: str = "Key"
    value_label: str = "Count"
    key_kind: str = ""
    key_format: Optional[Callable[[Hashable], str]] = None
    limited: bool = True


@dataclass(frozen=True)
class LiveReport:
    """Incremental dashboard for one airport or carrier."""

    name: str
    title: str
    kind: MetricsKind
    subject: Hashable
    matches: Predicate
    columns: Tuple[Tuple[str, Callable[[Metrics], Any]], ...] = ()


def group_records(
    classify: Classifier,
    factory: AggregateFactory,
    records: Iterable[FlightRecord],
    where: Optional[Predicate] = None,
) -> Dict[Hashable, Aggregate]:
    """Filter and group one sequence of records with a private engine."""
    if where is not None:
        records = filter(where, records)
    return GroupingEngine(classify, factory).feed(records).groups


class ReportDriver:
    def __init__(
        self,
        workers: int = 1,
        executor_factory: Callable[..., Executor] = ThreadPoolExecutor,
    ) -> None:
        if workers < 1:
            raise ValueError(f"workers must be at least 1, got {workers}")
        self.workers = workers
        self.executor_factory = executor_factory

    def aggregate(self, report: Report, source: RecordSource) -> Dict[Hashable, Aggregate]:
        if self.workers == 1:
            groups = group_records(report.classify, report.factory, source, report.where)
            logger.info("%s: %d groups (sequential)", report.name, len(groups))
            return groups
        return self._aggregate_parallel(report, source)

    def _aggregate_parallel(
        self, report: Report, source: RecordSource
    ) -> Dict[Hashable, Aggregate]:
        partitions = source.split(self.workers)
        with self.executor_factory(max_workers=self.workers) as pool:
            futures = [
                pool.submit(group_records, report.classify, report.factory, part, report.where)
                for part in partitions
            ]
            try:
                partials = [future.result() for future in futures]
            except BaseException:
                for future in futures:
                    future.cancel()
                raise
        logger.info(
            "%s: merging %d partial results (%s groups)",
            report.name,
            len(partials),
            [len(partial) for partial in partials],
        )
        return reduce(merge_groups, partials, {})

    def run(
        self,
        report: Report,
        source: RecordSource,
        sink,
        limit: Optional[int] = None,
    ) -> List[RankedRow]:
        """
        Aggregate the whole source, rank and emit. Nothing reaches the sink unless
        the pass completes; the source is closed either way.
        """
        limit = validate_limit(limit)
        with source:
            groups = self.aggregate(report, source)
        rows = rank(
            groups,
            report.metric,
            descending=report.descending,
            limit=limit if report.limited else None,
            columns=report.columns,
        )
        logger.info("%s: emitting %d rows", report.name, len(rows))
        sink.emit(report, rows)
        return rows

    def run_live(self, report: LiveReport, source: RecordSource, sink) -> Metrics:
        """Update one Metrics record by record, redrawing after each match."""
        metrics = Metrics(report.kind, report.subject)
        with source:
            for record in source:
                if report.matches(record):
                    metrics.accumulate(record)
                    sink.update(report, metrics)
        sink.finish(report, metrics)
        return metrics
