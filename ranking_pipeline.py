"""
Ranking of grouped aggregates: pick a scalar per group, sort, tie-break on the
group key, truncate to the top N.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Hashable, List, Mapping, Optional, Sequence, Tuple

from flight_metrics import Aggregate
from report_config import MAX_LIMIT, MIN_LIMIT
from report_errors import InvalidLimit

MetricFn = Callable[[Aggregate], Any]
Column = Tuple[str, MetricFn]


@dataclass(frozen=True)
class RankedRow:
    key: Hashable
    value: Any
    columns: Dict[str, Any] = field(default_factory=dict)


def validate_limit(limit: Optional[int]) -> Optional[int]:
    """None means no limit. Anything else must be an int in [MIN_LIMIT, MAX_LIMIT]."""
    if limit is None:
        return None
    if isinstance(limit, bool) or not isinstance(limit, int):
        raise InvalidLimit(limit, MIN_LIMIT, MAX_LIMIT)
    if not MIN_LIMIT <= limit <= MAX_LIMIT:
        raise InvalidLimit(limit, MIN_LIMIT, MAX_LIMIT)
    return limit


def rank(
    groups: Mapping[Hashable, Aggregate],
    metric: Optional[MetricFn] = None,
    *,
    descending: bool = True,
    limit: Optional[int] = None,
    columns: Sequence[Column] = (),
) -> List[RankedRow]:
    """
    Order the groups by `metric` and return at most `limit` rows.

    Equal values keep the natural order of their keys (ascending) in both
    directions, so the output does not depend on dict iteration order. With no
    metric the rows come back in key order (reversed when descending). The
    aggregates are only read.
    """
    limit = validate_limit(limit)
    by_key = sorted(groups.items(), key=lambda item: item[0])
    if metric is None:
        scored = [(key, key, aggregate) for key, aggregate in by_key]
        if descending:
            scored.reverse()
    else:
        scored = [(key, metric(aggregate), aggregate) for key, aggregate in by_key]
        # sorted() is stable, including with reverse=True, so key order survives ties.
        scored.sort(key=lambda item: item[1], reverse=descending)
    if limit is not None:
        scored = scored[:limit]
    return [
        RankedRow(
            key=key,
            value=value,
            columns={name: column(aggregate) for name, column in columns},
        )
        for key, value, aggregate in scored
    ]
