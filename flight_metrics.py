"""
Per-group aggregates for flight reports.

Every aggregate supports the same three operations:

- accumulate(record): fold one flight into the aggregate (mutates it)
- combine(other): return a new aggregate equal to having accumulated the
  records of both operands, leaving both untouched
- merge_from(other): the in-place form of combine, only for instances the
  caller owns exclusively

combine is associative and commutative and the freshly constructed aggregate is
its identity, so partial results from arbitrary partitions can be merged in any
order. Rates and averages are derived on read from the running totals.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Hashable, Iterable, Optional, Set, Tuple

from flight_records import FlightRecord
from report_errors import DivisionUndefined


class Aggregate:
    def accumulate(self, record: FlightRecord) -> "Aggregate":
        raise NotImplementedError

    def merge_from(self, other: "Aggregate") -> "Aggregate":
        raise NotImplementedError

    def copy(self) -> "Aggregate":
        raise NotImplementedError

    def combine(self, other: "Aggregate") -> "Aggregate":
        return self.copy().merge_from(other)

    def _check_compatible(self, other: "Aggregate") -> None:
        if type(other) is not type(self):
            raise ValueError(
                f"cannot combine {type(self).__name__} with {type(other).__name__}"
            )


def _ratio(numerator: int, denominator: int, what: str) -> float:
    if denominator == 0:
        raise DivisionUndefined(f"{what} is undefined with zero flights")
    return numerator / denominator


@dataclass
class Count(Aggregate):
    """Bare flight counter."""

    count: int = 0

    def accumulate(self, record: FlightRecord) -> "Count":
        self.count += 1
        return self

    def merge_from(self, other: Aggregate) -> "Count":
        self._check_compatible(other)
        self.count += other.count
        return self

    def copy(self) -> "Count":
        return Count(self.count)


@dataclass
class Average(Aggregate):
    """Running sum and count of one integer attribute of the record."""

    attribute: str
    total: int = 0
    count: int = 0

    def accumulate(self, record: FlightRecord) -> "Average":
        self.total += getattr(record, self.attribute)
        self.count += 1
        return self

    def merge_from(self, other: Aggregate) -> "Average":
        self._check_compatible(other)
        if other.attribute != self.attribute:
            raise ValueError(
                f"cannot combine averages of {self.attribute} and {other.attribute}"
            )
        self.total += other.total
        self.count += other.count
        return self

    def copy(self) -> "Average":
        return Average(self.attribute, self.total, self.count)

    @property
    def mean(self) -> float:
        return _ratio(self.total, self.count, f"average {self.attribute}")


Extractor = Callable[[FlightRecord], Iterable[Hashable]]


@dataclass(frozen=True)
class MetricsKind:
    """Which related-entity sets a Metrics tracks and how each is read off a record."""

    name: str
    extractors: Tuple[Tuple[str, Extractor], ...]

    @property
    def set_names(self) -> Tuple[str, ...]:
        return tuple(name for name, _ in self.extractors)


def _origin(record: FlightRecord) -> Tuple[str]:
    return (record.origin,)


def _destination(record: FlightRecord) -> Tuple[str]:
    return (record.destination,)


def _both_airports(record: FlightRecord) -> Tuple[str, str]:
    return (record.origin, record.destination)


def _day(record: FlightRecord):
    return (record.date,)


def _plane(record: FlightRecord) -> Tuple[str, ...]:
    return (record.tail_number,) if record.tail_number else ()


AIRPORT_METRICS = MetricsKind("airport", (("origins", _origin), ("destinations", _destination)))
CARRIER_METRICS = MetricsKind("carrier", (("airports", _both_airports),))
PLANE_METRICS = MetricsKind("plane", (("days", _day),))
DAY_METRICS = MetricsKind("day", (("planes", _plane),))
FLEET_METRICS = MetricsKind("fleet", (("planes", _plane),))


def _merged_subject(left: Optional[Hashable], right: Optional[Hashable]) -> Optional[Hashable]:
    if left is None:
        return right
    if right is None or left == right:
        return left
    raise ValueError(f"cannot combine metrics for {left!r} and {right!r}")


@dataclass
class Metrics(Aggregate):
    """
    Flight dashboard for one subject (an airport, a carrier, a plane, a day or
    a slice of the fleet).

    Counts flights, cancellations and diversions, keeps running delay totals and
    remembers the distinct related entities named by its kind. A subject of None
    marks a partial aggregate that has not been tied to a subject yet; it merges
    with any subject.
    """

    kind: MetricsKind
    subject: Optional[Hashable] = None
    total_flights: int = 0
    total_cancelled: int = 0
    total_diverted: int = 0
    departure_delay_total: int = 0
    arrival_delay_total: int = 0
    related: Dict[str, Set[Hashable]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for name in self.kind.set_names:
            self.related.setdefault(name, set())

    def accumulate(self, record: FlightRecord) -> "Metrics":
        self.total_flights += 1
        if record.cancelled:
            self.total_cancelled += 1
        if record.diverted:
            self.total_diverted += 1
        self.departure_delay_total += record.departure_delay
        self.arrival_delay_total += record.arrival_delay
        for name, extract in self.kind.extractors:
            self.related[name].update(extract(record))
        return self

    def merge_from(self, other: Aggregate) -> "Metrics":
        self._check_compatible(other)
        if other.kind != self.kind:
            raise ValueError(f"cannot combine {self.kind.name} and {other.kind.name} metrics")
        self.subject = _merged_subject(self.subject, other.subject)
        self.total_flights += other.total_flights
        self.total_cancelled += other.total_cancelled
        self.total_diverted += other.total_diverted
        self.departure_delay_total += other.departure_delay_total
        self.arrival_delay_total += other.arrival_delay_total
        for name in self.kind.set_names:
            self.related[name] |= other.related[name]
        return self

    def copy(self) -> "Metrics":
        return Metrics(
            kind=self.kind,
            subject=self.subject,
            total_flights=self.total_flights,
            total_cancelled=self.total_cancelled,
            total_diverted=self.total_diverted,
            departure_delay_total=self.departure_delay_total,
            arrival_delay_total=self.arrival_delay_total,
            related={name: set(values) for name, values in self.related.items()},
        )

    def distinct(self, name: str) -> int:
        return len(self.related[name])

    @property
    def cancellation_rate(self) -> float:
        return _ratio(self.total_cancelled, self.total_flights, "cancellation rate")

    @property
    def diversion_rate(self) -> float:
        return _ratio(self.total_diverted, self.total_flights, "diversion rate")

    @property
    def average_departure_delay(self) -> float:
        return _ratio(self.departure_delay_total, self.total_flights, "average departure delay")

    @property
    def average_arrival_delay(self) -> float:
        return _ratio(self.arrival_delay_total, self.total_flights, "average arrival delay")
