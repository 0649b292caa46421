"""
Group-by for flight records: classify each record to a key and fold it into
that key's aggregate.
"""

from __future__ import annotations

from dataclasses import dataclass
from operator import attrgetter
from typing import Callable, Dict, Hashable, Iterable, Mapping, Sequence

from flight_metrics import Aggregate
from flight_records import FlightRecord
from reference_data import ReferenceData
from report_errors import ClassificationError, NotFound

Classifier = Callable[[FlightRecord], Hashable]
AggregateFactory = Callable[[Hashable], Aggregate]


@dataclass(frozen=True, order=True)
class ValueRange:
    """Inclusive integer range (distance in miles, plane age in years)."""

    low: int
    high: int

    @classmethod
    def between(cls, low: int, high: int) -> "ValueRange":
        if low > high:
            raise ClassificationError(f"empty range {low}-{high}")
        return cls(low, high)

    def contains(self, value: int) -> bool:
        return self.low <= value <= self.high

    def __str__(self) -> str:
        return f"{self.low}-{self.high}"


DISTANCE_RANGES = (
    ValueRange.between(0, 100),
    ValueRange.between(101, 250),
    ValueRange.between(251, 500),
    ValueRange.between(501, 1000),
    ValueRange.between(1001, 2500),
    ValueRange.between(2501, 5000),
)

# Age of the plane in the year of the flight.
PLANE_AGE_RANGES = (
    ValueRange.between(0, 5),
    ValueRange.between(6, 10),
    ValueRange.between(11, 15),
    ValueRange.between(16, 20),
    ValueRange.between(21, 30),
    ValueRange.between(31, 100),
)


def check_buckets(buckets: Sequence[ValueRange]) -> Sequence[ValueRange]:
    """Ranges must tile their span: sorted, no overlap, no gap between neighbours."""
    if not buckets:
        raise ClassificationError("no buckets configured")
    ordered = sorted(buckets)
    for previous, current in zip(ordered, ordered[1:]):
        if current.low <= previous.high:
            raise ClassificationError(f"buckets {previous} and {current} overlap")
        if current.low != previous.high + 1:
            raise ClassificationError(f"gap between buckets {previous} and {current}")
    return tuple(ordered)


def bucket_classifier(
    buckets: Sequence[ValueRange] = DISTANCE_RANGES,
    read: Callable[[FlightRecord], int] = attrgetter("distance"),
    label: str = "distance",
) -> Classifier:
    """
    Classify records into the range holding `read(record)`. A value outside
    every range means the bucket configuration is incomplete, and the pass fails.
    """
    ordered = check_buckets(buckets)

    def classify(record: FlightRecord) -> ValueRange:
        value = read(record)
        for bucket in ordered:
            if bucket.contains(value):
                return bucket
        raise ClassificationError(
            f"{label} {value} is outside every configured range "
            f"({ordered[0].low}-{ordered[-1].high})"
        )

    return classify


def plane_age(reference: ReferenceData) -> Callable[[FlightRecord], int]:
    """
    Age in years of the record's plane when it flew. Only meaningful for planes
    the registry knows a build year for; filter the others out first.
    """

    def read(record: FlightRecord) -> int:
        plane = reference.plane(record.tail_number)
        if not plane.year:
            raise ClassificationError(f"plane {plane.tail_number!r} has no build year")
        return record.year - plane.year

    return read


def by_origin(record: FlightRecord) -> str:
    return record.origin


def by_destination(record: FlightRecord) -> str:
    return record.destination


def by_carrier(record: FlightRecord) -> str:
    return record.carrier


def by_route(record: FlightRecord) -> str:
    return record.route


def by_tail_number(record: FlightRecord) -> str:
    return record.tail_number


def by_date(record: FlightRecord):
    return record.date


def by_origin_state(reference: ReferenceData) -> Classifier:
    return lambda record: reference.airport_state(record.origin)


def by_destination_state(reference: ReferenceData) -> Classifier:
    return lambda record: reference.airport_state(record.destination)


def by_plane_attribute(reference: ReferenceData, attribute: str, unknown: Hashable) -> Classifier:
    """
    Group by an attribute of the plane's registry entry (manufacturer, year,
    model, ...). Planes missing from the registry land in the `unknown` key.
    """

    def classify(record: FlightRecord) -> Hashable:
        try:
            plane = reference.plane(record.tail_number)
        except NotFound:
            return unknown
        if attribute in ("aircraft_type", "engine_type"):
            value = getattr(plane.model, attribute, "") if plane.model else ""
        elif attribute == "model":
            value = str(plane.model) if plane.model else ""
        else:
            value = getattr(plane, attribute)
        return value or unknown

    return classify


class GroupingEngine:
    """
    Key -> aggregate mapping for one pass (or one partition of a pass).

    Each engine is owned by a single worker; engines only meet in `merge`, after
    both have finished accumulating.
    """

    def __init__(self, classify: Classifier, factory: AggregateFactory) -> None:
        self.classify = classify
        self.factory = factory
        self.groups: Dict[Hashable, Aggregate] = {}

    def route(self, record: FlightRecord) -> None:
        key = self.classify(record)
        aggregate = self.groups.get(key)
        if aggregate is None:
            aggregate = self.groups[key] = self.factory(key)
        aggregate.accumulate(record)

    def feed(self, records: Iterable[FlightRecord]) -> "GroupingEngine":
        for record in records:
            self.route(record)
        return self

    def merge(self, other: "GroupingEngine") -> "GroupingEngine":
        """Fold another engine's sealed results into this one."""
        self.groups = merge_groups(self.groups, other.groups)
        return self

    def __len__(self) -> int:
        return len(self.groups)


def merge_groups(
    left: Mapping[Hashable, Aggregate], right: Mapping[Hashable, Aggregate]
) -> Dict[Hashable, Aggregate]:
    """Combine two key -> aggregate mappings into a new one; inputs are not modified."""
    merged: Dict[Hashable, Aggregate] = {key: aggregate.copy() for key, aggregate in left.items()}
    for key, aggregate in right.items():
        if key in merged:
            merged[key].merge_from(aggregate)
        else:
            merged[key] = aggregate.copy()
    return merged
