"""
Catalogue of the flight reports and the filters that can narrow them.

Each entry builds a Report (or LiveReport) from the reference data and the
caller's options. Options that a report needs are checked here; options that are
plain filters are ANDed with the report's own filter.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from operator import attrgetter
from typing import Any, Callable, Dict, Hashable, List, Optional, Tuple, Union

from flight_metrics import (
    AIRPORT_METRICS,
    CARRIER_METRICS,
    DAY_METRICS,
    FLEET_METRICS,
    PLANE_METRICS,
    Aggregate,
    Average,
    Count,
    Metrics,
)
from flight_records import FlightRecord
from grouping_engine import (
    PLANE_AGE_RANGES,
    bucket_classifier,
    by_carrier,
    by_date,
    by_destination,
    by_destination_state,
    by_origin,
    by_origin_state,
    by_plane_attribute,
    by_route,
    by_tail_number,
    plane_age,
)
from reference_data import UNKNOWN, ReferenceData
from report_config import DAYS_PER_YEAR
from report_driver import LiveReport, Predicate, Report
from report_errors import DivisionUndefined, NotFound

UNKNOWN_YEAR = 0


@dataclass(frozen=True)
class ReportOptions:
    origin: Optional[str] = None
    destination: Optional[str] = None
    carrier: Optional[str] = None
    airport: Optional[str] = None
    year: Optional[int] = None
    state: Optional[str] = None
    max_distance: Optional[int] = None

    def predicates(self, reference: ReferenceData) -> List[Predicate]:
        """User filters as record predicates. `airport` selects a live subject only."""
        filters: List[Predicate] = []
        if self.origin:
            filters.append(lambda r, code=self.origin: r.origin == code)
        if self.destination:
            filters.append(lambda r, code=self.destination: r.destination == code)
        if self.carrier:
            filters.append(lambda r, code=self.carrier: r.carrier == code)
        if self.year is not None:
            filters.append(lambda r, year=self.year: r.year == year)
        if self.state:
            filters.append(lambda r, state=self.state: reference.airport_state(r.origin) == state)
        if self.max_distance is not None:
            filters.append(lambda r, bound=self.max_distance: r.distance <= bound)
        return filters


def not_cancelled(record: FlightRecord) -> bool:
    return not record.cancelled


def cancelled_only(record: FlightRecord) -> bool:
    return record.cancelled


def has_tail_number(record: FlightRecord) -> bool:
    return bool(record.tail_number)


def has_plane_year(reference: ReferenceData) -> Predicate:
    """Flights by planes the registry knows a build year for."""

    def check(record: FlightRecord) -> bool:
        try:
            return reference.plane(record.tail_number).year != UNKNOWN_YEAR
        except NotFound:
            return False

    return check


def all_of(*predicates: Optional[Predicate]) -> Optional[Predicate]:
    active = [p for p in predicates if p is not None]
    if not active:
        return None
    if len(active) == 1:
        return active[0]
    return lambda record: all(p(record) for p in active)


def undefined_as_none(metric: Callable[[Aggregate], Any]) -> Callable[[Aggregate], Any]:
    """Display convention: a rate with no flights behind it renders blank."""

    def read(aggregate: Aggregate) -> Any:
        try:
            return metric(aggregate)
        except DivisionUndefined:
            return None

    return read


def _percent(name: str) -> Callable[[Aggregate], Any]:
    rate = attrgetter(name)
    return undefined_as_none(lambda aggregate: rate(aggregate) * 100.0)


def _distinct(name: str) -> Callable[[Metrics], int]:
    return lambda metrics: metrics.distinct(name)


def _new_count(key: Hashable) -> Count:
    return Count()


def _average_of(attribute: str) -> Callable[[Hashable], Average]:
    return lambda key: Average(attribute)


def _metrics_of(kind) -> Callable[[Hashable], Metrics]:
    return lambda key: Metrics(kind, key)


def _daily_average(aggregate: Count) -> float:
    return aggregate.count / DAYS_PER_YEAR


def _plane_year(year: Hashable) -> str:
    return "????" if year == UNKNOWN_YEAR else str(year)


COUNT = attrgetter("count")
MEAN = attrgetter("mean")


def _count_report(name, title, classify, key_label, where=not_cancelled, **extra) -> Report:
    return Report(
        name=name,
        title=title,
        classify=classify,
        factory=_new_count,
        metric=COUNT,
        where=where,
        key_label=key_label,
        **extra,
    )


def _total_flights_from_origin(reference: ReferenceData) -> Report:
    return _count_report(
        "total-flights-from-origin",
        "Total flights from origin",
        by_origin,
        "Origin",
        key_kind="airport",
    )


def _total_flights_to_destination(reference: ReferenceData) -> Report:
    return _count_report(
        "total-flights-to-destination",
        "Total flights to destination",
        by_destination,
        "Destination",
        key_kind="airport",
    )


def _total_flights_on_route(reference: ReferenceData) -> Report:
    return _count_report(
        "total-flights-on-route",
        "Total flights from origin to destination",
        by_route,
        "Route",
    )


def _most_flights_by_origin(reference: ReferenceData) -> Report:
    return _count_report(
        "most-flights-by-origin",
        "Most flights by origin",
        by_origin,
        "Origin",
        key_kind="airport",
    )


def _top_destinations_from_origin(reference: ReferenceData) -> Report:
    return _count_report(
        "top-destinations-from-origin",
        "Top destinations from origin",
        by_destination,
        "Destination",
        key_kind="airport",
    )


def _most_popular_routes(reference: ReferenceData) -> Report:
    return _count_report(
        "most-popular-routes",
        "Most popular routes",
        by_route,
        "Route",
    )


def _worst_departure_delay(reference: ReferenceData) -> Report:
    return Report(
        name="worst-departure-delay-by-origin",
        title="Worst average departure delay by origin",
        classify=by_origin,
        factory=_average_of("departure_delay"),
        metric=MEAN,
        where=not_cancelled,
        columns=(("Flights", COUNT),),
        key_label="Origin",
        value_label="Delay (min)",
        key_kind="airport",
    )


def _worst_arrival_delay(reference: ReferenceData) -> Report:
    return Report(
        name="worst-arrival-delay-by-destination",
        title="Worst average arrival delay by destination",
        classify=by_destination,
        factory=_average_of("arrival_delay"),
        metric=MEAN,
        where=not_cancelled,
        columns=(("Flights", COUNT),),
        key_label="Destination",
        value_label="Delay (min)",
        key_kind="airport",
    )


def _most_cancelled_by_origin(reference: ReferenceData) -> Report:
    return _count_report(
        "most-cancelled-by-origin",
        "Most cancelled flights by origin",
        by_origin,
        "Origin",
        where=cancelled_only,
        key_kind="airport",
    )


def _most_cancelled_by_carrier(reference: ReferenceData) -> Report:
    return _count_report(
        "most-cancelled-by-carrier",
        "Most cancelled flights by carrier",
        by_carrier,
        "Carrier",
        where=cancelled_only,
        key_kind="carrier",
    )


def _carrier_metrics(reference: ReferenceData) -> Report:
    return Report(
        name="carrier-metrics",
        title="Carrier metrics",
        classify=by_carrier,
        factory=_metrics_of(CARRIER_METRICS),
        descending=False,
        columns=(
            ("Total", attrgetter("total_flights")),
            ("Cancelled %", _percent("cancellation_rate")),
            ("Diverted %", _percent("diversion_rate")),
            ("Airports", _distinct("airports")),
        ),
        key_label="Carrier",
        value_label="",
        key_kind="carrier",
    )


def _airport_metrics(reference: ReferenceData) -> Report:
    return Report(
        name="airport-metrics",
        title="Airport metrics (departing flights)",
        classify=by_origin,
        factory=_metrics_of(AIRPORT_METRICS),
        descending=False,
        columns=(
            ("Total", attrgetter("total_flights")),
            ("Cancelled %", _percent("cancellation_rate")),
            ("Diverted %", _percent("diversion_rate")),
            ("Destinations", _distinct("destinations")),
        ),
        key_label="Airport",
        value_label="",
        key_kind="airport",
    )


def _highest_cancellation_rate(reference: ReferenceData) -> Report:
    return Report(
        name="highest-cancellation-rate-by-airport",
        title="Airports with the highest cancellation rate",
        classify=by_origin,
        factory=_metrics_of(AIRPORT_METRICS),
        metric=attrgetter("cancellation_rate"),
        columns=(("Total", attrgetter("total_flights")), ("Rate %", _percent("cancellation_rate"))),
        key_label="Airport",
        value_label="Rate",
        key_kind="airport",
    )


def _plane_attribute_report(attribute: str, key_label: str):
    def build(reference: ReferenceData) -> Report:
        return _count_report(
            "flights-by-" + attribute.replace("_", "-"),
            f"Flight counts by {key_label.lower()}",
            by_plane_attribute(reference, attribute, UNKNOWN),
            key_label,
            limited=False,
        )

    return build


def _flights_by_plane_year(reference: ReferenceData) -> Report:
    return _count_report(
        "flights-by-plane-year",
        "Flight counts by plane year",
        by_plane_attribute(reference, "year", UNKNOWN_YEAR),
        "Year",
        key_format=_plane_year,
        limited=False,
    )


def _most_flights_by_origin_state(reference: ReferenceData) -> Report:
    return _count_report(
        "most-flights-by-origin-state",
        "Most flights by origin state",
        by_origin_state(reference),
        "State",
    )


def _most_flights_by_destination_state(reference: ReferenceData) -> Report:
    return _count_report(
        "most-flights-by-destination-state",
        "Most flights by destination state",
        by_destination_state(reference),
        "State",
    )


def _most_flights_by_plane(reference: ReferenceData) -> Report:
    return _count_report(
        "most-flights-by-plane",
        "Most flights by plane",
        by_tail_number,
        "Tail #",
        where=all_of(not_cancelled, has_tail_number),
        columns=(("Daily Avg", _daily_average),),
    )


def _most_flights_by_plane_model(reference: ReferenceData) -> Report:
    return _count_report(
        "most-flights-by-plane-model",
        "Most flights by plane model",
        by_plane_attribute(reference, "model", UNKNOWN),
        "Model",
        columns=(("Daily Avg", _daily_average),),
    )


def _planes_with_most_cancellations(reference: ReferenceData) -> Report:
    return _count_report(
        "planes-with-most-cancellations",
        "Planes with the most cancellations",
        by_tail_number,
        "Tail #",
        where=all_of(cancelled_only, has_tail_number),
    )


def _flights_by_distance_range(reference: ReferenceData) -> Report:
    return Report(
        name="flights-by-distance-range",
        title="Flights by distance range",
        classify=bucket_classifier(),
        factory=_new_count,
        descending=False,
        where=not_cancelled,
        columns=(("Count", COUNT),),
        key_label="Range",
        value_label="",
        limited=False,
    )


def _flights_by_plane_age_range(reference: ReferenceData) -> Report:
    return Report(
        name="flights-by-plane-age-range",
        title="Flights by plane age range",
        classify=bucket_classifier(PLANE_AGE_RANGES, plane_age(reference), "plane age"),
        factory=_new_count,
        descending=False,
        where=all_of(not_cancelled, has_plane_year(reference)),
        columns=(("Count", COUNT),),
        key_label="Age (years)",
        value_label="",
        limited=False,
    )


def _total_planes_report(attribute: str, key_label: str, unknown: Hashable = UNKNOWN, **extra):
    """Distinct planes per registry attribute, counted over the planes that flew."""

    def build(reference: ReferenceData) -> Report:
        return Report(
            name="total-planes-by-" + attribute.replace("_", "-"),
            title=f"Total planes by {key_label.lower()}",
            classify=by_plane_attribute(reference, attribute, unknown),
            factory=_metrics_of(FLEET_METRICS),
            metric=_distinct("planes"),
            where=has_tail_number,
            columns=(("Flights", attrgetter("total_flights")),),
            key_label=key_label,
            value_label="Planes",
            limited=False,
            **extra,
        )

    return build


def _days_with_cancellations(most: bool):
    def build(reference: ReferenceData) -> Report:
        label = "most" if most else "least"
        return _count_report(
            f"days-with-{label}-cancellations",
            f"Days with the {label} cancellations",
            by_date,
            "Date",
            where=cancelled_only,
            descending=most,
        )

    return build


def _planes_flying_most_days(reference: ReferenceData) -> Report:
    return Report(
        name="planes-flying-most-days",
        title="Planes flying on the most days",
        classify=by_tail_number,
        factory=_metrics_of(PLANE_METRICS),
        metric=_distinct("days"),
        where=all_of(not_cancelled, has_tail_number),
        columns=(("Flights", attrgetter("total_flights")),),
        key_label="Tail #",
        value_label="Days",
    )


def _days_with_most_planes(reference: ReferenceData) -> Report:
    return Report(
        name="days-with-most-planes",
        title="Days with the most distinct planes flying",
        classify=by_date,
        factory=_metrics_of(DAY_METRICS),
        metric=_distinct("planes"),
        where=not_cancelled,
        columns=(("Flights", attrgetter("total_flights")),),
        key_label="Date",
        value_label="Planes",
    )


def _live_airport_metrics(reference: ReferenceData, options: ReportOptions) -> LiveReport:
    airport = options.airport
    return LiveReport(
        name="live-airport-metrics",
        title=(
            f"Airport metrics for {reference.display_name('airport', airport)} "
            "(arriving and departing flights)"
        ),
        kind=AIRPORT_METRICS,
        subject=airport,
        matches=lambda r: r.origin == airport or r.destination == airport,
        columns=(
            ("Total", attrgetter("total_flights")),
            ("Cancelled", attrgetter("total_cancelled")),
            ("Diverted", attrgetter("total_diverted")),
            ("Origins", _distinct("origins")),
            ("Destinations", _distinct("destinations")),
        ),
    )


def _live_carrier_metrics(reference: ReferenceData, options: ReportOptions) -> LiveReport:
    carrier = options.carrier
    return LiveReport(
        name="live-carrier-metrics",
        title=f"Carrier metrics for {reference.display_name('carrier', carrier)}",
        kind=CARRIER_METRICS,
        subject=carrier,
        matches=lambda r: r.carrier == carrier,
        columns=(
            ("Total", attrgetter("total_flights")),
            ("Cancelled", attrgetter("total_cancelled")),
            ("Diverted", attrgetter("total_diverted")),
            ("Airports", _distinct("airports")),
        ),
    )


# name -> (builder, options the report cannot run without)
REPORTS: Dict[str, Tuple[Callable[[ReferenceData], Report], Tuple[str, ...]]] = {
    "total-flights-from-origin": (_total_flights_from_origin, ("origin",)),
    "total-flights-to-destination": (_total_flights_to_destination, ("destination",)),
    "total-flights-on-route": (_total_flights_on_route, ("origin", "destination")),
    "most-flights-by-origin": (_most_flights_by_origin, ()),
    "top-destinations-from-origin": (_top_destinations_from_origin, ("origin",)),
    "most-popular-routes": (_most_popular_routes, ()),
    "worst-departure-delay-by-origin": (_worst_departure_delay, ()),
    "worst-arrival-delay-by-destination": (_worst_arrival_delay, ()),
    "most-cancelled-by-origin": (_most_cancelled_by_origin, ()),
    "most-cancelled-by-carrier": (_most_cancelled_by_carrier, ()),
    "carrier-metrics": (_carrier_metrics, ()),
    "airport-metrics": (_airport_metrics, ()),
    "highest-cancellation-rate-by-airport": (_highest_cancellation_rate, ()),
    "flights-by-aircraft-type": (_plane_attribute_report("aircraft_type", "Aircraft Type"), ()),
    "flights-by-engine-type": (_plane_attribute_report("engine_type", "Engine Type"), ()),
    "flights-by-manufacturer": (_plane_attribute_report("manufacturer", "Manufacturer"), ()),
    "flights-by-plane-year": (_flights_by_plane_year, ()),
    "most-flights-by-origin-state": (_most_flights_by_origin_state, ()),
    "most-flights-by-destination-state": (_most_flights_by_destination_state, ()),
    "most-flights-by-plane": (_most_flights_by_plane, ()),
    "most-flights-by-plane-model": (_most_flights_by_plane_model, ()),
    "planes-with-most-cancellations": (_planes_with_most_cancellations, ()),
    "flights-by-distance-range": (_flights_by_distance_range, ()),
    "flights-by-plane-age-range": (_flights_by_plane_age_range, ()),
    "total-planes-by-manufacturer": (_total_planes_report("manufacturer", "Manufacturer"), ()),
    "total-planes-by-year": (
        _total_planes_report("year", "Year", UNKNOWN_YEAR, key_format=_plane_year),
        (),
    ),
    "total-planes-by-aircraft-type": (_total_planes_report("aircraft_type", "Aircraft Type"), ()),
    "total-planes-by-engine-type": (_total_planes_report("engine_type", "Engine Type"), ()),
    "days-with-most-cancellations": (_days_with_cancellations(True), ()),
    "days-with-least-cancellations": (_days_with_cancellations(False), ()),
    "planes-flying-most-days": (_planes_flying_most_days, ()),
    "days-with-most-planes": (_days_with_most_planes, ()),
}

LiveBuilder = Callable[[ReferenceData, ReportOptions], LiveReport]

LIVE_REPORTS: Dict[str, Tuple[LiveBuilder, Tuple[str, ...]]] = {
    "live-airport-metrics": (_live_airport_metrics, ("airport",)),
    "live-carrier-metrics": (_live_carrier_metrics, ("carrier",)),
}


def report_names() -> List[str]:
    return list(REPORTS) + list(LIVE_REPORTS)


def _check_required(name: str, options: ReportOptions, required: Tuple[str, ...]) -> None:
    missing = [option for option in required if getattr(options, option) in (None, "")]
    if missing:
        raise ValueError(f"report {name!r} needs: {', '.join(missing)}")


def build_report(
    name: str,
    reference: ReferenceData,
    options: Optional[ReportOptions] = None,
) -> Union[Report, LiveReport]:
    """Look up a report by name and apply the caller's options to it."""
    options = options or ReportOptions()
    if name in LIVE_REPORTS:
        builder, required = LIVE_REPORTS[name]
        _check_required(name, options, required)
        live = builder(reference, options)
        extra = all_of(*options.predicates(reference))
        if extra is None:
            return live
        return replace(live, matches=all_of(live.matches, extra))
    if name not in REPORTS:
        raise KeyError(f"unknown report {name!r}")
    builder, required = REPORTS[name]
    _check_required(name, options, required)
    report = builder(reference)
    return replace(report, where=all_of(report.where, *options.predicates(reference)))
