from datetime import date
from operator import attrgetter

import pytest

from flight_metrics import AIRPORT_METRICS, Metrics
from flight_records import InMemorySource
from reference_data import Airport, Plane, PlaneModel, ReferenceData
from report_catalog import (
    LIVE_REPORTS,
    REPORTS,
    ReportOptions,
    build_report,
    report_names,
    undefined_as_none,
)
from report_driver import LiveReport, Report, ReportDriver
from report_errors import ClassificationError

FULL_OPTIONS = ReportOptions(origin="JFK", destination="LAX", carrier="AA", airport="JFK")


@pytest.fixture
def reference() -> ReferenceData:
    model = PlaneModel("BOEING", "737-823", "Fixed Wing Multi-Engine", "Turbo-Fan")
    return ReferenceData(
        airports={
            "JFK": Airport("JFK", "John F Kennedy Intl", "New York", "NY"),
            "LAX": Airport("LAX", "Los Angeles International", "Los Angeles", "CA"),
        },
        planes={"N101AA": Plane("N101AA", model, 1999)},
    )


def test_catalog_names_are_unique() -> None:
    names = report_names()
    assert len(names) == len(set(names)) == len(REPORTS) + len(LIVE_REPORTS)


@pytest.mark.parametrize("name", sorted(REPORTS))
def test_every_report_runs(name: str, reference, records_factory, sink) -> None:
    report = build_report(name, reference, FULL_OPTIONS)
    assert isinstance(report, Report)
    assert report.name == name

    ReportDriver(workers=2).run(report, InMemorySource(records_factory(300, seed=4)), sink, limit=5)

    assert sink.emitted[0][0] == name


@pytest.mark.parametrize("name", sorted(LIVE_REPORTS))
def test_live_reports_build(name: str, reference) -> None:
    report = build_report(name, reference, FULL_OPTIONS)
    assert isinstance(report, LiveReport)


@pytest.mark.parametrize(
    "name,missing",
    [
        ("total-flights-from-origin", "origin"),
        ("total-flights-on-route", "destination"),
        ("live-airport-metrics", "airport"),
        ("live-carrier-metrics", "carrier"),
    ],
)
def test_required_options_are_checked(name: str, missing: str, reference) -> None:
    with pytest.raises(ValueError, match=missing):
        build_report(name, reference, ReportOptions(origin="JFK"))


def test_unknown_report_name(reference) -> None:
    with pytest.raises(KeyError):
        build_report("no-such-report", reference)


def test_route_total_counts_only_that_route(reference, record, sink) -> None:
    records = [
        record(origin="JFK", destination="LAX"),
        record(origin="JFK", destination="LAX"),
        record(origin="JFK", destination="LAX", cancelled=True),
        record(origin="JFK", destination="ORD"),
        record(origin="ATL", destination="LAX"),
    ]
    report = build_report("total-flights-on-route", reference, ReportOptions(origin="JFK", destination="LAX"))

    rows = ReportDriver().run(report, InMemorySource(records), sink, limit=10)

    assert [(row.key, row.value) for row in rows] == [("JFK-LAX", 2)]


def test_year_and_state_filters(reference, record, sink) -> None:
    records = [
        record(origin="JFK", date=date(2008, 3, 1)),
        record(origin="JFK", date=date(2007, 3, 1)),
        record(origin="LAX", date=date(2008, 3, 1)),
    ]
    report = build_report("most-flights-by-origin", reference, ReportOptions(year=2008, state="NY"))

    rows = ReportDriver().run(report, InMemorySource(records), sink, limit=10)

    assert [(row.key, row.value) for row in rows] == [("JFK", 1)]


def test_carrier_metrics_rows_are_in_code_order(reference, record, sink) -> None:
    records = [record(carrier="UA"), record(carrier="AA", cancelled=True), record(carrier="DL")]
    report = build_report("carrier-metrics", reference)

    rows = ReportDriver().run(report, InMemorySource(records), sink, limit=10)

    assert [row.key for row in rows] == ["AA", "DL", "UA"]
    assert rows[0].columns["Cancelled %"] == 100.0
    assert rows[1].columns["Airports"] == 2


def test_plane_year_unknown_sorts_first_and_shows_placeholder(reference, record, sink) -> None:
    records = [record(tail_number="N101AA"), record(tail_number="N999ZZ"), record(tail_number="N999ZZ")]
    report = build_report("flights-by-plane-year", reference)

    rows = ReportDriver().run(report, InMemorySource(records), sink, limit=1)

    # plane-year reports list every year regardless of the row limit
    assert [(row.key, row.value) for row in rows] == [(0, 2), (1999, 1)]
    assert report.key_format(0) == "????"


def test_days_with_least_cancellations_is_ascending(reference, record, sink) -> None:
    records = [record(date=date(2008, 1, d), cancelled=True) for d in (1, 1, 1, 2, 3, 3)]
    report = build_report("days-with-least-cancellations", reference)

    rows = ReportDriver().run(report, InMemorySource(records), sink, limit=2)

    assert [(row.key, row.value) for row in rows] == [(date(2008, 1, 2), 1), (date(2008, 1, 3), 2)]


def test_undefined_rate_displays_as_none() -> None:
    read = undefined_as_none(attrgetter("cancellation_rate"))
    assert read(Metrics(AIRPORT_METRICS, "JFK")) is None


@pytest.mark.parametrize("name", ["most-flights-by-plane", "planes-with-most-cancellations"])
def test_blank_tail_numbers_are_not_a_plane(name: str, reference, record, sink) -> None:
    cancelled = name == "planes-with-most-cancellations"
    records = [
        record(tail_number="N1", cancelled=cancelled),
        record(tail_number="", cancelled=cancelled),
        record(tail_number="", cancelled=cancelled),
    ]
    report = build_report(name, reference)

    rows = ReportDriver().run(report, InMemorySource(records), sink, limit=10)

    assert [(row.key, row.value) for row in rows] == [("N1", 1)]


def test_total_planes_counts_each_plane_once(record, sink) -> None:
    boeing = PlaneModel("BOEING", "737-823", "Fixed Wing Multi-Engine", "Turbo-Fan")
    embraer = PlaneModel("EMBRAER", "ERJ 145", "Fixed Wing Multi-Engine", "Turbo-Fan")
    reference = ReferenceData(
        planes={
            "N1": Plane("N1", boeing, 1999),
            "N2": Plane("N2", boeing, 2004),
            "N3": Plane("N3", embraer, 2004),
        }
    )
    flown = ["N1", "N1", "N1", "N2", "N3", "N9", ""]

    def run(name):
        records = [record(tail_number=tail) for tail in flown]
        rows = ReportDriver().run(build_report(name, reference), InMemorySource(records), sink)
        return [(row.key, row.value) for row in rows]

    assert run("total-planes-by-manufacturer") == [("BOEING", 2), ("EMBRAER", 1), ("Unknown", 1)]
    assert run("total-planes-by-year") == [(2004, 2), (0, 1), (1999, 1)]
    assert run("total-planes-by-engine-type") == [("Turbo-Fan", 3), ("Unknown", 1)]
    assert run("total-planes-by-aircraft-type") == [("Fixed Wing Multi-Engine", 3), ("Unknown", 1)]
    assert build_report("total-planes-by-year", reference).key_format(0) == "????"


def test_plane_age_ranges_skip_planes_without_a_build_year(record, sink) -> None:
    reference = ReferenceData(
        planes={"N1": Plane("N1", year=2006), "N2": Plane("N2", year=1990), "N3": Plane("N3")}
    )
    records = [
        record(tail_number="N1", date=date(2008, 5, 1)),
        record(tail_number="N1", date=date(2008, 6, 1)),
        record(tail_number="N2", date=date(2008, 5, 1)),
        record(tail_number="N3"),
        record(tail_number="N9"),
        record(tail_number=""),
    ]
    report = build_report("flights-by-plane-age-range", reference)

    rows = ReportDriver().run(report, InMemorySource(records), sink, limit=1)

    assert [(str(row.key), row.value) for row in rows] == [("0-5", 2), ("16-20", 1)]


def test_plane_built_after_the_flight_fails_the_pass(record, sink) -> None:
    reference = ReferenceData(planes={"N1": Plane("N1", year=2010)})
    report = build_report("flights-by-plane-age-range", reference)

    with pytest.raises(ClassificationError, match="plane age"):
        ReportDriver().run(report, InMemorySource([record(tail_number="N1")]), sink)
    assert sink.emitted == []


def test_airport_metric_titles_name_the_flights_they_count(reference) -> None:
    assert "departing" in build_report("airport-metrics", reference).title
    live = build_report("live-airport-metrics", reference, ReportOptions(airport="JFK"))
    assert "arriving and departing" in live.title
