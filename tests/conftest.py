from __future__ import annotations

import os
from datetime import date, timedelta
from typing import List

import numpy as np
import pytest

from flight_records import FlightRecord

# Headless plotting for the whole run; set before any test imports pyplot.
os.environ.setdefault("MPLBACKEND", "Agg")

AIRPORTS = ["ATL", "DEN", "JFK", "LAX", "ORD"]
CARRIERS = ["AA", "DL", "UA", "WN"]
TAILS = ["N101AA", "N202DL", "N303UA", "N404WN", ""]


def make_record(**overrides) -> FlightRecord:
    values = dict(
        date=date(2008, 1, 1),
        origin="JFK",
        destination="LAX",
        carrier="AA",
        tail_number="N101AA",
        distance=2475,
        departure_delay=0,
        arrival_delay=0,
        cancelled=False,
        diverted=False,
    )
    values.update(overrides)
    return FlightRecord(**values)


def random_records(count: int, seed: int) -> List[FlightRecord]:
    rng = np.random.default_rng(seed)
    start = date(2008, 1, 1)
    records = []
    for _ in range(count):
        origin, destination = rng.choice(AIRPORTS, size=2, replace=False)
        records.append(
            FlightRecord(
                date=start + timedelta(days=int(rng.integers(0, 20))),
                origin=str(origin),
                destination=str(destination),
                carrier=str(rng.choice(CARRIERS)),
                tail_number=str(rng.choice(TAILS)),
                distance=int(rng.integers(0, 5001)),
                departure_delay=int(rng.integers(-15, 240)),
                arrival_delay=int(rng.integers(-30, 240)),
                cancelled=bool(rng.random() < 0.1),
                diverted=bool(rng.random() < 0.05),
            )
        )
    return records


class ListSink:
    """Collects whatever the driver emits."""

    def __init__(self) -> None:
        self.emitted = []
        self.updates = []
        self.finished = None

    def emit(self, report, rows) -> None:
        self.emitted.append((report.name, list(rows)))

    def update(self, report, metrics) -> None:
        self.updates.append(metrics.total_flights)

    def finish(self, report, metrics) -> None:
        self.finished = metrics.copy()


@pytest.fixture
def record():
    return make_record


@pytest.fixture
def records_factory():
    return random_records


@pytest.fixture
def sink() -> ListSink:
    return ListSink()
