from pathlib import Path

import pytest

from reference_data import (
    UNKNOWN,
    UNKNOWN_STATE,
    Airport,
    Carrier,
    Plane,
    PlaneModel,
    ReferenceData,
    load_reference_data,
)
from report_errors import NotFound


@pytest.fixture
def reference_dir(tmp_path: Path) -> Path:
    (tmp_path / "airports.csv").write_text(
        "iata,airport,city,state,country,lat,long\n"
        "JFK,John F Kennedy Intl,New York,NY,USA,40.64,-73.77\n"
        "LAX,Los Angeles International,Los Angeles,CA,USA,33.94,-118.40\n"
        "SJU,Luis Munoz Marin International,San Juan,,Puerto Rico,18.43,-66.00\n"
    )
    (tmp_path / "carriers.csv").write_text(
        "Code,Description\n"
        "AA,American Airlines Inc.\n"
        "ZZ,Zed Air\n"
    )
    (tmp_path / "plane-data.csv").write_text(
        "tailnum,type,manufacturer,issue_date,model,status,aircraft_type,engine_type,year\n"
        "N101AA,Corporation,BOEING,05/01/1999,737-823,Valid,Fixed Wing Multi-Engine,Turbo-Fan,1999\n"
        "N202DL,,,,,,,,\n"
        "N303UA,Corporation,AIRBUS,,A320-232,Valid,Fixed Wing Multi-Engine,Turbo-Fan,None\n"
    )
    return tmp_path


def test_loads_all_three_registries(reference_dir: Path) -> None:
    reference = load_reference_data(reference_dir)

    assert reference.airport("JFK").city == "New York"
    assert reference.carrier("ZZ").name == "Zed Air"
    plane = reference.plane("N101AA")
    assert plane.year == 1999
    assert str(plane.model) == "BOEING 737-823"
    assert plane.model.engine_type == "Turbo-Fan"


def test_unknown_plane_details_stay_empty(reference_dir: Path) -> None:
    reference = load_reference_data(reference_dir)
    assert reference.plane("N202DL").model is None
    assert reference.plane("N202DL").manufacturer == UNKNOWN
    assert reference.plane("N303UA").year == 0


def test_missing_files_leave_registries_empty(tmp_path: Path) -> None:
    reference = load_reference_data(tmp_path)
    assert (reference.airports, reference.carriers, reference.planes) == ({}, {}, {})


def test_lookups_raise_not_found() -> None:
    reference = ReferenceData()
    with pytest.raises(NotFound):
        reference.airport("XXX")
    with pytest.raises(NotFound):
        reference.plane("N000")
    with pytest.raises(KeyError):
        reference.carrier("Q9")


def test_carrier_falls_back_to_builtin_names() -> None:
    assert ReferenceData().carrier("DL").name == "Delta Air Lines"


def test_airport_state_uses_placeholder(reference_dir: Path) -> None:
    reference = load_reference_data(reference_dir)
    assert reference.airport_state("LAX") == "CA"
    assert reference.airport_state("SJU") == UNKNOWN_STATE
    assert reference.airport_state("XXX") == UNKNOWN_STATE


def test_display_name(reference_dir: Path) -> None:
    reference = load_reference_data(reference_dir)
    assert reference.display_name("airport", "JFK") == "JFK John F Kennedy Intl"
    assert reference.display_name("carrier", "AA") == "AA American Airlines Inc."
    assert reference.display_name("airport", "XXX") == "XXX"
    assert reference.display_name("", 2001) == "2001"


def test_entities_compare_by_code() -> None:
    assert Airport("JFK", name="Kennedy") == Airport("JFK", name="John F Kennedy Intl")
    assert Carrier("AA") == Carrier("AA", "American Airlines")
    assert Plane("N1", year=1999) == Plane("N1", year=2004)
    assert PlaneModel("BOEING", "737") < PlaneModel("BOEING", "747")


def test_plane_lookup_ignores_case_and_padding(reference_dir: Path) -> None:
    reference = load_reference_data(reference_dir)
    assert reference.plane(" n101aa ").year == 1999
