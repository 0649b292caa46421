#!/usr/bin/env python3
"""
Reference data for flight reports: airports, carriers and planes.

Loaded from the ASA Data Expo style lookup files (airports.csv, carriers.csv,
plane-data.csv). The report engine itself only works with codes; this registry
turns a code back into something readable and supplies the plane/airport
attributes some classifiers group by.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Hashable, Optional

import pandas as pd

from report_errors import NotFound

AIRPORTS_FILE = "airports.csv"
CARRIERS_FILE = "carriers.csv"
PLANES_FILE = "plane-data.csv"

# Readable names used when no carriers.csv is available.
CARRIER_NAMES = {
    "AA": "American Airlines",
    "AS": "Alaska Airlines",
    "B6": "JetBlue Airways",
    "DL": "Delta Air Lines",
    "F9": "Frontier Airlines",
    "G4": "Allegiant Air",
    "HA": "Hawaiian Airlines",
    "NK": "Spirit Airlines",
    "OO": "SkyWest Airlines",
    "UA": "United Airlines",
    "WN": "Southwest Airlines",
    "YX": "Republic Airways",
    "MQ": "Envoy Air",
    "9E": "Endeavor Air",
    "YV": "Mesa Airlines",
    "QX": "Horizon Air",
}

UNKNOWN_STATE = "??"
UNKNOWN = "Unknown"


@dataclass(frozen=True)
class Airport:
    iata: str
    name: str = field(default="", compare=False)
    city: str = field(default="", compare=False)
    state: str = field(default="", compare=False)
    country: str = field(default="", compare=False)


@dataclass(frozen=True)
class Carrier:
    code: str
    name: str = field(default="", compare=False)


@dataclass(frozen=True, order=True)
class PlaneModel:
    manufacturer: str
    model_number: str
    aircraft_type: str = field(default="", compare=False)
    engine_type: str = field(default="", compare=False)

    def __str__(self) -> str:
        return f"{self.manufacturer} {self.model_number}".strip()


@dataclass(frozen=True)
class Plane:
    tail_number: str
    model: Optional[PlaneModel] = field(default=None, compare=False)
    year: int = field(default=0, compare=False)  # 0 when the build year is unknown

    @property
    def manufacturer(self) -> str:
        return self.model.manufacturer if self.model else UNKNOWN


class ReferenceData:
    """Read-only registry of airports, carriers and planes keyed by code."""

    def __init__(
        self,
        airports: Optional[Dict[str, Airport]] = None,
        carriers: Optional[Dict[str, Carrier]] = None,
        planes: Optional[Dict[str, Plane]] = None,
    ) -> None:
        self.airports = dict(airports or {})
        self.carriers = dict(carriers or {})
        self.planes = dict(planes or {})

    def airport(self, code: str) -> Airport:
        try:
            return self.airports[code]
        except KeyError:
            raise NotFound(f"unknown airport {code!r}") from None

    def carrier(self, code: str) -> Carrier:
        try:
            return self.carriers[code]
        except KeyError:
            if code in CARRIER_NAMES:
                return Carrier(code, CARRIER_NAMES[code])
            raise NotFound(f"unknown carrier {code!r}") from None

    def plane(self, tail_number: str) -> Plane:
        try:
            return self.planes[tail_number.strip().upper()]
        except KeyError:
            raise NotFound(f"unknown plane {tail_number!r}") from None

    def airport_state(self, code: str) -> str:
        airport = self.airports.get(code)
        return airport.state if airport and airport.state else UNKNOWN_STATE

    def display_name(self, kind: str, key: Hashable) -> str:
        """
        Readable label for a group key. Falls back to the key itself when the
        registry has nothing for it.
        """
        try:
            if kind == "airport":
                airport = self.airport(str(key))
                return f"{airport.iata} {airport.name}".strip()
            if kind == "carrier":
                carrier = self.carrier(str(key))
                return f"{carrier.code} {carrier.name}".strip()
        except NotFound:
            pass
        return str(key)


def _clean(value) -> str:
    if value is None or pd.isna(value):
        return ""
    return str(value).strip()


def _parse_year(value) -> int:
    text = _clean(value)
    return int(text) if text.isdigit() else 0


def load_airports(path: Path) -> Dict[str, Airport]:
    if not path.exists():
        return {}
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    df.columns = [c.strip().lower() for c in df.columns]
    if "iata" not in df.columns:
        return {}
    airports = {}
    for row in df.to_dict(orient="records"):
        code = _clean(row.get("iata")).upper()
        if not code:
            continue
        airports[code] = Airport(
            iata=code,
            name=_clean(row.get("airport") or row.get("name")),
            city=_clean(row.get("city")),
            state=_clean(row.get("state")),
            country=_clean(row.get("country")),
        )
    return airports


def load_carriers(path: Path) -> Dict[str, Carrier]:
    if not path.exists():
        return {}
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    df.columns = [c.strip().lower() for c in df.columns]
    if "code" not in df.columns:
        return {}
    names = df["description"] if "description" in df.columns else df["code"]
    return {
        _clean(code).upper(): Carrier(_clean(code).upper(), _clean(name))
        for code, name in zip(df["code"], names)
        if _clean(code)
    }


def load_planes(path: Path) -> Dict[str, Plane]:
    if not path.exists():
        return {}
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    df.columns = [c.strip().lower() for c in df.columns]
    if "tailnum" not in df.columns:
        return {}
    planes = {}
    for row in df.to_dict(orient="records"):
        tail = _clean(row.get("tailnum")).upper()
        if not tail:
            continue
        manufacturer = _clean(row.get("manufacturer"))
        model_number = _clean(row.get("model"))
        model = None
        if manufacturer or model_number:
            model = PlaneModel(
                manufacturer=manufacturer or UNKNOWN,
                model_number=model_number or UNKNOWN,
                aircraft_type=_clean(row.get("aircraft_type")),
                engine_type=_clean(row.get("engine_type")),
            )
        planes[tail] = Plane(tail, model, _parse_year(row.get("year")))
    return planes


def load_reference_data(directory: Path) -> ReferenceData:
    """
    Load every lookup file found in `directory`. A missing file just leaves
    that registry empty.
    """
    directory = Path(directory)
    return ReferenceData(
        airports=load_airports(directory / AIRPORTS_FILE),
        carriers=load_carriers(directory / CARRIERS_FILE),
        planes=load_planes(directory / PLANES_FILE),
    )
