"""
Flight record model and record sources.

A source hands out FlightRecords exactly once. It can be iterated as a whole or
split into disjoint partitions for parallel aggregation, and it is a context
manager so the underlying file handle is released however the pass ends.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence

import numpy as np
import pandas as pd
from pandas import DataFrame

from report_config import DEFAULT_CHUNK_SIZE
from report_errors import SourceError

logger = logging.getLogger(__name__)

# Columns needed to build a FlightRecord.
USECOLS = [
    "fl_date",
    "op_unique_carrier",
    "op_carrier_fl_num",
    "tail_num",
    "origin",
    "dest",
    "dep_delay",
    "arr_delay",
    "cancelled",
    "diverted",
    "distance",
]

DTYPES = {
    "op_unique_carrier": "category",
    "op_carrier_fl_num": "float32",
    "tail_num": "object",
    "origin": "category",
    "dest": "category",
    "dep_delay": "float32",
    "arr_delay": "float32",
    "cancelled": "float32",
    "diverted": "float32",
    "distance": "float32",
}

REQUIRED_COLS = [
    "fl_date",
    "op_unique_carrier",
    "origin",
    "dest",
    "distance",
    "cancelled",
    "diverted",
]


@dataclass(frozen=True)
class FlightRecord:
    """One flight. Entities are referenced by code only."""

    date: date
    origin: str
    destination: str
    carrier: str
    tail_number: str = ""
    distance: int = 0
    departure_delay: int = 0
    arrival_delay: int = 0
    cancelled: bool = False
    diverted: bool = False
    flight_number: str = ""

    @property
    def route(self) -> str:
        return f"{self.origin}-{self.destination}"

    @property
    def year(self) -> int:
        return self.date.year


def _as_int_column(series: pd.Series) -> np.ndarray:
    return series.fillna(0).round().astype("int64").to_numpy()


def records_from_frame(frame: DataFrame) -> List[FlightRecord]:
    """
    Convert one chunk of the flights CSV into FlightRecords.

    Missing delays (cancelled flights) count as 0 minutes. Rows without a date,
    carrier, origin, destination, distance or cancelled/diverted flag are
    malformed and fail the whole chunk. Tail numbers are upper-cased.
    """
    try:
        missing = frame[REQUIRED_COLS].isna().any(axis=1)
        if missing.any():
            first_bad = int(np.flatnonzero(missing.to_numpy())[0])
            blank = [column for column in REQUIRED_COLS if frame[column].isna().any()]
            raise SourceError(
                f"{int(missing.sum())} rows missing {', '.join(blank)} "
                f"(first at chunk row {first_bad})"
            )
        dates = pd.to_datetime(frame["fl_date"], errors="raise").dt.date
        tails = frame["tail_num"].astype("object").where(frame["tail_num"].notna(), "")
        flight_numbers = frame["op_carrier_fl_num"]
        flight_numbers = [
            "" if pd.isna(number) else str(int(number)) for number in flight_numbers
        ]
        columns = zip(
            dates,
            frame["origin"].astype(str),
            frame["dest"].astype(str),
            frame["op_unique_carrier"].astype(str),
            tails.astype(str).str.strip().str.upper(),
            _as_int_column(frame["distance"]),
            _as_int_column(frame["dep_delay"]),
            _as_int_column(frame["arr_delay"]),
            frame["cancelled"].to_numpy() != 0,
            frame["diverted"].to_numpy() != 0,
            flight_numbers,
        )
        return [
            FlightRecord(
                date=day,
                origin=origin,
                destination=dest,
                carrier=carrier,
                tail_number=tail,
                distance=int(distance),
                departure_delay=int(dep_delay),
                arrival_delay=int(arr_delay),
                cancelled=bool(cancelled),
                diverted=bool(diverted),
                flight_number=number,
            )
            for (
                day,
                origin,
                dest,
                carrier,
                tail,
                distance,
                dep_delay,
                arr_delay,
                cancelled,
                diverted,
                number,
            ) in columns
        ]
    except SourceError:
        raise
    except (KeyError, TypeError, ValueError) as exc:
        raise SourceError(f"malformed flight data: {exc}") from exc


class RecordSource:
    """Single-pass supply of FlightRecords."""

    def __init__(self) -> None:
        self._consumed = False

    def __enter__(self) -> "RecordSource":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        """Release whatever the source holds open."""

    @property
    def consumed(self) -> bool:
        return self._consumed

    def _claim(self) -> None:
        if self._consumed:
            raise SourceError("record source was already consumed")
        self._consumed = True

    def __iter__(self) -> Iterator[FlightRecord]:
        self._claim()
        return self._iter_records()

    def split(self, parts: int) -> List[Iterable[FlightRecord]]:
        """Return `parts` disjoint partitions that together hold every record once."""
        if parts < 1:
            raise ValueError(f"parts must be at least 1, got {parts}")
        self._claim()
        return self._split(parts)

    def _iter_records(self) -> Iterator[FlightRecord]:
        raise NotImplementedError

    def _split(self, parts: int) -> List[Iterable[FlightRecord]]:
        raise NotImplementedError


class InMemorySource(RecordSource):
    """Records already held in memory (tests, small samples)."""

    def __init__(self, records: Iterable[FlightRecord]) -> None:
        super().__init__()
        self._items: Sequence[FlightRecord] = list(records)

    def __len__(self) -> int:
        return len(self._items)

    def _iter_records(self) -> Iterator[FlightRecord]:
        return iter(self._items)

    def _split(self, parts: int) -> List[Iterable[FlightRecord]]:
        index_groups = np.array_split(np.arange(len(self._items)), parts)
        return [[self._items[i] for i in group] for group in index_groups]


class CsvFlightSource(RecordSource):
    """
    Stream FlightRecords out of a flights CSV in chunks so the full year fits in memory.
    """

    def __init__(
        self,
        path: Path,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        nrows: Optional[int] = None,
    ) -> None:
        super().__init__()
        self.path = Path(path)
        self.chunk_size = chunk_size
        self.nrows = nrows
        self._reader = None
        self._feed: Optional["_ChunkFeed"] = None

    def _open(self):
        try:
            self._reader = pd.read_csv(
                self.path,
                usecols=USECOLS,
                dtype=DTYPES,
                na_values=["", "NA", "NaN"],
                chunksize=self.chunk_size,
                nrows=self.nrows,
                low_memory=False,
            )
        except (OSError, ValueError) as exc:
            raise SourceError(f"cannot read {self.path}: {exc}") from exc
        return self._reader

    def _frames(self) -> Iterator[DataFrame]:
        reader = self._open()
        try:
            for frame in reader:
                yield frame
        except (OSError, ValueError) as exc:
            raise SourceError(f"failed while reading {self.path}: {exc}") from exc

    def _iter_records(self) -> Iterator[FlightRecord]:
        for frame in self._frames():
            yield from records_from_frame(frame)

    def _split(self, parts: int) -> List[Iterable[FlightRecord]]:
        # Nothing is read here; each partition pulls the next chunk when its
        # worker asks for it, so at most one chunk per worker is held at once.
        self._feed = _ChunkFeed(self._frames())
        logger.debug("Split %s into %d lazily fed partitions", self.path, parts)
        return [_FeedPartition(self._feed) for _ in range(parts)]

    @property
    def chunks_read(self) -> int:
        return self._feed.taken if self._feed is not None else 0

    def close(self) -> None:
        if self._reader is not None:
            self._reader.close()
            self._reader = None


class _ChunkFeed:
    """Hands out CSV chunks one at a time to whichever worker asks first."""

    def __init__(self, frames: Iterator[DataFrame]) -> None:
        self._frames = frames
        self._lock = threading.Lock()
        self.taken = 0

    def next_frame(self) -> Optional[DataFrame]:
        with self._lock:
            frame = next(self._frames, None)
            if frame is not None:
                self.taken += 1
            return frame


class _FeedPartition:
    """One worker's share of a chunked CSV; chunks are converted as they arrive."""

    def __init__(self, feed: _ChunkFeed) -> None:
        self.feed = feed

    def __iter__(self) -> Iterator[FlightRecord]:
        frame = self.feed.next_frame()
        while frame is not None:
            yield from records_from_frame(frame)
            frame = self.feed.next_frame()
