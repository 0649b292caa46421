"""Configuration values for the flight report tools."""
import os
from pathlib import Path

# Input locations
DATA_PATH = Path(os.getenv("FLIGHT_DATA_PATH", "rawdata/flights.csv"))
SAMPLE_PATH = Path(os.getenv("FLIGHT_SAMPLE_PATH", "rawdata/flights_sample.csv"))
REFERENCE_DIR = Path(os.getenv("FLIGHT_REFERENCE_DIR", "rawdata"))

# Output
PLOT_DIR = Path(os.getenv("FLIGHT_PLOT_DIR", "plots"))

# Streaming and parallelism
DEFAULT_CHUNK_SIZE = 250_000
DEFAULT_WORKERS = int(os.getenv("FLIGHT_REPORT_WORKERS", "1"))

# Ranking limits
DEFAULT_LIMIT = 10
MIN_LIMIT = 1
MAX_LIMIT = 100

# Used for "daily average" columns on plane reports.
DAYS_PER_YEAR = 365

# Live reports redraw after this many matching records.
LIVE_REFRESH_EVERY = 1
