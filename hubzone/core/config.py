"""Configuration management for the HUBZone lookup engine."""
import os
from pathlib import Path
from typing import Optional, Tuple
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Base paths
PROJECT_ROOT = Path(__file__).parent.parent.parent
DATA_DIR = Path(os.getenv("DATA_DIR", PROJECT_ROOT / "data"))
CACHE_DIR = Path(os.getenv("HUBZONE_CACHE_DIR", DATA_DIR / "cache" / "hubzone-maps"))
HISTORY_DB_PATH = Path(os.getenv("HUBZONE_HISTORY_DB", DATA_DIR / "duckdb" / "hubzone_history.duckdb"))

# Dataset source: local GeoJSON/shapefile path or http(s) URL
HUBZONE_SOURCE: str = os.getenv("HUBZONE_SOURCE", str(DATA_DIR / "sample_hubzones.geojson"))

# Source download settings
CACHE_DURATION_DAYS: int = int(os.getenv("HUBZONE_CACHE_DURATION_DAYS", "90"))
FETCH_TIMEOUT: int = int(os.getenv("HUBZONE_FETCH_TIMEOUT", "60"))
FETCH_MAX_RETRIES: int = int(os.getenv("HUBZONE_FETCH_MAX_RETRIES", "3"))
FETCH_RETRY_DELAY: float = float(os.getenv("HUBZONE_FETCH_RETRY_DELAY", "1.0"))

# Scheduled refresh (0 disables). Default is roughly quarterly.
REFRESH_INTERVAL_SECONDS: int = int(os.getenv("HUBZONE_REFRESH_INTERVAL", str(90 * 24 * 3600)))

# Catalog pagination
DEFAULT_PAGE: int = 1
DEFAULT_PAGE_LIMIT: int = int(os.getenv("HUBZONE_DEFAULT_PAGE_LIMIT", "20"))
MAX_PAGE_LIMIT: int = int(os.getenv("HUBZONE_MAX_PAGE_LIMIT", "100"))

# Radius search limits
MAX_RADIUS_MILES: float = 100.0
MAX_RADIUS_RESULTS: int = 100
MILES_TO_KM: float = 1.609344


def _parse_statuses(raw: Optional[str]) -> Tuple[str, ...]:
    parts = [p.strip().lower() for p in (raw or "").split(",")]
    return tuple(p for p in parts if p)


# Zone statuses that count as a match in check_location
MATCH_STATUSES: Tuple[str, ...] = _parse_statuses(
    os.getenv("HUBZONE_MATCH_STATUSES", "active,redesignated")
)

# Logging
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
