"""Read HUBZone boundary sources: in-memory collections, local files and URLs."""
import hashlib
import json
import time
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlparse

import geopandas as gpd
import requests

from hubzone.core.config import (
    CACHE_DIR,
    CACHE_DURATION_DAYS,
    FETCH_MAX_RETRIES,
    FETCH_RETRY_DELAY,
    FETCH_TIMEOUT,
)
from hubzone.core.errors import LoadError
from hubzone.utils.logging import log_structured

GEOJSON_SUFFIXES = {".geojson", ".json"}
# Formats read through GDAL/OGR
OGR_SUFFIXES = {".shp", ".zip", ".gpkg", ".kml", ".fgb"}


def is_url(location) -> bool:
    return isinstance(location, str) and location.lower().startswith(("http://", "https://"))


def geodataframe_to_collection(gdf: gpd.GeoDataFrame) -> Dict[str, Any]:
    """
    Convert a GeoDataFrame into a WGS84 GeoJSON FeatureCollection dict.

    Args:
        gdf: Zone boundaries with attribute columns

    Returns:
        FeatureCollection dictionary
    """
    # Ensure WGS84
    if gdf.crs is not None and gdf.crs != "EPSG:4326":
        gdf = gdf.to_crs("EPSG:4326")
    return json.loads(gdf.to_json(drop_id=True, default=str))


def read_file(path: Path) -> Dict[str, Any]:
    """
    Read a local GeoJSON or OGR-readable file into a FeatureCollection dict.

    Raises:
        LoadError: If the file is missing or cannot be parsed
    """
    path = Path(path)
    if not path.exists():
        raise LoadError(f"Source file not found: {path}", source=str(path))

    suffix = path.suffix.lower()
    try:
        if suffix in GEOJSON_SUFFIXES:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        if suffix in OGR_SUFFIXES:
            return geodataframe_to_collection(gpd.read_file(path))
    except (OSError, ValueError, RuntimeError) as e:
        raise LoadError(f"Could not read {path}: {e}", source=str(path)) from e

    raise LoadError(f"Unsupported source format: {suffix or path.name}", source=str(path))


def _cache_paths(url: str, cache_dir: Path) -> Tuple[Path, Path]:
    key = hashlib.sha256(url.encode("utf-8")).hexdigest()[:16]
    suffix = Path(urlparse(url).path).suffix.lower() or ".geojson"
    return cache_dir / f"hubzones_{key}{suffix}", cache_dir / f"hubzones_{key}.meta.json"


def _read_cache_metadata(meta_path: Path) -> Optional[Dict[str, Any]]:
    if not meta_path.exists():
        return None
    try:
        with open(meta_path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        log_structured("warning", "Ignoring unreadable cache metadata", path=str(meta_path), error=str(e))
        return None


def _cache_is_fresh(metadata: Optional[Dict[str, Any]], data_path: Path, max_age_days: int) -> bool:
    if metadata is None or not data_path.exists():
        return False
    try:
        downloaded_at = datetime.fromisoformat(metadata["downloaded_at"])
    except (KeyError, TypeError, ValueError):
        return False
    return datetime.now(timezone.utc) - downloaded_at < timedelta(days=max_age_days)


def fetch_remote(
    url: str,
    cache_dir: Optional[Path] = None,
    max_age_days: int = CACHE_DURATION_DAYS,
    timeout: int = FETCH_TIMEOUT,
    retries: int = FETCH_MAX_RETRIES,
    retry_delay: float = FETCH_RETRY_DELAY,
    force: bool = False,
) -> Path:
    """
    Download a boundary file, reusing a cached copy while it is fresh.

    Args:
        url: http(s) URL of a GeoJSON or zipped shapefile
        cache_dir: Directory for downloaded files and their metadata
        max_age_days: Cached copies younger than this are reused
        timeout: Request timeout in seconds
        retries: Number of download attempts
        retry_delay: Base delay between attempts in seconds (grows linearly)
        force: Skip the cache and always download

    Returns:
        Path to the local copy

    Raises:
        LoadError: If every attempt fails and no cached copy exists
    """
    cache_dir = Path(cache_dir or CACHE_DIR)
    data_path, meta_path = _cache_paths(url, cache_dir)
    metadata = _read_cache_metadata(meta_path)

    if not force and _cache_is_fresh(metadata, data_path, max_age_days):
        log_structured("info", "Using cached HUBZone source", url=url, path=str(data_path))
        return data_path

    last_error = None
    for attempt in range(1, retries + 1):
        try:
            response = requests.get(url, timeout=timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            last_error = e
            log_structured(
                "warning",
                "HUBZone source download failed",
                url=url,
                attempt=attempt,
                retries=retries,
                error=str(e),
            )
            if attempt < retries:
                time.sleep(retry_delay * attempt)
            continue

        content = response.content
        cache_dir.mkdir(parents=True, exist_ok=True)
        data_path.write_bytes(content)
        metadata = {
            "source_url": url,
            "downloaded_at": datetime.now(timezone.utc).isoformat(),
            "sha256": hashlib.sha256(content).hexdigest(),
            "bytes": len(content),
        }
        with open(meta_path, "w", encoding="utf-8") as f:
            json.dump(metadata, f, indent=2)

        log_structured("info", "Downloaded HUBZone source", **metadata)
        return data_path

    if data_path.exists():
        log_structured("warning", "Falling back to stale cached HUBZone source", url=url, path=str(data_path))
        return data_path

    raise LoadError(f"Download failed after {retries} attempts: {last_error}", source=url)


def describe_source(source) -> str:
    """Short label for a source, used in logs and reload history."""
    if isinstance(source, dict):
        return "<memory>"
    if isinstance(source, gpd.GeoDataFrame):
        return "<geodataframe>"
    return str(source)


def read_source(source, **fetch_options) -> Tuple[Dict[str, Any], str]:
    """
    Resolve any supported source into a FeatureCollection dict.

    Args:
        source: FeatureCollection dict, GeoDataFrame, local path or http(s) URL
        **fetch_options: Passed to fetch_remote for URLs

    Returns:
        Tuple of (collection, source label for logs and history)

    Raises:
        LoadError: If the source cannot be read
    """
    if isinstance(source, dict):
        return source, describe_source(source)
    if isinstance(source, gpd.GeoDataFrame):
        return geodataframe_to_collection(source), describe_source(source)
    if is_url(source):
        return read_file(fetch_remote(source, **fetch_options)), source
    if isinstance(source, (str, Path)):
        return read_file(Path(source)), str(source)
    raise LoadError(f"Unsupported source type: {type(source).__name__}")
