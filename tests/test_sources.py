"""Tests for source reading and download caching."""
import json
import pytest
import requests
from hubzone.core import sources
from hubzone.core.errors import LoadError
from hubzone.core.sources import describe_source, fetch_remote, is_url, read_source

URL = "https://example.org/data/hubzones.geojson?token=secret"


class FakeResponse:
    def __init__(self, content=b"", status_code=200):
        self.content = content
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} error")


@pytest.fixture
def no_sleep(monkeypatch):
    monkeypatch.setattr(sources.time, "sleep", lambda seconds: None)


def test_is_url():
    assert is_url("https://example.org/a.geojson")
    assert is_url("HTTP://example.org/a.geojson")
    assert not is_url("data/a.geojson")
    assert not is_url(None)


def test_describe_source(tmp_path):
    assert describe_source({}) == "<memory>"
    assert describe_source(tmp_path / "x.geojson") == str(tmp_path / "x.geojson")


def test_download_is_cached(monkeypatch, tmp_path, zone_collection):
    calls = []

    def fake_get(url, timeout):
        calls.append(url)
        return FakeResponse(json.dumps(zone_collection).encode("utf-8"))

    monkeypatch.setattr(sources.requests, "get", fake_get)

    collection, label = read_source(URL, cache_dir=tmp_path)
    assert label == URL
    assert len(collection["features"]) == 7

    read_source(URL, cache_dir=tmp_path)
    assert len(calls) == 1

    metadata = json.loads(next(tmp_path.glob("*.meta.json")).read_text())
    assert metadata["source_url"] == URL
    assert len(metadata["sha256"]) == 64


def test_expired_cache_is_refreshed(monkeypatch, tmp_path, zone_collection):
    calls = []

    def fake_get(url, timeout):
        calls.append(url)
        return FakeResponse(json.dumps(zone_collection).encode("utf-8"))

    monkeypatch.setattr(sources.requests, "get", fake_get)

    fetch_remote(URL, cache_dir=tmp_path, max_age_days=0)
    fetch_remote(URL, cache_dir=tmp_path, max_age_days=0)
    assert len(calls) == 2


def test_download_retries(monkeypatch, tmp_path, no_sleep):
    responses = [
        requests.exceptions.ConnectionError("boom"),
        FakeResponse(status_code=503),
        FakeResponse(b'{"type": "FeatureCollection", "features": []}'),
    ]

    def fake_get(url, timeout):
        response = responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    monkeypatch.setattr(sources.requests, "get", fake_get)

    path = fetch_remote(URL, cache_dir=tmp_path, retries=3)
    assert json.loads(path.read_text())["features"] == []
    assert responses == []


def test_download_failure_raises(monkeypatch, tmp_path, no_sleep):
    def fake_get(url, timeout):
        raise requests.exceptions.Timeout("slow")

    monkeypatch.setattr(sources.requests, "get", fake_get)

    with pytest.raises(LoadError):
        fetch_remote(URL, cache_dir=tmp_path, retries=2)


def test_stale_cache_used_when_download_fails(monkeypatch, tmp_path, no_sleep):
    monkeypatch.setattr(
        sources.requests, "get",
        lambda url, timeout: FakeResponse(b'{"type": "FeatureCollection", "features": []}'),
    )
    first = fetch_remote(URL, cache_dir=tmp_path)

    def failing_get(url, timeout):
        raise requests.exceptions.ConnectionError("offline")

    monkeypatch.setattr(sources.requests, "get", failing_get)
    assert fetch_remote(URL, cache_dir=tmp_path, max_age_days=0, retries=1) == first


def test_unsupported_inputs(tmp_path):
    path = tmp_path / "zones.txt"
    path.write_text("hello")
    with pytest.raises(LoadError):
        read_source(path)
    with pytest.raises(LoadError):
        read_source(42)
