"""Unit tests for the iTunes client and metrics provider."""

from __future__ import annotations

import json
import plistlib
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest

from provider.core.exceptions import APIError, AppNotFound, RateLimited
from provider.core.types import AppSnapshot, RateLimitConfig
from provider.providers.itunes import ITunesClient, ITunesMetricsProvider
from provider.providers.itunes import client as client_module

NO_LIMIT = RateLimitConfig(
    max_requests_per_period=1000, period_seconds=60.0, min_delay_between_requests=0.0
)


def _json_response(
    payload: dict, status_code: int = 200, headers: dict | None = None
) -> SimpleNamespace:
    return SimpleNamespace(
        status_code=status_code,
        headers=headers or {},
        json=lambda: payload,
        content=json.dumps(payload).encode(),
        text=json.dumps(payload),
    )


def _plist_response(terms: list[str]) -> SimpleNamespace:
    body = plistlib.dumps({"hints": [{"term": t, "priority": 1} for t in terms]})
    return SimpleNamespace(status_code=200, headers={}, json=lambda: {}, content=body, text="")


class _FakeSession:
    def __init__(self, responses: list[Any]) -> None:
        self.responses = list(responses)
        self.requests: list[tuple[str, dict]] = []
        self.closed = False

    async def get(self, url: str, params: dict | None = None, **kwargs: Any) -> Any:
        self.requests.append((url, params or {}))
        return self.responses.pop(0)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def no_sleep(monkeypatch: Any) -> list[float]:
    delays: list[float] = []

    async def _fake_sleep(seconds: float) -> None:
        delays.append(seconds)

    monkeypatch.setattr(client_module.asyncio, "sleep", _fake_sleep)
    return delays


def _client(responses: list[Any], max_retries: int = 3) -> ITunesClient:
    return ITunesClient(
        rate_limit=NO_LIMIT, max_retries=max_retries, session=_FakeSession(responses)
    )


@pytest.mark.asyncio
async def test_search_returns_results() -> None:
    client = _client([_json_response({"results": [{"trackId": 1, "trackName": "Notes"}]})])

    results = await client.search("notes", limit=500)

    assert results == [{"trackId": 1, "trackName": "Notes"}]
    url, params = client._session.requests[0]
    assert url == client_module.SEARCH_URL
    assert params["limit"] == 200
    assert params["entity"] == "software"


@pytest.mark.asyncio
async def test_get_suggestions_parses_hints_plist() -> None:
    client = _client([_plist_response(["notes", "notes app"])])

    assert await client.get_suggestions(" notes ") == ["notes", "notes app"]
    assert client._session.requests[0][1]["term"] == "notes"


@pytest.mark.asyncio
async def test_lookup_builds_snapshot() -> None:
    payload = {
        "results": [
            {
                "trackId": 42,
                "trackName": "Quick Notes",
                "artistName": "Acme",
                "primaryGenreName": "Productivity",
                "userRatingCount": 1200,
                "averageUserRating": 4.6,
                "screenshotUrls": ["https://example.com/1.png"],
            }
        ]
    }
    client = _client([_json_response(payload)])

    app = await client.lookup(42)

    assert app.app_id == 42
    assert app.title == "Quick Notes"
    assert app.genre == "Productivity"
    assert app.rating_count == 1200
    assert app.screenshots == ["https://example.com/1.png"]


@pytest.mark.asyncio
async def test_lookup_of_unknown_app_raises() -> None:
    client = _client([_json_response({"resultCount": 0, "results": []})])

    with pytest.raises(AppNotFound):
        await client.lookup(7)


@pytest.mark.asyncio
async def test_unexpected_status_raises_api_error() -> None:
    client = _client([_json_response({}, status_code=500)])

    with pytest.raises(APIError) as exc_info:
        await client.search("notes")

    assert exc_info.value.status_code == 500


@pytest.mark.asyncio
async def test_rate_limited_requests_back_off_and_retry(no_sleep: list[float]) -> None:
    client = _client(
        [
            _json_response({}, status_code=429),
            _json_response({"results": [{"trackId": 1}]}),
        ]
    )

    assert await client.search("notes") == [{"trackId": 1}]
    assert no_sleep == [10]


@pytest.mark.asyncio
async def test_persistent_rate_limiting_raises(no_sleep: list[float]) -> None:
    client = _client([_json_response({}, status_code=403)] * 2, max_retries=2)

    with pytest.raises(RateLimited):
        await client.search("notes")

    assert no_sleep == [10, 20]


@pytest.mark.asyncio
async def test_retry_after_header_sets_the_wait(no_sleep: list[float]) -> None:
    limited = _json_response({}, status_code=429, headers={"Retry-After": "7"})
    client = _client([limited, limited], max_retries=2)

    with pytest.raises(RateLimited) as exc_info:
        await client.search("notes")

    assert no_sleep == [7.0, 7.0]
    assert exc_info.value.retry_after == 7.0
    assert "retry after: 7.0s" in str(exc_info.value)


@pytest.mark.parametrize(
    ("value", "expected"),
    [("12", 12.0), ("0", 0.0), (None, None), ("soon", None), ("-3", None), ("86400", None)],
)
def test_parse_retry_after(value: str | None, expected: float | None) -> None:
    assert client_module.parse_retry_after(value) == expected


@pytest.mark.asyncio
async def test_find_competitors_excludes_app_and_duplicates() -> None:
    app = AppSnapshot(app_id=1, title="Quick Notes", genre="Productivity")
    by_title = {"results": [{"trackId": 1}, {"trackId": 2, "trackName": "B"}, {"name": "x"}]}
    by_genre = {"results": [{"trackId": 2}, {"trackId": 3, "trackName": "C"}, {"trackId": 4}]}
    client = _client([_json_response(by_title), _json_response(by_genre)])

    competitors = await client.find_competitors(app, limit=2)

    assert [c.app_id for c in competitors] == [2, 3]
    assert [params["term"] for _, params in client._session.requests] == [
        "Quick Notes",
        "Productivity",
    ]


@pytest.mark.asyncio
async def test_provider_reports_both_dimensions() -> None:
    apps = {"results": [{"trackId": i, "trackName": f"Notes {i}"} for i in range(5)]}
    client = _client([_json_response(apps), _plist_response(["notes", "notes app"])])

    result = await ITunesMetricsProvider(client).analyze_keyword("notes")

    assert result["keyword"] == "notes"
    assert 0 <= result["traffic"]["score"] <= 10
    assert 0 <= result["difficulty"]["score"] <= 10


@pytest.mark.asyncio
async def test_provider_reports_missing_difficulty_without_apps() -> None:
    client = _client([_json_response({"results": []}), _plist_response(["notes"])])

    result = await ITunesMetricsProvider(client).analyze_keyword("notes")

    assert result["difficulty"] is None
    assert result["traffic"] is not None


@pytest.mark.asyncio
async def test_provider_close_closes_session() -> None:
    session = _FakeSession([])
    provider = ITunesMetricsProvider(ITunesClient(rate_limit=NO_LIMIT, session=session))

    await provider.close()

    assert session.closed is True


def test_provider_from_config_reads_itunes_section(tmp_path: Path) -> None:
    config = {
        "providers": {
            "itunes": {
                "country": "gb",
                "max_retries": 5,
                "rate_limit": {"min_delay_between_requests": 1.5},
            }
        }
    }
    path = tmp_path / "config.json"
    path.write_text(json.dumps(config), encoding="utf-8")

    provider = ITunesMetricsProvider.from_config(path)

    assert provider.client.country == "gb"
    assert provider.client.max_retries == 5
    assert provider.client.rate_limit.min_delay_between_requests == 1.5
    assert provider.client.rate_limit.max_requests_per_period == 20


def test_provider_from_missing_config_uses_defaults(tmp_path: Path) -> None:
    provider = ITunesMetricsProvider.from_config(tmp_path / "missing.json")

    assert provider.client.country == "us"
    assert provider.client.rate_limit == RateLimitConfig()
