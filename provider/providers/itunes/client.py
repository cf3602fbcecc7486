"""Apple iTunes Search / Lookup / Search Hints client"""

import asyncio
import logging
import plistlib
import time
from typing import Any

from curl_cffi.requests import AsyncSession, RequestsError

from ...core.exceptions import APIError, AppNotFound, RateLimited
from ...core.types import AppSnapshot, RateLimitConfig

logger = logging.getLogger(__name__)

SEARCH_URL = "https://itunes.apple.com/search"
LOOKUP_URL = "https://itunes.apple.com/lookup"
HINTS_URL = "https://search.itunes.apple.com/WebObjects/MZSearchHints.woa/wa/hints"
MAX_RESULTS = 200
MAX_RETRY_AFTER = 300.0  # ignore longer server-requested waits

# Store front header for app-specific suggestions (US store)
HINTS_HEADERS = {"X-Apple-Store-Front": "143441-1,29"}


def parse_retry_after(value: str | None) -> float | None:
    """Seconds from a Retry-After header; the HTTP-date form is not supported"""
    if value is None:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    return seconds if 0 <= seconds <= MAX_RETRY_AFTER else None


class ITunesClient:
    """Async client for Apple's public App Store endpoints"""

    def __init__(
        self,
        rate_limit: RateLimitConfig | None = None,
        country: str = "us",
        timeout: float = 15.0,
        max_retries: int = 3,
        session: AsyncSession | None = None,
    ):
        self.rate_limit = rate_limit or RateLimitConfig()
        self.country = country
        self.timeout = timeout
        self.max_retries = max_retries
        self._session = session
        self._request_timestamps: list[float] = []
        self._lock = asyncio.Lock()

    def _get_session(self) -> AsyncSession:
        if self._session is None:
            self._session = AsyncSession(
                headers={"User-Agent": "ASO-Keyword-Research/1.0"},
                impersonate="chrome",
            )
        return self._session

    def _get_wait_time(self) -> float:
        """Seconds to wait before the next request is allowed"""
        now = time.time()
        cutoff = now - self.rate_limit.period_seconds
        # Clean old timestamps
        self._request_timestamps = [ts for ts in self._request_timestamps if ts > cutoff]

        wait = 0.0
        if self._request_timestamps:
            since_last = now - self._request_timestamps[-1]
            wait = max(0.0, self.rate_limit.min_delay_between_requests - since_last)

        if len(self._request_timestamps) >= self.rate_limit.max_requests_per_period:
            oldest = self._request_timestamps[0]
            wait = max(wait, oldest + self.rate_limit.period_seconds - now)

        return wait

    async def _request(
        self, url: str, params: dict, extra_headers: dict | None = None
    ) -> Any:
        """GET with rate limiting and retry; returns the response object"""
        session = self._get_session()
        last_status = 0
        retry_after: float | None = None

        for attempt in range(self.max_retries):
            async with self._lock:
                wait = self._get_wait_time()
                if wait > 0:
                    await asyncio.sleep(wait)
                self._request_timestamps.append(time.time())

            try:
                resp = await session.get(
                    url, params=params, headers=extra_headers, timeout=self.timeout
                )
            except RequestsError as e:
                logger.warning(f"[iTunes] Request to {url} failed (attempt {attempt + 1}): {e}")
                if attempt == self.max_retries - 1:
                    raise APIError(status_code=0, detail=f"Request failed: {e}")
                await asyncio.sleep(5)
                continue

            if resp.status_code in (403, 429):
                last_status = resp.status_code
                retry_after = parse_retry_after(resp.headers.get("Retry-After"))
                backoff = retry_after if retry_after is not None else 10 * (2**attempt)
                logger.warning(f"[iTunes] Rate limited ({resp.status_code}). Waiting {backoff}s...")
                await asyncio.sleep(backoff)
                continue

            if resp.status_code != 200:
                raise APIError(
                    status_code=resp.status_code,
                    detail=f"Unexpected status from {url}",
                    response=resp.text,
                )

            return resp

        if last_status:
            raise RateLimited(url, retry_after=retry_after)
        raise APIError(status_code=500, detail=f"Request to {url} failed after max retries")

    async def search(self, term: str, limit: int = MAX_RESULTS) -> list[dict]:
        """Search the App Store for apps matching a term"""
        params = {
            "term": term,
            "entity": "software",
            "country": self.country,
            "limit": min(limit, MAX_RESULTS),
        }
        resp = await self._request(SEARCH_URL, params)
        try:
            return resp.json().get("results", [])
        except ValueError as e:
            raise APIError(status_code=resp.status_code, detail=f"Invalid search JSON: {e}")

    async def get_suggestions(self, term: str) -> list[str]:
        """Get App Store search autocomplete suggestions for a term"""
        params = {"term": term.strip(), "clientApplication": "Software"}
        resp = await self._request(HINTS_URL, params, extra_headers=HINTS_HEADERS)
        try:
            data = plistlib.loads(resp.content)
        except plistlib.InvalidFileException as e:
            raise APIError(status_code=resp.status_code, detail=f"Invalid hints plist: {e}")

        hints = data.get("hints", []) if isinstance(data, dict) else []
        return [h["term"] for h in hints if isinstance(h, dict) and "term" in h]

    async def lookup(self, app_id: int) -> AppSnapshot:
        """Fetch App Store metadata for one app"""
        resp = await self._request(LOOKUP_URL, {"id": app_id, "country": self.country})
        try:
            results = resp.json().get("results", [])
        except ValueError as e:
            raise APIError(status_code=resp.status_code, detail=f"Invalid lookup JSON: {e}")

        if not results:
            raise AppNotFound(app_id)
        return AppSnapshot.from_itunes(results[0])

    async def find_competitors(self, app: AppSnapshot, limit: int) -> list[AppSnapshot]:
        """Apps ranking for the app's own title and genre, excluding the app"""
        competitors: list[AppSnapshot] = []
        seen = {app.app_id}

        for term in (app.title, app.genre):
            if not term or len(competitors) >= limit:
                continue
            for entry in await self.search(term, limit=25):
                if "trackId" not in entry or entry["trackId"] in seen:
                    continue
                seen.add(entry["trackId"])
                competitors.append(AppSnapshot.from_itunes(entry))
                if len(competitors) >= limit:
                    break

        return competitors

    async def close(self) -> None:
        """Close the underlying HTTP session"""
        if self._session is not None:
            await self._session.close()
            self._session = None
