"""Custom exceptions for the keyword metrics provider"""

from typing import Any


class ProviderError(Exception):
    """Base exception for keyword metrics providers"""

    pass


class UpstreamNoData(ProviderError):
    """Provider answered but has no traffic/difficulty signal for the keyword"""

    def __init__(self, keyword: str, detail: str):
        self.keyword = keyword
        self.detail = detail
        super().__init__(detail)


class UpstreamMalformed(ProviderError):
    """Provider response does not have the expected shape"""

    def __init__(self, keyword: str, detail: str, response: Any = None):
        self.keyword = keyword
        self.detail = detail
        self.response = response
        super().__init__(detail)


class AppNotFound(ProviderError):
    """App Store lookup returned no app for the id"""

    def __init__(self, app_id: int):
        self.app_id = app_id
        super().__init__(f"App not found in the App Store: {app_id}")


class RateLimited(ProviderError):
    """Upstream is rejecting requests because of rate limiting"""

    def __init__(self, url: str, retry_after: float | None = None):
        self.url = url
        self.retry_after = retry_after
        msg = f"Rate limited by {url}"
        if retry_after:
            msg += f" (retry after: {retry_after}s)"
        super().__init__(msg)


class APIError(ProviderError):
    """API call error"""

    def __init__(self, status_code: int, detail: str, response: Any = None):
        self.status_code = status_code
        self.detail = detail
        self.response = response
        super().__init__(f"API error {status_code}: {detail}")
