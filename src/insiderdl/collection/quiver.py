"""
QuiverQuant API client
======================

Issues rate-limited GET requests against https://api.quiverquant.com/beta/.

Each attempt produces a FetchResult tagged with its FetchStatus; fetch()
retries RETRYABLE attempts with a fixed sleep and raises FetchExhaustedError
once the attempt budget is spent. A 404 means the vendor has nothing for the
date and yields an empty body.
"""
import time
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

import requests

from insiderdl.exceptions import FetchExhaustedError, InsiderTradingError
from insiderdl.storage.rate_limiter import RateLimiter

QUIVER_BASE_URL = "https://api.quiverquant.com/beta/"
MAX_RETRIES = 5
RETRY_SLEEP = 1.0


class FetchStatus(Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    RETRYABLE = "retryable"
    TERMINAL = "terminal"


@dataclass(frozen=True)
class FetchResult:
    status: FetchStatus
    body: str = ""
    error: Optional[str] = None
    status_code: Optional[int] = None


class QuiverClient:
    """Handles HTTP requests to the QuiverQuant API"""

    def __init__(
        self,
        api_key: str,
        rate_limiter: RateLimiter,
        logger: Optional[logging.Logger] = None,
        base_url: str = QUIVER_BASE_URL,
        max_retries: int = MAX_RETRIES,
        retry_sleep: float = RETRY_SLEEP,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None
    ):
        """
        :param api_key: QuiverQuant API token
        :param rate_limiter: Limiter acquired before every attempt
        :param logger: Logger instance
        :param base_url: API root, must end with '/'
        :param max_retries: Total attempts per fetch (default: 5)
        :param retry_sleep: Seconds to sleep after a failed attempt (default: 1.0)
        :param timeout: Per-request timeout in seconds
        :param session: Optional requests.Session (for connection reuse and tests)
        """
        self.rate_limiter = rate_limiter
        self.logger = logger or logging.getLogger(__name__)
        self.base_url = base_url if base_url.endswith('/') else f"{base_url}/"
        self.max_retries = max_retries
        self.retry_sleep = retry_sleep
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers: Dict[str, str] = {
            "Authorization": f"Token {api_key}",
            "Accept": "application/json",
        }

    def fetch(self, path: str) -> str:
        """
        Fetch path relative to the API root.

        :param path: e.g. 'live/insiders?date=20220214'
        :return: Response body, or '' if the vendor returned 404
        :raises FetchExhaustedError: If all attempts failed
        :raises InsiderTradingError: If an attempt failed in a way retrying cannot fix
        """
        last_error = ""
        for attempt in range(1, self.max_retries + 1):
            result = self._attempt(path)

            if result.status is FetchStatus.SUCCESS:
                return result.body

            if result.status is FetchStatus.NOT_FOUND:
                self.logger.error(f"Files not found at url: {self.base_url}{path}")
                return ""

            last_error = result.error or ""
            if result.status is FetchStatus.TERMINAL:
                raise InsiderTradingError(f"Request for {path} aborted: {last_error}")

            self.logger.error(
                f"Error fetching {path}: {last_error} (retry {attempt}/{self.max_retries})"
            )
            time.sleep(self.retry_sleep)

        raise FetchExhaustedError(self.max_retries, last_error)

    def _attempt(self, path: str) -> FetchResult:
        """Run one rate-limited attempt and classify its outcome."""
        try:
            self.rate_limiter.acquire()
        except RuntimeError as e:
            return FetchResult(FetchStatus.TERMINAL, error=str(e))

        url = f"{self.base_url}{path}"
        try:
            response = self.session.get(url, headers=self.headers, timeout=self.timeout)

            if response.status_code == 404:
                return FetchResult(FetchStatus.NOT_FOUND, status_code=404)

            if response.status_code == 401:
                # response.url is the final location after redirects; retry there once,
                # outside the rate limiter
                self.logger.warning(f"Unauthorized at {url}, reissuing against {response.url}")
                response = self.session.get(response.url, headers=self.headers, timeout=self.timeout)

            if not 200 <= response.status_code < 300:
                return FetchResult(
                    FetchStatus.RETRYABLE,
                    error=f"HTTP {response.status_code}",
                    status_code=response.status_code
                )

            return FetchResult(FetchStatus.SUCCESS, body=response.text, status_code=response.status_code)

        except requests.RequestException as e:
            return FetchResult(FetchStatus.RETRYABLE, error=str(e))

    def close(self) -> None:
        self.session.close()
