"""
Thread-safe rate limiter for outbound vendor requests.

QuiverQuant allows one request every two seconds on the insider endpoint,
so the downloader builds ``RateLimiter(max_rate=0.5)``. Every HTTP attempt,
first try or retry, passes through ``acquire()``.
"""
import time
import threading


class RateLimiter:
    """
    Grants at most one permit per ``min_interval`` seconds.

    Usable as a context manager so the owner releases it on every exit path:

        >>> with RateLimiter(max_rate=0.5) as limiter:
        ...     limiter.acquire()
    """

    def __init__(self, max_rate: float):
        """
        :param max_rate: Maximum permits per second (0.5 -> one every 2 seconds)
        """
        if max_rate <= 0:
            raise ValueError(f"max_rate must be positive, got {max_rate}")
        self.max_rate = max_rate
        self.min_interval = 1.0 / max_rate
        self.last_request_time = float("-inf")
        self._lock = threading.Lock()
        self._closed = False

    @classmethod
    def from_interval(cls, min_interval: float) -> "RateLimiter":
        """Build a limiter from the minimum number of seconds between permits."""
        if min_interval <= 0:
            raise ValueError(f"min_interval must be positive, got {min_interval}")
        return cls(max_rate=1.0 / min_interval)

    @property
    def closed(self) -> bool:
        return self._closed

    def acquire(self) -> None:
        """Block until the next permit is available."""
        with self._lock:
            if self._closed:
                raise RuntimeError("RateLimiter is closed")

            now = time.monotonic()
            wait = self.min_interval - (now - self.last_request_time)
            if wait > 0:
                time.sleep(wait)
                now = time.monotonic()
            self.last_request_time = now

    def close(self) -> None:
        self._closed = True

    def __enter__(self) -> "RateLimiter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
