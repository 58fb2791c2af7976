"""
Exceptions raised by the insider trading pipeline.

Vendor "not found" is deliberately absent: a date without data is an empty
fetch result, not an error.
"""


class InsiderTradingError(Exception):
    """Base class for pipeline failures."""


class InputRejectedError(InsiderTradingError):
    """Processing date is unset, today, or in the future."""


class FetchExhaustedError(InsiderTradingError):
    """Every allowed HTTP attempt failed."""

    def __init__(self, max_retries: int, last_error: str = ""):
        self.max_retries = max_retries
        self.last_error = last_error
        message = f"Request failed with no more retries remaining (retry {max_retries}/{max_retries})"
        if last_error:
            message = f"{message}: {last_error}"
        super().__init__(message)


class ParseError(InsiderTradingError):
    """Vendor response body could not be decoded into transactions."""


class ResolutionUnavailableError(InsiderTradingError):
    """Local security identifier mapping data is missing."""
