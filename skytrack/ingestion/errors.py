"""
Fetch failure taxonomy.

Every failure of a single OpenSky round trip is raised as one of these,
so callers only need to catch FetchError. The ``message`` property is the
human-readable text surfaced to the presentation layer.
"""

from typing import Optional


class FetchError(Exception):
    """Base class for failed flight fetches."""

    default_message = 'Unknown error occurred'

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class OfflineError(FetchError):
    """Connectivity probe failed; no request was sent."""
    default_message = 'No internet connection available'


class InvalidRequestError(FetchError):
    """The request could not be built (bad region or base URL)."""
    default_message = 'Invalid request'


class HttpError(FetchError):
    """
    Non-2xx response.

    Carries the status code and, when the body decoded as an API error,
    the server's message.
    """

    def __init__(self, status_code: int, api_message: Optional[str] = None):
        self.status_code = status_code
        self.api_message = api_message
        super().__init__(self._describe())

    def _describe(self) -> str:
        if self.api_message:
            return f'{self.api_message} (Code: {self.status_code})'
        if 400 <= self.status_code < 500:
            return f'Client error occurred with status code: {self.status_code}'
        return f'Server error occurred with status code: {self.status_code}'


class DecodingError(FetchError):
    """Response body did not match the expected shape."""
    default_message = 'Failed to decode response'


class UnknownFetchError(FetchError):
    """Anything else, e.g. a transport failure after a successful probe."""

    def __init__(self, status_code: Optional[int] = None, detail: Optional[str] = None):
        self.status_code = status_code
        self.detail = detail
        message = self.default_message
        if status_code is not None:
            message += f' with status code: {status_code}'
        super().__init__(message)
