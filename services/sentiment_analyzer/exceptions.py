from typing import Optional


class SentimentClientError(Exception):
    """Base class for failures of the sentiment capability"""

    status_code = 502

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class SentimentBackendUnavailable(SentimentClientError):
    """The backend could not be constructed or reached"""

    status_code = 503


class SentimentBackendTimeout(SentimentClientError):
    status_code = 504


class SentimentBackendError(SentimentClientError):
    """The backend answered, but not with a usable sentiment"""

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        backend_status: Optional[int] = None,
    ):
        super().__init__(message, url)
        self.backend_status = backend_status
