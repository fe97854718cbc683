"""Errors raised by the HTTP client layer."""


class TransportError(Exception):
    """Raised when a request to a backend fails or returns a non-2xx status.

    Attributes:
        status_code: HTTP status of the failed response, None if no response was received.
        body: Raw response text, empty if no response was received.
    """

    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
