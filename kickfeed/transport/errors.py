"""
Error taxonomy for remote API calls.

Every failure surfaced by the transport client is a TransportError
subclass so callers can catch the whole family at one seam:

- InvalidRequestError: malformed path/params, raised before any I/O
- AuthError: HTTP 401, never retried
- RateLimitError: HTTP 429 after the retry budget is spent
- ServerError: any other non-2xx status, never retried
- NetworkError: timeouts/connectivity after the retry budget is spent
- DecodingError: 2xx body that does not match the expected schema
"""


class TransportError(Exception):
    """Base exception for transport client errors."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response_body = response_body


class InvalidRequestError(TransportError):
    """Raised when a request cannot be built (programmer error)."""


class AuthError(TransportError):
    """Raised on HTTP 401."""


class RateLimitError(TransportError):
    """Raised when rate limit is hit and all retries exhausted."""


class ServerError(TransportError):
    """Raised on non-2xx responses other than 401 and 429."""


class NetworkError(TransportError):
    """Raised when the network stays unreachable after all retries."""


class DecodingError(TransportError):
    """Raised when a successful response body fails schema validation."""
