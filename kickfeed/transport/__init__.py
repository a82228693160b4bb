"""Transport layer - HTTP client with retry policy and error taxonomy."""

from kickfeed.transport.errors import (
    AuthError,
    DecodingError,
    InvalidRequestError,
    NetworkError,
    RateLimitError,
    ServerError,
    TransportError,
)
from kickfeed.transport.http_client import HTTPMethod, RetryConfig, TransportClient

__all__ = [
    "AuthError",
    "DecodingError",
    "HTTPMethod",
    "InvalidRequestError",
    "NetworkError",
    "RateLimitError",
    "RetryConfig",
    "ServerError",
    "TransportClient",
    "TransportError",
]
