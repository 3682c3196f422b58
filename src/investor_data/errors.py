"""Error taxonomy surfaced to callers of the data layer."""

from enum import Enum


class ErrorKind(str, Enum):
    """Closed set of error categories. Raw transport exceptions never leave the data layer."""

    INVALID_REQUEST = "invalid_request"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    SERVER_ERROR = "server_error"
    HTTP_ERROR = "http_error"
    NETWORK_UNREACHABLE = "network_unreachable"
    TIMEOUT = "timeout"
    DECODING_ERROR = "decoding_error"
    STORAGE_ERROR = "storage_error"
    NO_AUTH_TOKEN = "no_auth_token"


_RETRYABLE = {ErrorKind.NETWORK_UNREACHABLE, ErrorKind.TIMEOUT, ErrorKind.SERVER_ERROR}

_DEFAULT_MESSAGES = {
    ErrorKind.INVALID_REQUEST: "Invalid request",
    ErrorKind.UNAUTHORIZED: "Authentication failed. Please sign in again.",
    ErrorKind.FORBIDDEN: "Access forbidden",
    ErrorKind.NOT_FOUND: "Stock not found",
    ErrorKind.NETWORK_UNREACHABLE: "Network unreachable",
    ErrorKind.TIMEOUT: "Request timed out",
    ErrorKind.DECODING_ERROR: "Failed to decode response",
    ErrorKind.STORAGE_ERROR: "Local storage failure",
    ErrorKind.NO_AUTH_TOKEN: "No authentication token found. Please sign in.",
}


class FetchError(Exception):
    """Raised when a remote fetch fails; carries the mapped ErrorKind."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str | None = None,
        *,
        status_code: int | None = None,
    ):
        if message is None:
            if kind in (ErrorKind.SERVER_ERROR, ErrorKind.HTTP_ERROR):
                label = "Server error" if kind is ErrorKind.SERVER_ERROR else "HTTP error"
                message = f"{label} ({status_code})"
            else:
                message = _DEFAULT_MESSAGES.get(kind, kind.value)
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code

    @property
    def is_retryable(self) -> bool:
        """Transient failures the user may retry with an explicit refresh."""
        return self.kind in _RETRYABLE

    @property
    def requires_reauth(self) -> bool:
        return self.kind in (ErrorKind.UNAUTHORIZED, ErrorKind.NO_AUTH_TOKEN)

    @property
    def requires_upgrade(self) -> bool:
        """403 signals the subscription or monthly view limit was exceeded."""
        return self.kind is ErrorKind.FORBIDDEN

    def __repr__(self) -> str:
        return f"FetchError(kind={self.kind.value!r}, status_code={self.status_code!r}, message={self.message!r})"


class StorageError(Exception):
    """Raised when the local cache store cannot persist a payload."""

    def __init__(self, key: str, message: str):
        super().__init__(f"Cache write failed for {key}: {message}")
        self.key = key


class PayloadDecodeError(ValueError):
    """Raised when a payload does not match the expected schema."""

    pass
