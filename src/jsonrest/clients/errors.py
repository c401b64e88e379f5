"""Error types raised by the JSON client and the status classification they rely on."""

from enum import Enum
from typing import Optional

SUCCESS_STATUS_RANGE = (200, 226)
RETRYABLE_STATUS_RANGE = (500, 511)


class Outcome(Enum):
    """Result of a single attempt."""

    SUCCESS = "success"
    RETRYABLE_SERVER_ERROR = "retryable_server_error"
    TERMINAL_SERVER_ERROR = "terminal_server_error"
    TRANSPORT_ERROR = "transport_error"


def classify_status(status_code: int) -> Outcome:
    """Classify a received HTTP status code.

    Both ranges are inclusive: 200-226 is success, 500-511 may be retried,
    anything else is terminal.
    """
    low, high = SUCCESS_STATUS_RANGE
    if low <= status_code <= high:
        return Outcome.SUCCESS
    low, high = RETRYABLE_STATUS_RANGE
    if low <= status_code <= high:
        return Outcome.RETRYABLE_SERVER_ERROR
    return Outcome.TERMINAL_SERVER_ERROR


class JsonRestError(Exception):
    """Base class for every error raised by jsonrest."""

    pass


class TransportError(JsonRestError):
    """Raised when a request fails before any response status was received."""

    outcome = Outcome.TRANSPORT_ERROR


class ServerError(JsonRestError):
    """Raised when the server answers with a status outside 200-226."""

    def __init__(self, status_code: int, body: str):
        super().__init__(f"http server error - status code: {status_code}; body: {body}")
        self.status_code = status_code
        self.body = body

    @property
    def outcome(self) -> Outcome:
        return classify_status(self.status_code)

    @property
    def retryable(self) -> bool:
        return self.outcome is Outcome.RETRYABLE_SERVER_ERROR


class SerializationError(JsonRestError):
    """Raised when a request body cannot be encoded as JSON."""

    pass


class DeserializationError(JsonRestError):
    """Raised when a response body cannot be decoded into the result sink."""

    def __init__(self, message: str, body: Optional[str] = None):
        super().__init__(message)
        self.body = body
