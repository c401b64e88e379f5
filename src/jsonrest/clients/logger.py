"""Diagnostic logging of HTTP exchanges.

The logger only observes: it must never change the outcome of a request,
so failures while formatting a log line are reported and dropped.
"""

import logging
from typing import Optional

import requests

from ..core.request import RequestDescriptor
from .headers import HeaderMap

logger = logging.getLogger(__name__)


def _text(content: Optional[bytes]) -> str:
    if not content:
        return ""
    return content.decode("utf-8", errors="replace")


class HttpLogger:
    """Writes one line per request and one per response or failure.

    Attributes:
        log: The logger lines are written to (``jsonrest.http`` by default).
        level: The level used for request and response lines.
    """

    def __init__(self, log: Optional[logging.Logger] = None, level: int = logging.INFO):
        self.log = log or logging.getLogger("jsonrest.http")
        self.level = level

    def log_request(self, descriptor: RequestDescriptor, headers: HeaderMap, body: Optional[bytes]) -> None:
        try:
            self.log.log(
                self.level,
                "Request method=%s url=%s header=%s body=%s",
                descriptor.method.value,
                descriptor.url,
                dict(headers.items()),
                _text(body),
            )
        except Exception:
            logger.debug("Failed to log request", exc_info=True)

    def log_response(
        self,
        descriptor: RequestDescriptor,
        response: Optional[requests.Response],
        error: Optional[BaseException],
        duration: float,
    ) -> None:
        """Log the response to ``descriptor``, or the error that replaced it.

        Args:
            descriptor: The request that was sent.
            response: The received response with its content already read.
            error: The transport error, when no response was received.
            duration: Elapsed time of the attempt in seconds.
        """
        try:
            if error is not None:
                self.log.log(
                    self.level,
                    "Response method=%s url=%s durationMs=%d error=%s",
                    descriptor.method.value,
                    descriptor.url,
                    int(duration * 1000),
                    error,
                )
                return
            self.log.log(
                self.level,
                "Response method=%s url=%s status=%d durationMs=%d header=%s body=%s",
                descriptor.method.value,
                descriptor.url,
                response.status_code,
                int(duration * 1000),
                dict(response.headers),
                _text(response.content),
            )
        except Exception:
            logger.debug("Failed to log response", exc_info=True)
