"""Retrying executor for JSON requests.

Each logical request is serialized once, then sent up to
``RetryPolicy.max_attempts`` times. Only responses with a status in 500-511
are retried; transport failures and every other status end the call
immediately.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

import requests
from tenacity import RetryCallState, Retrying, retry_if_exception, stop_after_attempt, wait_fixed

from ..clients.errors import Outcome, ServerError, TransportError, classify_status
from ..clients.headers import HeaderMap
from ..clients.logger import HttpLogger
from ..clients.transport import RequestsTransport
from .request import RequestDescriptor, decode_into, encode_body, with_default_content_type

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """Retry and timeout settings shared by every request of one client.

    Attributes:
        max_attempts: Total number of attempts, including the first.
        delay: Seconds to wait between two attempts.
        timeout: Seconds allowed per attempt; 0 disables the timeout.
    """

    max_attempts: int = 1
    delay: float = 2.0
    timeout: float = 0.0

    @property
    def request_timeout(self) -> Optional[float]:
        return self.timeout if self.timeout > 0 else None


def _is_retryable(error: BaseException) -> bool:
    return isinstance(error, ServerError) and error.retryable


def _log_retry(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception()
    descriptor = retry_state.args[0]
    logger.warning(
        "Retrying %s %s after status %s (attempt %d failed, next in %.2fs)",
        descriptor.method.value,
        descriptor.url,
        getattr(error, "status_code", "?"),
        retry_state.attempt_number,
        retry_state.next_action.sleep if retry_state.next_action else 0.0,
    )


class RetryableExecutor:
    """Performs the HTTP exchange for a RequestDescriptor under a RetryPolicy.

    The executor keeps no per-request state, so one instance may be shared
    by any number of threads.
    """

    def __init__(
        self,
        policy: RetryPolicy,
        transport: Optional[RequestsTransport] = None,
        http_logger: Optional[HttpLogger] = None,
        verify_tls: bool = True,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.policy = policy
        self.transport = transport or RequestsTransport()
        self.http_logger = http_logger
        self.verify_tls = verify_tls
        self._sleep = sleep

    def execute(self, descriptor: RequestDescriptor) -> Any:
        """Send ``descriptor`` and decode the response into its result sink.

        Returns:
            The decoded JSON value when a result sink is set, otherwise None.

        Raises:
            SerializationError: If the body cannot be encoded. No request is sent.
            TransportError: If no response was received. Never retried.
            ServerError: For a terminal status, or the last retryable one once
                attempts are exhausted.
            DeserializationError: If the successful response cannot be decoded.
        """
        headers = with_default_content_type(descriptor.headers)
        payload = encode_body(descriptor.body)

        retrying = Retrying(
            stop=stop_after_attempt(self.policy.max_attempts),
            wait=wait_fixed(self.policy.delay),
            retry=retry_if_exception(_is_retryable),
            before_sleep=_log_retry,
            sleep=self._sleep,
            reraise=True,
        )
        content = retrying(self._attempt, descriptor, headers, payload)

        if descriptor.result_sink is None:
            return None
        return decode_into(content, descriptor.result_sink)

    def _attempt(self, descriptor: RequestDescriptor, headers: HeaderMap, payload: Optional[bytes]) -> bytes:
        method = descriptor.method.value
        if self.http_logger:
            self.http_logger.log_request(descriptor, headers, payload)

        started = time.monotonic()
        try:
            response = self.transport.send(
                method,
                descriptor.url,
                headers.to_request_headers(),
                payload,
                self.policy.request_timeout,
                self.verify_tls,
            )
        except requests.RequestException as e:
            self._log_failure(descriptor, e, started)
            raise TransportError(f"{method} {descriptor.url} failed: {e}") from e

        with response:
            try:
                content = response.content
            except requests.RequestException as e:
                self._log_failure(descriptor, e, started)
                raise TransportError(f"{method} {descriptor.url} failed reading response: {e}") from e

            if self.http_logger:
                self.http_logger.log_response(descriptor, response, None, time.monotonic() - started)

            if classify_status(response.status_code) is Outcome.SUCCESS:
                return content

            logger.debug("%s %s returned %d", method, descriptor.url, response.status_code)
            raise ServerError(response.status_code, response.text)

    def _log_failure(self, descriptor: RequestDescriptor, error: BaseException, started: float) -> None:
        logger.error("%s %s failed: %s", descriptor.method.value, descriptor.url, error)
        if self.http_logger:
            self.http_logger.log_response(descriptor, None, error, time.monotonic() - started)
