import logging
from typing import Any, Dict, Mapping, Optional, Union

from ..config.config import DEFAULT_RETRY_DELAY, DEFAULT_RETRY_MAX_ATTEMPTS, ClientConfig
from ..core.executor import RetryableExecutor, RetryPolicy
from ..core.request import Method, RequestDescriptor
from .headers import HeaderMap
from .logger import HttpLogger
from .transport import RequestsTransport

logger = logging.getLogger(__name__)

Headers = Optional[Union[HeaderMap, Mapping[str, Any]]]


class RequestBuilder:
    """Accumulates one request and dispatches it.

    Obtain one from ``Client.request()``. A builder is meant for a single
    dispatch; calling ``get``/``post``/``put``/``delete`` sends the request
    synchronously, including any retries.
    """

    def __init__(self, executor: RetryableExecutor):
        self._executor = executor
        self._headers = HeaderMap()
        self._body: Any = None
        self._result: Any = None

    def set_header(self, key: str, value: str) -> "RequestBuilder":
        self._headers.set(key, value)
        return self

    def add_header(self, key: str, value: str) -> "RequestBuilder":
        self._headers.add(key, value)
        return self

    def set_headers(self, headers: Union[HeaderMap, Mapping[str, Any]]) -> "RequestBuilder":
        self._headers.update(headers)
        return self

    def set_body(self, body: Any) -> "RequestBuilder":
        self._body = body
        return self

    def set_result(self, sink: Any) -> "RequestBuilder":
        self._result = sink
        return self

    def get(self, url: str) -> Any:
        return self._dispatch(Method.GET, url)

    def post(self, url: str) -> Any:
        return self._dispatch(Method.POST, url)

    def put(self, url: str) -> Any:
        return self._dispatch(Method.PUT, url)

    def delete(self, url: str) -> Any:
        return self._dispatch(Method.DELETE, url)

    def _dispatch(self, method: Method, url: str) -> Any:
        descriptor = RequestDescriptor(
            method=method,
            url=url,
            headers=self._headers.copy(),
            body=self._body,
            result_sink=self._result,
        )
        return self._executor.execute(descriptor)


class Client:
    """JSON HTTP client with bounded retries.

    A client holds only configuration and may be shared between threads.
    Per-request state lives in the RequestBuilder returned by ``request()``.

    Example:
        client = Client(retry_max_attempts=3, retry_delay=1, timeout=10)
        user = {}
        client.request().set_header("Authorization", token).set_result(user).get(url)
    """

    def __init__(
        self,
        retry_max_attempts: int = DEFAULT_RETRY_MAX_ATTEMPTS,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        timeout: float = 0.0,
        verify_tls: bool = True,
        log_enabled: bool = False,
        transport: Optional[RequestsTransport] = None,
    ):
        """Initialize the client.

        Args:
            retry_max_attempts: Total attempts per request, at least 1.
            retry_delay: Seconds to wait between attempts.
            timeout: Seconds allowed per attempt; 0 disables the timeout.
            verify_tls: Whether server certificates are verified.
            log_enabled: Whether requests and responses are logged.
            transport: Transport to send requests with. Defaults to requests.

        Raises:
            ConfigurationError: If a setting is out of range.
        """
        self.config = ClientConfig(
            retry_max_attempts=retry_max_attempts,
            retry_delay=retry_delay,
            timeout=timeout,
            verify_tls=verify_tls,
            log_enabled=log_enabled,
        ).validate()
        if not verify_tls:
            logger.warning("TLS certificate verification is disabled for this client")

        self.retry_policy = RetryPolicy(
            max_attempts=self.config.retry_max_attempts,
            delay=self.config.retry_delay,
            timeout=self.config.timeout,
        )
        self._executor = RetryableExecutor(
            self.retry_policy,
            transport=transport,
            http_logger=HttpLogger() if log_enabled else None,
            verify_tls=verify_tls,
        )

    @classmethod
    def from_config(cls, config: ClientConfig, transport: Optional[RequestsTransport] = None) -> "Client":
        return cls(
            retry_max_attempts=config.retry_max_attempts,
            retry_delay=config.retry_delay,
            timeout=config.timeout,
            verify_tls=config.verify_tls,
            log_enabled=config.log_enabled,
            transport=transport,
        )

    def request(self) -> RequestBuilder:
        return RequestBuilder(self._executor)

    def close(self) -> None:
        self._executor.transport.close()

    # Convenience helpers, each equivalent to one builder chain.

    def _builder(self, headers: Headers, body: Any = None, result: Any = None) -> RequestBuilder:
        builder = self.request()
        if headers:
            builder.set_headers(headers)
        return builder.set_body(body).set_result(result)

    def get_for_json(self, url: str, headers: Headers, result: Any) -> Any:
        return self._builder(headers, result=result).get(url)

    def get_for_json_with_request_object(self, url: str, headers: Headers, body: Any, result: Any) -> Any:
        return self._builder(headers, body, result).get(url)

    def post_for_json(self, url: str, headers: Headers, body: Any) -> None:
        self._builder(headers, body).post(url)

    def post_for_json_with_response_object(self, url: str, headers: Headers, body: Any, result: Any) -> Any:
        return self._builder(headers, body, result).post(url)

    def put_for_json(self, url: str, headers: Headers, body: Any) -> None:
        self._builder(headers, body).put(url)

    def delete_for_json(self, url: str, headers: Headers, body: Any) -> None:
        self._builder(headers, body).delete(url)

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        values: Dict[str, Any] = self.config.to_dict()
        return "Client(" + ", ".join(f"{k}={v!r}" for k, v in values.items()) + ")"
