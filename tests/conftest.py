"""Shared fixtures: a scripted local HTTP server and a fake transport."""

import json
import threading
import time
from dataclasses import dataclass, field
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Dict, List, Optional, Tuple

import pytest
import requests


@dataclass
class _Call:
    method: str
    path: str
    headers: Dict[str, str]
    body: bytes


@dataclass
class _ServerState:
    # Each request consumes the next entry; the last entry repeats.
    script: List[Tuple[int, bytes]] = field(default_factory=lambda: [(200, b"{}")])
    echo: bool = False
    delay: float = 0.0
    calls: List[_Call] = field(default_factory=list)
    lock: threading.Lock = field(default_factory=threading.Lock)

    def respond_with(self, *responses: Tuple[int, object]) -> None:
        script = []
        for status, body in responses:
            if isinstance(body, (dict, list)):
                body = json.dumps(body)
            if isinstance(body, str):
                body = body.encode("utf-8")
            script.append((status, body))
        self.script = script

    @property
    def call_count(self) -> int:
        with self.lock:
            return len(self.calls)


class _StatefulServer(ThreadingHTTPServer):
    def __init__(self, address, handler, state: _ServerState):
        super().__init__(address, handler)
        self.state = state


class _Handler(BaseHTTPRequestHandler):
    server: _StatefulServer  # type: ignore[assignment]

    def log_message(self, format: str, *args):  # noqa: D401 - silence server logs
        """Suppress default HTTP server logging."""

    def _handle(self) -> None:
        state = self.server.state
        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length) if length else b""
        with state.lock:
            state.calls.append(_Call(self.command, self.path, dict(self.headers.items()), body))
            if state.echo:
                status, payload = 200, body
            elif len(state.script) > 1:
                status, payload = state.script.pop(0)
            else:
                status, payload = state.script[0]
        if state.delay:
            time.sleep(state.delay)
        try:
            self.send_response(status)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(payload)))
            self.end_headers()
            if payload:
                self.wfile.write(payload)
        except (BrokenPipeError, ConnectionResetError):
            pass

    do_GET = _handle
    do_POST = _handle
    do_PUT = _handle
    do_DELETE = _handle


@pytest.fixture
def http_server():
    state = _ServerState()
    server = _StatefulServer(("127.0.0.1", 0), _Handler, state)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    host, port = server.server_address
    try:
        yield f"http://{host}:{port}", state
    finally:
        server.shutdown()
        server.server_close()


class FakeResponse(requests.Response):
    def __init__(self, status_code: int, body: bytes = b"", headers: Optional[Dict[str, str]] = None):
        super().__init__()
        self.status_code = status_code
        self._content = body
        self._content_consumed = True
        self.encoding = "utf-8"
        self.headers.update(headers or {"Content-Type": "application/json"})
        self.closed = False

    def close(self) -> None:
        self.closed = True


class FakeTransport:
    """Replays scripted responses or exceptions and records every send."""

    def __init__(self, *script):
        self.script = list(script)
        self.sent: List[dict] = []
        self.responses: List[FakeResponse] = []

    def send(self, method, url, headers, body, timeout, verify):
        self.sent.append(
            {"method": method, "url": url, "headers": headers, "body": body, "timeout": timeout, "verify": verify}
        )
        item = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(item, BaseException):
            raise item
        status, body = item
        if isinstance(body, (dict, list)):
            body = json.dumps(body)
        if isinstance(body, str):
            body = body.encode("utf-8")
        response = FakeResponse(status, body)
        self.responses.append(response)
        return response

    def close(self) -> None:
        pass

