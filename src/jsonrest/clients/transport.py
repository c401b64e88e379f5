import threading
from typing import Dict, List, Optional

import requests


class RequestsTransport:
    """Sends requests through a ``requests.Session``.

    Sessions are not guaranteed to be thread-safe, so each thread gets its
    own session and connection pool. ``close()`` closes every session the
    transport created, whichever thread created it.
    """

    def __init__(self):
        self._local = threading.local()
        self._sessions: List[requests.Session] = []
        self._sessions_lock = threading.Lock()

    @property
    def session(self) -> requests.Session:
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            self._local.session = session
            with self._sessions_lock:
                self._sessions.append(session)
        return session

    def send(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        body: Optional[bytes],
        timeout: Optional[float],
        verify: bool,
    ) -> requests.Response:
        # stream=True defers reading the body so the caller controls when the
        # connection is released.
        return self.session.request(
            method,
            url,
            headers=headers,
            data=body,
            timeout=timeout,
            verify=verify,
            stream=True,
        )

    def close(self) -> None:
        with self._sessions_lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()
        self._local = threading.local()
