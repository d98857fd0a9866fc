"""Request executor protocol and the readable object stream.

The executor is supplied from outside and owns authentication, retries and
connection pooling. Anything with the ``requests.Session.request`` signature
works, e.g. ``google.auth.transport.requests.AuthorizedSession``.
"""

from __future__ import annotations

import io
from typing import Any, Protocol

import requests


class RequestExecutor(Protocol):
    """Protocol for the HTTP transport used by ``HttpBucket``."""

    def request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        """Send one request and return the response.

        ``HttpBucket`` passes ``headers``, ``data``, ``stream`` and ``timeout``.
        Non-success statuses should be returned, not raised; an executor that
        raises ``requests.HTTPError`` instead is tolerated for deletes.
        """
        ...


class ObjectStream(io.RawIOBase):
    """Readable body of a download.

    Closing the stream releases the underlying connection. Use it as a
    context manager so that happens on every exit path.
    """

    def __init__(self, response: requests.Response) -> None:
        super().__init__()
        self._response = response

    def readable(self) -> bool:
        return True

    def readinto(self, buffer: Any) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed object stream")
        data = self._response.raw.read(len(buffer), decode_content=True)
        size = len(data)
        buffer[:size] = data
        return size

    def close(self) -> None:
        if not self.closed:
            try:
                self._response.close()
            finally:
                super().close()
