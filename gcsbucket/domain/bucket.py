"""Bucket protocol and the readable stream it hands out.

Each method that may block accepts ``timeout``: seconds, or a
``(connect, read)`` tuple, applied to the in-flight request. ``None`` uses the
configured default.
"""

from __future__ import annotations

from typing import IO, Protocol, Tuple, Union

from gcsbucket.domain.objects import (
    CreateObjectRequest,
    ObjectAttributes,
    Objects,
    Query,
    ReadObjectRequest,
    StatObjectRequest,
    UpdateObjectRequest,
)

Timeout = Union[float, Tuple[float, float], None]


class Bucket(Protocol):
    """A bucket pre-bound with its name and a request executor.

    Implementations must provide all methods defined here.
    """

    @property
    def name(self) -> str:
        ...

    def list_objects(
        self, query: Query | None = None, *, timeout: Timeout = None
    ) -> Objects:
        """List objects matching ``query``.

        Returns one page of results. ``Objects.next`` holds the query for
        the following page, if there is one.
        """
        ...

    def new_reader(
        self, req: ReadObjectRequest, *, timeout: Timeout = None
    ) -> IO[bytes]:
        """Open the contents of a particular generation of an object.

        The caller owns the returned stream and must close it on every exit
        path.

        Raises:
            NotFoundError: If the object or generation does not exist.
        """
        ...

    def create_object(
        self, req: CreateObjectRequest, *, timeout: Timeout = None
    ) -> ObjectAttributes:
        """Create or overwrite an object.

        The object is readable once this returns. It does not exist before
        ``req.contents`` has been consumed to the end.

        Raises:
            InvalidObjectNameError: If the name is not valid UTF-8.
            PreconditionError: If ``req.generation_precondition`` is not met.
        """
        ...

    def stat_object(
        self, req: StatObjectRequest, *, timeout: Timeout = None
    ) -> ObjectAttributes:
        """Return current information about an object.

        Raises:
            NotFoundError: If the object does not exist.
        """
        ...

    def update_object(
        self, req: UpdateObjectRequest, *, timeout: Timeout = None
    ) -> ObjectAttributes:
        """Patch an object's metadata and return its new attributes.

        Raises:
            NotFoundError: If the object does not exist.
        """
        ...

    def delete_object(self, name: str, *, timeout: Timeout = None) -> None:
        """Delete the live generation of an object.

        Raises:
            NotFoundError: If the object does not exist.
        """
        ...
