"""Domain-level failures raised by bucket operations.

Transport errors that have no domain meaning (network failures, timeouts,
unexpected statuses) are not represented here; they propagate unwrapped as
``requests`` exceptions.
"""

from __future__ import annotations


class StorageError(RuntimeError):
    """Base class for typed bucket failures."""


class NotFoundError(StorageError):
    """The object (or the requested generation) does not exist.

    The original transport error is kept in ``err`` for diagnostics.
    """

    def __init__(self, err: BaseException) -> None:
        super().__init__(f"Not found: {err}")
        self.err = err


class PreconditionError(StorageError):
    """A generation precondition supplied with a create was not met."""

    def __init__(self, err: BaseException) -> None:
        super().__init__(f"Precondition failed: {err}")
        self.err = err


class InvalidObjectNameError(StorageError, ValueError):
    """The object name was rejected before any request was sent."""


class DecodeError(StorageError, ValueError):
    """A response could not be decoded into domain attributes.

    ``field`` names the wire field (or ``"response body"``) that failed.
    """

    def __init__(self, field: str, reason: object) -> None:
        super().__init__(f"Decoding {field}: {reason}")
        self.field = field


class ProtocolError(StorageError):
    """The service answered successfully but broke the expected protocol."""
