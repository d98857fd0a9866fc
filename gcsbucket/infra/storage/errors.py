"""Classification of HTTP responses into domain errors.

Every round trip is checked with ``check_response`` immediately after it
completes. Statuses with a domain meaning for the calling operation are turned
into typed errors by ``classify_error``; everything else stays an opaque
``HttpError`` (or whatever ``requests`` raised) and propagates unwrapped.
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Any, Collection

import requests

from gcsbucket.domain.errors import NotFoundError, PreconditionError

_TYPED_ERRORS = {
    HTTPStatus.NOT_FOUND: NotFoundError,
    HTTPStatus.PRECONDITION_FAILED: PreconditionError,
}


class HttpError(requests.HTTPError):
    """A non-success status returned by the service."""

    def __init__(
        self,
        code: int,
        message: str,
        *,
        errors: list[dict[str, Any]] | None = None,
        response: requests.Response | None = None,
    ) -> None:
        super().__init__(f"HTTP {code}: {message}", response=response)
        self.code = code
        self.message = message
        self.errors = errors or []


def _error_message(response: requests.Response) -> tuple[str, list[dict[str, Any]]]:
    try:
        payload = response.json()
    except ValueError:
        return (response.text or response.reason or "").strip(), []

    envelope = payload.get("error") if isinstance(payload, dict) else None
    if not isinstance(envelope, dict):
        return (response.text or "").strip(), []

    errors = envelope.get("errors")
    return str(envelope.get("message") or ""), errors if isinstance(errors, list) else []


def check_response(response: requests.Response) -> None:
    """Raise ``HttpError`` unless ``response`` carries a 2xx status."""
    if 200 <= response.status_code < 300:
        return

    message, errors = _error_message(response)
    if not message:
        message = _status_phrase(response.status_code)
    raise HttpError(response.status_code, message, errors=errors, response=response)


def _status_phrase(code: int) -> str:
    try:
        return HTTPStatus(code).phrase
    except ValueError:
        return "unexpected status"


def classify_error(
    err: Exception, *, expected: Collection[int] = (HTTPStatus.NOT_FOUND,)
) -> Exception:
    """Return the domain error for ``err``, or ``err`` itself.

    Only statuses listed in ``expected`` are translated; which ones carry
    meaning depends on the operation (not-found for reads and metadata calls,
    precondition failures for uploads).
    """
    if isinstance(err, HttpError) and err.code in expected:
        typed = _TYPED_ERRORS.get(err.code)
        if typed is not None:
            return typed(err)
    return err


def translate_delete_error(err: Exception) -> Exception:
    """Second not-found check applied to deletes.

    Executors that raise for status themselves (for example through a
    ``raise_for_status`` response hook) surface a bare ``requests.HTTPError``
    instead of returning the response, so a missing object would otherwise
    look like a generic failure.
    """
    if isinstance(err, NotFoundError):
        return err

    response = getattr(err, "response", None)
    if (
        isinstance(err, requests.HTTPError)
        and response is not None
        and response.status_code == HTTPStatus.NOT_FOUND
    ):
        return NotFoundError(err)

    return err
