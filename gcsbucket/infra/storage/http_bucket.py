"""Bucket implementation speaking the Cloud Storage JSON/HTTP API.

Dependencies:
    - requests (through the supplied executor)
    - pydantic (wire models, see ``codec``)
"""

from __future__ import annotations

import json
import logging
import re
import time
from http import HTTPStatus
from typing import TYPE_CHECKING, Any, Collection, Mapping
from urllib.parse import quote, urlencode, urljoin

import requests

from gcsbucket.domain import DEFAULT_CONTENT_TYPE
from gcsbucket.domain.bucket import Timeout
from gcsbucket.domain.errors import (
    InvalidObjectNameError,
    ProtocolError,
    StorageError,
)
from gcsbucket.domain.objects import (
    CreateObjectRequest,
    ObjectAttributes,
    Objects,
    Query,
    ReadObjectRequest,
    StatObjectRequest,
    UpdateObjectRequest,
)
from gcsbucket.infra.observability.metrics import LATENCY, REQUESTS
from gcsbucket.infra.storage.client import ObjectStream, RequestExecutor
from gcsbucket.infra.storage.codec import (
    decode_list_response,
    decode_object_response,
    serialize_metadata,
)
from gcsbucket.infra.storage.errors import (
    HttpError,
    check_response,
    classify_error,
    translate_delete_error,
)
from gcsbucket.infra.storage.path_encoding import encode_path_segment

if TYPE_CHECKING:
    from gcsbucket.common.config import Settings

logger = logging.getLogger("gcsbucket.http")

_TEMPLATE_VAR = re.compile(r"\{(\w+)\}")

_NOT_FOUND = (HTTPStatus.NOT_FOUND,)
_PRECONDITION_FAILED = (HTTPStatus.PRECONDITION_FAILED,)


def expand_template(template: str, values: Mapping[str, str]) -> str:
    """Expand ``{var}`` placeholders using RFC 6570 simple string expansion.

    Everything outside the unreserved set is escaped, including ``/``, so
    each value stays within its own path segment.
    """
    return _TEMPLATE_VAR.sub(lambda m: quote(values[m.group(1)], safe=""), template)


def _patch_body(req: UpdateObjectRequest) -> dict[str, Any]:
    body: dict[str, Any] = {}
    fields = (
        ("contentType", req.content_type),
        ("contentEncoding", req.content_encoding),
        ("contentLanguage", req.content_language),
        ("cacheControl", req.cache_control),
    )
    for key, value in fields:
        if value is None:
            continue
        # An empty string removes the field, which the service spells null.
        body[key] = value or None

    if req.metadata is not None:
        body["metadata"] = dict(req.metadata)

    return body


def _encode_json(payload: Mapping[str, Any]) -> bytes:
    return json.dumps(payload, separators=(",", ":")).encode("utf-8")


def _budget(timeout: float | tuple[float, float]) -> float:
    if isinstance(timeout, tuple):
        return sum(timeout)
    return timeout


def _remaining(
    timeout: float | tuple[float, float], deadline: float
) -> float | tuple[float, float]:
    """Shrink ``timeout`` to what is left of an operation started earlier."""
    left = deadline - time.monotonic()
    if left <= 0:
        raise requests.Timeout("Operation deadline exceeded")
    if isinstance(timeout, tuple):
        connect, read = timeout
        return min(connect, left), min(read, left)
    return min(timeout, left)


class HttpBucket:
    """A bucket bound to a project, a name and a request executor.

    Holds no mutable state, so one instance may be shared between threads.
    """

    def __init__(
        self,
        *,
        project_id: str,
        name: str,
        executor: RequestExecutor,
        settings: "Settings",
    ) -> None:
        self._project_id = project_id
        self._name = name
        self._executor = executor
        self._settings = settings

    @property
    def name(self) -> str:
        return self._name

    @property
    def project_id(self) -> str:
        return self._project_id

    # Helpers

    def _headers(self, content_type: str | None = None) -> dict[str, str]:
        headers = {"User-Agent": self._settings.GCS_USER_AGENT}
        if content_type:
            headers["Content-Type"] = content_type
        return headers

    def _resource_url(self, template: str, **values: str) -> str:
        resolved = urljoin(self._settings.GCS_API_BASE_URL, template)
        return expand_template(resolved, values)

    def _object_url(self, name: str) -> str:
        return self._resource_url(
            "b/{bucket}/o/{object}", bucket=self._name, object=name
        )

    def _send(
        self,
        operation: str,
        method: str,
        url: str,
        *,
        timeout: Timeout,
        **kwargs: Any,
    ) -> requests.Response:
        if timeout is None:
            timeout = self._settings.GCS_REQUEST_TIMEOUT

        extra_payload: dict[str, Any] = {
            "operation": operation,
            "method": method,
            "bucket": self._name,
        }
        if self._settings.TRACE_HTTP:
            extra_payload["url"] = url

        start = time.perf_counter()
        try:
            response = self._executor.request(method, url, timeout=timeout, **kwargs)
        except Exception as exc:
            elapsed = time.perf_counter() - start
            REQUESTS.labels(operation, method, "error").inc()
            LATENCY.labels(operation).observe(elapsed)
            duration_ms = round(elapsed * 1000, 3)
            error_payload = {
                **extra_payload,
                "duration_ms": duration_ms,
                "exception": repr(exc),
            }
            # Executors that raise for status report an ordinary response.
            if isinstance(exc, requests.HTTPError):
                logger.warning(
                    "request_error operation=%s method=%s duration_ms=%.3f",
                    operation,
                    method,
                    duration_ms,
                    extra={"extra": error_payload},
                )
            else:
                logger.exception(
                    "request_error operation=%s method=%s duration_ms=%.3f",
                    operation,
                    method,
                    duration_ms,
                    extra={"extra": error_payload},
                )
            raise

        elapsed = time.perf_counter() - start
        status_code = response.status_code
        REQUESTS.labels(operation, method, str(status_code)).inc()
        LATENCY.labels(operation).observe(elapsed)

        level = logging.DEBUG
        if status_code >= 500:
            level = logging.ERROR
        elif status_code >= 400:
            level = logging.WARNING

        duration_ms = round(elapsed * 1000, 3)
        logger.log(
            level,
            "request operation=%s method=%s status=%s duration_ms=%.3f",
            operation,
            method,
            status_code,
            duration_ms,
            extra={
                "extra": {
                    **extra_payload,
                    "status": status_code,
                    "duration_ms": duration_ms,
                }
            },
        )
        return response

    @staticmethod
    def _check(response: requests.Response, *, expected: Collection[int]) -> None:
        try:
            check_response(response)
        except HttpError as exc:
            typed = classify_error(exc, expected=expected)
            if typed is exc:
                raise
            raise typed from exc

    # Bucket operations

    def list_objects(
        self, query: Query | None = None, *, timeout: Timeout = None
    ) -> Objects:
        query = query or Query()
        params: dict[str, str] = {"projection": "full"}
        if query.prefix:
            params["prefix"] = query.prefix
        if query.delimiter:
            params["delimiter"] = query.delimiter
        if query.cursor:
            params["pageToken"] = query.cursor
        if query.max_results:
            params["maxResults"] = str(int(query.max_results))
        if query.versions:
            params["versions"] = "true"

        url = self._resource_url("b/{bucket}/o", bucket=self._name)
        url = f"{url}?{urlencode(params)}"

        response = self._send(
            "list", "GET", url, headers=self._headers(), timeout=timeout
        )
        with response:
            self._check(response, expected=())
            results, prefixes, token = decode_list_response(self._name, response)

        return Objects(
            results=results,
            prefixes=prefixes,
            next=query.with_cursor(token) if token else None,
        )

    def new_reader(
        self, req: ReadObjectRequest, *, timeout: Timeout = None
    ) -> ObjectStream:
        # Each of the bucket and object names is encoded into a single path
        # segment of the direct-access URL.
        url = "https://{host}/{bucket}/{object}".format(
            host=self._settings.GCS_STORAGE_HOST,
            bucket=encode_path_segment(self._name),
            object=encode_path_segment(req.name),
        )
        if req.generation != 0:
            url = f"{url}?generation={int(req.generation)}"

        response = self._send(
            "read", "GET", url, headers=self._headers(), stream=True, timeout=timeout
        )
        try:
            self._check(response, expected=_NOT_FOUND)
        except Exception:
            response.close()
            raise

        return ObjectStream(response)

    def create_object(
        self, req: CreateObjectRequest, *, timeout: Timeout = None
    ) -> ObjectAttributes:
        # JSON encoding silently replaces unencodable text, so the service
        # cannot be relied on to reject such names.
        try:
            req.attrs.name.encode("utf-8")
        except UnicodeEncodeError as exc:
            raise InvalidObjectNameError(
                "Invalid object name: not valid UTF-8"
            ) from exc

        # Both phases share one deadline.
        if timeout is None:
            timeout = self._settings.GCS_REQUEST_TIMEOUT
        deadline = time.monotonic() + _budget(timeout)

        # Uploads with ifGenerationMatch but no content type are rejected.
        content_type = req.attrs.content_type or DEFAULT_CONTENT_TYPE

        url = (
            f"https://{self._settings.GCS_UPLOAD_HOST}/upload/storage/v1/b/"
            f"{encode_path_segment(self._name)}/o"
            "?uploadType=resumable&projection=full"
        )
        if req.generation_precondition is not None:
            url = f"{url}&ifGenerationMatch={int(req.generation_precondition)}"

        headers = self._headers("application/json")
        headers["X-Upload-Content-Type"] = content_type

        response = self._send(
            "create.initiate",
            "POST",
            url,
            data=serialize_metadata(self._name, req.attrs),
            headers=headers,
            timeout=timeout,
        )
        # The service may check ifGenerationMatch when the session starts.
        with response:
            self._check(response, expected=_PRECONDITION_FAILED)
            location = response.headers.get("Location")

        if not location:
            raise ProtocolError("Expected a Location header for the upload session")

        response = self._send(
            "create.upload",
            "PUT",
            location,
            data=req.contents,
            headers=self._headers(content_type),
            timeout=_remaining(timeout, deadline),
        )
        with response:
            self._check(response, expected=_PRECONDITION_FAILED)
            return decode_object_response(self._name, response)

    def stat_object(
        self, req: StatObjectRequest, *, timeout: Timeout = None
    ) -> ObjectAttributes:
        url = f"{self._object_url(req.name)}?projection=full"
        response = self._send(
            "stat", "GET", url, headers=self._headers(), timeout=timeout
        )
        with response:
            self._check(response, expected=_NOT_FOUND)
            return decode_object_response(self._name, response)

    def update_object(
        self, req: UpdateObjectRequest, *, timeout: Timeout = None
    ) -> ObjectAttributes:
        url = f"{self._object_url(req.name)}?projection=full"
        response = self._send(
            "update",
            "PATCH",
            url,
            data=_encode_json(_patch_body(req)),
            headers=self._headers("application/json"),
            timeout=timeout,
        )
        with response:
            self._check(response, expected=_NOT_FOUND)
            return decode_object_response(self._name, response)

    def delete_object(self, name: str, *, timeout: Timeout = None) -> None:
        try:
            response = self._send(
                "delete",
                "DELETE",
                self._object_url(name),
                headers=self._headers(),
                timeout=timeout,
            )
            with response:
                self._check(response, expected=_NOT_FOUND)
        except (StorageError, requests.RequestException) as exc:
            translated = translate_delete_error(exc)
            if translated is exc:
                raise
            raise translated from exc
