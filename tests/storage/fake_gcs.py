"""In-memory fake of the Cloud Storage HTTP endpoints for testing.

Acts as a request executor for ``HttpBucket``: it parses the URLs the bucket
builds, keeps objects in a dict, and answers with real ``requests.Response``
objects. Object versioning is not simulated; only the live generation of
each name is kept.
"""

from __future__ import annotations

import base64
import hashlib
import io
import itertools
import json
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from http import HTTPStatus
from typing import Any
from urllib.parse import parse_qs, quote, unquote, urlsplit

import google_crc32c
import requests
from requests.structures import CaseInsensitiveDict
from urllib3 import HTTPResponse

from gcsbucket.common.config import Settings
from gcsbucket.testing.clock import Clock


def _format_time(value: datetime) -> str:
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


@dataclass
class StoredObject:
    name: str
    data: bytes
    generation: int
    created: datetime
    updated: datetime
    metageneration: int = 1
    content_type: str | None = None
    content_language: str | None = None
    content_encoding: str | None = None
    cache_control: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)
    acl: list[dict[str, str]] = field(default_factory=list)

    def resource(self, bucket: str, api_host: str) -> dict[str, Any]:
        crc = google_crc32c.value(self.data)
        payload: dict[str, Any] = {
            "kind": "storage#object",
            "bucket": bucket,
            "name": self.name,
            "size": str(len(self.data)),
            "generation": str(self.generation),
            "metageneration": str(self.metageneration),
            "md5Hash": base64.b64encode(hashlib.md5(self.data).digest()).decode(),
            "crc32c": base64.b64encode(crc.to_bytes(4, "big")).decode(),
            "timeCreated": _format_time(self.created),
            "updated": _format_time(self.updated),
            "storageClass": "STANDARD",
            "owner": {"entity": "user-fake"},
            "mediaLink": (
                f"https://{api_host}/download/storage/v1/b/{bucket}/o/"
                f"{quote(self.name, safe='')}?generation={self.generation}&alt=media"
            ),
        }
        optional = {
            "contentType": self.content_type,
            "contentLanguage": self.content_language,
            "contentEncoding": self.content_encoding,
            "cacheControl": self.cache_control,
        }
        payload.update({k: v for k, v in optional.items() if v})
        if self.metadata:
            payload["metadata"] = dict(self.metadata)
        if self.acl:
            payload["acl"] = [dict(rule) for rule in self.acl]
        return payload


class FakeGcsServer:
    """Request executor answering upload, read, resource and list calls."""

    def __init__(self, *, settings: Settings, clock: Clock, bucket_name: str) -> None:
        self._settings = settings
        self._clock = clock
        self._bucket = bucket_name
        self._api = urlsplit(settings.GCS_API_BASE_URL)
        self._lock = threading.RLock()
        self._objects: dict[str, StoredObject] = {}
        self._uploads: dict[str, dict[str, Any]] = {}
        self._generations = itertools.count(1_428_000_000_000_000)
        self._upload_ids = itertools.count(1)
        self.calls: list[tuple[str, str, dict[str, str]]] = []
        self.responses: list[requests.Response] = []

    # Executor protocol

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        data: Any = None,
        stream: bool = False,
        timeout: Any = None,
    ) -> requests.Response:
        headers = CaseInsensitiveDict(headers or {})
        with self._lock:
            self.calls.append((method, url, dict(headers)))

        parts = urlsplit(url)
        query = {k: v[0] for k, v in parse_qs(parts.query).items()}
        segments = parts.path.split("/")

        if parts.netloc == self._settings.GCS_STORAGE_HOST:
            return self._direct_read(method, url, segments, query)

        if parts.netloc == self._settings.GCS_UPLOAD_HOST and parts.path.startswith(
            "/upload/storage/v1/b/"
        ):
            return self._upload(method, url, segments, query, headers, data)

        if parts.netloc == self._api.netloc and parts.path.startswith(
            self._api.path + "b/"
        ):
            rest = parts.path[len(self._api.path) :].split("/")
            return self._resource(method, url, rest, query, data)

        return self._error(url, HTTPStatus.NOT_FOUND, "No such endpoint")

    # Endpoints

    def _direct_read(
        self, method: str, url: str, segments: list[str], query: dict[str, str]
    ) -> requests.Response:
        if method != "GET" or len(segments) != 3:
            return self._error(url, HTTPStatus.BAD_REQUEST, "Malformed read URL")
        if unquote(segments[1]) != self._bucket:
            return self._error(url, HTTPStatus.NOT_FOUND, "No such bucket")

        name = unquote(segments[2])
        generation = int(query.get("generation", "0"))
        with self._lock:
            obj = self._objects.get(name)
            if obj is None or (generation and obj.generation != generation):
                return self._error(url, HTTPStatus.NOT_FOUND, "No such object")
            data = obj.data

        return self._respond(
            url, HTTPStatus.OK, data, {"Content-Type": obj.content_type or ""}
        )

    def _upload(
        self,
        method: str,
        url: str,
        segments: list[str],
        query: dict[str, str],
        headers: CaseInsensitiveDict,
        data: Any,
    ) -> requests.Response:
        # /upload/storage/v1/b/<bucket>/o
        if len(segments) != 7 or segments[6] != "o":
            return self._error(url, HTTPStatus.BAD_REQUEST, "Malformed upload URL")
        if unquote(segments[5]) != self._bucket:
            return self._error(url, HTTPStatus.NOT_FOUND, "No such bucket")

        if method == "POST":
            if query.get("uploadType") != "resumable":
                return self._error(url, HTTPStatus.BAD_REQUEST, "Expected resumable")
            upload_id = str(next(self._upload_ids))
            resource = json.loads(data or b"{}")
            precondition = query.get("ifGenerationMatch")
            with self._lock:
                # Checked again on PUT, since the object may change in between.
                if not self._precondition_holds(resource.get("name"), precondition):
                    return self._error(
                        url, HTTPStatus.PRECONDITION_FAILED, "Precondition Failed"
                    )
                self._uploads[upload_id] = {
                    "resource": resource,
                    "precondition": precondition,
                    "content_type": headers.get("X-Upload-Content-Type"),
                }
            location = (
                f"https://{self._settings.GCS_UPLOAD_HOST}/upload/storage/v1/b/"
                f"{segments[5]}/o?uploadType=resumable&upload_id={upload_id}"
            )
            return self._respond(url, HTTPStatus.OK, b"", {"Location": location})

        if method == "PUT":
            contents = _consume(data)
            with self._lock:
                upload = self._uploads.pop(query.get("upload_id", ""), None)
                if upload is None:
                    return self._error(url, HTTPStatus.NOT_FOUND, "No such upload")
                resource = upload["resource"]
                name = resource["name"]
                if not self._precondition_holds(name, upload["precondition"]):
                    return self._error(
                        url, HTTPStatus.PRECONDITION_FAILED, "Precondition Failed"
                    )
                now = self._clock.now()
                obj = StoredObject(
                    name=name,
                    data=contents,
                    generation=next(self._generations),
                    created=now,
                    updated=now,
                    content_type=resource.get("contentType")
                    or headers.get("Content-Type")
                    or upload["content_type"],
                    content_language=resource.get("contentLanguage"),
                    content_encoding=resource.get("contentEncoding"),
                    cache_control=resource.get("cacheControl"),
                    metadata=dict(resource.get("metadata") or {}),
                    acl=list(resource.get("acl") or []),
                )
                self._objects[name] = obj
                payload = obj.resource(self._bucket, self._api.netloc)
            return self._respond_json(url, HTTPStatus.OK, payload)

        return self._error(url, HTTPStatus.METHOD_NOT_ALLOWED, "Unsupported method")

    def _resource(
        self,
        method: str,
        url: str,
        rest: list[str],
        query: dict[str, str],
        data: Any,
    ) -> requests.Response:
        # b/<bucket>/o or b/<bucket>/o/<object>
        if len(rest) < 3 or rest[2] != "o" or len(rest) > 4:
            return self._error(url, HTTPStatus.BAD_REQUEST, "Malformed resource URL")
        if unquote(rest[1]) != self._bucket:
            return self._error(url, HTTPStatus.NOT_FOUND, "No such bucket")

        if len(rest) == 3:
            if method != "GET":
                return self._error(url, HTTPStatus.METHOD_NOT_ALLOWED, "Unsupported")
            return self._respond_json(url, HTTPStatus.OK, self._list(query))

        name = unquote(rest[3])
        with self._lock:
            obj = self._objects.get(name)
            if obj is None:
                return self._error(url, HTTPStatus.NOT_FOUND, "No such object")

            if method == "GET":
                payload = obj.resource(self._bucket, self._api.netloc)
            elif method == "PATCH":
                self._apply_patch(obj, json.loads(data or b"{}"))
                payload = obj.resource(self._bucket, self._api.netloc)
            elif method == "DELETE":
                del self._objects[name]
                return self._respond(url, HTTPStatus.NO_CONTENT, b"")
            else:
                return self._error(url, HTTPStatus.METHOD_NOT_ALLOWED, "Unsupported")

        return self._respond_json(url, HTTPStatus.OK, payload)

    def _precondition_holds(self, name: str | None, precondition: str | None) -> bool:
        if precondition is None:
            return True
        existing = self._objects.get(name or "")
        current = existing.generation if existing else 0
        return int(precondition) == current

    def _apply_patch(self, obj: StoredObject, patch: dict[str, Any]) -> None:
        attributes = {
            "contentType": "content_type",
            "contentLanguage": "content_language",
            "contentEncoding": "content_encoding",
            "cacheControl": "cache_control",
        }
        for key, attr in attributes.items():
            if key in patch:
                setattr(obj, attr, patch[key])

        for key, value in (patch.get("metadata") or {}).items():
            if value is None:
                obj.metadata.pop(key, None)
            else:
                obj.metadata[key] = value

        obj.metageneration += 1
        obj.updated = self._clock.now()

    def _list(self, query: dict[str, str]) -> dict[str, Any]:
        prefix = query.get("prefix", "")
        delimiter = query.get("delimiter", "")
        token = query.get("pageToken", "")
        max_results = int(query.get("maxResults", "1000"))

        items: list[dict[str, Any]] = []
        prefixes: list[str] = []
        next_token = ""
        with self._lock:
            for name in sorted(self._objects):
                if not name.startswith(prefix) or (token and name <= token):
                    continue
                rest = name[len(prefix) :]
                if delimiter and delimiter in rest:
                    collapsed = prefix + rest[: rest.index(delimiter) + len(delimiter)]
                    if collapsed not in prefixes:
                        prefixes.append(collapsed)
                    continue
                if len(items) == max_results:
                    next_token = items[-1]["name"]
                    break
                items.append(
                    self._objects[name].resource(self._bucket, self._api.netloc)
                )

        payload: dict[str, Any] = {"kind": "storage#objects"}
        if items:
            payload["items"] = items
        if prefixes:
            payload["prefixes"] = prefixes
        if next_token:
            payload["nextPageToken"] = next_token
        return payload

    # Responses

    def _respond(
        self,
        url: str,
        status: int,
        body: bytes,
        headers: dict[str, str] | None = None,
    ) -> requests.Response:
        response = build_response(url, status, body, headers)
        with self._lock:
            self.responses.append(response)
        return response

    def _respond_json(
        self, url: str, status: int, payload: dict[str, Any]
    ) -> requests.Response:
        return self._respond(
            url,
            status,
            json.dumps(payload).encode("utf-8"),
            {"Content-Type": "application/json; charset=UTF-8"},
        )

    def _error(self, url: str, status: int, message: str) -> requests.Response:
        payload = {
            "error": {
                "code": int(status),
                "message": message,
                "errors": [{"domain": "global", "reason": "fake", "message": message}],
            }
        }
        return self._respond_json(url, status, payload)


def build_response(
    url: str,
    status: int,
    body: bytes = b"",
    headers: dict[str, str] | None = None,
) -> requests.Response:
    """Build a response whose body is read from the raw stream, as on the wire."""
    response = requests.Response()
    response.status_code = int(status)
    response.reason = HTTPStatus(status).phrase
    response.url = url
    response.encoding = "utf-8"
    response.headers = CaseInsensitiveDict(headers or {})
    response.raw = HTTPResponse(
        body=io.BytesIO(body),
        headers=headers or {},
        status=int(status),
        preload_content=False,
        decode_content=False,
    )
    return response


def _consume(data: Any) -> bytes:
    if data is None:
        return b""
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    if hasattr(data, "read"):
        return data.read()
    return b"".join(data)
