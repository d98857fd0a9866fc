"""Translation between domain attributes and the JSON object resource.

The wire shape is described by pydantic models so that structural problems
(wrong types, non-numeric sizes) are caught on validation. Field-level decoding
of checksums and timestamps happens in ``from_wire_object``. Every failure is
reported as a ``DecodeError`` naming the offending field, and no partial
result is ever returned.
"""

from __future__ import annotations

import base64
import binascii
import re
from datetime import datetime
from typing import Any

import requests
from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from gcsbucket.domain.errors import DecodeError
from gcsbucket.domain.objects import ACLRule, NewObjectAttributes, ObjectAttributes

_RFC3339 = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?(Z|[+-]\d{2}:\d{2})$"
)


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class WireAccessControl(_WireModel):
    entity: str = ""
    role: str = ""


class WireOwner(_WireModel):
    entity: str = ""


class WireObject(_WireModel):
    """The ``storage#object`` resource, restricted to the fields we use."""

    bucket: str | None = None
    name: str | None = None
    content_type: str | None = None
    content_language: str | None = None
    content_encoding: str | None = None
    cache_control: str | None = None
    acl: list[WireAccessControl] | None = None
    metadata: dict[str, str] | None = None
    owner: WireOwner | None = None
    # The service sends 64-bit integers as JSON strings.
    size: int | None = None
    media_link: str | None = None
    generation: int | None = None
    metageneration: int | None = None
    storage_class: str | None = None
    md5_hash: str | None = None
    crc32c: str | None = None
    time_created: str | None = None
    updated: str | None = None
    time_deleted: str | None = None


class WireObjectList(_WireModel):
    """The ``storage#objects`` listing resource."""

    items: list[dict[str, Any]] | None = None
    prefixes: list[str] | None = None
    next_page_token: str | None = None


def _or_none(value: str) -> str | None:
    return value or None


def to_wire_object(bucket_name: str, attrs: NewObjectAttributes) -> WireObject:
    """Build the create body. Server-assigned fields are never set."""
    return WireObject(
        bucket=bucket_name,
        name=attrs.name,
        content_type=_or_none(attrs.content_type),
        content_language=_or_none(attrs.content_language),
        content_encoding=_or_none(attrs.content_encoding),
        cache_control=_or_none(attrs.cache_control),
        acl=[WireAccessControl(entity=r.entity, role=r.role) for r in attrs.acl]
        or None,
        metadata=dict(attrs.metadata) or None,
    )


def serialize_metadata(bucket_name: str, attrs: NewObjectAttributes) -> bytes:
    """Serialize ``attrs`` as a JSON object resource for an insert body."""
    wire = to_wire_object(bucket_name, attrs)
    return wire.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")


def parse_rfc3339(field: str, value: str | None) -> datetime | None:
    if not value:
        return None
    if not _RFC3339.match(value.upper()):
        raise DecodeError(field, f"not an RFC 3339 timestamp: {value!r}")
    try:
        return datetime.fromisoformat(value.upper())
    except ValueError as exc:
        raise DecodeError(field, exc) from exc


def decode_md5(value: str | None) -> bytes:
    try:
        return base64.b64decode(value or "", validate=True)
    except binascii.Error as exc:
        raise DecodeError("md5Hash", exc) from exc


def decode_crc32c(value: str | None) -> int:
    """Decode a base64 CRC32C into an unsigned 32-bit integer.

    The checksum is transmitted big-endian, most significant byte first.
    """
    try:
        raw = base64.b64decode(value or "", validate=True)
    except binascii.Error as exc:
        raise DecodeError("crc32c", exc) from exc

    if len(raw) != 4:
        raise DecodeError("crc32c", f"wrong length for decoded value: {len(raw)}")

    return int.from_bytes(raw, "big", signed=False)


def from_wire_object(bucket_name: str, wire: WireObject) -> ObjectAttributes:
    """Decode a wire object resource into fresh domain attributes."""
    created = parse_rfc3339("timeCreated", wire.time_created)
    updated = parse_rfc3339("updated", wire.updated)
    deleted = parse_rfc3339("timeDeleted", wire.time_deleted)
    md5 = decode_md5(wire.md5_hash)
    crc32c = decode_crc32c(wire.crc32c)

    return ObjectAttributes(
        bucket=bucket_name,
        name=wire.name or "",
        content_type=wire.content_type or "",
        content_language=wire.content_language or "",
        content_encoding=wire.content_encoding or "",
        cache_control=wire.cache_control or "",
        metadata=dict(wire.metadata or {}),
        acl=tuple(ACLRule(entity=r.entity, role=r.role) for r in wire.acl or ()),
        owner=wire.owner.entity if wire.owner is not None else "",
        size=wire.size or 0,
        media_link=wire.media_link or "",
        generation=wire.generation or 0,
        meta_generation=wire.metageneration or 0,
        storage_class=wire.storage_class or "",
        crc32c=crc32c,
        md5=md5,
        created=created,
        updated=updated,
        deleted=deleted,
    )


def _validate(model: type[_WireModel], payload: Any) -> Any:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or "object"
        raise DecodeError(field, first["msg"]) from exc


def _response_json(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        raise DecodeError("response body", exc) from exc


def decode_object_response(
    bucket_name: str, response: requests.Response
) -> ObjectAttributes:
    """Parse a JSON object resource from a successful response body."""
    wire = _validate(WireObject, _response_json(response))
    return from_wire_object(bucket_name, wire)


def decode_list_response(
    bucket_name: str, response: requests.Response
) -> tuple[list[ObjectAttributes], list[str], str]:
    """Parse a listing page into (objects, prefixes, next page token)."""
    page = _validate(WireObjectList, _response_json(response))
    results = [
        from_wire_object(bucket_name, _validate(WireObject, item))
        for item in page.items or ()
    ]
    return results, list(page.prefixes or ()), page.next_page_token or ""
