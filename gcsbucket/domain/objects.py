"""Value types exchanged with a bucket.

Requests are built once per call and consumed by a single operation.
``ObjectAttributes`` is only ever produced by decoding a service response.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import BinaryIO, Iterable, Union

ObjectContents = Union[bytes, BinaryIO, Iterable[bytes]]


@dataclass(frozen=True, slots=True)
class ACLRule:
    """A single access-control entry."""

    entity: str
    role: str


@dataclass(frozen=True, slots=True)
class ObjectAttributes:
    """Metadata describing one generation of an object."""

    bucket: str
    name: str
    content_type: str = ""
    content_language: str = ""
    content_encoding: str = ""
    cache_control: str = ""
    metadata: dict[str, str] = field(default_factory=dict)
    acl: tuple[ACLRule, ...] = ()
    owner: str = ""
    size: int = 0
    media_link: str = ""
    generation: int = 0
    meta_generation: int = 0
    storage_class: str = ""
    crc32c: int = 0
    md5: bytes = b""
    created: datetime | None = None
    updated: datetime | None = None
    deleted: datetime | None = None


@dataclass(frozen=True, slots=True)
class NewObjectAttributes:
    """Attributes an object should be created with.

    ``name`` is required. Empty values for the other fields mean "not
    specified" and are left for the service to fill in.
    """

    name: str
    content_type: str = ""
    content_language: str = ""
    content_encoding: str = ""
    cache_control: str = ""
    metadata: dict[str, str] = field(default_factory=dict)
    acl: tuple[ACLRule, ...] = ()


@dataclass(frozen=True, slots=True)
class CreateObjectRequest:
    """Create or overwrite an object.

    ``generation_precondition`` of ``None`` creates unconditionally, ``0``
    requires that the object not exist, and any other value requires the
    live object to be at exactly that generation.
    """

    attrs: NewObjectAttributes
    contents: ObjectContents
    generation_precondition: int | None = None


@dataclass(frozen=True, slots=True)
class ReadObjectRequest:
    name: str
    # Zero selects the latest generation.
    generation: int = 0


@dataclass(frozen=True, slots=True)
class StatObjectRequest:
    name: str


@dataclass(frozen=True, slots=True)
class UpdateObjectRequest:
    """Patch the metadata of an existing object.

    For each of the four string fields:

    * ``None`` leaves the field untouched.
    * ``""`` removes the field.
    * Anything else sets the field to that value.

    There is no way to set a field to the empty string. The content type
    cannot be removed.

    ``metadata`` is a delta: keys mapped to ``None`` are deleted, keys mapped
    to a string are set, and keys not mentioned are untouched.
    """

    name: str
    content_type: str | None = None
    content_encoding: str | None = None
    content_language: str | None = None
    cache_control: str | None = None
    metadata: dict[str, str | None] | None = None


@dataclass(frozen=True, slots=True)
class Query:
    """Criteria for listing objects."""

    prefix: str = ""
    delimiter: str = ""
    # Opaque page token returned by a previous listing.
    cursor: str = ""
    # Zero lets the service pick the page size.
    max_results: int = 0
    versions: bool = False

    def with_cursor(self, cursor: str) -> "Query":
        return replace(self, cursor=cursor)


@dataclass(frozen=True, slots=True)
class Objects:
    """One page of listing results.

    ``next`` is the query for the following page, or ``None`` when the
    listing is complete.
    """

    results: list[ObjectAttributes] = field(default_factory=list)
    prefixes: list[str] = field(default_factory=list)
    next: Query | None = None
