"""Typed client for Cloud Storage buckets."""

from gcsbucket.domain import (
    ACLRule,
    Bucket,
    CreateObjectRequest,
    DecodeError,
    InvalidObjectNameError,
    NewObjectAttributes,
    NotFoundError,
    ObjectAttributes,
    Objects,
    PreconditionError,
    ProtocolError,
    Query,
    ReadObjectRequest,
    StatObjectRequest,
    StorageError,
    UpdateObjectRequest,
)
from gcsbucket.services import Connection, new_connection, open_bucket

__all__ = [
    "ACLRule",
    "Bucket",
    "Connection",
    "CreateObjectRequest",
    "DecodeError",
    "InvalidObjectNameError",
    "NewObjectAttributes",
    "NotFoundError",
    "ObjectAttributes",
    "Objects",
    "PreconditionError",
    "ProtocolError",
    "Query",
    "ReadObjectRequest",
    "StatObjectRequest",
    "StorageError",
    "UpdateObjectRequest",
    "new_connection",
    "open_bucket",
]
