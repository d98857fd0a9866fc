"""
Domain layer package housing the bucket contract, its value types and errors.
"""

from typing import Final

from .bucket import Bucket, Timeout
from .errors import (
    DecodeError,
    InvalidObjectNameError,
    NotFoundError,
    PreconditionError,
    ProtocolError,
    StorageError,
)
from .objects import (
    ACLRule,
    CreateObjectRequest,
    NewObjectAttributes,
    ObjectAttributes,
    Objects,
    Query,
    ReadObjectRequest,
    StatObjectRequest,
    UpdateObjectRequest,
)

# Preconditioned uploads are rejected when no content type is given at all.
DEFAULT_CONTENT_TYPE: Final[str] = "application/octet-stream"

__all__ = [
    "ACLRule",
    "Bucket",
    "CreateObjectRequest",
    "DEFAULT_CONTENT_TYPE",
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
    "Timeout",
    "UpdateObjectRequest",
]
