"""Cloud Storage protocol adapter.

This package translates bucket operations into the JSON/HTTP wire conventions
of the storage service and translates responses back into domain results.
"""

from .client import ObjectStream, RequestExecutor
from .codec import (
    WireObject,
    decode_object_response,
    from_wire_object,
    serialize_metadata,
    to_wire_object,
)
from .errors import HttpError, check_response, classify_error
from .http_bucket import HttpBucket
from .path_encoding import encode_path_segment

__all__ = [
    "HttpBucket",
    "HttpError",
    "ObjectStream",
    "RequestExecutor",
    "WireObject",
    "check_response",
    "classify_error",
    "decode_object_response",
    "encode_path_segment",
    "from_wire_object",
    "serialize_metadata",
    "to_wire_object",
]
