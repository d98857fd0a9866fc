"""Percent-encoding of names into a single URL path segment.

RFC 3986 section 3.3 defines a segment as::

    segment     = *pchar
    pchar       = unreserved / pct-encoded / sub-delims / ":" / "@"
    unreserved  = ALPHA / DIGIT / "-" / "." / "_" / "~"
    sub-delims  = "!" / "$" / "&" / "'" / "(" / ")"
                / "*" / "+" / "," / ";" / "="

Bucket and object names are each encoded as one segment and joined with
``/``; they are never escaped together as a whole path. This is stricter than
``urllib.parse.quote`` (which leaves ``/`` alone) and looser than
``quote(safe="")`` (which escapes ``:``, ``@`` and the sub-delims).
"""

from __future__ import annotations

import string

_SEGMENT_SAFE: frozenset[int] = frozenset(
    (string.ascii_letters + string.digits + "-._~" + "!$&'()*+,;=" + ":@").encode(
        "ascii"
    )
)

_ESCAPED: tuple[str, ...] = tuple(
    chr(b) if b in _SEGMENT_SAFE else f"%{b:02X}" for b in range(256)
)


def should_escape(byte: int) -> bool:
    return byte not in _SEGMENT_SAFE


def encode_path_segment(value: str | bytes) -> str:
    """Percent-encode ``value`` so that it matches the ``segment`` grammar.

    Text is encoded as UTF-8 first. ``surrogateescape`` lets names that
    arrived as undecodable bytes go back out unchanged.
    """
    raw = (
        value.encode("utf-8", "surrogateescape") if isinstance(value, str) else value
    )

    # Fast path: nothing to escape.
    if not any(should_escape(b) for b in raw):
        return value if isinstance(value, str) else raw.decode("ascii")

    return "".join(_ESCAPED[b] for b in raw)
