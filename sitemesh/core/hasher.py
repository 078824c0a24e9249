"""Canonical encoding and hashing helpers.

Every participant must produce byte-identical encodings for the same value,
otherwise signatures computed by one node fail on another.  The canonical
form is CBOR (RFC 8949), laid out as serde + ciborium lay it out:
- byte strings as major type 2, text as major type 3
- the shortest integer / length head for every item
- definite-length maps with entries in the caller's insertion order
  (callers fix the order)
"""

from __future__ import annotations

import hashlib
from typing import Any

import cbor2


def canonical_bytes(obj: Any) -> bytes:
    """Produce canonical CBOR bytes for *obj*."""
    return cbor2.dumps(obj)


def load_canonical(data: bytes) -> Any:
    """Parse exactly one canonically encoded CBOR item from *data*.

    The decoded value must re-encode to *data* byte for byte, which rejects
    trailing bytes as well as over-long integer and length heads.  Raises
    ``ValueError`` on any malformed, truncated, or non-canonical input.
    """
    try:
        obj = cbor2.loads(data)
        reencoded = cbor2.dumps(obj)
    except Exception as exc:  # noqa: BLE001
        # semantic tag decoders (dates, decimals, uuids) raise arbitrary types
        raise ValueError(f"Invalid CBOR: {exc}") from exc
    if reencoded != data:
        raise ValueError("CBOR input is not in canonical form or has trailing bytes")
    return obj


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def topic_hash(name: str) -> bytes:
    """Hash a human-readable topic or network name into a 32-byte id."""
    return hashlib.sha256(name.encode("utf-8")).digest()


def key_fingerprint(public_key: bytes) -> str:
    """Short fingerprint of a public key for log lines.

    Returns the first 16 hex characters of SHA-256(public_key).
    """
    if not public_key:
        return ""
    return sha256_hex(public_key)[:16]
