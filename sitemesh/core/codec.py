"""Envelope codec — sign/encode and decode/verify announcement envelopes.

Signing covers the canonical bytes of the payload alone, never the whole
envelope, so the unsigned ``id`` nonce can differ between otherwise
identical broadcasts.  Verification re-encodes the decoded payload with the
same canonical rules and checks the signature against those bytes.

Failures are split in two so callers can tell them apart:

- ``DecodeError``: the bytes are not a structurally valid envelope
  (malformed or truncated CBOR, trailing bytes, missing or unexpected
  fields, wrong field types or lengths, unknown payload tag).
- ``SignatureError``: the envelope parsed but its signature does not verify
  under the embedded public key.

No payload semantics are checked here; an empty site name is a valid
registration as far as the codec is concerned.
"""

from __future__ import annotations

import logging
import secrets
from typing import Any

from pydantic import ValidationError

from sitemesh.core.hasher import canonical_bytes, key_fingerprint, load_canonical
from sitemesh.core.identity import Identity, verify_signature
from sitemesh.models.envelopes import ENVELOPE_FIELDS, ENVELOPE_ID_MAX, Envelope
from sitemesh.models.payloads import PAYLOAD_TYPE_MAP, Payload, PayloadKind

logger = logging.getLogger(__name__)


class EnvelopeError(ValueError):
    """Base class for envelope decode and verification failures."""


class DecodeError(EnvelopeError):
    """Raised when bytes cannot be parsed as an envelope."""


class SignatureError(EnvelopeError):
    """Raised when a well-formed envelope fails signature verification."""


def new_envelope_id() -> int:
    """Random 32-bit nonce for a fresh envelope."""
    return secrets.randbits(32)


# ---------------------------------------------------------------------------
# Encode
# ---------------------------------------------------------------------------


def encode_payload(payload: Payload) -> bytes:
    """Canonical bytes of a payload — exactly what gets signed."""
    return canonical_bytes(payload.to_wire())


def encode_envelope(envelope: Envelope) -> bytes:
    """Canonical bytes of a complete envelope."""
    return canonical_bytes(envelope.to_wire())


def sign_and_encode(
    identity: Identity,
    payload: Payload,
    *,
    envelope_id: int | None = None,
) -> bytes:
    """Sign *payload* with *identity* and return the encoded envelope.

    Parameters
    ----------
    identity:
        The local signing identity.
    payload:
        Any payload variant.
    envelope_id:
        Fixed nonce.  A random one is drawn when ``None``.  With a fixed
        id the output is fully reproducible, since Ed25519 signatures are
        deterministic.
    """
    if envelope_id is None:
        envelope_id = new_envelope_id()
    elif not 0 <= envelope_id <= ENVELOPE_ID_MAX:
        raise ValueError(f"envelope_id out of u32 range: {envelope_id}")

    signature = identity.sign(encode_payload(payload))
    envelope = Envelope(
        id=envelope_id,
        signature=signature,
        public_key=identity.public_key,
        payload=payload,
    )
    data = encode_envelope(envelope)
    logger.debug(
        "Encoded %s envelope id=%d (%d bytes) from %s",
        payload.payload_kind.value,
        envelope_id,
        len(data),
        identity.fingerprint,
    )
    return data


# ---------------------------------------------------------------------------
# Decode
# ---------------------------------------------------------------------------


def _decode_payload(raw: Any) -> Payload:
    """Build a payload model from its externally tagged wire form."""
    if not isinstance(raw, dict) or len(raw) != 1:
        raise DecodeError("payload must be a map with exactly one variant tag")

    tag, fields = next(iter(raw.items()))
    try:
        kind = PayloadKind(tag)
    except ValueError as exc:
        raise DecodeError(f"Unknown payload tag: {tag!r}") from exc

    if not isinstance(fields, dict):
        raise DecodeError(f"{kind.value} fields must be a map")

    model_cls = PAYLOAD_TYPE_MAP[kind]
    try:
        return model_cls.model_validate(fields)
    except ValidationError as exc:
        raise DecodeError(f"{kind.value} validation failed: {exc}") from exc


def decode(data: bytes) -> Envelope:
    """Parse *data* into an ``Envelope`` without verifying the signature."""
    try:
        raw = load_canonical(data)
    except (ValueError, TypeError) as exc:
        raise DecodeError(f"Malformed envelope bytes: {exc}") from exc

    if not isinstance(raw, dict):
        raise DecodeError(
            f"Envelope must be a map, got {type(raw).__name__}"
        )

    missing = [f for f in ENVELOPE_FIELDS if f not in raw]
    if missing:
        raise DecodeError(f"Envelope missing fields: {', '.join(missing)}")
    unexpected = sorted(str(k) for k in raw if k not in ENVELOPE_FIELDS)
    if unexpected:
        raise DecodeError(f"Envelope has unexpected fields: {', '.join(unexpected)}")

    payload = _decode_payload(raw["payload"])
    try:
        return Envelope(
            id=raw["id"],
            signature=raw["signature"],
            public_key=raw["public_key"],
            payload=payload,
        )
    except ValidationError as exc:
        raise DecodeError(f"Envelope validation failed: {exc}") from exc


def verify(envelope: Envelope) -> None:
    """Raise ``SignatureError`` unless *envelope* carries a valid signature."""
    if not verify_signature(
        encode_payload(envelope.payload), envelope.signature, envelope.public_key
    ):
        raise SignatureError(
            f"Invalid signature on {envelope.payload.payload_kind.value} "
            f"envelope id={envelope.id} from {key_fingerprint(envelope.public_key)}"
        )


def decode_and_verify(data: bytes) -> Envelope:
    """Decode *data* and verify its signature.

    Raises
    ------
    DecodeError
        If *data* is not a structurally valid envelope.
    SignatureError
        If the envelope parses but its signature does not verify.
    """
    envelope = decode(data)
    verify(envelope)
    logger.debug(
        "Verified %s envelope id=%d from %s",
        envelope.payload.payload_kind.value,
        envelope.id,
        key_fingerprint(envelope.public_key),
    )
    return envelope
