"""Signed broadcast envelopes.

An envelope carries a payload together with the Ed25519 signature over the
payload's canonical bytes and the public key that produced it.  The ``id``
is a random nonce that only keeps otherwise-identical broadcasts apart at
the gossip layer; it is not signed and carries no application meaning.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from sitemesh.models.payloads import Payload

ENVELOPE_ID_MAX = 0xFFFFFFFF
SIGNATURE_LENGTH = 64  # Ed25519
PUBLIC_KEY_LENGTH = 32  # Ed25519

# Wire field order of the envelope map
ENVELOPE_FIELDS: tuple[str, ...] = ("id", "signature", "public_key", "payload")


class Envelope(BaseModel):
    """A decoded (or about-to-be-encoded) announcement envelope."""

    model_config = ConfigDict(frozen=True, strict=True, extra="forbid")

    id: int = Field(ge=0, le=ENVELOPE_ID_MAX)
    signature: bytes = Field(min_length=SIGNATURE_LENGTH, max_length=SIGNATURE_LENGTH)
    public_key: bytes = Field(
        min_length=PUBLIC_KEY_LENGTH, max_length=PUBLIC_KEY_LENGTH
    )
    payload: Payload

    @property
    def public_key_hex(self) -> str:
        """Hex form of the sender's public key."""
        return self.public_key.hex()

    def to_wire(self) -> dict[str, object]:
        """Return the envelope as a plain map in wire field order."""
        return {
            "id": self.id,
            "signature": self.signature,
            "public_key": self.public_key,
            "payload": self.payload.to_wire(),
        }
