"""Ed25519 identities via PyNaCl (libsodium).

An ``Identity`` is created once per process and never leaves it; only its
public key travels inside envelopes.  ``verify_signature`` is the matching
receive-side primitive and is fail-closed: anything that is not a valid
signature, including malformed keys, verifies as ``False``.
"""

from __future__ import annotations

import logging

import nacl.signing
from nacl.exceptions import BadSignatureError, CryptoError

from sitemesh.core.hasher import key_fingerprint

logger = logging.getLogger(__name__)

PRIVATE_KEY_LENGTH = 32  # Ed25519 seed


class Identity:
    """A signing keypair.

    Parameters
    ----------
    signing_key:
        The PyNaCl signing key.  Use ``generate()`` or
        ``from_private_key_hex()`` rather than constructing one directly.
    """

    def __init__(self, signing_key: nacl.signing.SigningKey) -> None:
        self._signing_key = signing_key
        self._public_key = signing_key.verify_key.encode()

    @classmethod
    def generate(cls) -> Identity:
        """Create an identity with a fresh random key."""
        identity = cls(nacl.signing.SigningKey.generate())
        logger.debug("Generated identity %s", identity.fingerprint)
        return identity

    @classmethod
    def from_private_key_hex(cls, private_key: str) -> Identity:
        """Load an identity from a hex-encoded 32-byte seed.

        Raises ``ValueError`` if the value is not 64 hex characters.
        """
        try:
            seed = bytes.fromhex(private_key)
        except ValueError as exc:
            raise ValueError(f"Private key is not valid hex: {exc}") from exc
        if len(seed) != PRIVATE_KEY_LENGTH:
            raise ValueError(
                f"Private key must be {PRIVATE_KEY_LENGTH} bytes, "
                f"got {len(seed)}"
            )
        return cls(nacl.signing.SigningKey(seed))

    @property
    def public_key(self) -> bytes:
        """Raw 32-byte public key."""
        return self._public_key

    @property
    def public_key_hex(self) -> str:
        return self._public_key.hex()

    @property
    def private_key_hex(self) -> str:
        """Hex-encoded seed.  Handle with care; never transmit it."""
        return self._signing_key.encode().hex()

    @property
    def fingerprint(self) -> str:
        return key_fingerprint(self._public_key)

    def sign(self, data: bytes) -> bytes:
        """Return the detached 64-byte Ed25519 signature of *data*."""
        return self._signing_key.sign(data).signature

    def __repr__(self) -> str:
        return f"Identity(fingerprint={self.fingerprint!r})"


def verify_signature(data: bytes, signature: bytes, public_key: bytes) -> bool:
    """Check *signature* over *data* under *public_key*.

    Returns ``False`` for a bad signature, a malformed key or signature,
    or a key that is not a valid curve point.
    """
    if not signature or not public_key:
        return False
    try:
        nacl.signing.VerifyKey(public_key).verify(data, signature)
        return True
    except (BadSignatureError, CryptoError, ValueError, TypeError):
        return False
