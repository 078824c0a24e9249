"""sitemesh: signed site announcements over a gossip network.

Each participant periodically broadcasts a signed ``SiteRegistration`` on a
shared topic; every participant verifies, deduplicates and records those
announcements in an in-memory directory of known sites.

  - Ed25519 signatures via PyNaCl over canonical CBOR payloads
  - Envelope codec with distinct decode and signature failures
  - Single-owner site directory (idempotent upsert by name)
  - asyncio announcement scheduler and event dispatcher
  - Pluggable gossip fabric, with an in-process ``LocalNetwork``
  - Env-driven config (pydantic-settings), Typer + Rich CLI
"""

__version__ = "0.1.0"
__description__ = "Signed site announcements over a gossip network"

from sitemesh.core.codec import (
    DecodeError,
    SignatureError,
    decode_and_verify,
    sign_and_encode,
)
from sitemesh.core.directory import SiteDirectory
from sitemesh.core.identity import Identity
from sitemesh.core.node import SiteNode

__all__ = [
    "DecodeError",
    "Identity",
    "SignatureError",
    "SiteDirectory",
    "SiteNode",
    "decode_and_verify",
    "sign_and_encode",
    "__version__",
]
