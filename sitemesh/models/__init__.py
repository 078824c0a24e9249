"""sitemesh data models — all Pydantic v2, all frozen (immutable)."""

from sitemesh.models.envelopes import (
    ENVELOPE_FIELDS,
    PUBLIC_KEY_LENGTH,
    SIGNATURE_LENGTH,
    Envelope,
)
from sitemesh.models.network import (
    GossipMessage,
    NetworkEvent,
    NetworkEventKind,
    SyncMessage,
    Topic,
)
from sitemesh.models.payloads import (
    PAYLOAD_TYPE_MAP,
    Payload,
    PayloadBase,
    PayloadKind,
    SiteNotification,
    SiteRegistration,
)
from sitemesh.models.sites import SiteRecord

__all__ = [
    # payloads
    "PayloadKind",
    "PayloadBase",
    "Payload",
    "SiteRegistration",
    "SiteNotification",
    "PAYLOAD_TYPE_MAP",
    # envelopes
    "Envelope",
    "ENVELOPE_FIELDS",
    "SIGNATURE_LENGTH",
    "PUBLIC_KEY_LENGTH",
    # sites
    "SiteRecord",
    # network
    "NetworkEventKind",
    "NetworkEvent",
    "GossipMessage",
    "SyncMessage",
    "Topic",
]
