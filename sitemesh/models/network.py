"""Transport boundary models — topics and inbound network events.

The gossip fabric delivers two categories of event.  ``GossipMessage`` is
an application broadcast and is the only category sitemesh subscribes for;
``SyncMessage`` belongs to the fabric's request/response sync protocol and
is never expected on an announcement topic.
"""

from __future__ import annotations

from enum import Enum
from typing import Union

from pydantic import BaseModel, ConfigDict, Field

from sitemesh.core.hasher import topic_hash


class NetworkEventKind(str, Enum):
    """Inbound event categories a gossip fabric can deliver."""

    GOSSIP_MESSAGE = "gossip_message"
    SYNC_MESSAGE = "sync_message"


class Topic(BaseModel):
    """A named topic and its fixed-width identifier."""

    model_config = ConfigDict(frozen=True)

    name: str
    id: bytes = Field(min_length=32, max_length=32)

    @classmethod
    def from_name(cls, name: str) -> Topic:
        """Derive a topic by hashing its human-readable name."""
        return cls(name=name, id=topic_hash(name))

    @property
    def id_hex(self) -> str:
        return self.id.hex()


class GossipMessage(BaseModel):
    """Raw bytes broadcast by a peer on a subscribed topic."""

    model_config = ConfigDict(frozen=True)

    kind: NetworkEventKind = NetworkEventKind.GOSSIP_MESSAGE
    data: bytes
    delivered_from: str = ""


class SyncMessage(BaseModel):
    """A sync-protocol frame.  Unexpected on announcement topics."""

    model_config = ConfigDict(frozen=True)

    kind: NetworkEventKind = NetworkEventKind.SYNC_MESSAGE
    header: bytes = b""
    payload: bytes | None = None
    delivered_from: str = ""


NetworkEvent = Union[GossipMessage, SyncMessage]
