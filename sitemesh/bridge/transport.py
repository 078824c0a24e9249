"""Transport bridge — the boundary between sitemesh and a gossip fabric.

Bridge boundary
---------------
sitemesh never talks to sockets.  A gossip fabric hands it a
``Subscription`` per topic, made of three parts:

1. **outbound**: an ``OutboundChannel`` accepting raw bytes to broadcast.
   Shared by every local sender; raises ``ChannelClosedError`` once closed.
2. **inbound**: an ``asyncio.Queue`` yielding ``GossipMessage`` /
   ``SyncMessage`` events as they arrive, and ``None`` once the stream ends.
3. **ready**: an ``asyncio.Event`` set once at least one other peer shares
   the topic.

Any fabric that implements the ``GossipNetwork`` protocol can be plugged in.
``LocalNetwork`` is the in-process implementation used by the demo and the
tests: it fans every broadcast out to all *other* subscribers of the topic.
Inbound queues are bounded (default 1024 events); when a subscriber falls
behind, new events for it are dropped with a warning, as a gossip overlay
would.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Protocol

from sitemesh.core.hasher import topic_hash
from sitemesh.models.network import GossipMessage, NetworkEvent, Topic

logger = logging.getLogger(__name__)


class TransportError(RuntimeError):
    """Raised when a transport-level operation fails."""


class ChannelClosedError(TransportError):
    """Raised when sending on a channel that has been closed."""


# ---------------------------------------------------------------------------
# Subscription parts
# ---------------------------------------------------------------------------


class OutboundChannel:
    """Fire-and-forget broadcast handle for one subscription.

    Parameters
    ----------
    deliver:
        Called with each payload; performs the actual fan-out.
    peer_name:
        Name of the local participant, used in log lines.
    """

    def __init__(self, deliver: Callable[[bytes], None], peer_name: str) -> None:
        self._deliver = deliver
        self._peer_name = peer_name
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, data: bytes) -> None:
        """Broadcast *data* to the topic.

        Raises
        ------
        ChannelClosedError
            If the channel (or its network) has been shut down.
        """
        if self._closed:
            raise ChannelClosedError(
                f"Outbound channel for {self._peer_name!r} is closed"
            )
        self._deliver(data)

    def close(self) -> None:
        self._closed = True


class Subscription:
    """One participant's handles on one topic."""

    def __init__(
        self,
        topic: Topic,
        peer_name: str,
        outbound: OutboundChannel,
        inbound: asyncio.Queue[NetworkEvent | None],
        ready: asyncio.Event,
    ) -> None:
        self.topic = topic
        self.peer_name = peer_name
        self.outbound = outbound
        self.inbound = inbound
        self.ready = ready

    def __repr__(self) -> str:
        return (
            f"Subscription(topic={self.topic.name!r}, peer={self.peer_name!r}, "
            f"ready={self.ready.is_set()})"
        )


class GossipNetwork(Protocol):
    """What sitemesh needs from a gossip fabric."""

    network_id: bytes

    async def subscribe(self, topic: Topic, peer_name: str) -> Subscription:
        ...

    async def unsubscribe(self, subscription: Subscription) -> None:
        ...

    async def shutdown(self) -> None:
        ...


# ---------------------------------------------------------------------------
# In-process fabric
# ---------------------------------------------------------------------------


def _end_stream(inbound: asyncio.Queue[NetworkEvent | None]) -> None:
    """Push the end-of-stream sentinel, evicting the oldest event if full."""
    if inbound.full():
        inbound.get_nowait()
    inbound.put_nowait(None)


class LocalNetwork:
    """In-memory gossip fabric shared by every node in one process.

    Parameters
    ----------
    network_slug:
        Human-readable network name; hashed into ``network_id``.
    max_inbound_queue:
        Maximum number of undelivered events per subscriber.
    """

    def __init__(
        self,
        network_slug: str = "merri-bek.tech",
        *,
        max_inbound_queue: int = 1024,
    ) -> None:
        self.network_slug = network_slug
        self.network_id = topic_hash(network_slug)
        self._max_inbound_queue = max_inbound_queue
        self._subscriptions: dict[bytes, list[Subscription]] = {}
        self._closed = False

    @property
    def is_closed(self) -> bool:
        return self._closed

    def subscriber_count(self, topic: Topic) -> int:
        return len(self._subscriptions.get(topic.id, []))

    # ------------------------------------------------------------------
    # GossipNetwork protocol
    # ------------------------------------------------------------------

    async def subscribe(self, topic: Topic, peer_name: str) -> Subscription:
        """Join *topic* as *peer_name*."""
        if self._closed:
            raise TransportError("LocalNetwork has been shut down")

        def deliver(data: bytes) -> None:
            self._broadcast(subscription, data)

        subscription = Subscription(
            topic=topic,
            peer_name=peer_name,
            outbound=OutboundChannel(deliver, peer_name),
            inbound=asyncio.Queue(maxsize=self._max_inbound_queue),
            ready=asyncio.Event(),
        )

        members = self._subscriptions.setdefault(topic.id, [])
        members.append(subscription)
        logger.info(
            "LocalNetwork: %s joined topic %s (%d subscribers)",
            peer_name,
            topic.name,
            len(members),
        )
        if len(members) >= 2:
            for member in members:
                member.ready.set()
        return subscription

    async def unsubscribe(self, subscription: Subscription) -> None:
        """Leave a topic: close the outbound channel and end the inbound stream."""
        members = self._subscriptions.get(subscription.topic.id, [])
        if subscription in members:
            members.remove(subscription)
            subscription.outbound.close()
            _end_stream(subscription.inbound)
            logger.info(
                "LocalNetwork: %s left topic %s",
                subscription.peer_name,
                subscription.topic.name,
            )

    async def shutdown(self) -> None:
        """Close every channel and end every inbound stream."""
        if self._closed:
            return
        self._closed = True
        for members in self._subscriptions.values():
            for subscription in members:
                subscription.outbound.close()
                _end_stream(subscription.inbound)
        self._subscriptions.clear()
        logger.info("LocalNetwork: shut down (%s).", self.network_slug)

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    def inject(
        self,
        topic: Topic,
        event: NetworkEvent,
        *,
        to: str | None = None,
    ) -> int:
        """Deliver an arbitrary event to subscribers of *topic*.

        Delivers to every subscriber, or only to the one named *to*.
        Returns the number of subscribers that received it.
        """
        delivered = 0
        for member in self._subscriptions.get(topic.id, []):
            if to is not None and member.peer_name != to:
                continue
            delivered += self._enqueue(member, event)
        return delivered

    def _broadcast(self, sender: Subscription, data: bytes) -> None:
        event = GossipMessage(data=data, delivered_from=sender.peer_name)
        delivered = 0
        for member in self._subscriptions.get(sender.topic.id, []):
            if member is sender:
                continue
            delivered += self._enqueue(member, event)
        logger.debug(
            "LocalNetwork: %s broadcast %d bytes to %d peers",
            sender.peer_name,
            len(data),
            delivered,
        )

    @staticmethod
    def _enqueue(member: Subscription, event: NetworkEvent) -> int:
        try:
            member.inbound.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning(
                "LocalNetwork: inbound queue full for %s, event dropped",
                member.peer_name,
            )
            return 0
        return 1

    def __repr__(self) -> str:
        return (
            f"LocalNetwork(network={self.network_slug!r}, "
            f"topics={len(self._subscriptions)}, closed={self._closed})"
        )
