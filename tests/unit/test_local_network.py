"""Tests for LocalNetwork — the in-process gossip fabric."""

from __future__ import annotations

import pytest

from sitemesh.bridge.transport import ChannelClosedError, LocalNetwork, TransportError
from sitemesh.core.hasher import topic_hash
from sitemesh.models.network import GossipMessage, SyncMessage, Topic


def _drain(queue) -> list:
    items = []
    while not queue.empty():
        items.append(queue.get_nowait())
    return items


class TestSubscribe:
    @pytest.mark.asyncio
    async def test_network_id_is_slug_hash(self):
        assert LocalNetwork("merri-bek.tech").network_id == topic_hash("merri-bek.tech")

    @pytest.mark.asyncio
    async def test_single_subscriber_not_ready(self, local_network, topic):
        sub = await local_network.subscribe(topic, "rosa")
        assert not sub.ready.is_set()
        assert local_network.subscriber_count(topic) == 1

    @pytest.mark.asyncio
    async def test_second_subscriber_readies_both(self, local_network, topic):
        first = await local_network.subscribe(topic, "rosa")
        second = await local_network.subscribe(topic, "alpha")
        assert first.ready.is_set()
        assert second.ready.is_set()

    @pytest.mark.asyncio
    async def test_topics_are_isolated(self, local_network, topic):
        await local_network.subscribe(topic, "rosa")
        other = await local_network.subscribe(Topic.from_name("elsewhere"), "alpha")
        assert not other.ready.is_set()

    @pytest.mark.asyncio
    async def test_subscribe_after_shutdown_fails(self, local_network, topic):
        await local_network.shutdown()
        with pytest.raises(TransportError):
            await local_network.subscribe(topic, "rosa")


class TestBroadcast:
    @pytest.mark.asyncio
    async def test_fan_out_excludes_sender(self, local_network, topic):
        rosa = await local_network.subscribe(topic, "rosa")
        alpha = await local_network.subscribe(topic, "alpha")
        beta = await local_network.subscribe(topic, "beta")

        await rosa.outbound.send(b"hello")

        assert rosa.inbound.empty()
        for sub in (alpha, beta):
            event = sub.inbound.get_nowait()
            assert isinstance(event, GossipMessage)
            assert event.data == b"hello"
            assert event.delivered_from == "rosa"

    @pytest.mark.asyncio
    async def test_send_before_ready_is_harmless(self, local_network, topic):
        rosa = await local_network.subscribe(topic, "rosa")
        await rosa.outbound.send(b"nobody listening")
        assert rosa.inbound.empty()

    @pytest.mark.asyncio
    async def test_full_queue_drops_new_events(self, topic, caplog):
        network = LocalNetwork("test.sitemesh", max_inbound_queue=2)
        rosa = await network.subscribe(topic, "rosa")
        alpha = await network.subscribe(topic, "alpha")

        for index in range(3):
            await rosa.outbound.send(bytes([index]))

        assert [event.data for event in _drain(alpha.inbound)] == [b"\x00", b"\x01"]
        assert "queue full for alpha" in caplog.text

    @pytest.mark.asyncio
    async def test_inject_targets_one_peer(self, local_network, topic):
        rosa = await local_network.subscribe(topic, "rosa")
        alpha = await local_network.subscribe(topic, "alpha")

        delivered = local_network.inject(topic, SyncMessage(), to="alpha")

        assert delivered == 1
        assert rosa.inbound.empty()
        assert isinstance(alpha.inbound.get_nowait(), SyncMessage)

    @pytest.mark.asyncio
    async def test_inject_to_everyone(self, local_network, topic):
        await local_network.subscribe(topic, "rosa")
        await local_network.subscribe(topic, "alpha")
        assert local_network.inject(topic, GossipMessage(data=b"x")) == 2


class TestTeardown:
    @pytest.mark.asyncio
    async def test_unsubscribe_closes_channel_and_ends_stream(self, local_network, topic):
        rosa = await local_network.subscribe(topic, "rosa")
        alpha = await local_network.subscribe(topic, "alpha")

        await local_network.unsubscribe(rosa)

        assert rosa.outbound.closed
        assert _drain(rosa.inbound) == [None]
        assert local_network.subscriber_count(topic) == 1
        with pytest.raises(ChannelClosedError):
            await rosa.outbound.send(b"late")
        assert alpha.inbound.empty()

    @pytest.mark.asyncio
    async def test_unsubscribe_twice_is_noop(self, local_network, topic):
        rosa = await local_network.subscribe(topic, "rosa")
        await local_network.unsubscribe(rosa)
        await local_network.unsubscribe(rosa)
        assert _drain(rosa.inbound) == [None]

    @pytest.mark.asyncio
    async def test_shutdown_ends_every_stream(self, local_network, topic):
        subs = [await local_network.subscribe(topic, name) for name in ("a", "b")]

        await local_network.shutdown()

        assert local_network.is_closed
        for sub in subs:
            assert sub.outbound.closed
            assert _drain(sub.inbound) == [None]

    @pytest.mark.asyncio
    async def test_end_of_stream_fits_in_full_queue(self, topic):
        network = LocalNetwork("test.sitemesh", max_inbound_queue=1)
        rosa = await network.subscribe(topic, "rosa")
        alpha = await network.subscribe(topic, "alpha")
        await rosa.outbound.send(b"fills the queue")

        await network.shutdown()

        assert _drain(alpha.inbound) == [None]
