"""Shared test fixtures for sitemesh."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import pytest

from sitemesh.bridge.transport import LocalNetwork
from sitemesh.config import SiteMeshConfig
from sitemesh.core.codec import sign_and_encode
from sitemesh.core.directory import SiteDirectory
from sitemesh.core.identity import Identity
from sitemesh.models.network import GossipMessage, Topic
from sitemesh.models.payloads import SiteNotification, SiteRegistration


class FakeClock:
    """Deterministic clock that advances one second per call."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + timedelta(seconds=1)
        return current


@pytest.fixture
def identity() -> Identity:
    """A fresh signing identity."""
    return Identity.generate()


@pytest.fixture
def other_identity() -> Identity:
    """A second, unrelated signing identity."""
    return Identity.generate()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def directory(clock: FakeClock) -> SiteDirectory:
    """An empty directory driven by the fake clock."""
    return SiteDirectory(clock=clock)


@pytest.fixture
def topic() -> Topic:
    return Topic.from_name("site_management")


@pytest.fixture
def local_network() -> LocalNetwork:
    """A fresh in-process gossip network."""
    return LocalNetwork("test.sitemesh")


@pytest.fixture
def fast_config() -> SiteMeshConfig:
    """Config with a short announce interval, isolated from the environment."""
    return SiteMeshConfig(
        _env_file=None,
        site_name=None,
        private_key="",
        announce_interval_seconds=0.05,
        max_send_failures=3,
    )


# ---------------------------------------------------------------------------
# Envelope factories shared across test modules
# ---------------------------------------------------------------------------


@pytest.fixture
def make_registration(identity: Identity) -> Callable[..., bytes]:
    """Factory fixture: signed SiteRegistration envelope bytes."""

    def _factory(
        site_name: str = "rosa",
        *,
        signer: Identity | None = None,
        envelope_id: int | None = 1234,
    ) -> bytes:
        return sign_and_encode(
            signer or identity,
            SiteRegistration(site_name=site_name),
            envelope_id=envelope_id,
        )

    return _factory


@pytest.fixture
def make_notification(identity: Identity) -> Callable[..., bytes]:
    """Factory fixture: signed SiteNotification envelope bytes."""

    def _factory(
        notification: str = "hello",
        *,
        signer: Identity | None = None,
        envelope_id: int | None = 4321,
    ) -> bytes:
        return sign_and_encode(
            signer or identity,
            SiteNotification(notification=notification),
            envelope_id=envelope_id,
        )

    return _factory


@pytest.fixture
def gossip() -> Callable[[bytes], GossipMessage]:
    """Wrap raw bytes as an inbound gossip event."""

    def _wrap(data: bytes) -> GossipMessage:
        return GossipMessage(data=data, delivered_from="test-peer")

    return _wrap
