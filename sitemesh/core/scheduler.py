"""Announcement scheduler — periodic signed ``SiteRegistration`` broadcasts.

Announces once as soon as the transport signals readiness, then again on
every interval.  A failed send is logged and retried on the next tick;
after ``max_send_failures`` consecutive failures the loop gives up, so a
permanently closed channel ends the task instead of spinning.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from sitemesh.bridge.transport import TransportError
from sitemesh.core.codec import sign_and_encode
from sitemesh.models.payloads import SiteRegistration

if TYPE_CHECKING:
    from sitemesh.bridge.transport import OutboundChannel
    from sitemesh.core.identity import Identity

logger = logging.getLogger(__name__)

DEFAULT_ANNOUNCE_INTERVAL = 30.0
DEFAULT_MAX_SEND_FAILURES = 5


class AnnouncementScheduler:
    """Drives outbound site announcements.

    Parameters
    ----------
    identity:
        Signs every announcement.
    site_name:
        The name this participant announces.  Resolved by the caller;
        the scheduler never looks at the environment.
    outbound:
        Broadcast channel shared with other local senders.
    ready:
        Readiness signal from the transport.  ``None`` starts at once.
    interval_seconds:
        Delay between announcements after the first one.
    max_send_failures:
        Consecutive send failures tolerated before the loop exits.
    """

    def __init__(
        self,
        identity: Identity,
        site_name: str,
        outbound: OutboundChannel,
        *,
        ready: asyncio.Event | None = None,
        interval_seconds: float = DEFAULT_ANNOUNCE_INTERVAL,
        max_send_failures: int = DEFAULT_MAX_SEND_FAILURES,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        if max_send_failures < 1:
            raise ValueError("max_send_failures must be at least 1")
        self.identity = identity
        self.site_name = site_name
        self._outbound = outbound
        self._ready = ready
        self.interval_seconds = interval_seconds
        self.max_send_failures = max_send_failures
        self.announcements_sent = 0
        self.consecutive_failures = 0

    @property
    def gave_up(self) -> bool:
        """Whether the failure budget is exhausted."""
        return self.consecutive_failures >= self.max_send_failures

    async def announce(self) -> bool:
        """Sign and send one registration.  Returns ``True`` on success."""
        data = sign_and_encode(self.identity, SiteRegistration(site_name=self.site_name))
        logger.info("Announcing site: %s", self.site_name)
        try:
            await self._outbound.send(data)
        except TransportError as exc:
            self.consecutive_failures += 1
            logger.warning(
                "Announcement of %s failed (%d/%d): %s",
                self.site_name,
                self.consecutive_failures,
                self.max_send_failures,
                exc,
            )
            return False

        self.consecutive_failures = 0
        self.announcements_sent += 1
        return True

    async def run(self) -> None:
        """Wait for readiness, then announce every interval until cancelled."""
        if self._ready is not None:
            logger.info("Waiting for peers before announcing %s", self.site_name)
            await self._ready.wait()
            logger.info("Peers found, announcing %s", self.site_name)

        while True:
            await self.announce()
            if self.gave_up:
                logger.error(
                    "Giving up announcing %s after %d consecutive send failures",
                    self.site_name,
                    self.consecutive_failures,
                )
                return
            await asyncio.sleep(self.interval_seconds)
