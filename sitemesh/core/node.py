"""Site node — wires identity, codec, directory, scheduler and dispatcher.

A ``SiteNode`` subscribes to the announcement topic on a gossip fabric and
runs two tasks for its lifetime:

- the dispatcher, consuming the inbound stream and owning the directory
- the scheduler, announcing this site on readiness and every interval

User-initiated notifications, typed or relayed from an input stream,
share the scheduler's outbound channel.
Shutdown cancels the scheduler, ends the inbound stream, and lets the
dispatcher finish whatever it already received.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from collections.abc import Callable
from typing import Any

from sitemesh.bridge.transport import GossipNetwork, Subscription, TransportError
from sitemesh.config import SiteMeshConfig
from sitemesh.core.codec import sign_and_encode
from sitemesh.core.directory import SiteDirectory
from sitemesh.core.dispatcher import EventDispatcher, NotificationHandler
from sitemesh.core.identity import Identity
from sitemesh.core.scheduler import AnnouncementScheduler
from sitemesh.models.network import Topic
from sitemesh.models.payloads import SiteNotification

logger = logging.getLogger(__name__)


class SiteNode:
    """One participant in the site announcement protocol.

    Parameters
    ----------
    network:
        The gossip fabric to subscribe on.
    site_name:
        Name to announce.  Falls back to ``config.resolve_site_name()``.
    identity:
        Signing identity.  Loaded from ``config.private_key`` when set,
        otherwise freshly generated.
    config:
        Runtime settings.  Uses defaults (and the environment) if omitted.
    on_notification:
        Callback for verified notifications received from peers.
    """

    def __init__(
        self,
        network: GossipNetwork,
        site_name: str | None = None,
        *,
        identity: Identity | None = None,
        config: SiteMeshConfig | None = None,
        on_notification: NotificationHandler | None = None,
    ) -> None:
        self.config = config or SiteMeshConfig()
        self.site_name = self.config.resolve_site_name(site_name)
        if identity is None:
            identity = (
                Identity.from_private_key_hex(self.config.private_key)
                if self.config.private_key
                else Identity.generate()
            )
        self.identity = identity
        self.topic = Topic.from_name(self.config.topic_name)
        self.directory = SiteDirectory()
        self.dispatcher = EventDispatcher(
            self.directory,
            abort_on_unexpected_event=self.config.abort_on_unexpected_event,
            on_notification=on_notification,
        )

        self._network = network
        self._subscription: Subscription | None = None
        self.scheduler: AnnouncementScheduler | None = None
        self._dispatch_task: asyncio.Task[None] | None = None
        self._announce_task: asyncio.Task[None] | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._dispatch_task is not None and not self._dispatch_task.done()

    @property
    def is_ready(self) -> bool:
        return self._subscription is not None and self._subscription.ready.is_set()

    async def start(self) -> None:
        """Subscribe to the topic and spawn the dispatcher and scheduler."""
        if self._subscription is not None:
            raise RuntimeError(f"SiteNode {self.site_name!r} already started")

        logger.info(
            "Starting site %s (key %s) on topic %s",
            self.site_name,
            self.identity.fingerprint,
            self.topic.name,
        )
        self._subscription = await self._network.subscribe(self.topic, self.site_name)
        self.scheduler = AnnouncementScheduler(
            self.identity,
            self.site_name,
            self._subscription.outbound,
            ready=self._subscription.ready,
            interval_seconds=self.config.announce_interval_seconds,
            max_send_failures=self.config.max_send_failures,
        )
        self._dispatch_task = asyncio.create_task(
            self.dispatcher.run(self._subscription.inbound),
            name=f"sitemesh-dispatch-{self.site_name}",
        )
        self._announce_task = asyncio.create_task(
            self.scheduler.run(),
            name=f"sitemesh-announce-{self.site_name}",
        )

    async def wait_ready(self, timeout: float | None = None) -> bool:
        """Wait until at least one peer shares the topic.

        Returns ``False`` if *timeout* elapses first.
        """
        if self._subscription is None:
            raise RuntimeError("SiteNode not started")
        try:
            await asyncio.wait_for(self._subscription.ready.wait(), timeout)
        except asyncio.TimeoutError:
            return False
        return True

    async def notify(self, text: str) -> bool:
        """Broadcast a signed ``SiteNotification``.  Returns ``True`` if sent."""
        if self._subscription is None:
            raise RuntimeError("SiteNode not started")
        data = sign_and_encode(self.identity, SiteNotification(notification=text))
        try:
            await self._subscription.outbound.send(data)
        except TransportError as exc:
            logger.warning("Notification from %s not sent: %s", self.site_name, exc)
            return False
        logger.info("Sent notification from %s: %s", self.site_name, text)
        return True

    async def relay_input(self, read_line: Callable[[], str] = input) -> int:
        """Broadcast each line from *read_line* as a notification until EOF.

        *read_line* blocks, so it runs in a worker thread.  Blank lines are
        skipped.  Returns the number of notifications sent.
        """
        if self._subscription is None:
            raise RuntimeError("SiteNode not started")
        sent = 0
        while True:
            try:
                line = await asyncio.to_thread(read_line)
            except EOFError:
                break
            text = line.strip()
            if text and await self.notify(text):
                sent += 1
        logger.info("Input closed, %s sent %d notifications", self.site_name, sent)
        return sent

    async def shutdown(self) -> None:
        """Stop announcing, leave the topic, and drain the dispatcher.

        Re-raises a ``TransportCategoryError`` that ended the dispatcher
        when ``abort_on_unexpected_event`` is set.
        """
        if self._announce_task is not None:
            self._announce_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._announce_task
            self._announce_task = None

        if self._subscription is not None:
            await self._network.unsubscribe(self._subscription)

        if self._dispatch_task is not None:
            task, self._dispatch_task = self._dispatch_task, None
            await task
        logger.info("Site %s stopped.", self.site_name)

    async def run_until_interrupted(self) -> None:
        """Run until SIGINT/SIGTERM (or the dispatcher ends), then shut down."""
        if self._subscription is None:
            await self.start()

        stop = asyncio.Event()
        loop = asyncio.get_running_loop()
        installed: list[signal.Signals] = []
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, stop.set)
                installed.append(sig)
            except (NotImplementedError, RuntimeError):
                logger.debug("Signal handler for %s not supported here", sig.name)

        if self._dispatch_task is None:
            raise RuntimeError("SiteNode not started")
        stop_task = asyncio.create_task(stop.wait())
        try:
            await asyncio.wait(
                {stop_task, self._dispatch_task},
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            stop_task.cancel()
            for sig in installed:
                loop.remove_signal_handler(sig)

        logger.info("Shutting down site %s", self.site_name)
        try:
            await self.shutdown()
        finally:
            await self._network.shutdown()

    async def __aenter__(self) -> SiteNode:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.shutdown()

    def __repr__(self) -> str:
        return (
            f"SiteNode(site={self.site_name!r}, key={self.identity.fingerprint!r}, "
            f"sites={len(self.directory)})"
        )
