"""Event dispatcher — the single consumer of inbound transport events.

Each inbound event goes through one state machine::

    received bytes -> decode/verify -> valid   -> route by payload kind
                                    -> invalid -> log + drop

The dispatcher is the only code that mutates the ``SiteDirectory``.
Invalid envelopes are an expected condition (any peer can send garbage)
and never stop the loop.  Events outside the gossip category raise
``TransportCategoryError``; by default it is logged and the event dropped,
and only with ``abort_on_unexpected_event=True`` does it propagate and end
the loop.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from enum import Enum

from sitemesh.core.codec import DecodeError, SignatureError, decode_and_verify
from sitemesh.core.directory import SiteDirectory
from sitemesh.core.hasher import key_fingerprint
from sitemesh.models.envelopes import Envelope
from sitemesh.models.network import GossipMessage, NetworkEvent
from sitemesh.models.payloads import SiteNotification, SiteRegistration

logger = logging.getLogger(__name__)

NotificationHandler = Callable[[SiteNotification, Envelope], None]


class TransportCategoryError(RuntimeError):
    """Raised when an inbound event is not an application gossip message."""


class DispatchOutcome(str, Enum):
    """What happened to one inbound event."""

    REGISTERED = "registered"
    NOTIFIED = "notified"
    DECODE_FAILED = "decode_failed"
    SIGNATURE_FAILED = "signature_failed"
    IGNORED = "ignored"


class EventDispatcher:
    """Routes verified envelopes to the site directory.

    Parameters
    ----------
    directory:
        The directory this dispatcher owns.
    abort_on_unexpected_event:
        Propagate ``TransportCategoryError`` instead of dropping the event.
    on_notification:
        Optional callback for verified ``SiteNotification`` payloads.
    """

    def __init__(
        self,
        directory: SiteDirectory,
        *,
        abort_on_unexpected_event: bool = False,
        on_notification: NotificationHandler | None = None,
    ) -> None:
        self.directory = directory
        self.abort_on_unexpected_event = abort_on_unexpected_event
        self._on_notification = on_notification
        self.stats: dict[DispatchOutcome, int] = {
            outcome: 0 for outcome in DispatchOutcome
        }

    # ------------------------------------------------------------------
    # Single event
    # ------------------------------------------------------------------

    def handle_event(self, event: NetworkEvent) -> DispatchOutcome:
        """Process one inbound event and return its outcome.

        Raises
        ------
        TransportCategoryError
            Only when ``abort_on_unexpected_event`` is set and *event* is
            not a ``GossipMessage``.
        """
        try:
            data = self._gossip_bytes(event)
        except TransportCategoryError as exc:
            if self.abort_on_unexpected_event:
                raise
            logger.error("Dropping unexpected network event: %s", exc)
            return self._count(DispatchOutcome.IGNORED)

        try:
            envelope = decode_and_verify(data)
        except DecodeError as exc:
            logger.warning("Invalid gossip message (decode error): %s", exc)
            return self._count(DispatchOutcome.DECODE_FAILED)
        except SignatureError as exc:
            logger.warning("Invalid gossip message (signature error): %s", exc)
            return self._count(DispatchOutcome.SIGNATURE_FAILED)

        return self.handle_envelope(envelope)

    def handle_envelope(self, envelope: Envelope) -> DispatchOutcome:
        """Route an already verified envelope by payload kind."""
        payload = envelope.payload
        sender = key_fingerprint(envelope.public_key)

        if isinstance(payload, SiteRegistration):
            logger.info(
                "Received SiteRegistration: %s (from %s)", payload.site_name, sender
            )
            self.directory.register(payload.site_name)
            self.directory.log_snapshot()
            return self._count(DispatchOutcome.REGISTERED)

        if isinstance(payload, SiteNotification):
            logger.info(
                "Received SiteNotification: %s (from %s)", payload.notification, sender
            )
            if self._on_notification is not None:
                try:
                    self._on_notification(payload, envelope)
                except Exception as exc:  # noqa: BLE001
                    logger.error(
                        "Notification handler failed for envelope id=%d from %s: %s",
                        envelope.id,
                        sender,
                        exc,
                    )
            return self._count(DispatchOutcome.NOTIFIED)

        raise TypeError(f"Unhandled payload type: {type(payload).__name__}")

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    async def run(self, inbound: asyncio.Queue[NetworkEvent | None]) -> None:
        """Consume *inbound* until the ``None`` end-of-stream sentinel."""
        while True:
            event = await inbound.get()
            try:
                if event is None:
                    logger.info("Inbound stream closed, dispatcher stopping.")
                    return
                self.handle_event(event)
            finally:
                inbound.task_done()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _gossip_bytes(event: NetworkEvent) -> bytes:
        if isinstance(event, GossipMessage):
            return event.data
        raise TransportCategoryError(
            f"Expected a gossip message, got {type(event).__name__} "
            f"from {getattr(event, 'delivered_from', '') or 'unknown peer'}"
        )

    def _count(self, outcome: DispatchOutcome) -> DispatchOutcome:
        self.stats[outcome] += 1
        return outcome
