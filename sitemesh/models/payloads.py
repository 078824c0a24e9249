"""Announcement payloads — the closed set of application message kinds.

A payload is the signed part of every envelope.  On the wire it is
externally tagged: a single-entry map from the ``PayloadKind`` value to the
variant's fields.  Adding a variant means adding a model here and an entry
in ``PAYLOAD_TYPE_MAP``; every participant must upgrade in lockstep.
"""

from __future__ import annotations

from enum import Enum
from typing import ClassVar, Union

from pydantic import BaseModel, ConfigDict


class PayloadKind(str, Enum):
    """Wire tags for the payload variants."""

    SITE_REGISTRATION = "SiteRegistration"
    SITE_NOTIFICATION = "SiteNotification"


class PayloadBase(BaseModel):
    """Fields and config shared by every payload variant."""

    model_config = ConfigDict(frozen=True, strict=True, extra="forbid")

    payload_kind: ClassVar[PayloadKind]

    def to_wire(self) -> dict[str, dict[str, object]]:
        """Return the externally tagged form ``{kind: {field: value}}``."""
        return {self.payload_kind.value: self.model_dump()}


class SiteRegistration(PayloadBase):
    """A site announcing that it exists."""

    payload_kind: ClassVar[PayloadKind] = PayloadKind.SITE_REGISTRATION

    site_name: str


class SiteNotification(PayloadBase):
    """Free-form text broadcast by a site.  Display only."""

    payload_kind: ClassVar[PayloadKind] = PayloadKind.SITE_NOTIFICATION

    notification: str


Payload = Union[SiteRegistration, SiteNotification]

# Registry for deserialization by wire tag
PAYLOAD_TYPE_MAP: dict[PayloadKind, type[PayloadBase]] = {
    PayloadKind.SITE_REGISTRATION: SiteRegistration,
    PayloadKind.SITE_NOTIFICATION: SiteNotification,
}
