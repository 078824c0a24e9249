"""Site directory records."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class SiteRecord(BaseModel):
    """What a receiver knows about one announced site.

    Records are immutable snapshots; the directory replaces a record on
    every refresh rather than mutating it.
    """

    model_config = ConfigDict(frozen=True)

    site_name: str
    first_seen: datetime
    last_seen: datetime
    announcement_count: int = 1
