"""Site directory — the receiver-local registry of announced sites.

The directory is owned by exactly one task (the event dispatcher) and is
never shared, so it carries no locking.  Entries are only ever added or
refreshed; a site once seen is remembered for the life of the process.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from sitemesh.models.sites import SiteRecord

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SiteDirectory:
    """Mapping of site name to ``SiteRecord``.

    Parameters
    ----------
    clock:
        Returns the timestamp recorded as ``last_seen``.  Defaults to the
        current UTC time.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or _utc_now
        self._sites: dict[str, SiteRecord] = {}

    def register(self, site_name: str) -> SiteRecord:
        """Insert *site_name* or refresh its ``last_seen``.

        Idempotent by name: repeated registrations never add a second
        entry.  Returns the stored record.
        """
        now = self._clock()
        existing = self._sites.get(site_name)
        if existing is None:
            record = SiteRecord(site_name=site_name, first_seen=now, last_seen=now)
            logger.info("New site registered: %s", site_name)
        else:
            record = existing.model_copy(
                update={
                    "last_seen": now,
                    "announcement_count": existing.announcement_count + 1,
                }
            )
            logger.debug(
                "Refreshed site %s (seen %d times)",
                site_name,
                record.announcement_count,
            )
        self._sites[site_name] = record
        return record

    def list_sites(self) -> list[SiteRecord]:
        """Snapshot of all records, sorted by site name."""
        return [self._sites[name] for name in sorted(self._sites)]

    def names(self) -> list[str]:
        return sorted(self._sites)

    def get(self, site_name: str) -> SiteRecord | None:
        return self._sites.get(site_name)

    def log_snapshot(self) -> None:
        """Log the whole directory, one line per site."""
        logger.info("Known sites (%d):", len(self._sites))
        for record in self.list_sites():
            logger.info(
                "  %s  last seen %s",
                record.site_name,
                record.last_seen.isoformat(timespec="seconds"),
            )

    def __len__(self) -> int:
        return len(self._sites)

    def __contains__(self, site_name: object) -> bool:
        return site_name in self._sites

    def __repr__(self) -> str:
        return f"SiteDirectory(sites={self.names()!r})"
