"""Runtime configuration — env-driven via pydantic-settings.

Reads ``SITEMESH_*`` environment variables and an optional ``.env`` file.
The core components never read configuration themselves; ``SiteNode`` and
the CLI resolve values here and pass them in explicitly.
"""

from __future__ import annotations

import socket

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SiteMeshConfig(BaseSettings):
    """Node configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export SITEMESH_SITE_NAME=rosa
        export SITEMESH_LOG_LEVEL=DEBUG
        export SITEMESH_ANNOUNCE_INTERVAL_SECONDS=10

    Or via .env file::

        SITEMESH_NETWORK_SLUG=merri-bek.tech
        SITEMESH_PRIVATE_KEY=<64 hex chars>
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SITEMESH_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"
    debug: bool = False

    # Identity and naming
    site_name: str | None = None   # falls back to the host name
    private_key: str = ""          # hex seed; empty generates a fresh identity

    # Network
    network_slug: str = "merri-bek.tech"
    topic_name: str = "site_management"

    # Announcements
    announce_interval_seconds: float = Field(default=30.0, gt=0)
    max_send_failures: int = Field(default=5, ge=1)

    # Dispatch policy for non-gossip events on the topic
    abort_on_unexpected_event: bool = False

    @property
    def is_production(self) -> bool:
        """Whether running in production mode."""
        return self.environment == "production"

    def resolve_site_name(self, override: str | None = None) -> str:
        """Pick the announced site name.

        Order: explicit *override*, then ``site_name``, then the host name.
        """
        if override:
            return override
        if self.site_name:
            return self.site_name
        return socket.gethostname()


# Module-level singleton, import as `from sitemesh.config import config`
config = SiteMeshConfig()
