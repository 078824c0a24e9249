"""Rich terminal renderer for site directories.

Turns ``SiteRecord`` snapshots into Rich tables.  The renderer only reads;
callers pass it a snapshot from ``SiteDirectory.list_sites()``.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from sitemesh.models.envelopes import Envelope
from sitemesh.models.payloads import SiteNotification, SiteRegistration
from sitemesh.models.sites import SiteRecord


def _age(ts: datetime, now: datetime) -> str:
    seconds = max(0, int((now - ts).total_seconds()))
    if seconds < 60:
        return f"{seconds}s ago"
    if seconds < 3600:
        return f"{seconds // 60}m ago"
    return f"{seconds // 3600}h ago"


class DirectoryRenderer:
    """Renders site directories and envelopes as Rich output.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def render_directory(
        self,
        records: Sequence[SiteRecord],
        *,
        title: str = "Known Sites",
        highlight: str | None = None,
        now: datetime | None = None,
    ) -> Table:
        """Build a table with one row per site.

        *highlight* marks the local site's own row, if present.
        """
        now = now or datetime.now(timezone.utc)
        table = Table(title=title, show_lines=False)
        table.add_column("Site", style="cyan", no_wrap=True)
        table.add_column("Announcements", justify="right")
        table.add_column("First Seen")
        table.add_column("Last Seen")

        for record in records:
            name = escape(record.site_name) or "[dim](empty)[/dim]"
            if highlight is not None and record.site_name == highlight:
                name = f"[bold green]{name}[/bold green]"
            table.add_row(
                name,
                str(record.announcement_count),
                record.first_seen.isoformat(timespec="seconds"),
                f"{record.last_seen.isoformat(timespec='seconds')} "
                f"[dim]({_age(record.last_seen, now)})[/dim]",
            )

        if not records:
            table.caption = "[dim]No sites seen yet.[/dim]"
        return table

    def print_directory(
        self,
        records: Sequence[SiteRecord],
        *,
        title: str = "Known Sites",
        highlight: str | None = None,
    ) -> None:
        self.console.print(
            self.render_directory(records, title=title, highlight=highlight)
        )

    def render_envelope(self, envelope: Envelope) -> Panel:
        """Summarize a verified envelope as a Panel."""
        payload = envelope.payload
        lines = [
            f"[bold]Kind:[/bold]        {payload.payload_kind.value}",
            f"[bold]Envelope ID:[/bold] {envelope.id}",
            f"[bold]Public key:[/bold]  {envelope.public_key_hex}",
            f"[bold]Signature:[/bold]   {envelope.signature.hex()[:32]}...",
        ]
        if isinstance(payload, SiteRegistration):
            lines.append(f"[bold]Site name:[/bold]   {escape(payload.site_name)}")
        elif isinstance(payload, SiteNotification):
            lines.append(f"[bold]Notification:[/bold] {escape(payload.notification)}")

        return Panel(
            "\n".join(lines),
            title="[bold green]Valid envelope[/bold green]",
            border_style="green",
            padding=(1, 2),
        )
