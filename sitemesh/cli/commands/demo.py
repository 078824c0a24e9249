"""``sitemesh demo`` — run several sites on an in-process gossip network.

Starts one ``SiteNode`` per site name on a shared ``LocalNetwork``, lets
them announce for a while, optionally broadcasts notifications from the
first site (one given with ``--notify``, or every line read from stdin with
``--interactive``), then prints every site's directory.
"""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from sitemesh.bridge.transport import LocalNetwork
from sitemesh.config import config
from sitemesh.core.node import SiteNode
from sitemesh.models.envelopes import Envelope
from sitemesh.models.payloads import SiteNotification
from sitemesh.monitor.renderer import DirectoryRenderer

console = Console()


async def run_demo(
    site_names: list[str],
    *,
    duration: float,
    interval: float,
    notify: str | None = None,
    interactive: bool = False,
) -> list[SiteNode]:
    """Run the demo network and return the stopped nodes."""
    node_config = config.model_copy(update={"announce_interval_seconds": interval})
    network = LocalNetwork(node_config.network_slug)

    def _show_notification(site: str):
        def _handler(payload: SiteNotification, envelope: Envelope) -> None:
            console.print(
                f"[magenta]{escape(site)}[/magenta] received notification: "
                f"{escape(payload.notification)}"
            )
        return _handler

    nodes = [
        SiteNode(
            network,
            name,
            config=node_config,
            on_notification=_show_notification(name),
        )
        for name in site_names
    ]
    for node in nodes:
        await node.start()

    try:
        if len(nodes) > 1:
            await nodes[0].wait_ready(timeout=duration)
        if notify:
            await nodes[0].notify(notify)
        if interactive:
            console.print(
                f"[dim]Type notifications to send from {escape(nodes[0].site_name)}; "
                "end input (Ctrl-D) to finish.[/dim]"
            )
            await nodes[0].relay_input()
        await asyncio.sleep(duration)
    finally:
        for node in nodes:
            await node.shutdown()
        await network.shutdown()
    return nodes


def demo_cmd(
    sites: list[str] = typer.Argument(
        None,
        help="Site names to simulate. Defaults to this host plus two peers.",
    ),
    duration: float = typer.Option(
        2.0,
        "--duration",
        "-d",
        min=0.0,
        help="Seconds to let the sites announce before printing directories.",
    ),
    interval: float = typer.Option(
        0.5,
        "--interval",
        "-i",
        min=0.01,
        help="Seconds between announcements of each site.",
    ),
    notify: str = typer.Option(
        None,
        "--notify",
        help="Broadcast this notification from the first site.",
    ),
    interactive: bool = typer.Option(
        False,
        "--interactive",
        help="Broadcast each line read from stdin from the first site, until EOF.",
    ),
) -> None:
    """Simulate several sites announcing to each other."""
    names = list(dict.fromkeys(sites or [config.resolve_site_name(), "rosa", "alpha"]))

    console.print()
    console.print(
        Panel(
            f"[bold]sitemesh demo[/bold]\n\n"
            f"Sites: {escape(', '.join(names))}\n"
            f"Announcing every {interval:g}s for {duration:g}s on "
            f"topic '{escape(config.topic_name)}'.",
            border_style="cyan",
            padding=(1, 2),
        )
    )

    nodes = asyncio.run(
        run_demo(
            names,
            duration=duration,
            interval=interval,
            notify=notify,
            interactive=interactive,
        )
    )

    renderer = DirectoryRenderer(console=console)
    for node in nodes:
        renderer.print_directory(
            node.directory.list_sites(),
            title=f"Directory of {escape(node.site_name)}",
            highlight=node.site_name,
        )
        stats = node.dispatcher.stats
        console.print(
            f"[dim]{escape(node.site_name)}: "
            f"{node.scheduler.announcements_sent if node.scheduler else 0} announcements sent, "
            f"{sum(stats.values())} messages handled[/dim]"
        )
        console.print()
