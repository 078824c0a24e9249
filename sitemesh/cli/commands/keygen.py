"""``sitemesh keygen`` — generate an Ed25519 identity."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.panel import Panel

from sitemesh.core.identity import Identity

console = Console()


def keygen_cmd(
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Print only the private key, for scripting.",
    ),
) -> None:
    """Generate a new signing identity and print it as hex."""
    identity = Identity.generate()

    if quiet:
        typer.echo(identity.private_key_hex)
        return

    console.print(
        Panel(
            "\n".join([
                f"[bold]Private key:[/bold] {identity.private_key_hex}",
                f"[bold]Public key:[/bold]  {identity.public_key_hex}",
                f"[bold]Fingerprint:[/bold] {identity.fingerprint}",
                "",
                "[dim]Set SITEMESH_PRIVATE_KEY to reuse this identity. "
                "Never share the private key.[/dim]",
            ]),
            title="[bold]New identity[/bold]",
            border_style="cyan",
            padding=(1, 2),
        )
    )
