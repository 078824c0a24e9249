"""``sitemesh encode`` / ``sitemesh inspect`` — envelope tooling.

``encode`` prints a signed envelope as hex; ``inspect`` decodes and
verifies one, reporting whether a failure was a decode or signature error.
"""

from __future__ import annotations

import typer
from rich.console import Console
from rich.markup import escape

from sitemesh.config import config
from sitemesh.core.codec import DecodeError, SignatureError, decode_and_verify, sign_and_encode
from sitemesh.core.identity import Identity
from sitemesh.models.payloads import Payload, SiteNotification, SiteRegistration
from sitemesh.monitor.renderer import DirectoryRenderer

console = Console()


def encode_cmd(
    site_name: str = typer.Argument(
        None,
        help="Site name to register. Defaults to SITEMESH_SITE_NAME, then the host name.",
    ),
    notification: str = typer.Option(
        None,
        "--notification",
        "-n",
        help="Encode a SiteNotification with this text instead of a registration.",
    ),
    private_key: str = typer.Option(
        None,
        "--private-key",
        "-k",
        help="Hex private key. Defaults to SITEMESH_PRIVATE_KEY, else a fresh key.",
    ),
    envelope_id: int = typer.Option(
        None,
        "--id",
        min=0,
        max=0xFFFFFFFF,
        help="Fixed envelope id (random if omitted).",
    ),
) -> None:
    """Print a signed envelope as hex."""
    key = private_key or config.private_key
    try:
        identity = Identity.from_private_key_hex(key) if key else Identity.generate()
    except ValueError as exc:
        console.print(f"[bold red]Bad private key:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=2)

    payload: Payload
    if notification is not None:
        payload = SiteNotification(notification=notification)
    else:
        payload = SiteRegistration(site_name=config.resolve_site_name(site_name))

    typer.echo(sign_and_encode(identity, payload, envelope_id=envelope_id).hex())


def inspect_cmd(
    envelope_hex: str = typer.Argument(..., help="Hex-encoded envelope bytes."),
) -> None:
    """Decode and verify a hex-encoded envelope."""
    try:
        data = bytes.fromhex(envelope_hex.strip())
    except ValueError as exc:
        console.print(f"[bold red]Not valid hex:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)

    try:
        envelope = decode_and_verify(data)
    except DecodeError as exc:
        console.print(f"[bold red]Decode error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)
    except SignatureError as exc:
        console.print(f"[bold red]Signature error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)

    renderer = DirectoryRenderer(console=console)
    console.print(renderer.render_envelope(envelope))
