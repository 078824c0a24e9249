"""Main Typer application — imports and registers all CLI commands.

Entry point: ``sitemesh`` (configured via pyproject.toml console_scripts).

Commands: keygen, encode, inspect, demo.
"""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from sitemesh.cli.commands.demo import demo_cmd
from sitemesh.cli.commands.envelope import encode_cmd, inspect_cmd
from sitemesh.cli.commands.keygen import keygen_cmd
from sitemesh.config import config

app = typer.Typer(
    name="sitemesh",
    help="sitemesh: signed site announcements over a gossip network.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="keygen", help="Generate a new Ed25519 identity.")(keygen_cmd)
app.command(name="encode", help="Print a signed envelope as hex.")(encode_cmd)
app.command(name="inspect", help="Decode and verify a hex envelope.")(inspect_cmd)
app.command(name="demo", help="Simulate several sites on an in-process network.")(demo_cmd)


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        config.log_level,
        "--log-level",
        "-L",
        help="Logging level (DEBUG, INFO, WARNING, ERROR).",
    ),
) -> None:
    """Configure logging for every command."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
