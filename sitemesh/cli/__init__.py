"""sitemesh CLI — Typer-based command-line interface.

Provides the ``sitemesh`` command with subcommands for generating
identities, encoding and inspecting envelopes, and running an in-process
demo network.

All output uses Rich for formatted terminal display.
"""
