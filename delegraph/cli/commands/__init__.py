"""Subcommands registered on the ``delegraph`` Typer app."""
