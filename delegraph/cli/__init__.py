"""delegraph CLI: Typer-based command-line interface.

Provides the ``delegraph`` command with subcommands for replaying event
logs into an execution graph and summarizing them.  All output uses Rich.
"""
