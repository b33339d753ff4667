# src/vaultrag/cli/__init__.py
"""CLI package for vaultrag.

This package provides the command-line interface using Typer.
"""

from vaultrag.cli.app import app, console

__all__ = ["app", "console"]
