"""Command line interface for gogogo."""

from __future__ import annotations

from gogogo.cli.main import cli

__all__ = ["cli"]
