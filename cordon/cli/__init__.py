"""Cordon command-line interface."""

from cordon.cli.main import app

__all__ = ["app"]
