"""Cordon: validated bubblewrap sandbox invocations."""

__version__ = "0.1.0"
