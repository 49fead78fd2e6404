"""Resumable, parallel recovery of missing seed phrase words."""

__version__ = "0.1.0"
