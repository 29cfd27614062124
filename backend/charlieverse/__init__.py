"""Charlieverse backend: quote requests, client dashboard and admin back-office."""

__version__ = "0.1.0"
