"""Prometheus exporter for the Orcus database stack."""

__version__ = "0.3.0"
