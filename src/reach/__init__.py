"""Reach console: customer grid and hierarchy report view-models."""

__version__ = "0.1.0"
