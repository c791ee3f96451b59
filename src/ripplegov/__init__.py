"""Ripple golden-path governance engine."""

__version__ = "0.3.0"
