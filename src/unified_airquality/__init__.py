"""Unified air quality: multi-source polling, aggregation and history engine."""

__version__ = "1.0.0"
