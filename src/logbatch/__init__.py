"""Structured log batch model.

This package defines the in-memory shape of a log batch as it travels through
the pipeline:
- Tagged attribute values (string, int, double, bool, bytes, list, map)
- Log records with timestamps, severity, trace context and attributes
- Resource and scope grouping levels
- JSON loading and dumping of whole batches
"""

__version__ = "0.1.0"
