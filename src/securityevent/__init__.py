"""Security event log processor.

This package wires the OpenReports transformation into a log pipeline stage:
- Configuration loading from YAML files and environment variables
- Batch rewriting that replaces report records with their security events
- Incoming, outgoing, dropped and error counters
- A factory for pipeline hosts and a command-line interface
"""

__version__ = "0.1.0"
