"""OpenReports compliance report expansion.

This package turns log records that embed an OpenReports compliance report
into normalized security events:
- Cheap detection of report records
- Tolerant extraction and parsing of the embedded results array
- Status filtering of results
- Workload resolution from owner references or pod naming
- Field mapping of each result into a security event record
"""

__version__ = "0.1.0"
