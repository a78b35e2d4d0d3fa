"""Detection of OpenReports compliance report records."""

from typing import Mapping

from logbatch.schemas import AnyValue, ValueType

from .schemas import REPORT_API_VERSION, REPORT_KIND


def _has_string(attributes: Mapping[str, AnyValue], key: str, expected: str) -> bool:
    value = attributes.get(key)
    return value is not None and value.type == ValueType.STR and value.value == expected


def is_openreports_log(attributes: Mapping[str, AnyValue]) -> bool:
    """Return True if the attributes mark the record as an OpenReports report.

    Both ``kind == "Report"`` and ``apiVersion == "openreports.io/v1alpha1"``
    must be present as string attributes. Anything else is a non-match.
    """
    return (
        _has_string(attributes, "kind", REPORT_KIND)
        and _has_string(attributes, "apiVersion", REPORT_API_VERSION)
    )
