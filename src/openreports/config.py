"""Configuration for the OpenReports processor."""

from typing import List

from pydantic import BaseModel, Field, field_validator

from .schemas import ResultStatus

VALID_STATUSES = tuple(status.value for status in ResultStatus)


def _check_statuses(statuses: List[str]) -> None:
    for status in statuses:
        if status not in VALID_STATUSES:
            raise ValueError(
                f"invalid status in status_filter: {status}. "
                f"Valid values are: {', '.join(VALID_STATUSES)}"
            )


class OpenReportsConfig(BaseModel):
    """OpenReports processor settings.

    ``status_filter`` lists the result statuses that become security events.
    Matching is exact and case-sensitive; an empty list allows every status.
    """
    enabled: bool = False
    status_filter: List[str] = Field(default_factory=list)

    @field_validator('status_filter', mode='before')
    @classmethod
    def null_as_empty(cls, v):
        return [] if v is None else v

    @field_validator('status_filter')
    @classmethod
    def validate_statuses(cls, v: List[str]) -> List[str]:
        _check_statuses(v)
        return v

    def validate_config(self) -> None:
        """Re-check an instance whose fields may have been mutated after construction."""
        _check_statuses(self.status_filter)

    def is_status_allowed(self, status: str) -> bool:
        if not self.status_filter:
            return True
        return status in self.status_filter
