"""Log batch schemas for structured telemetry records.

This module defines Pydantic models for the resource -> scope -> record forest
that the pipeline hands from stage to stage. Attribute values are modelled as
an explicit tagged union (``AnyValue``) so copies keep their variant and nested
lists and maps are copied structurally.
"""

import base64
import json
import math
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import (
    BaseModel,
    Field,
    FieldSerializationInfo,
    field_serializer,
    field_validator,
    model_validator,
)


class ValueType(str, Enum):
    """Attribute value variants."""
    EMPTY = "Empty"
    STR = "Str"
    INT = "Int"
    DOUBLE = "Double"
    BOOL = "Bool"
    BYTES = "Bytes"
    SLICE = "Slice"
    MAP = "Map"


class AnyValue(BaseModel):
    """A single tagged attribute value.

    Build instances from native Python values with :meth:`AnyValue.of`;
    ``Slice`` holds a list of ``AnyValue`` and ``Map`` a dict of them.
    """
    type: ValueType = ValueType.EMPTY
    value: Any = None

    @model_validator(mode="after")
    def check_variant(self) -> "AnyValue":
        """Reject payloads that do not match the declared variant."""
        if not _matches_variant(self.type, self.value):
            raise ValueError(
                f"{type(self.value).__name__} payload is not valid for a {self.type.value} value"
            )
        return self

    @classmethod
    def of(cls, raw: Any) -> "AnyValue":
        """Wrap a native Python value, recursing into lists and dicts."""
        if isinstance(raw, AnyValue):
            return raw.clone()
        if raw is None:
            return cls()
        # bool is a subclass of int, so it has to be checked first
        if isinstance(raw, bool):
            return cls(type=ValueType.BOOL, value=raw)
        if isinstance(raw, int):
            return cls(type=ValueType.INT, value=raw)
        if isinstance(raw, float):
            return cls(type=ValueType.DOUBLE, value=raw)
        if isinstance(raw, str):
            return cls(type=ValueType.STR, value=raw)
        if isinstance(raw, (bytes, bytearray)):
            return cls(type=ValueType.BYTES, value=bytes(raw))
        if isinstance(raw, (list, tuple)):
            return cls(type=ValueType.SLICE, value=[cls.of(item) for item in raw])
        if isinstance(raw, dict):
            return cls(type=ValueType.MAP, value={str(k): cls.of(v) for k, v in raw.items()})
        raise TypeError(f"Unsupported attribute value type: {type(raw).__name__}")

    def clone(self) -> "AnyValue":
        """Deep copy that keeps the variant of every nested value."""
        if self.type == ValueType.SLICE:
            return AnyValue(type=ValueType.SLICE, value=[item.clone() for item in self.value])
        if self.type == ValueType.MAP:
            return AnyValue(
                type=ValueType.MAP,
                value={key: item.clone() for key, item in self.value.items()},
            )
        return AnyValue(type=self.type, value=self.value)

    def as_string(self) -> str:
        """Render any variant as a string."""
        if self.type == ValueType.STR:
            return self.value
        if self.type == ValueType.EMPTY:
            return ""
        if self.type == ValueType.BOOL:
            return "true" if self.value else "false"
        if self.type == ValueType.INT:
            return str(self.value)
        if self.type == ValueType.DOUBLE:
            return _format_double(self.value)
        if self.type == ValueType.BYTES:
            return base64.b64encode(self.value).decode("ascii")
        return json.dumps(self.to_raw(json_safe=True), separators=(",", ":"))

    def to_raw(self, json_safe: bool = False) -> Any:
        """Return the native Python value.

        Args:
            json_safe: Encode bytes as base64 text so the result can be dumped as JSON.
        """
        if self.type == ValueType.SLICE:
            return [item.to_raw(json_safe) for item in self.value]
        if self.type == ValueType.MAP:
            return {key: item.to_raw(json_safe) for key, item in self.value.items()}
        if self.type == ValueType.BYTES and json_safe:
            return base64.b64encode(self.value).decode("ascii")
        return self.value


def _matches_variant(value_type: ValueType, value: Any) -> bool:
    if value_type == ValueType.EMPTY:
        return value is None
    if value_type == ValueType.STR:
        return isinstance(value, str)
    if value_type == ValueType.INT:
        return isinstance(value, int) and not isinstance(value, bool)
    if value_type == ValueType.DOUBLE:
        return isinstance(value, float)
    if value_type == ValueType.BOOL:
        return isinstance(value, bool)
    if value_type == ValueType.BYTES:
        return isinstance(value, bytes)
    if value_type == ValueType.SLICE:
        return isinstance(value, list) and all(isinstance(item, AnyValue) for item in value)
    if value_type == ValueType.MAP:
        return isinstance(value, dict) and all(
            isinstance(key, str) and isinstance(item, AnyValue) for key, item in value.items()
        )
    return False


def _format_double(value: float) -> str:
    if math.isfinite(value) and value.is_integer():
        return str(int(value))
    return repr(value)


def _coerce_value(value: Any) -> AnyValue:
    return value if isinstance(value, AnyValue) else AnyValue.of(value)


def _coerce_attributes(value: Any) -> Any:
    if value is None:
        return {}
    if isinstance(value, dict):
        return {str(key): _coerce_value(item) for key, item in value.items()}
    return value


def _dump_attributes(attributes: Dict[str, AnyValue], info: FieldSerializationInfo) -> Dict[str, Any]:
    json_safe = info.mode_is_json()
    return {key: item.to_raw(json_safe) for key, item in attributes.items()}


class LogRecord(BaseModel):
    """A single log record."""
    time_unix_nano: int = 0
    observed_time_unix_nano: int = 0
    severity_number: int = 0
    severity_text: str = ""
    body: AnyValue = Field(default_factory=AnyValue)
    attributes: Dict[str, AnyValue] = Field(default_factory=dict)
    flags: int = 0
    trace_id: bytes = b""
    span_id: bytes = b""

    @field_validator("body", mode="before")
    @classmethod
    def coerce_body(cls, v: Any) -> AnyValue:
        return _coerce_value(v)

    @field_validator("attributes", mode="before")
    @classmethod
    def coerce_attributes(cls, v: Any) -> Any:
        return _coerce_attributes(v)

    @field_validator("trace_id", "span_id", mode="before")
    @classmethod
    def parse_hex_ids(cls, v: Any) -> Any:
        """Accept hex strings as they appear in JSON encoded batches."""
        if isinstance(v, str):
            return bytes.fromhex(v)
        return v

    @field_serializer("body")
    def dump_body(self, body: AnyValue, info: FieldSerializationInfo) -> Any:
        return body.to_raw(info.mode_is_json())

    @field_serializer("attributes")
    def dump_attributes(self, attributes: Dict[str, AnyValue], info: FieldSerializationInfo) -> Dict[str, Any]:
        return _dump_attributes(attributes, info)

    @field_serializer("trace_id", "span_id")
    def dump_ids(self, value: bytes, info: FieldSerializationInfo) -> Any:
        return value.hex() if info.mode_is_json() else value

    def get_attribute(self, key: str) -> Optional[AnyValue]:
        return self.attributes.get(key)

    def put_value(self, key: str, value: AnyValue) -> None:
        self.attributes[key] = value.clone()

    def put_str(self, key: str, value: str) -> None:
        self.attributes[key] = AnyValue(type=ValueType.STR, value=value)

    def put_int(self, key: str, value: int) -> None:
        self.attributes[key] = AnyValue(type=ValueType.INT, value=value)

    def put_double(self, key: str, value: float) -> None:
        self.attributes[key] = AnyValue(type=ValueType.DOUBLE, value=float(value))

    def put_bool(self, key: str, value: bool) -> None:
        self.attributes[key] = AnyValue(type=ValueType.BOOL, value=value)


class InstrumentationScope(BaseModel):
    """Instrumentation scope that produced a group of records."""
    name: str = ""
    version: str = ""
    attributes: Dict[str, AnyValue] = Field(default_factory=dict)

    @field_validator("attributes", mode="before")
    @classmethod
    def coerce_attributes(cls, v: Any) -> Any:
        return _coerce_attributes(v)

    @field_serializer("attributes")
    def dump_attributes(self, attributes: Dict[str, AnyValue], info: FieldSerializationInfo) -> Dict[str, Any]:
        return _dump_attributes(attributes, info)


class Resource(BaseModel):
    """Entity that produced a group of scopes."""
    attributes: Dict[str, AnyValue] = Field(default_factory=dict)

    @field_validator("attributes", mode="before")
    @classmethod
    def coerce_attributes(cls, v: Any) -> Any:
        return _coerce_attributes(v)

    @field_serializer("attributes")
    def dump_attributes(self, attributes: Dict[str, AnyValue], info: FieldSerializationInfo) -> Dict[str, Any]:
        return _dump_attributes(attributes, info)


class ScopeLogs(BaseModel):
    """Records produced by one instrumentation scope."""
    scope: InstrumentationScope = Field(default_factory=InstrumentationScope)
    log_records: List[LogRecord] = Field(default_factory=list)
    schema_url: str = ""


class ResourceLogs(BaseModel):
    """Scope groups produced by one resource."""
    resource: Resource = Field(default_factory=Resource)
    scope_logs: List[ScopeLogs] = Field(default_factory=list)
    schema_url: str = ""


class LogBatch(BaseModel):
    """One batch of logs as received from the previous pipeline stage."""
    resource_logs: List[ResourceLogs] = Field(default_factory=list)

    def record_count(self) -> int:
        """Total number of log records across all groups."""
        return sum(
            len(scope_logs.log_records)
            for resource_logs in self.resource_logs
            for scope_logs in resource_logs.scope_logs
        )
