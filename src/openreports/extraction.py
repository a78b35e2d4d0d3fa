"""Extraction and parsing of the results embedded in a report record.

Reports reach the pipeline in one of two encodings: the ``results`` attribute
is either a native list of JSON strings, or a single string holding a JSON
array of JSON strings. Owner references use the same encoding, so both go
through :func:`extract_string_array`.
"""

import json
import logging
from typing import List, Mapping, Optional

from pydantic import ValidationError

from logbatch.schemas import AnyValue, ValueType

from .schemas import RESULTS_KEY, Result

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 200


def extract_string_array(value: Optional[AnyValue]) -> Optional[List[str]]:
    """Decode a list-of-strings attribute in either supported encoding.

    Args:
        value: Attribute value, or None if the attribute is absent

    Returns:
        Elements in original order. An absent attribute gives an empty list;
        a variant other than Slice or Str gives None.
    """
    if value is None:
        return []

    if value.type == ValueType.SLICE:
        return [item.as_string() for item in value.value]

    if value.type == ValueType.STR:
        raw = value.value
        try:
            decoded = json.loads(raw)
        except (ValueError, RecursionError) as e:
            logger.debug(f"JSON parse failed, treating as single string element: {e}")
            return [raw]
        if decoded is None:
            return []
        if isinstance(decoded, list) and all(isinstance(item, str) for item in decoded):
            return decoded
        logger.debug("String attribute is not a JSON array of strings, treating as single element")
        return [raw]

    return None


def extract_results(attributes: Mapping[str, AnyValue]) -> List[str]:
    """Pull the raw result strings out of a report record's attributes."""
    value = attributes.get(RESULTS_KEY)
    if value is None:
        logger.debug("Report has no results field")
        return []

    raw_results = extract_string_array(value)
    if raw_results is None:
        logger.warning(f"Report results field has unexpected type: {value.type.value}")
        return []

    logger.debug(f"Extracted {len(raw_results)} raw results ({value.type.value} encoding)")
    return raw_results


def parse_result(raw: str) -> Result:
    """Decode one raw result string.

    Raises:
        ValueError: If the string is not a JSON object matching the Result shape.
        RecursionError: If the JSON nests too deeply to decode.
    """
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError(f"result is a JSON {type(data).__name__}, not an object")
    return Result.model_validate(data)


def _preview(raw: str) -> str:
    if len(raw) > PREVIEW_LENGTH:
        return raw[:PREVIEW_LENGTH] + "..."
    return raw


def parse_results(raw_results: List[str]) -> List[Result]:
    """Parse every raw result, skipping malformed elements.

    A malformed element never affects its siblings.
    """
    results = []
    for index, raw in enumerate(raw_results):
        try:
            results.append(parse_result(raw))
        except (ValueError, RecursionError, ValidationError) as e:
            logger.warning(f"Failed to parse result JSON at index {index}: {e} (preview: {_preview(raw)!r})")
    return results
