"""Charge metadata (audit trail) typing and merge rules

Metadata is an ordered string-keyed map whose values are strings, numbers,
booleans, timestamps or nested maps. Timestamps are stored as ISO-8601
strings. Merging adds or rewrites keys and never drops existing ones.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union
from pydantic import StrictBool, StrictFloat, StrictInt, StrictStr

MetadataValue = Union[
    StrictBool,
    StrictInt,
    StrictFloat,
    StrictStr,
    datetime,
    date,
    Dict[str, Any],
    None,
]

ChargeMetadata = Dict[str, MetadataValue]


def normalize_metadata_value(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Mapping):
        return {str(key): normalize_metadata_value(item) for key, item in value.items()}
    raise TypeError(f"Unsupported metadata value type: {type(value).__name__}")


def merge_metadata(
    current: Optional[Mapping[str, Any]],
    updates: Optional[Mapping[str, Any]],
) -> Dict[str, Any]:
    """
    Merge metadata updates into the current audit trail

    Args:
        current: Existing metadata (may be None)
        updates: Keys to add or rewrite

    Returns:
        New dict; existing keys keep their position, new keys are appended
    """
    merged = dict(current or {})
    for key, value in (updates or {}).items():
        merged[str(key)] = normalize_metadata_value(value)
    return merged
