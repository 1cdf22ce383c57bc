"""
Common Data Extraction Utilities for Supplier Payloads

Supplier payloads are stored verbatim in CatalogEntryModel.raw; these helpers
pull display fields back out of them without trusting their shape.
"""

import logging
import math
from typing import Any, Dict, List, Optional, Sequence

logger = logging.getLogger(__name__)


def is_record(value: Any) -> bool:
    return isinstance(value, dict)


def as_string(value: Any) -> Optional[str]:
    """Return value if it is a non-blank string, else None."""
    if isinstance(value, str) and value.strip():
        return value
    return None


def pick_string(data: Dict[str, Any], keys: Sequence[str]) -> Optional[str]:
    """
    First usable value among keys.

    Non-blank strings are returned as-is, finite numbers are stringified.
    """
    for key in keys:
        value = data.get(key)
        if isinstance(value, bool):
            continue
        if isinstance(value, str) and value.strip():
            return value
        if isinstance(value, int):
            return str(value)
        if isinstance(value, float) and math.isfinite(value):
            return str(int(value)) if value.is_integer() else str(value)
    return None


def _first_string(data: Dict[str, Any], keys: Sequence[str]) -> Optional[str]:
    for key in keys:
        value = as_string(data.get(key))
        if value:
            return value
    return None


def extract_description(raw: Any) -> Optional[str]:
    """Best human-readable description found in a product payload."""
    if not is_record(raw):
        return None

    direct = _first_string(raw, ["longDescription", "shortDescription", "description", "productDescription"])
    if direct:
        return direct

    overview = raw.get("productOverview")
    if is_record(overview):
        from_overview = _first_string(overview, ["description", "shortDescription", "longDescription", "alsoKnownAs"])
        if from_overview:
            return from_overview

    return _first_string(raw, ["displayName", "name"])


def extract_attributes(raw: Any) -> List[Dict[str, str]]:
    """
    Label/value/unit triples from a product payload.

    Accepts "attributes" as a list or as {"attribute": [...]}; entries without
    both a label and a value are dropped.
    """
    if not is_record(raw):
        return []

    attrs_raw = raw.get("attributes")
    if isinstance(attrs_raw, list):
        entries = attrs_raw
    elif is_record(attrs_raw) and isinstance(attrs_raw.get("attribute"), list):
        entries = attrs_raw["attribute"]
    else:
        entries = []

    attributes = []
    for entry in entries:
        if not is_record(entry):
            continue
        label = as_string(entry.get("attributeLabel"))
        value = as_string(entry.get("attributeValue"))
        unit = as_string(entry.get("attributeUnit"))
        if not label or not value:
            continue
        attribute = {"label": label, "value": value}
        if unit:
            attribute["unit"] = unit
        attributes.append(attribute)

    return attributes
