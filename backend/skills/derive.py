"""
Record normalizer skill.

Turns a raw passenger record into a derived record: numeric fields coerced,
spend totals computed, and a display name resolved.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Dict, Iterable, List, Optional

from core.utils import safe_number

NUMERIC_FIELDS = ("purchases", "visits", "miles", "avgSpend")
NAME_FIELDS = ("title", "firstName", "lastName")
UNKNOWN_NAME = "Unknown"


def display_name(record: Mapping) -> str:
    """Title/first/last joined by spaces, else passengerId, else "Unknown"."""
    parts = [str(record.get(f)) for f in NAME_FIELDS if record.get(f)]
    name = " ".join(parts).strip()
    if name:
        return name
    passenger_id = record.get("passengerId")
    if passenger_id:
        return str(passenger_id)
    return UNKNOWN_NAME


def derive_record(record: Any) -> Dict[str, Any]:
    """Return a new dict carrying every raw field plus the computed ones."""
    raw: Mapping = record if isinstance(record, Mapping) else {}

    purchases = safe_number(raw.get("purchases"))
    visits = safe_number(raw.get("visits"))
    miles = safe_number(raw.get("miles"))
    avg_spend = safe_number(raw.get("avgSpend"))

    total_spend = purchases * avg_spend
    spend_per_visit = total_spend / visits if visits > 0 else 0.0

    return {
        **raw,
        "purchases": purchases,
        "visits": visits,
        "miles": miles,
        "avgSpend": avg_spend,
        # products of two large finite floats can still overflow to inf
        "totalSpend": safe_number(total_spend),
        "spendPerVisit": safe_number(spend_per_visit),
        "name": display_name(raw),
    }


def derive_records(records: Optional[Iterable[Any]]) -> List[Dict[str, Any]]:
    return [derive_record(r) for r in (records or [])]
