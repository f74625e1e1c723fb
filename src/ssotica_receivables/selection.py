"""
Installment selection: which open/overdue installment is the customer's "current" one.

Records are usually `Installment` models, but plain mappings (e.g. JSON rows with
`status` / `dueDate` keys) are accepted too so the policy can be applied to data that never
went through the extractor.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from typing import Iterable, Optional, TypeVar

from .util.dates import is_br_date_shape, parse_br_date


R = TypeVar("R")

_FIELD_KEYS = {
    "status": ("status",),
    "due_date": ("due_date", "dueDate"),
}


def _field(record: object, name: str) -> Optional[str]:
    if isinstance(record, Mapping):
        for key in _FIELD_KEYS[name]:
            if key in record:
                value = record[key]
                return value if isinstance(value, str) else None
        return None
    value = getattr(record, name, None)
    return value if isinstance(value, str) else None


def is_eligible(record: object, open_keyword: str, overdue_keyword: str) -> bool:
    """
    Open or overdue status (case-insensitive substring) AND a DD/MM/YYYY-shaped due date.

    Amount and description are never looked at.
    """
    status = _field(record, "status")
    due_date = _field(record, "due_date")
    if status is None or due_date is None:
        return False

    lowered = status.lower()
    keywords = [k.lower() for k in (open_keyword, overdue_keyword) if k]
    if not any(k in lowered for k in keywords):
        return False
    return is_br_date_shape(due_date)


def filter_eligible(records: Optional[Iterable[R]], open_keyword: str, overdue_keyword: str) -> list[R]:
    if not records:
        return []
    return [r for r in records if is_eligible(r, open_keyword, overdue_keyword)]


def order_by_urgency(records: Optional[Iterable[R]]) -> list[R]:
    """
    Earliest real due date first.

    Records whose due date is not a real calendar date (unparseable, or a day that does not
    exist in that month) keep their relative order and go last. `sorted` is stable, so equal
    dates keep input order too.
    """
    if not records:
        return []

    valid: list[tuple[date, R]] = []
    invalid: list[R] = []
    for r in records:
        parsed = parse_br_date(_field(r, "due_date"))
        if parsed is None:
            invalid.append(r)
        else:
            valid.append((parsed, r))

    ordered = [r for _, r in sorted(valid, key=lambda pair: pair[0])]
    return ordered + invalid


def select_current(records: Optional[Iterable[R]], open_keyword: str, overdue_keyword: str) -> Optional[R]:
    ordered = order_by_urgency(filter_eligible(records, open_keyword, overdue_keyword))
    return ordered[0] if ordered else None
