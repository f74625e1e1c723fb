from __future__ import annotations

import re
from datetime import date
from typing import Optional

from dateutil import parser as date_parser


BR_DATE_RE = re.compile(r"(\d{2})/(\d{2})/(\d{4})", re.ASCII)


def is_br_date_shape(value: object) -> bool:
    """True if `value` is a string shaped exactly like DD/MM/YYYY (no calendar check)."""
    return isinstance(value, str) and BR_DATE_RE.fullmatch(value) is not None


def parse_br_date(value: object) -> Optional[date]:
    """
    Parse dates like:
    - "25/12/2024"
    - "01/01/2024"

    Returns None for anything that is not a real calendar date, including shapes that a
    lenient parser would roll over (e.g. "30/02/2024" -> March).
    """
    if not isinstance(value, str):
        return None
    m = BR_DATE_RE.fullmatch(value)
    if not m:
        return None

    day, month, year = (int(g) for g in m.groups())
    try:
        dt = date_parser.parse(value, dayfirst=True, yearfirst=False)
    except (ValueError, OverflowError):
        return None

    parsed = dt.date()
    if parsed.day != day or parsed.month != month or parsed.year != year:
        return None
    return parsed
