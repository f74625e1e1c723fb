"""
Turn raw result-list items into `Installment` records.

The browser side only collects text (see `COLLECT_ITEMS_JS`); all parsing happens here so it can
be tested without a browser. Nothing in this module raises on missing data: every field
degrades to an empty string.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Iterable, Optional

from ..models import Installment


SALE_ID_RE = re.compile(r"Venda nº (\d+)")
DUE_DATE_RE = re.compile(r"Vencimento: (\d{2}/\d{2}/\d{4})")

# Evaluated with `locator.evaluate_all(COLLECT_ITEMS_JS, [description, amount, status])`.
COLLECT_ITEMS_JS = """
(items, [descSel, amountSel, statusSel]) => items.map(item => {
  const textOf = (sel) => {
    const el = item.querySelector(sel);
    return el ? (el.innerText || '') : null;
  };
  return {
    text: item.innerText || '',
    description: textOf(descSel),
    amount: textOf(amountSel),
    status: textOf(statusSel),
  };
})
"""


def _text(raw: Mapping, key: str) -> str:
    value = raw.get(key)
    return value.strip() if isinstance(value, str) else ""


def _first_group(pattern: re.Pattern[str], text: str) -> str:
    m = pattern.search(text or "")
    return m.group(1) if m else ""


def parse_composite_key(text: Optional[str]) -> tuple[str, str]:
    """(sale id, due date) as printed inside one result item; "" for whatever is missing."""
    if not isinstance(text, str):
        return "", ""
    return _first_group(SALE_ID_RE, text), _first_group(DUE_DATE_RE, text)


def parse_installment(raw: object) -> Installment:
    if not isinstance(raw, Mapping):
        return Installment()

    text = raw.get("text")
    sale_id, due_date = parse_composite_key(text if isinstance(text, str) else "")
    return Installment(
        description=_text(raw, "description"),
        sale_id=sale_id,
        amount=_text(raw, "amount"),
        due_date=due_date,
        status=_text(raw, "status"),
    )


def parse_installments(raw_items: Optional[Iterable[object]]) -> list[Installment]:
    if not raw_items:
        return []
    return [parse_installment(raw) for raw in raw_items]
