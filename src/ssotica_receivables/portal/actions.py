"""
Settle ("baixa") one installment from the search results.

Known limitation: after clicking, we only wait `settle_delay_ms` for the portal's own async
UI update. We do not read the listing again, so success means "the control was clicked", not
"the portal recorded the write-off".
"""

from __future__ import annotations

import logging
from typing import Optional

from playwright.async_api import Locator, Page

from ..errors import (
    ActionControlNotFoundError,
    ActionInvocationFailedError,
    NotFoundReason,
    RecordNotFoundError,
    SearchFailedError,
)
from .extract import parse_composite_key
from .selectors import PortalSelectors


logger = logging.getLogger(__name__)


async def find_settle_control(item: Locator, candidates: tuple[str, ...]) -> Optional[Locator]:
    """
    First control inside `item` matching `candidates` (in order), or None.

    Only "no match" yields None; Playwright errors (closed page, detached item) propagate.
    """
    for selector in candidates:
        loc = item.locator(selector)
        if await loc.count() > 0:
            return loc.first
    return None


async def locate_item(page: Page, *, sale_id: str, due_date: str, selectors: PortalSelectors) -> Locator:
    """
    Result item whose own (sale id, due date) equals the target exactly.

    First match wins; duplicates further down the list are never looked at.
    """
    items = page.locator(selectors.result_item)
    try:
        texts = await items.all_inner_texts()
    except Exception as exc:
        raise SearchFailedError(f"could not read result items: {exc}") from exc

    target = (sale_id, due_date)
    for idx, text in enumerate(texts):
        if parse_composite_key(text) == target:
            logger.debug("Matched result item #%d for sale=%s due=%s", idx, sale_id, due_date)
            return items.nth(idx)

    raise RecordNotFoundError(
        NotFoundReason.NO_MATCH,
        f"no result item for sale={sale_id} due={due_date} among {len(texts)} items",
    )


async def settle_installment(
    page: Page,
    *,
    sale_id: str,
    due_date: str,
    selectors: PortalSelectors,
    settle_delay_ms: int,
) -> None:
    item = await locate_item(page, sale_id=sale_id, due_date=due_date, selectors=selectors)

    try:
        control = await find_settle_control(item, selectors.settle_controls)
    except Exception as exc:
        raise ActionInvocationFailedError(f"settle control lookup failed: {exc}") from exc
    if control is None:
        raise ActionControlNotFoundError(f"no settle control in item for sale={sale_id} due={due_date}")

    try:
        await control.click()
    except Exception as exc:
        raise ActionInvocationFailedError(f"settle click failed: {exc}") from exc

    await page.wait_for_timeout(settle_delay_ms)
    logger.info("Settle control clicked (sale=%s due=%s)", sale_id, due_date)
