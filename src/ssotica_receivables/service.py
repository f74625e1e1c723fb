"""
The two use-cases exposed over HTTP and the CLI.

Each runs inside one isolated browser session that is released before the function returns
or raises, whatever the outcome.
"""

from __future__ import annotations

import logging
from typing import Optional

from .config import AppConfig
from .errors import NoEligibleRecordsFoundError, NoRecordsFoundError
from .models import Installment
from .portal.browser import BrowserManager
from .portal.client import ReceivablesPortalClient
from .portal.selectors import PortalSelectors
from .selection import select_current


logger = logging.getLogger(__name__)


async def lookup_current_installment(
    manager: BrowserManager,
    cfg: AppConfig,
    customer_name: str,
    *,
    selectors: Optional[PortalSelectors] = None,
) -> Installment:
    """
    Nearest-due open/overdue installment for `customer_name`.

    Raises NoRecordsFoundError when the search shows nothing at all, and
    NoEligibleRecordsFoundError when nothing left survives the status/date filter.
    """
    async with manager.session() as context:
        page = await context.new_page()
        portal = ReceivablesPortalClient(page, config=cfg.portal, selectors=selectors)
        await portal.login()
        await portal.search(customer_name, require_results=False)
        installments = await portal.extract_installments()

    if not installments:
        raise NoRecordsFoundError(f"no installments for customer={customer_name!r}")

    current = select_current(installments, cfg.status.open_keyword, cfg.status.overdue_keyword)
    if current is None:
        raise NoEligibleRecordsFoundError(
            f"{len(installments)} installments for customer={customer_name!r}, none open/overdue with a valid due date"
        )

    logger.info(
        "Current installment for customer=%r: sale=%s due=%s status=%s",
        customer_name,
        current.sale_id,
        current.due_date,
        current.status,
    )
    return current


async def request_write_off(
    manager: BrowserManager,
    cfg: AppConfig,
    customer_name: str,
    sale_id: str,
    due_date: str,
    *,
    selectors: Optional[PortalSelectors] = None,
) -> None:
    """Click the settle control of the installment identified by (sale_id, due_date)."""
    async with manager.session() as context:
        page = await context.new_page()
        portal = ReceivablesPortalClient(page, config=cfg.portal, selectors=selectors)
        await portal.login()
        await portal.search(customer_name, require_results=True)
        await portal.settle(sale_id=sale_id, due_date=due_date)

    logger.info("Write-off requested for customer=%r sale=%s due=%s", customer_name, sale_id, due_date)
