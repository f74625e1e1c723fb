from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import NoReturn, Optional

from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ..config import PortalConfig
from ..errors import (
    LoginFailedError,
    NotFoundReason,
    Phase,
    RecordNotFoundError,
    SearchFailedError,
)
from ..models import Installment
from .actions import settle_installment
from .extract import COLLECT_ITEMS_JS, parse_installments
from .selectors import PortalSelectors


logger = logging.getLogger(__name__)


class ReceivablesPortalClient:
    """
    SSOtica "contas a receber" automation for one request's page.

    Phases run strictly in order (login -> search -> extract/settle) and are never retried.
    A failing phase leaves `phase` at LOGIN_FAILED / SEARCH_FAILED and raises the matching
    `PhaseFailure`; the Playwright error is logged here and only chained, never shown to callers.
    """

    def __init__(
        self,
        page: Page,
        *,
        config: PortalConfig,
        selectors: Optional[PortalSelectors] = None,
    ) -> None:
        self.page = page
        self.config = config
        self.selectors = selectors or PortalSelectors()
        self.phase = Phase.IDLE
        self._step_counter = 0

    def _require(self, *allowed: Phase) -> None:
        if self.phase not in allowed:
            raise RuntimeError(f"portal client in phase {self.phase.value!r}; expected one of {[p.value for p in allowed]}")

    async def login(self) -> None:
        self._require(Phase.IDLE)
        self.phase = Phase.LOGGING_IN
        page, s = self.page, self.selectors
        try:
            await page.goto(self.config.base_url, wait_until="domcontentloaded")
            await self._step("after_goto")

            await page.wait_for_selector(s.email_input)
            await page.fill(s.email_input, self.config.email)

            await page.wait_for_selector(s.password_input)
            await page.fill(s.password_input, self.config.password)
            await self._step("credentials_filled")

            await page.wait_for_selector(s.login_submit)
            async with page.expect_navigation(wait_until="domcontentloaded"):
                await page.click(s.login_submit)
        except Exception as exc:
            self.phase = Phase.LOGIN_FAILED
            logger.error("Portal login failed: %s", exc, exc_info=True)
            await self._save_debug("login_failure")
            raise LoginFailedError(str(exc)) from exc

        self.phase = Phase.LOGGED_IN
        await self._step("login_complete")

    async def search(self, customer_name: str, *, require_results: bool = False) -> bool:
        """
        Search the receivables listing by customer name.

        Returns True if at least one result item appeared. When nothing shows up in time:
        - read flow (`require_results=False`): not an error, extraction will just find nothing;
        - write-off flow (`require_results=True`): raises RecordNotFoundError(NO_RESULTS).
        """
        self._require(Phase.LOGGED_IN)
        self.phase = Phase.SEARCHING
        page, s = self.page, self.selectors
        try:
            await page.goto(self.config.receivables_url, wait_until="domcontentloaded")
            await page.wait_for_selector(s.search_input)
            await page.fill(s.search_input, customer_name)
            await page.select_option(s.search_type_select, self.config.search_type_value)
            await page.click(s.search_submit)
            await self._step("search_submitted")
        except Exception as exc:
            await self._fail_search(exc)

        found = True
        try:
            await page.wait_for_selector(s.result_item, timeout=self.config.results_timeout_ms)
        except PlaywrightTimeoutError:
            found = False
            logger.info(
                "No result items within %dms for customer=%r",
                self.config.results_timeout_ms,
                customer_name,
            )
        except Exception as exc:
            await self._fail_search(exc)

        self.phase = Phase.RESULTS_READY
        await self._step("results_ready")
        if not found and require_results:
            raise RecordNotFoundError(NotFoundReason.NO_RESULTS, f"no results for customer={customer_name!r}")
        return found

    async def extract_installments(self) -> list[Installment]:
        self._require(Phase.RESULTS_READY)
        s = self.selectors
        try:
            raw_items = await self.page.locator(s.result_item).evaluate_all(
                COLLECT_ITEMS_JS,
                [s.item_description, s.item_amount, s.item_status],
            )
        except Exception as exc:
            await self._fail_search(exc)

        installments = parse_installments(raw_items)
        logger.info("Extracted %d installments", len(installments))
        return installments

    async def settle(self, *, sale_id: str, due_date: str) -> None:
        self._require(Phase.RESULTS_READY)
        try:
            await settle_installment(
                self.page,
                sale_id=sale_id,
                due_date=due_date,
                selectors=self.selectors,
                settle_delay_ms=self.config.settle_delay_ms,
            )
        except SearchFailedError:
            self.phase = Phase.SEARCH_FAILED
            logger.error("Reading result items failed", exc_info=True)
            await self._save_debug("locate_failure")
            raise
        except Exception:
            await self._save_debug("settle_failure")
            raise

    async def _fail_search(self, exc: Exception) -> NoReturn:
        self.phase = Phase.SEARCH_FAILED
        logger.error("Portal navigation/extraction failed: %s", exc, exc_info=True)
        await self._save_debug("search_failure")
        raise SearchFailedError(str(exc)) from exc

    async def _save_debug(self, name_prefix: str) -> None:
        if not self.config.debug_dir:
            return
        try:
            out_dir = Path(self.config.debug_dir)
            out_dir.mkdir(parents=True, exist_ok=True)
            await self.page.screenshot(path=str(out_dir / f"{name_prefix}.png"), full_page=True)
            (out_dir / f"{name_prefix}.html").write_text(await self.page.content(), encoding="utf-8")
            # Rendered text makes selector problems easy to diagnose offline.
            try:
                (out_dir / f"{name_prefix}.txt").write_text(await self.page.inner_text("body"), encoding="utf-8")
            except Exception:
                pass
        except Exception:
            logger.debug("Failed to save debug artifacts.", exc_info=True)

    async def _step(self, name: str) -> None:
        """
        If enabled, log step-by-step progress and (with a debug_dir) save a screenshot per step.
        """
        if not self.config.log_steps:
            return

        self._step_counter += 1
        safe = re.sub(r"[^a-zA-Z0-9_-]+", "_", name).strip("_")[:60] or "step"
        try:
            logger.info("Step %02d %s (url=%s)", self._step_counter, safe, getattr(self.page, "url", ""))
        except Exception:
            pass

        if not self.config.debug_dir:
            return
        try:
            out_dir = Path(self.config.debug_dir)
            out_dir.mkdir(parents=True, exist_ok=True)
            await self.page.screenshot(path=str(out_dir / f"step_{self._step_counter:02d}_{safe}.png"), full_page=True)
        except Exception:
            logger.debug("Failed to save step screenshot (name=%s).", name, exc_info=True)
