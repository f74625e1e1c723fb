"""SSOtica receivables HTTP API.

Endpoints:
- GET  /health
- POST /api/consultar   {name}                   -> current installment
- POST /api/baixar      {name, saleId, dueDate}  -> settle one installment
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from . import __version__
from .config import AppConfig
from .errors import AgentError, InputValidationError
from .models import CurrentInstallmentResponse, WriteOffResponse
from .portal.browser import BrowserManager
from .service import lookup_current_installment, request_write_off


logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Ocorreu um erro ao processar a solicitação."
WRITE_OFF_SUCCESS_MESSAGE = "Baixa da parcela solicitada com sucesso."


async def _read_body(req: Request) -> Dict[str, Any]:
    try:
        body = await req.json()
    except Exception:
        return {}
    return body if isinstance(body, dict) else {}


# Portuguese body keys sent by older clients of /api/consultar.
FIELD_ALIASES: Dict[str, tuple[str, ...]] = {"name": ("nome",)}


def _text_field(body: Dict[str, Any], key: str) -> Optional[str]:
    value = body.get(key)
    # JSON numbers are fine for ids ("saleId": 789); booleans are not.
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    if isinstance(value, str) and value.strip():
        return value
    return None


def _field_value(body: Dict[str, Any], key: str) -> Optional[str]:
    for candidate in (key, *FIELD_ALIASES.get(key, ())):
        value = _text_field(body, candidate)
        if value is not None:
            return value
    return None


def _require_fields(body: Dict[str, Any], *keys: str) -> list[str]:
    out: list[str] = []
    for key in keys:
        value = _field_value(body, key)
        if value is None:
            raise InputValidationError(key)
        out.append(value)
    return out


def error_response(exc: AgentError, *, customer: str = "") -> JSONResponse:
    if exc.incident:
        logger.error(
            "%s for customer=%r (status=%d): %s",
            type(exc).__name__,
            customer,
            exc.status_code,
            exc.detail or exc,
        )
    else:
        logger.info("%s for customer=%r (status=%d)", type(exc).__name__, customer, exc.status_code)

    # 404s are business outcomes, everything else is an error.
    key = "message" if exc.status_code == 404 else "error"
    return JSONResponse({key: exc.public_message}, status_code=exc.status_code)


def _unexpected_error(op: str, customer: str) -> JSONResponse:
    logger.exception("Unexpected error during %s for customer=%r", op, customer)
    return JSONResponse({"error": GENERIC_ERROR_MESSAGE}, status_code=500)


def create_app(cfg: AppConfig, *, manager: Optional[BrowserManager] = None) -> FastAPI:
    browser = manager or BrowserManager(headless=cfg.portal.headless)

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        try:
            await browser.start()
        except Exception:
            # Keep serving; requests get 503 until the browser is available.
            logger.exception("Failed to start browser; API will answer 503 until restarted.")
        try:
            yield
        finally:
            await browser.stop()

    app = FastAPI(title="SSOtica Receivables Agent", version=__version__, lifespan=lifespan)
    app.state.browser = browser
    app.state.config = cfg

    @app.get("/health")
    def health() -> Dict[str, Any]:
        return {"ok": True, "version": app.version, "browserReady": browser.is_ready}

    @app.post("/api/consultar")
    async def consultar(req: Request) -> JSONResponse:
        body = await _read_body(req)
        try:
            (name,) = _require_fields(body, "name")
        except InputValidationError as exc:
            return error_response(exc)

        try:
            current = await lookup_current_installment(browser, cfg, name)
        except AgentError as exc:
            return error_response(exc, customer=name)
        except Exception:
            return _unexpected_error("lookup", name)

        payload = CurrentInstallmentResponse(customer=name, current_installment=current)
        return JSONResponse(payload.model_dump(by_alias=True), status_code=200)

    @app.post("/api/baixar")
    async def baixar(req: Request) -> JSONResponse:
        body = await _read_body(req)
        try:
            name, sale_id, due_date = _require_fields(body, "name", "saleId", "dueDate")
        except InputValidationError as exc:
            return error_response(exc)

        try:
            await request_write_off(browser, cfg, name, sale_id, due_date)
        except AgentError as exc:
            return error_response(exc, customer=name)
        except Exception:
            return _unexpected_error("write-off", name)

        payload = WriteOffResponse(
            message=WRITE_OFF_SUCCESS_MESSAGE,
            customer=name,
            sale_id=sale_id,
            due_date=due_date,
        )
        return JSONResponse(payload.model_dump(by_alias=True), status_code=200)

    return app
