from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Awaitable, Callable, List, Optional, TypeVar

from dotenv import load_dotenv

from .config import AppConfig, load_config
from .errors import AgentError
from .logging_config import configure_logging
from .models import CurrentInstallmentResponse
from .portal.browser import BrowserManager
from .service import lookup_current_installment, request_write_off


logger = logging.getLogger("ssotica_receivables")
T = TypeVar("T")


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="ssotica_receivables")
    p.add_argument(
        "--env-file",
        default=".env",
        help="Path to a dotenv file (default: .env). If missing, env vars must already be set.",
    )
    p.add_argument(
        "--config",
        default="config.yaml",
        help="Optional YAML config overriding env defaults (default: config.yaml, ignored if missing)",
    )

    sub = p.add_subparsers(dest="cmd", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API (POST /api/consultar, POST /api/baixar)")
    serve.add_argument("--host", default="", help="Bind address (default: server.host / HOST)")
    serve.add_argument("--port", type=int, default=0, help="Bind port (default: server.port / PORT)")

    lookup = sub.add_parser("lookup", help="Print the current open/overdue installment for a customer")
    lookup.add_argument("name", help="Customer name as searched in the portal")
    lookup.add_argument("--headful", action="store_true", help="Run browser headful (debug)")
    lookup.add_argument("--slowmo-ms", type=int, default=0, help="Playwright slow motion in milliseconds (debug).")

    write_off = sub.add_parser("write-off", help="Click the settle ('Baixar') control of one installment")
    write_off.add_argument("name", help="Customer name as searched in the portal")
    write_off.add_argument("sale_id", help="Sale number exactly as shown ('Venda nº ...')")
    write_off.add_argument("due_date", help="Due date exactly as shown (DD/MM/YYYY)")
    write_off.add_argument("--headful", action="store_true", help="Run browser headful (debug)")
    write_off.add_argument("--slowmo-ms", type=int, default=0, help="Playwright slow motion in milliseconds (debug).")

    return p


async def _with_browser(
    cfg: AppConfig,
    fn: Callable[[BrowserManager], Awaitable[T]],
    *,
    headful: bool,
    slow_mo_ms: int,
) -> T:
    manager = BrowserManager(headless=cfg.portal.headless and not headful, slow_mo_ms=slow_mo_ms)
    await manager.start()
    try:
        return await fn(manager)
    finally:
        await manager.stop()


def _exit_code_for(exc: AgentError) -> int:
    # 1 = nothing to act on (business outcome), 2 = something broke.
    return 1 if exc.status_code in (400, 404) else 2


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    env_path = Path(args.env_file)
    if env_path.exists():
        load_dotenv(env_path)

    # Default logging: can be overridden once config is loaded.
    configure_logging(level=os.getenv("LOG_LEVEL", "INFO"))

    cfg = load_config(args.config)
    configure_logging(level=cfg.logging.level, file_path=cfg.logging.file_path or None)

    if args.cmd == "serve":
        from .server import create_app

        try:
            import uvicorn
        except Exception as exc:  # noqa: BLE001
            raise SystemExit("uvicorn is required. Install: pip install uvicorn fastapi") from exc

        host = args.host or cfg.server.host
        port = args.port or cfg.server.port
        logger.info("API listening on %s:%d", host, port)
        uvicorn.run(create_app(cfg), host=host, port=port, log_level=cfg.logging.level.lower())
        return 0

    if args.cmd == "lookup":
        try:
            current = asyncio.run(
                _with_browser(
                    cfg,
                    lambda m: lookup_current_installment(m, cfg, args.name),
                    headful=args.headful,
                    slow_mo_ms=args.slowmo_ms,
                )
            )
        except AgentError as exc:
            print(exc.public_message, file=sys.stderr)
            return _exit_code_for(exc)

        payload = CurrentInstallmentResponse(customer=args.name, current_installment=current)
        print(json.dumps(payload.model_dump(by_alias=True), ensure_ascii=False, indent=2))
        return 0

    if args.cmd == "write-off":
        try:
            asyncio.run(
                _with_browser(
                    cfg,
                    lambda m: request_write_off(m, cfg, args.name, args.sale_id, args.due_date),
                    headful=args.headful,
                    slow_mo_ms=args.slowmo_ms,
                )
            )
        except AgentError as exc:
            print(exc.public_message, file=sys.stderr)
            return _exit_code_for(exc)

        print(f"Write-off requested (sale={args.sale_id} due={args.due_date}).")
        return 0

    raise AssertionError("Unhandled command")
