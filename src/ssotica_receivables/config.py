from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Optional, Union
from urllib.parse import urlparse

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator


_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z0-9_]+)\}")

DEFAULT_BASE_URL = "https://app.ssotica.com.br"
DEFAULT_RECEIVABLES_PATH = "/financeiro/contas-a-receber/LwlRRM/listar"


def _expand_env_vars(value: object) -> object:
    if isinstance(value, str):
        def repl(match: re.Match[str]) -> str:
            var = match.group(1)
            return os.getenv(var, "")

        return _ENV_VAR_PATTERN.sub(repl, value)
    if isinstance(value, list):
        return [_expand_env_vars(v) for v in value]
    if isinstance(value, dict):
        return {k: _expand_env_vars(v) for k, v in value.items()}
    return value


def _env_bool(name: str, default: bool = False) -> bool:
    raw = (os.getenv(name, "") or "").strip().lower()
    if not raw:
        return bool(default)
    return raw in {"1", "true", "t", "yes", "y", "on"}


def _deep_merge(base: object, override: object) -> object:
    if isinstance(base, dict) and isinstance(override, dict):
        out = dict(base)
        for k, v in override.items():
            if k in out:
                out[k] = _deep_merge(out[k], v)
            else:
                out[k] = v
        return out
    return override


def _default_config_from_env() -> dict:
    """
    Env-only config, so deployments only need a `.env`.

    Numeric values stay strings here; pydantic coerces (and rejects junk) during validation.
    """
    return {
        "portal": {
            "base_url": os.getenv("SSOTICA_BASE_URL", DEFAULT_BASE_URL),
            "receivables_path": os.getenv("SSOTICA_CONTAS_A_RECEBER_PATH", DEFAULT_RECEIVABLES_PATH),
            "search_type_value": os.getenv("SSOTICA_SEARCH_TYPE_VALUE", "nome_apelido"),
            "email": os.getenv("SSOTICA_EMAIL", ""),
            "password": os.getenv("SSOTICA_PASSWORD", ""),
            "headless": _env_bool("BROWSER_HEADLESS", default=True),
            "results_timeout_ms": os.getenv("WAIT_FOR_RESULTS_TIMEOUT", "10000"),
            "settle_delay_ms": os.getenv("SETTLE_DELAY_MS", "2000"),
            "log_steps": _env_bool("PORTAL_LOG_STEPS", default=False),
            "debug_dir": os.getenv("PORTAL_DEBUG_DIR", ""),
        },
        "status": {
            "open_keyword": os.getenv("STATUS_FILTER_ABERTO", "aberto"),
            "overdue_keyword": os.getenv("STATUS_FILTER_ATRASO", "atraso"),
        },
        "server": {
            "host": os.getenv("HOST", "0.0.0.0"),
            "port": os.getenv("PORT", "3189"),
        },
        "logging": {
            "level": os.getenv("LOG_LEVEL", "INFO"),
            "file_path": os.getenv("LOG_FILE", ""),
        },
    }


class PortalConfig(BaseModel):
    """
    Where and how to reach the SSOtica portal.

    Credentials are opaque: they are handed to the login form exactly as configured.
    """

    base_url: str = DEFAULT_BASE_URL
    receivables_path: str = DEFAULT_RECEIVABLES_PATH
    search_type_value: str = "nome_apelido"
    email: str
    password: str = Field(repr=False)
    headless: bool = True
    results_timeout_ms: int = Field(default=10_000, gt=0)
    settle_delay_ms: int = Field(default=2_000, ge=0)

    # Troubleshooting aids; both off by default.
    log_steps: bool = False
    debug_dir: str = ""

    @model_validator(mode="after")
    def _normalize_and_validate(self) -> "PortalConfig":
        if not self.email or not self.password:
            raise ValueError("portal.email and portal.password are required (SSOTICA_EMAIL / SSOTICA_PASSWORD)")

        base_url = (self.base_url or "").strip().rstrip("/")
        parsed = urlparse(base_url)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError("portal.base_url must be a full URL like 'https://app.ssotica.com.br'")

        path = (self.receivables_path or "").strip()
        if not path.startswith("/"):
            path = "/" + path

        self.base_url = base_url
        self.receivables_path = path
        return self

    @property
    def receivables_url(self) -> str:
        return f"{self.base_url}{self.receivables_path}"


class StatusConfig(BaseModel):
    open_keyword: str = "aberto"
    overdue_keyword: str = "atraso"

    @field_validator("open_keyword", "overdue_keyword")
    @classmethod
    def _lower(cls, v: str) -> str:
        v = (v or "").strip().lower()
        if not v:
            raise ValueError("status keywords must not be empty")
        return v


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = Field(default=3189, gt=0, lt=65536)


class LoggingConfig(BaseModel):
    level: str = "INFO"
    file_path: str = ""


class AppConfig(BaseModel):
    portal: PortalConfig
    status: StatusConfig = StatusConfig()
    server: ServerConfig = ServerConfig()
    logging: LoggingConfig = LoggingConfig()


def load_config(path: Optional[Union[str, Path]] = None) -> AppConfig:
    raw: dict = {}
    if path:
        p = Path(path)
        if p.exists():
            raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
            raw = _expand_env_vars(raw)  # supports ${ENV_VAR} in YAML

    merged = _deep_merge(_default_config_from_env(), raw)
    return AppConfig.model_validate(merged)
