from __future__ import annotations

import sys
from typing import Any
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


def pytest_configure(config: Any) -> None:
    config.addinivalue_line(
        "markers",
        "portal: integration smoke tests that require real SSOtica credentials",
    )


_CONFIG_ENV_VARS = (
    "SSOTICA_BASE_URL",
    "SSOTICA_CONTAS_A_RECEBER_PATH",
    "SSOTICA_SEARCH_TYPE_VALUE",
    "SSOTICA_EMAIL",
    "SSOTICA_PASSWORD",
    "BROWSER_HEADLESS",
    "WAIT_FOR_RESULTS_TIMEOUT",
    "SETTLE_DELAY_MS",
    "PORTAL_LOG_STEPS",
    "PORTAL_DEBUG_DIR",
    "STATUS_FILTER_ABERTO",
    "STATUS_FILTER_ATRASO",
    "HOST",
    "PORT",
    "LOG_LEVEL",
    "LOG_FILE",
)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Unset every config env var so tests only see what they set themselves."""
    for name in _CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def app_config(clean_env: pytest.MonkeyPatch):
    from ssotica_receivables.config import load_config

    clean_env.setenv("SSOTICA_EMAIL", "agent@example.com")
    clean_env.setenv("SSOTICA_PASSWORD", "s3cret")
    clean_env.setenv("SETTLE_DELAY_MS", "250")
    return load_config(None)
