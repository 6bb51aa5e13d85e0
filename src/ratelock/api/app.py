from __future__ import annotations

import os
from typing import Optional

from fastapi import FastAPI

from ratelock.api.errors import ApiError, api_error_handler
from ratelock.api.routes_public import public_router
from ratelock.api.structured_logging import RequestLogMiddleware
from ratelock.runtime.errors import ApplyError
from ratelock.runtime.executor import LedgerExecutor
from ratelock.runtime.executor import build_executor as _build_executor
from ratelock.runtime.ledger_config import LedgerConfig, load_ledger_config


def build_executor(config: LedgerConfig) -> LedgerExecutor:
    """Build a LedgerExecutor for API runtime.

    This wrapper exists so tests can monkeypatch `ratelock.api.app.build_executor`
    without reaching into runtime modules.
    """
    return _build_executor(config)


def create_app(*, boot_runtime: bool = True, config: Optional[LedgerConfig] = None) -> FastAPI:
    """Create the FastAPI application.

    boot_runtime:
      - True (default): load ledger config + attach executor
      - False: keep lightweight for unit tests / import-time validation
    """
    cfg = config or load_ledger_config()
    mode = (cfg.mode or os.environ.get("RATELOCK_MODE", "prod")).strip().lower()

    # Disable docs in production.
    if mode == "prod":
        app = FastAPI(title="Ratelock Ledger API", docs_url=None, redoc_url=None, openapi_url=None)
    else:
        app = FastAPI(title="Ratelock Ledger API")

    app.state.cfg = cfg
    app.state.executor = build_executor(cfg) if boot_runtime else None

    app.add_middleware(RequestLogMiddleware)

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(ApplyError, api_error_handler)

    app.include_router(public_router)

    return app
