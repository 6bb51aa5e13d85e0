# src/ratelock/api/routes_public.py
from __future__ import annotations

from fastapi import APIRouter

from ratelock.api.routes_public_parts.accounts import router as accounts_router
from ratelock.api.routes_public_parts.health import router as health_router
from ratelock.api.routes_public_parts.ledger import router as ledger_router
from ratelock.api.routes_public_parts.metrics import router as metrics_router
from ratelock.api.routes_public_parts.tx import router as tx_router

public_router = APIRouter()

public_router.include_router(health_router, prefix="", tags=["health"])
public_router.include_router(ledger_router, prefix="/v1", tags=["ledger"])
public_router.include_router(accounts_router, prefix="/v1", tags=["accounts"])
public_router.include_router(tx_router, prefix="/v1", tags=["tx"])

# Ops
public_router.include_router(metrics_router, prefix="/v1", tags=["metrics"])
