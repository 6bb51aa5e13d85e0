from __future__ import annotations

import time

from fastapi import APIRouter, Request

router = APIRouter()


def _health_payload(request: Request) -> dict[str, object]:
    ex = getattr(request.app.state, "executor", None)
    return {
        "ok": True,
        "service": "ratelock",
        "version": "v1",
        "ts_ms": int(time.time() * 1000),
        "ledger_id": getattr(ex, "ledger_id", None),
        "ready": ex is not None,
    }


@router.get("/v1/health")
def v1_health(request: Request) -> dict[str, object]:
    return _health_payload(request)


@router.get("/healthz")
def healthz(request: Request) -> dict[str, object]:
    # Kubernetes-style alias
    return _health_payload(request)
