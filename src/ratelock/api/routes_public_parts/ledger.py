from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Request

from ratelock.api.routes_public_parts.common import _executor, _int_param, _stringify_ints
from ratelock.api.schemas import RateView

router = APIRouter()


@router.get("/rate", response_model=RateView)
def rate_get(request: Request) -> RateView:
    view = _executor(request).view()
    return RateView(protocol_rate=str(view.protocol_rate), precision=str(view.precision))


@router.get("/supply")
def supply_get(request: Request) -> dict:
    """Total principal in circulation; excludes unsettled growth."""
    view = _executor(request).view()
    token = view.token
    return {
        "ok": True,
        "total_supply": str(view.total_supply),
        "name": token.get("name"),
        "symbol": token.get("symbol"),
        "decimals": token.get("decimals"),
    }


@router.get("/events")
def events_get(request: Request, since: Optional[str] = None) -> dict:
    ex = _executor(request)
    evs = ex.events(since=_int_param(since, 0))
    return {"ok": True, "events": _stringify_ints(evs), "count": len(evs)}


@router.get("/roles")
def roles_get(request: Request) -> dict:
    view = _executor(request).view()
    return {"ok": True, "owner": view.owner, "mint_burn": view.minters()}
