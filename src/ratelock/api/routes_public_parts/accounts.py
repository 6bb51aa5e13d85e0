from __future__ import annotations

from fastapi import APIRouter, Request

from ratelock.api.routes_public_parts.common import _address, _executor
from ratelock.api.schemas import AccountView

router = APIRouter()


@router.get("/accounts/{address}", response_model=AccountView)
def account_get(address: str, request: Request) -> AccountView:
    ex = _executor(request)
    a = _address(address)
    rec = ex.view().holder(a)
    return AccountView(
        address=a,
        balance=str(ex.balance_of(a)),
        principal=str(ex.principal_balance_of(a)),
        rate=str(rec.rate),
        last_updated=rec.last_updated,
    )


@router.get("/accounts/{address}/balance")
def account_balance(address: str, request: Request) -> dict:
    ex = _executor(request)
    a = _address(address)
    return {"ok": True, "address": a, "balance": str(ex.balance_of(a))}


@router.get("/accounts/{address}/principal")
def account_principal(address: str, request: Request) -> dict:
    """Stored principal, bypassing accrual."""
    ex = _executor(request)
    a = _address(address)
    return {"ok": True, "address": a, "principal": str(ex.principal_balance_of(a))}


@router.get("/accounts/{address}/rate")
def account_rate(address: str, request: Request) -> dict:
    ex = _executor(request)
    a = _address(address)
    return {"ok": True, "address": a, "rate": str(ex.get_user_rate(a))}


@router.get("/allowances/{owner}/{spender}")
def allowance_get(owner: str, spender: str, request: Request) -> dict:
    view = _executor(request).view()
    o, s = _address(owner), _address(spender)
    return {"ok": True, "owner": o, "spender": s, "allowance": str(view.allowance(o, s))}
