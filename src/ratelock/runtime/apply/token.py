# src/ratelock/runtime/apply/token.py
from __future__ import annotations

from typing import Any, Dict, Optional

from ratelock.ledger.constants import MINT_BURN_ROLE
from ratelock.runtime import access, accrual, substrate
from ratelock.runtime.errors import ApplyError
from ratelock.runtime.tx_types import TxEnvelope

Json = Dict[str, Any]


def _as_str(v: Any) -> str:
    return str(v).strip() if isinstance(v, (str, int, float)) else ""


def _as_dict(v: Any) -> Json:
    return v if isinstance(v, dict) else {}


def _require(payload: Json, key: str, env: TxEnvelope) -> Any:
    v = payload.get(key)
    if v is None or (isinstance(v, str) and not v.strip()):
        raise ApplyError("invalid_payload", f"missing_{key}", {"tx_type": env.tx_type})
    return v


def _amount(payload: Json, env: TxEnvelope, key: str = "amount") -> int:
    return substrate.require_amount(_require(payload, key, env), field=key)


def _apply_rate_set(state: Json, env: TxEnvelope, now: int) -> Json:
    """
    RATE_SET {new_rate}
    - Owner only
    - Rate can only go down (RateMustNotIncrease otherwise)
    """
    access.require_owner(state, env.caller)
    payload = _as_dict(env.payload)
    old_rate = accrual.get_protocol_rate(state)
    new_rate = accrual.set_protocol_rate(state, new_rate=_amount(payload, env, "new_rate"))
    return {"applied": "RATE_SET", "old_rate": old_rate, "new_rate": new_rate}


def _apply_role_grant(state: Json, env: TxEnvelope, now: int) -> Json:
    access.require_owner(state, env.caller)
    account = _as_str(_require(_as_dict(env.payload), "account", env))
    changed = access.grant_mint_burn_role(state, account)
    return {"applied": "ROLE_GRANT_MINT_BURN", "account": account, "changed": changed}


def _apply_role_revoke(state: Json, env: TxEnvelope, now: int) -> Json:
    access.require_owner(state, env.caller)
    account = _as_str(_require(_as_dict(env.payload), "account", env))
    changed = access.revoke_mint_burn_role(state, account)
    return {"applied": "ROLE_REVOKE_MINT_BURN", "account": account, "changed": changed}


def _apply_mint(state: Json, env: TxEnvelope, now: int) -> Json:
    access.require_role(state, MINT_BURN_ROLE, env.caller)
    payload = _as_dict(env.payload)
    to = _as_str(_require(payload, "to", env))
    amount = accrual.mint(state, to=to, amount=_amount(payload, env), now=now)
    return {"applied": "TOKEN_MINT", "to": to, "amount": amount, "rate": accrual.get_user_rate(state, to)}


def _apply_burn(state: Json, env: TxEnvelope, now: int) -> Json:
    access.require_role(state, MINT_BURN_ROLE, env.caller)
    payload = _as_dict(env.payload)
    holder = _as_str(_require(payload, "from", env))
    amount = accrual.burn(state, holder=holder, amount=_amount(payload, env), now=now)
    return {"applied": "TOKEN_BURN", "from": holder, "amount": amount}


def _apply_transfer(state: Json, env: TxEnvelope, now: int) -> Json:
    payload = _as_dict(env.payload)
    to = _as_str(_require(payload, "to", env))
    amount = accrual.transfer(state, sender=env.caller, recipient=to, amount=_amount(payload, env), now=now)
    return {"applied": "TOKEN_TRANSFER", "from": env.caller, "to": to, "amount": amount}


def _apply_transfer_from(state: Json, env: TxEnvelope, now: int) -> Json:
    payload = _as_dict(env.payload)
    frm = _as_str(_require(payload, "from", env))
    to = _as_str(_require(payload, "to", env))
    amount = accrual.transfer_from(
        state,
        spender=env.caller,
        sender=frm,
        recipient=to,
        amount=_amount(payload, env),
        now=now,
    )
    return {"applied": "TOKEN_TRANSFER_FROM", "spender": env.caller, "from": frm, "to": to, "amount": amount}


def _apply_approve(state: Json, env: TxEnvelope, now: int) -> Json:
    payload = _as_dict(env.payload)
    spender = _as_str(_require(payload, "spender", env))
    amount = _amount(payload, env)
    substrate.approve(state, env.caller, spender, amount)
    return {"applied": "TOKEN_APPROVE", "owner": env.caller, "spender": spender, "amount": amount}


_HANDLERS = {
    "RATE_SET": _apply_rate_set,
    "ROLE_GRANT_MINT_BURN": _apply_role_grant,
    "ROLE_REVOKE_MINT_BURN": _apply_role_revoke,
    "TOKEN_MINT": _apply_mint,
    "TOKEN_BURN": _apply_burn,
    "TOKEN_TRANSFER": _apply_transfer,
    "TOKEN_TRANSFER_FROM": _apply_transfer_from,
    "TOKEN_APPROVE": _apply_approve,
}


def apply_token(state: Json, env: TxEnvelope, *, now: int) -> Optional[Json]:
    """
    Returns:
      - dict: applied result (receipt convenience)
      - None: tx_type not in the token domain
    """
    t = _as_str(env.tx_type).strip().upper()
    fn = _HANDLERS.get(t)
    if fn is None:
        return None
    return fn(state, env, int(now))


__all__ = ["apply_token"]
