# src/ratelock/runtime/substrate.py
from __future__ import annotations

"""Fungible-token substrate.

Plain stored-balance bookkeeping with no notion of interest:

  state["balances"][address]            principal held by address
  state["total_supply"]                 sum of all principal
  state["allowances"][owner][spender]   remaining spend allowance

Every value movement appends a Transfer event (mints come from ZERO_ADDRESS,
burns go to it). Events are buffered in state["pending_events"]; the executor
drains them only when the enclosing operation commits.
"""

from typing import Any, Dict, List

from ratelock.ledger.constants import MAX_UINT256, ZERO_ADDRESS
from ratelock.runtime.errors import (
    ApplyError,
    InsufficientAllowance,
    InsufficientBalance,
    InvalidAddress,
)

Json = Dict[str, Any]


def _ensure_balances(state: Json) -> Json:
    b = state.get("balances")
    if not isinstance(b, dict):
        b = {}
        state["balances"] = b
    return b


def _ensure_allowances(state: Json) -> Json:
    a = state.get("allowances")
    if not isinstance(a, dict):
        a = {}
        state["allowances"] = a
    return a


def _pending_events(state: Json) -> List[Json]:
    ev = state.get("pending_events")
    if not isinstance(ev, list):
        ev = []
        state["pending_events"] = ev
    return ev


def emit(state: Json, event: str, **fields: Any) -> None:
    rec: Json = {"event": event}
    rec.update(fields)
    _pending_events(state).append(rec)


def require_address(address: Any, *, field: str) -> str:
    a = str(address).strip() if isinstance(address, str) else ""
    if not a or a == ZERO_ADDRESS:
        raise InvalidAddress(details={"field": field, "address": address})
    return a


def require_amount(amount: Any, *, field: str = "amount") -> int:
    if isinstance(amount, bool) or not isinstance(amount, (int, str)):
        raise ApplyError("invalid_payload", f"bad_{field}", {field: amount})
    try:
        n = int(amount)
    except ValueError:
        raise ApplyError("invalid_payload", f"bad_{field}", {field: amount}) from None
    if n < 0 or n > MAX_UINT256:
        raise ApplyError("invalid_payload", f"{field}_out_of_range", {field: n})
    return n


def balance_of(state: Json, address: str) -> int:
    return int(_ensure_balances(state).get(address, 0) or 0)


def total_supply(state: Json) -> int:
    return int(state.get("total_supply", 0) or 0)


def allowance(state: Json, owner: str, spender: str) -> int:
    per_owner = _ensure_allowances(state).get(owner)
    if not isinstance(per_owner, dict):
        return 0
    return int(per_owner.get(spender, 0) or 0)


def _checked_add(current: int, amount: int, *, field: str) -> int:
    n = int(current) + int(amount)
    if n > MAX_UINT256:
        raise ApplyError("invalid_payload", "supply_overflow", {"field": field, "current": int(current), "amount": int(amount)})
    return n


def mint_raw(state: Json, to: str, amount: int) -> None:
    """Credit new principal to `to`. Growth materialized by settle comes through here too."""
    to = require_address(to, field="to")
    supply = _checked_add(total_supply(state), amount, field="total_supply")
    balance = _checked_add(balance_of(state, to), amount, field="balance")
    _ensure_balances(state)[to] = balance
    state["total_supply"] = supply
    emit(state, "Transfer", sender=ZERO_ADDRESS, recipient=to, amount=int(amount))


def burn_raw(state: Json, holder: str, amount: int) -> None:
    holder = require_address(holder, field="from")
    bal = balance_of(state, holder)
    if bal < int(amount):
        raise InsufficientBalance(details={"holder": holder, "balance": bal, "needed": int(amount)})
    _ensure_balances(state)[holder] = bal - int(amount)
    state["total_supply"] = total_supply(state) - int(amount)
    emit(state, "Transfer", sender=holder, recipient=ZERO_ADDRESS, amount=int(amount))


def transfer_raw(state: Json, sender: str, recipient: str, amount: int) -> None:
    sender = require_address(sender, field="from")
    recipient = require_address(recipient, field="to")

    bal = balance_of(state, sender)
    if bal < int(amount):
        raise InsufficientBalance(details={"holder": sender, "balance": bal, "needed": int(amount)})

    balances = _ensure_balances(state)
    balances[sender] = bal - int(amount)
    # Read after the debit so self-transfers net to zero.
    balances[recipient] = _checked_add(balance_of(state, recipient), amount, field="balance")
    emit(state, "Transfer", sender=sender, recipient=recipient, amount=int(amount))


def approve(state: Json, owner: str, spender: str, amount: int) -> None:
    owner = require_address(owner, field="owner")
    spender = require_address(spender, field="spender")
    per_owner = _ensure_allowances(state).setdefault(owner, {})
    per_owner[spender] = int(amount)
    emit(state, "Approval", owner=owner, spender=spender, amount=int(amount))


def spend_allowance(state: Json, owner: str, spender: str, amount: int) -> None:
    """Consume `amount` of spender's allowance over owner.

    An allowance of MAX_UINT256 is treated as infinite and never decremented.
    """
    current = allowance(state, owner, spender)
    if current == MAX_UINT256:
        return
    if current < int(amount):
        raise InsufficientAllowance(
            details={"owner": owner, "spender": spender, "allowance": current, "needed": int(amount)}
        )
    _ensure_allowances(state).setdefault(owner, {})[spender] = current - int(amount)


__all__ = [
    "allowance",
    "approve",
    "balance_of",
    "burn_raw",
    "emit",
    "mint_raw",
    "require_address",
    "require_amount",
    "spend_allowance",
    "total_supply",
    "transfer_raw",
]
