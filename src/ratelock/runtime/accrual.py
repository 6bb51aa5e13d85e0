# src/ratelock/runtime/accrual.py
from __future__ import annotations

"""Interest accrual engine.

Every holder's balance grows linearly from its last sync point at the rate the
holder locked in:

  balance = principal * (PRECISION + rate * (now - last_updated)) // PRECISION

Growth is materialized into principal (minted through the substrate) by
settle(). Every mutating entry point settles the holders it touches before
changing anything else; @settles_first enforces that ordering.

State assumptions:
  state["protocol_rate"]: int, only ever lowered
  state["holders"][address]: {"rate": int, "last_updated": int}
  substrate roots (balances, total_supply, allowances)
"""

import functools
from typing import Any, Callable, Dict, TypeVar

from ratelock.ledger.constants import MAX_UINT256, PRECISION
from ratelock.ledger.types import HolderRecord
from ratelock.runtime import substrate
from ratelock.runtime.errors import ApplyError, RateMustNotIncrease

Json = Dict[str, Any]
F = TypeVar("F", bound=Callable[..., Any])


def _ensure_holders(state: Json) -> Json:
    h = state.get("holders")
    if not isinstance(h, dict):
        h = {}
        state["holders"] = h
    return h


def _holder(state: Json, address: str) -> HolderRecord:
    return HolderRecord.from_json(_ensure_holders(state).get(address))


def _put_holder(state: Json, address: str, rec: HolderRecord) -> None:
    _ensure_holders(state)[address] = rec.to_json()


# ---- reads ----


def get_protocol_rate(state: Json) -> int:
    return int(state.get("protocol_rate", 0) or 0)


def get_user_rate(state: Json, holder: str) -> int:
    return _holder(state, holder).rate


def principal_balance_of(state: Json, holder: str) -> int:
    """Stored principal, excluding growth not yet settled."""
    return substrate.balance_of(state, holder)


def compute_accrued_balance(state: Json, holder: str, *, now: int) -> int:
    """Principal plus linear growth since the holder's last sync.

    A holder that was never synced has last_updated == 0, so elapsed time is
    measured from the epoch.
    """
    rec = _holder(state, holder)
    elapsed = int(now) - rec.last_updated
    if elapsed < 0:
        raise ApplyError(
            "invalid_state",
            "clock_before_last_sync",
            {"holder": holder, "now": int(now), "last_updated": rec.last_updated},
        )
    principal = substrate.balance_of(state, holder)
    return principal * (PRECISION + rec.rate * elapsed) // PRECISION


balance_of = compute_accrued_balance


# ---- settlement ----


def settle(state: Json, holder: str, *, now: int) -> int:
    """Materialize accrued growth into principal and reset the sync clock.

    Returns the amount minted (0 when nothing accrued). The timestamp always
    advances, so settling twice at the same instant is a no-op the second time.
    """
    principal = substrate.balance_of(state, holder)
    current = compute_accrued_balance(state, holder, now=now)
    delta = current - principal

    rec = _holder(state, holder)
    _put_holder(state, holder, HolderRecord(rate=rec.rate, last_updated=int(now)))

    if delta > 0:
        substrate.mint_raw(state, holder, delta)
    return delta


def settles_first(*holder_params: str) -> Callable[[F], F]:
    """Settle the named keyword arguments' holders, in order, before the body runs.

    Decorated operations take `state` positionally and everything else by
    keyword, including `now`.
    """

    def deco(fn: F) -> F:
        @functools.wraps(fn)
        def wrapper(state: Json, *, now: int, **kwargs: Any) -> Any:
            for name in holder_params:
                kwargs[name] = substrate.require_address(kwargs.get(name), field=name)
            for name in holder_params:
                settle(state, kwargs[name], now=now)
            return fn(state, now=now, **kwargs)

        wrapper.settled_params = tuple(holder_params)  # type: ignore[attr-defined]
        return wrapper  # type: ignore[return-value]

    return deco


# ---- operations ----


def set_protocol_rate(state: Json, *, new_rate: int) -> int:
    """Lower (or keep) the protocol rate. Raising it fails and changes nothing.

    Holder records are untouched: existing holders keep their locked-in rate.
    """
    old_rate = get_protocol_rate(state)
    new_rate = substrate.require_amount(new_rate, field="new_rate")
    if new_rate > old_rate:
        raise RateMustNotIncrease.build(old_rate=old_rate, new_rate=new_rate)
    state["protocol_rate"] = new_rate
    substrate.emit(state, "InterestRateSet", new_rate=new_rate)
    return new_rate


@settles_first("to")
def mint(state: Json, *, to: str, amount: int, now: int) -> int:
    # Minting always refreshes the rate, even for holders with a balance.
    rec = _holder(state, to)
    _put_holder(state, to, HolderRecord(rate=get_protocol_rate(state), last_updated=rec.last_updated))
    substrate.mint_raw(state, to, int(amount))
    return int(amount)


@settles_first("holder")
def burn(state: Json, *, holder: str, amount: int, now: int) -> int:
    if int(amount) == MAX_UINT256:
        amount = compute_accrued_balance(state, holder, now=now)
    substrate.burn_raw(state, holder, int(amount))
    return int(amount)


def _inherit_rate_if_empty(state: Json, sender: str, recipient: str, *, now: int) -> None:
    if compute_accrued_balance(state, recipient, now=now) != 0:
        return
    rec = _holder(state, recipient)
    _put_holder(state, recipient, HolderRecord(rate=_holder(state, sender).rate, last_updated=rec.last_updated))


@settles_first("sender", "recipient")
def transfer(state: Json, *, sender: str, recipient: str, amount: int, now: int) -> int:
    if int(amount) == MAX_UINT256:
        amount = compute_accrued_balance(state, sender, now=now)
    _inherit_rate_if_empty(state, sender, recipient, now=now)
    substrate.transfer_raw(state, sender, recipient, int(amount))
    return int(amount)


@settles_first("sender", "recipient")
def transfer_from(state: Json, *, spender: str, sender: str, recipient: str, amount: int, now: int) -> int:
    spender = substrate.require_address(spender, field="spender")
    if int(amount) == MAX_UINT256:
        amount = compute_accrued_balance(state, sender, now=now)
    _inherit_rate_if_empty(state, sender, recipient, now=now)
    substrate.spend_allowance(state, sender, spender, int(amount))
    substrate.transfer_raw(state, sender, recipient, int(amount))
    return int(amount)


__all__ = [
    "balance_of",
    "burn",
    "compute_accrued_balance",
    "get_protocol_rate",
    "get_user_rate",
    "mint",
    "principal_balance_of",
    "set_protocol_rate",
    "settle",
    "settles_first",
    "transfer",
    "transfer_from",
]
