# src/ratelock/runtime/executor.py
from __future__ import annotations

import copy
import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional

from ratelock.ledger.state import LedgerView
from ratelock.ledger.types import LedgerState
from ratelock.runtime import accrual, metrics, substrate
from ratelock.runtime.apply.token import apply_token
from ratelock.runtime.errors import ApplyError
from ratelock.runtime.ledger_config import LedgerConfig, default_ledger_config
from ratelock.runtime.tx_types import TxEnvelope
from ratelock.structured_logging import log_event

Json = Dict[str, Any]
Clock = Callable[[], int]

_log = logging.getLogger("ratelock.executor")


def _wall_clock() -> int:
    return int(time.time())


class LedgerExecutor:
    """Serial, all-or-nothing executor for ledger operations.

    Each submit():
      - reads the clock once, clamped so time never moves backward
      - applies the tx to a deep copy of state
      - commits the copy (and its events) only if apply succeeded

    A failed tx leaves state, events and timestamps exactly as they were.
    """

    def __init__(self, config: Optional[LedgerConfig] = None, *, clock: Optional[Clock] = None) -> None:
        self.config = config or default_ledger_config()
        self._clock: Clock = clock or _wall_clock
        self._lock = threading.Lock()
        self._events: List[Json] = []

        self.state: LedgerState = LedgerState.genesis(
            owner=self.config.owner,
            protocol_rate=self.config.initial_rate,
            minters=list(self.config.minters),
            token_name=self.config.token_name,
            token_symbol=self.config.token_symbol,
        )
        log_event(
            _log,
            "ledger_genesis",
            ledger_id=self.config.ledger_id,
            owner=self.config.owner,
            protocol_rate=self.state.protocol_rate,
            minters=list(self.config.minters),
        )

    @property
    def ledger_id(self) -> str:
        return self.config.ledger_id

    def now(self) -> int:
        wall = int(self._clock())
        last = self.state.last_ts
        return wall if wall >= last else last

    # ---- writes ----

    def submit(self, tx: Any) -> Json:
        """Apply one tx atomically. Raises ApplyError on rejection."""
        env = TxEnvelope.from_json(tx)
        with self._lock:
            now = self.now()
            working = copy.deepcopy(self.state)
            try:
                receipt = apply_token(working, env, now=now)
                if receipt is None:
                    raise ApplyError("tx_unimplemented", "tx_type_not_implemented", {"tx_type": env.tx_type})
            except ApplyError as e:
                metrics.inc_counter("tx_rejected_total")
                log_event(
                    _log,
                    "tx_rejected",
                    level=logging.WARNING,
                    tx_type=env.tx_type,
                    caller=env.caller,
                    code=e.code,
                    reason=e.reason,
                    details=e.details,
                )
                raise

            events = working.pop("pending_events", None) or []
            working.last_ts = now
            self.state = working

            seq0 = len(self._events)
            for i, ev in enumerate(events):
                ev["seq"] = seq0 + i + 1
                ev["ts"] = now
            self._events.extend(events)

        metrics.inc_counter("tx_applied_total")
        metrics.inc_counter(f"tx_{env.tx_type.lower()}_total")
        metrics.set_gauge("protocol_rate", self.state.protocol_rate)
        metrics.set_gauge("total_supply_principal", substrate.total_supply(self.state))
        log_event(_log, "tx_applied", tx_type=env.tx_type, caller=env.caller, ts=now, receipt=receipt)
        for ev in events:
            if ev.get("event") == "InterestRateSet":
                log_event(_log, "interest_rate_set", new_rate=ev.get("new_rate"), ts=now)

        out = dict(receipt)
        out["ok"] = True
        out["ts"] = now
        out["events"] = copy.deepcopy(events)
        return out

    def _submit(self, tx_type: str, caller: str, **payload: Any) -> Json:
        return self.submit(TxEnvelope(tx_type=tx_type, caller=caller, payload=payload))

    def set_protocol_rate(self, caller: str, new_rate: int) -> Json:
        return self._submit("RATE_SET", caller, new_rate=new_rate)

    def grant_mint_burn_role(self, caller: str, account: str) -> Json:
        return self._submit("ROLE_GRANT_MINT_BURN", caller, account=account)

    def revoke_mint_burn_role(self, caller: str, account: str) -> Json:
        return self._submit("ROLE_REVOKE_MINT_BURN", caller, account=account)

    def mint(self, caller: str, to: str, amount: int) -> Json:
        return self._submit("TOKEN_MINT", caller, to=to, amount=amount)

    def burn(self, caller: str, holder: str, amount: int) -> Json:
        return self._submit("TOKEN_BURN", caller, **{"from": holder, "amount": amount})

    def transfer(self, caller: str, to: str, amount: int) -> bool:
        self._submit("TOKEN_TRANSFER", caller, to=to, amount=amount)
        return True

    def transfer_from(self, caller: str, holder: str, to: str, amount: int) -> bool:
        self._submit("TOKEN_TRANSFER_FROM", caller, **{"from": holder, "to": to, "amount": amount})
        return True

    def approve(self, caller: str, spender: str, amount: int) -> bool:
        self._submit("TOKEN_APPROVE", caller, spender=spender, amount=amount)
        return True

    # ---- reads (pure) ----

    def balance_of(self, address: str) -> int:
        return accrual.balance_of(self.state, address, now=self.now())

    def principal_balance_of(self, address: str) -> int:
        return accrual.principal_balance_of(self.state, address)

    def get_protocol_rate(self) -> int:
        return accrual.get_protocol_rate(self.state)

    def get_user_rate(self, address: str) -> int:
        return accrual.get_user_rate(self.state, address)

    def total_supply(self) -> int:
        return substrate.total_supply(self.state)

    def allowance(self, owner: str, spender: str) -> int:
        return substrate.allowance(self.state, owner, spender)

    def events(self, since: int = 0) -> List[Json]:
        return [copy.deepcopy(e) for e in self._events if int(e.get("seq", 0)) > int(since)]

    def read_state(self) -> Json:
        return copy.deepcopy(self.state.to_dict())

    def snapshot(self) -> Json:
        return self.read_state()

    def view(self) -> LedgerView:
        return LedgerView.from_ledger(self.state)


def build_executor(config: Optional[LedgerConfig] = None, *, clock: Optional[Clock] = None) -> LedgerExecutor:
    return LedgerExecutor(config, clock=clock)


__all__ = ["LedgerExecutor", "build_executor"]
