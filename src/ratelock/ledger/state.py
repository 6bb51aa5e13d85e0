from __future__ import annotations

from dataclasses import dataclass, field
import copy
from typing import Any, Dict, List

from ratelock.ledger.constants import MINT_BURN_ROLE, PRECISION
from ratelock.ledger.types import HolderRecord


Json = Dict[str, Any]


@dataclass(frozen=True, slots=True)
class LedgerView:
    """
    Immutable read-only ledger view used by the API and tests.

    Balances here are *principal* only; accrued balances need a clock and are
    computed by ratelock.runtime.accrual.
    """

    owner: str = ""
    protocol_rate: int = 0
    total_supply: int = 0
    last_ts: int = 0
    token: Dict[str, Any] = field(default_factory=dict)
    balances: Dict[str, int] = field(default_factory=dict)
    holders: Dict[str, Any] = field(default_factory=dict)
    allowances: Dict[str, Any] = field(default_factory=dict)
    roles: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_ledger(cls, state: Dict[str, Any]) -> "LedgerView":
        return cls(
            owner=str(state.get("owner", "") or ""),
            protocol_rate=int(state.get("protocol_rate", 0) or 0),
            total_supply=int(state.get("total_supply", 0) or 0),
            last_ts=int(state.get("last_ts", 0) or 0),
            token=copy.deepcopy(state.get("token", {})) if isinstance(state.get("token"), dict) else {},
            balances=copy.deepcopy(state.get("balances", {})),
            holders=copy.deepcopy(state.get("holders", {})),
            allowances=copy.deepcopy(state.get("allowances", {})),
            roles=copy.deepcopy(state.get("roles", {})),
        )

    @property
    def precision(self) -> int:
        return PRECISION

    def principal_of(self, address: str) -> int:
        try:
            return int(self.balances.get(address, 0))
        except Exception:
            return 0

    def holder(self, address: str) -> HolderRecord:
        return HolderRecord.from_json(self.holders.get(address))

    def allowance(self, owner: str, spender: str) -> int:
        per_owner = self.allowances.get(owner)
        if not isinstance(per_owner, dict):
            return 0
        try:
            return int(per_owner.get(spender, 0))
        except Exception:
            return 0

    def minters(self) -> List[str]:
        m = self.roles.get(MINT_BURN_ROLE)
        return [str(x) for x in m] if isinstance(m, list) else []

    def has_mint_burn_role(self, address: str) -> bool:
        return address in set(self.minters())
