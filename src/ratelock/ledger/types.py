"""ratelock.ledger.types

LedgerState object model + strict schema normalization.

This module defines:
  - LedgerState: JSON-backed MutableMapping dataclass
  - HolderRecord: per-holder locked-in rate + last sync timestamp
  - strict minimal schema enforcement (ensure_minimal_schema)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, MutableMapping

from ratelock.ledger.constants import (
    DEFAULT_PROTOCOL_RATE,
    DEFAULT_TOKEN_NAME,
    DEFAULT_TOKEN_SYMBOL,
    MAX_UINT256,
    MINT_BURN_ROLE,
    STATE_VERSION,
    TOKEN_DECIMALS,
)

Json = Dict[str, Any]


def _coerce_uint(v: Any, *, field: str) -> int:
    try:
        # bool is an int subclass; disallow it explicitly
        if isinstance(v, bool):
            raise ValueError("bool is not a valid int")
        n = int(v)
    except Exception as e:
        raise ValueError(f"LedgerState schema error: field '{field}' must be int-coercible (got {type(v).__name__})") from e
    if n < 0 or n > MAX_UINT256:
        raise ValueError(f"LedgerState schema error: field '{field}' out of uint256 range (got {n})")
    return n


def _require_dict(v: Any, *, field: str, strict: bool) -> Dict[str, Any]:
    if isinstance(v, dict):
        return v
    if v is None:
        return {}
    if strict:
        raise ValueError(f"LedgerState schema error: field '{field}' must be dict (got {type(v).__name__})")
    return {}


@dataclass(frozen=True, slots=True)
class HolderRecord:
    """Locked-in rate and last sync time for one holder.

    A holder that was never synchronized reads as rate=0, last_updated=0.
    """

    rate: int = 0
    last_updated: int = 0

    @classmethod
    def from_json(cls, j: Any) -> "HolderRecord":
        if not isinstance(j, dict):
            return cls()
        return cls(rate=int(j.get("rate", 0) or 0), last_updated=int(j.get("last_updated", 0) or 0))

    def to_json(self) -> Json:
        return {"rate": int(self.rate), "last_updated": int(self.last_updated)}


@dataclass
class LedgerState(MutableMapping[str, Any]):
    """Mutable ledger state with a stable, JSON-backed schema."""
    _data: Json = field(default_factory=dict)

    # ---- Mapping protocol ----

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._data[key] = value

    def __delitem__(self, key: str) -> None:
        del self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def get(self, key: str, default: Any = None) -> Any:  # type: ignore[override]
        return self._data.get(key, default)

    # ---- JSON interop ----

    def to_dict(self) -> Json:
        return dict(self._data)

    @classmethod
    def from_dict(cls, d: Any) -> "LedgerState":
        return cls(_data=d if isinstance(d, dict) else {})

    @classmethod
    def genesis(
        cls,
        *,
        owner: str,
        protocol_rate: int = DEFAULT_PROTOCOL_RATE,
        minters: List[str] | None = None,
        token_name: str = DEFAULT_TOKEN_NAME,
        token_symbol: str = DEFAULT_TOKEN_SYMBOL,
    ) -> "LedgerState":
        st = cls(
            _data={
                "state_version": STATE_VERSION,
                "token": {"name": token_name, "symbol": token_symbol, "decimals": TOKEN_DECIMALS},
                "owner": str(owner),
                "protocol_rate": int(protocol_rate),
                "roles": {MINT_BURN_ROLE: sorted({str(m) for m in (minters or []) if str(m).strip()})},
            }
        )
        st.ensure_minimal_schema()
        return st

    # ---- Convenience roots ----

    @property
    def protocol_rate(self) -> int:
        try:
            return int(self._data.get("protocol_rate", 0))
        except Exception:
            return 0

    @protocol_rate.setter
    def protocol_rate(self, v: int) -> None:
        self._data["protocol_rate"] = int(v)

    @property
    def owner(self) -> str:
        return str(self._data.get("owner", "") or "")

    @property
    def balances(self) -> Json:
        b = self._data.get("balances")
        if not isinstance(b, dict):
            b = {}
            self._data["balances"] = b
        return b

    @property
    def holders(self) -> Json:
        h = self._data.get("holders")
        if not isinstance(h, dict):
            h = {}
            self._data["holders"] = h
        return h

    @property
    def allowances(self) -> Json:
        a = self._data.get("allowances")
        if not isinstance(a, dict):
            a = {}
            self._data["allowances"] = a
        return a

    @property
    def roles(self) -> Json:
        r = self._data.get("roles")
        if not isinstance(r, dict):
            r = {}
            self._data["roles"] = r
        return r

    @property
    def last_ts(self) -> int:
        try:
            return int(self._data.get("last_ts", 0))
        except Exception:
            return 0

    @last_ts.setter
    def last_ts(self, v: int) -> None:
        self._data["last_ts"] = int(v)

    # ---- Schema normalization + strict validation ----

    def ensure_minimal_schema(self, *, strict: bool = True) -> None:
        """
        Backfill required roots and validate minimal invariants.

        If strict=True, malformed roots or out-of-range integers raise ValueError.
        """
        v = self._data.get("state_version", STATE_VERSION)
        if strict and int(v) != STATE_VERSION:
            raise ValueError(f"LedgerState schema error: state_version={v} != STATE_VERSION={STATE_VERSION}")
        self._data["state_version"] = STATE_VERSION

        self._data["protocol_rate"] = _coerce_uint(self._data.get("protocol_rate", DEFAULT_PROTOCOL_RATE), field="protocol_rate")
        self._data["total_supply"] = _coerce_uint(self._data.get("total_supply", 0), field="total_supply")
        self._data["last_ts"] = _coerce_uint(self._data.get("last_ts", 0), field="last_ts")
        self._data["owner"] = str(self._data.get("owner") or "")

        token = _require_dict(self._data.get("token"), field="token", strict=strict)
        token.setdefault("name", DEFAULT_TOKEN_NAME)
        token.setdefault("symbol", DEFAULT_TOKEN_SYMBOL)
        token.setdefault("decimals", TOKEN_DECIMALS)
        self._data["token"] = token

        for root in ("balances", "holders", "allowances", "roles"):
            self._data[root] = _require_dict(self._data.get(root), field=root, strict=strict)

        roles = self._data["roles"]
        minters = roles.get(MINT_BURN_ROLE)
        if not isinstance(minters, list):
            if strict and minters is not None:
                raise ValueError(f"LedgerState schema error: roles['{MINT_BURN_ROLE}'] must be list")
            roles[MINT_BURN_ROLE] = []

        balances = self._data["balances"]
        for addr, bal in list(balances.items()):
            balances[addr] = _coerce_uint(bal, field=f"balances['{addr}']")

        holders = self._data["holders"]
        for addr, rec in list(holders.items()):
            if not isinstance(rec, dict):
                if strict:
                    raise ValueError(f"LedgerState schema error: holders['{addr}'] must be dict (got {type(rec).__name__})")
                rec = {}
            holders[addr] = {
                "rate": _coerce_uint(rec.get("rate", 0), field=f"holders['{addr}'].rate"),
                "last_updated": _coerce_uint(rec.get("last_updated", 0), field=f"holders['{addr}'].last_updated"),
            }

        if strict:
            total = sum(int(b) for b in balances.values())
            if total != int(self._data["total_supply"]):
                raise ValueError(
                    f"LedgerState schema error: total_supply={self._data['total_supply']} != sum(balances)={total}"
                )


__all__ = ["LedgerState", "HolderRecord", "Json"]
