from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass(frozen=True)
class TxEnvelope:
    """One ledger operation: who calls it, what it is, and its arguments."""

    tx_type: str
    caller: str
    payload: Dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def from_json(j: Any) -> "TxEnvelope":
        if isinstance(j, TxEnvelope):
            return j
        if not isinstance(j, dict):
            j = dict(j)  # type: ignore[arg-type]
        return TxEnvelope(
            tx_type=str(j.get("tx_type", "")).strip().upper(),
            caller=str(j.get("caller", "") or "").strip(),
            payload=dict(j.get("payload", {}) or {}),
        )


__all__ = ["TxEnvelope"]
