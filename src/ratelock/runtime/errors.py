from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

Json = Dict[str, Any]


@dataclass
class ApplyError(Exception):
    """Canonical error type for ledger apply failures."""

    code: str
    reason: str
    details: Any | None = None

    def __str__(self) -> str:  # pragma: no cover
        if self.details is None:
            return f"{self.code}:{self.reason}"
        return f"{self.code}:{self.reason}:{self.details}"


@dataclass
class RateMustNotIncrease(ApplyError):
    """Raised when a protocol rate change would raise the rate."""

    code: str = "rate_must_not_increase"
    reason: str = "protocol_rate_can_only_decrease"
    details: Optional[Json] = None

    @classmethod
    def build(cls, *, old_rate: int, new_rate: int) -> "RateMustNotIncrease":
        return cls(details={"old_rate": int(old_rate), "new_rate": int(new_rate)})

    @property
    def old_rate(self) -> int:
        return int((self.details or {}).get("old_rate", 0))

    @property
    def new_rate(self) -> int:
        return int((self.details or {}).get("new_rate", 0))


@dataclass
class InsufficientBalance(ApplyError):
    code: str = "insufficient_balance"
    reason: str = "amount_exceeds_balance"
    details: Optional[Json] = None


@dataclass
class InsufficientAllowance(ApplyError):
    code: str = "insufficient_allowance"
    reason: str = "amount_exceeds_allowance"
    details: Optional[Json] = None


@dataclass
class Unauthorized(ApplyError):
    code: str = "unauthorized"
    reason: str = "missing_capability"
    details: Optional[Json] = None


@dataclass
class InvalidAddress(ApplyError):
    code: str = "invalid_address"
    reason: str = "zero_or_empty_address"
    details: Optional[Json] = None


__all__ = [
    "ApplyError",
    "RateMustNotIncrease",
    "InsufficientBalance",
    "InsufficientAllowance",
    "Unauthorized",
    "InvalidAddress",
]
