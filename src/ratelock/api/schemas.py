from __future__ import annotations

"""Pydantic request/response schemas for the public API.

These exist only for HTTP input validation and UX stability; tx semantics live
in ratelock.runtime.apply.
"""

from typing import Any, Dict

from pydantic import BaseModel, Field


class TxSubmitRequest(BaseModel):
    tx_type: str = Field(..., description="e.g. TOKEN_TRANSFER, RATE_SET")
    caller: str = Field(..., description="Address performing the operation")
    payload: Dict[str, Any] = Field(default_factory=dict, description="Operation arguments")

    model_config = {"extra": "forbid"}


class AccountView(BaseModel):
    ok: bool = True
    address: str
    balance: str = Field(..., description="Principal plus accrued growth, decimal string")
    principal: str = Field(..., description="Stored principal, decimal string")
    rate: str = Field(..., description="Locked-in rate scaled by precision, decimal string")
    last_updated: int


class RateView(BaseModel):
    ok: bool = True
    protocol_rate: str
    precision: str
