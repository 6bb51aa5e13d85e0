from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from ratelock.api.errors import ApiError
from ratelock.api.routes_public_parts.common import _executor, _stringify_ints
from ratelock.api.schemas import TxSubmitRequest
from ratelock.runtime.errors import ApplyError
from ratelock.runtime.tx_types import TxEnvelope

router = APIRouter()

Json = Dict[str, Any]


@router.post("/tx")
def tx_submit(body: TxSubmitRequest, request: Request) -> Json:
    """Apply one ledger tx synchronously and return its receipt.

    The caller field is trusted as-is; authenticating it is the job of
    whatever sits in front of this API.
    """
    ex = _executor(request)
    env = TxEnvelope.from_json(body.model_dump())
    try:
        receipt = ex.submit(env)
    except ApplyError as e:
        raise ApiError.from_apply_error(e) from e
    out = _stringify_ints(receipt)
    out["ok"] = True
    return out
