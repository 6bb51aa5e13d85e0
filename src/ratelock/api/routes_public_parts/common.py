from __future__ import annotations

from typing import Any

from fastapi import Request

from ratelock.api.errors import ApiError
from ratelock.runtime.executor import LedgerExecutor


def _executor(request: Request) -> LedgerExecutor:
    ex = getattr(request.app.state, "executor", None)
    if ex is None:
        raise ApiError.internal("not_ready", "executor not attached to app.state", {})
    return ex


def _stringify_ints(obj: Any) -> Any:
    # uint256 values exceed JS number precision
    if isinstance(obj, bool):
        return obj
    if isinstance(obj, int):
        return str(obj)
    if isinstance(obj, dict):
        return {k: _stringify_ints(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_stringify_ints(v) for v in obj]
    return obj


def _address(v: Any) -> str:
    s = str(v or "").strip()
    if not s:
        raise ApiError.bad_request("invalid_address", "address must be non-empty", {})
    return s


def _int_param(v: Any, default: int) -> int:
    """Parse an int-ish query param safely."""
    if v is None:
        return int(default)
    try:
        s = str(v).strip()
        if s == "":
            return int(default)
        return int(s)
    except ValueError:
        return int(default)
