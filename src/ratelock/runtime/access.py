# src/ratelock/runtime/access.py
from __future__ import annotations

from typing import Any, Dict, List

from ratelock.ledger.constants import MINT_BURN_ROLE
from ratelock.runtime.errors import Unauthorized
from ratelock.runtime.substrate import emit, require_address

Json = Dict[str, Any]


def _ensure_role_members(state: Json, role: str) -> List[str]:
    roles = state.get("roles")
    if not isinstance(roles, dict):
        roles = {}
        state["roles"] = roles
    members = roles.get(role)
    if not isinstance(members, list):
        members = []
        roles[role] = members
    return members


def is_owner(state: Json, caller: str) -> bool:
    owner = str(state.get("owner", "") or "")
    return bool(owner) and caller == owner


def has_role(state: Json, role: str, caller: str) -> bool:
    return caller in set(_ensure_role_members(state, role))


def require_owner(state: Json, caller: str) -> None:
    if not is_owner(state, caller):
        raise Unauthorized(details={"caller": caller, "required": "owner"})


def require_role(state: Json, role: str, caller: str) -> None:
    if not has_role(state, role, caller):
        raise Unauthorized(details={"caller": caller, "required": role})


def grant_role(state: Json, role: str, account: str) -> bool:
    """Add account to role. Returns False if it already held the role."""
    account = require_address(account, field="account")
    members = _ensure_role_members(state, role)
    if account in members:
        return False
    members.append(account)
    members.sort()
    emit(state, "RoleGranted", role=role, account=account)
    return True


def revoke_role(state: Json, role: str, account: str) -> bool:
    account = require_address(account, field="account")
    members = _ensure_role_members(state, role)
    if account not in members:
        return False
    members.remove(account)
    emit(state, "RoleRevoked", role=role, account=account)
    return True


def grant_mint_burn_role(state: Json, account: str) -> bool:
    return grant_role(state, MINT_BURN_ROLE, account)


def revoke_mint_burn_role(state: Json, account: str) -> bool:
    return revoke_role(state, MINT_BURN_ROLE, account)


__all__ = [
    "grant_mint_burn_role",
    "grant_role",
    "has_role",
    "is_owner",
    "require_owner",
    "require_role",
    "revoke_mint_burn_role",
    "revoke_role",
]
