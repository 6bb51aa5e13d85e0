# src/ratelock/runtime/ledger_config.py
from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from ratelock.ledger.constants import (
    DEFAULT_PROTOCOL_RATE,
    DEFAULT_TOKEN_NAME,
    DEFAULT_TOKEN_SYMBOL,
    MAX_UINT256,
    ZERO_ADDRESS,
)

Json = Dict[str, Any]


def _as_int(v: Any, default: int) -> int:
    if v is None:
        return int(default)
    try:
        return int(v)
    except (TypeError, ValueError):
        raise ValueError(f"expected an integer, got {v!r}") from None


def _as_str(v: Any, default: str) -> str:
    if v is None:
        return str(default)
    s = str(v)
    return s if s.strip() else str(default)


def _as_str_tuple(v: Any, default: Tuple[str, ...]) -> Tuple[str, ...]:
    if v is None:
        return tuple(default)
    if isinstance(v, str):
        return tuple(p.strip() for p in v.split(",") if p.strip())
    if isinstance(v, (list, tuple)):
        return tuple(str(p).strip() for p in v if str(p).strip())
    raise ValueError(f"expected a list of addresses, got {type(v).__name__}")


@dataclass(frozen=True)
class LedgerConfig:
    ledger_id: str
    mode: str  # "dev" | "testnet" | "prod"

    # Privileged caller: sets the rate and grants mint/burn.
    owner: str
    initial_rate: int
    minters: Tuple[str, ...] = field(default_factory=tuple)

    token_name: str = DEFAULT_TOKEN_NAME
    token_symbol: str = DEFAULT_TOKEN_SYMBOL

    api_host: str = "127.0.0.1"
    api_port: int = 8000

    log_level: str = "INFO"


_ALLOWED_MODES = {"dev", "testnet", "prod"}
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def validate_ledger_config(cfg: LedgerConfig) -> None:
    """Fail-fast validation for operator config."""

    if not isinstance(cfg.ledger_id, str) or not cfg.ledger_id.strip():
        raise ValueError("ledger_id must be a non-empty string")

    mode = str(cfg.mode or "").strip().lower()
    if mode not in _ALLOWED_MODES:
        raise ValueError(f"mode must be one of {_ALLOWED_MODES}; got: {cfg.mode!r}")

    if not isinstance(cfg.owner, str) or not cfg.owner.strip() or cfg.owner == ZERO_ADDRESS:
        raise ValueError("owner must be a non-empty, non-zero address")

    if int(cfg.initial_rate) < 0 or int(cfg.initial_rate) > MAX_UINT256:
        raise ValueError(f"initial_rate must be a uint256; got: {cfg.initial_rate}")

    for m in cfg.minters:
        if m == ZERO_ADDRESS:
            raise ValueError("minters must not include the zero address")

    if int(cfg.api_port) <= 0 or int(cfg.api_port) > 65535:
        raise ValueError(f"api_port must be 1..65535; got: {cfg.api_port}")

    if str(cfg.log_level).strip().upper() not in _LOG_LEVELS:
        raise ValueError(f"log_level must be one of {_LOG_LEVELS}; got: {cfg.log_level!r}")


def default_ledger_config() -> LedgerConfig:
    return LedgerConfig(
        ledger_id="ratelock-dev",
        # Production-safe default: no permissive dev posture without explicit config.
        mode="prod",
        owner="owner",
        initial_rate=DEFAULT_PROTOCOL_RATE,
        minters=(),
        api_host="127.0.0.1",
        api_port=8000,
        log_level="INFO",
    )


def _read_raw(p: Path) -> Json:
    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in {".yaml", ".yml"}:
        raw = yaml.safe_load(text)
    else:
        raw = json.loads(text)
    if not isinstance(raw, dict):
        raise ValueError("ledger config must be a mapping/object")
    return raw


def config_from_mapping(raw: Json) -> LedgerConfig:
    d = default_ledger_config()
    cfg = LedgerConfig(
        ledger_id=_as_str(raw.get("ledger_id"), d.ledger_id),
        mode=_as_str(raw.get("mode"), d.mode).strip().lower(),
        owner=_as_str(raw.get("owner"), d.owner).strip(),
        initial_rate=_as_int(raw.get("initial_rate"), d.initial_rate),
        minters=_as_str_tuple(raw.get("minters"), d.minters),
        token_name=_as_str(raw.get("token_name"), d.token_name),
        token_symbol=_as_str(raw.get("token_symbol"), d.token_symbol),
        api_host=_as_str(raw.get("api_host"), d.api_host),
        api_port=_as_int(raw.get("api_port"), d.api_port),
        log_level=_as_str(raw.get("log_level"), d.log_level).strip().upper(),
    )
    validate_ledger_config(cfg)
    return cfg


def read_ledger_config_file(path: str) -> LedgerConfig:
    return config_from_mapping(_read_raw(Path(path)))


def load_ledger_config(*, config_path: Optional[str] = None) -> LedgerConfig:
    """Load config from a file path, RATELOCK_CONFIG_PATH, or defaults.

    RATELOCK_OWNER / RATELOCK_LOG_LEVEL override whatever the file says.
    """
    p = config_path or os.environ.get("RATELOCK_CONFIG_PATH")
    raw: Json = _read_raw(Path(p)) if p else {}

    owner = os.environ.get("RATELOCK_OWNER")
    if owner:
        raw["owner"] = owner
    level = os.environ.get("RATELOCK_LOG_LEVEL")
    if level:
        raw["log_level"] = level

    return config_from_mapping(raw)
