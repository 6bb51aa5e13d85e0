from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure local "src/" takes precedence over any globally-installed "ratelock" package.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

src_str = str(SRC)
if src_str not in sys.path:
    sys.path.insert(0, src_str)


class ManualClock:
    """Settable unix-seconds clock for deterministic accrual tests."""

    def __init__(self, t: int = 0) -> None:
        self.t = int(t)

    def __call__(self) -> int:
        return self.t

    def advance(self, seconds: int) -> int:
        self.t += int(seconds)
        return self.t


OWNER = "0xowner"
MINTER = "0xvault"


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(0)


@pytest.fixture
def executor(clock: ManualClock):
    from ratelock.runtime.executor import LedgerExecutor
    from ratelock.runtime.ledger_config import LedgerConfig
    from ratelock.ledger.constants import DEFAULT_PROTOCOL_RATE

    cfg = LedgerConfig(
        ledger_id="ratelock-test",
        mode="dev",
        owner=OWNER,
        initial_rate=DEFAULT_PROTOCOL_RATE,
        minters=(MINTER,),
    )
    return LedgerExecutor(cfg, clock=clock)
