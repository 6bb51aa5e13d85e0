# src/ratelock/ledger/constants.py
from __future__ import annotations

"""Ledger monetary constants.

- Rates are fixed-point integers scaled by PRECISION (1e18) and expressed
  per second per unit of principal.
- Amounts are uint256-shaped; MAX_UINT256 doubles as the "everything" sentinel
  for burn and transfer.
"""

# Fixed-point precision for rate arithmetic
PRECISION: int = 10**18

# uint256 bound; also the "full balance" sentinel
MAX_UINT256: int = 2**256 - 1

# 5e-8 per second, scaled
DEFAULT_PROTOCOL_RATE: int = (5 * PRECISION) // 10**8

# Token metadata
TOKEN_DECIMALS: int = 18
DEFAULT_TOKEN_NAME: str = "Ratelock Token"
DEFAULT_TOKEN_SYMBOL: str = "RLT"

# Mint/burn source and sink
ZERO_ADDRESS: str = "0x0000000000000000000000000000000000000000"

# Capability names in state["roles"]
MINT_BURN_ROLE: str = "mint_burn"

STATE_VERSION: int = 1
