"""ratelock: interest-bearing balance ledger with lock-in rates."""

__version__ = "0.1.0"
