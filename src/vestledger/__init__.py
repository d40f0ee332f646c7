"""Time-gated token distribution ledger with TGE unlocks and installment vesting."""

__version__ = "1.0.0"
