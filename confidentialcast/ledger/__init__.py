"""
ConfidentialCast Ledgers

- RewardsLedger: encrypted per-account points and last outcome
- Journal:       signed, hash-chained log of committed transactions
"""

from confidentialcast.ledger.journal import Journal, JournalEntry, JournalSummary
from confidentialcast.ledger.rewards import RewardsLedger

__all__ = ["Journal", "JournalEntry", "JournalSummary", "RewardsLedger"]
