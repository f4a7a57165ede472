"""
Inventory Ledger

The transaction ledger of an inventory tracking backend:
- Stock receipts and issues recorded as immutable movements
- Issues held pending until processed or cancelled
- On-hand quantity that never goes negative under concurrent callers
- Gapless, date-scoped movement codes (IN-20261018-0001)
"""

__version__ = "0.1.0"
