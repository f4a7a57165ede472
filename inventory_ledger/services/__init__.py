"""Ledger services: flush-only collaborators and the unit-of-work owning facade."""

from inventory_ledger.services.code_generator import TransactionCodeGenerator
from inventory_ledger.services.ledger_service import TransactionLedgerService
from inventory_ledger.services.state_machine import TransactionStateMachine
from inventory_ledger.services.stock_ledger import StockLedger

__all__ = [
    "StockLedger",
    "TransactionCodeGenerator",
    "TransactionLedgerService",
    "TransactionStateMachine",
]
