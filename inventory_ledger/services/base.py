"""
BaseService -- abstract base for the ledger's flush-only collaborators.

Responsibility:
    Provides the common constructor and session-handling contract for
    StockLedger, TransactionCodeGenerator and TransactionStateMachine.
    They receive a SQLAlchemy ``Session`` and use ``session.flush()`` --
    never ``session.commit()``.

Architecture position:
    Ledger > Services -- imperative shell infrastructure.
    TransactionLedgerService owns the unit of work and hands its session
    to these collaborators.

Invariants enforced:
    - Transaction boundaries: collaborators flush within the caller's
      transaction and never commit or rollback themselves, so a status
      transition and its stock effect commit or roll back together.

Failure modes:
    - If a subclass calls ``session.commit()``, a stock change could become
      visible without its movement (or the reverse).
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseService(ABC):
    """
    Abstract base class for flush-only ledger services.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
        - Does NOT provide query-only (read) methods -- those belong
          in ``inventory_ledger/selectors/``.
    """

    def __init__(self, session: Session):
        """
        Args:
            session: SQLAlchemy session for database operations, already
                inside the caller's transaction.
        """
        self.session = session
