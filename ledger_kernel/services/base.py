"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Provides the common constructor and session-handling contract for
    every service in the kernel layer.  All concrete services inherit
    from BaseService, receiving a SQLAlchemy ``Session`` that they use
    via ``session.flush()`` -- never ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    - Transaction boundaries: services flush within the caller's
      transaction and never commit or rollback themselves.  The caller
      (``session_scope()``, the HTTP layer or a test) owns commit/rollback.
    - A flush that hits a stale version row raises OptimisticLockError
      naming the entity, not SQLAlchemy's StaleDataError.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ledger_kernel.db.base import Base
from ledger_kernel.exceptions import OptimisticLockError

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for all kernel services.

    Contract:
        Accepts a SQLAlchemy ``Session`` from the caller and uses
        ``session.flush()`` to persist changes within the active
        transaction.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
        - Does NOT provide listing queries -- those belong in
          ``ledger_kernel/selectors/``.
    """

    def __init__(self, session: Session):
        self.session = session

    def _flush_versioned(self, entity_type: str, entity: Base) -> None:
        """Flush, translating a lost version race into OptimisticLockError."""
        # The session is unusable after StaleDataError, so read the id first
        entity_id = str(entity.id)
        try:
            self.session.flush()
        except StaleDataError as exc:
            raise OptimisticLockError(entity_type, entity_id) from exc

    @staticmethod
    def _check_version(
        entity_type: str,
        entity: Base,
        expected_version: int | None,
    ) -> None:
        """Reject a write when the caller's version is stale."""
        if expected_version is not None and entity.version != expected_version:
            raise OptimisticLockError(
                entity_type,
                str(entity.id),
                expected_version=expected_version,
                actual_version=entity.version,
            )
