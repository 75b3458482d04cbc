import logging
from contextlib import contextmanager
from typing import Generator

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from api.org_structure.config import Messages
from api.org_structure.domain.exceptions import StorageError
from api.org_structure.infra.db.repositories import (
    FiscalYearRepository,
    LevelDefinitionRepository,
    OrgUnitRepository,
    UserAssignmentRepository,
    KpiChampionRepository,
    StructureConfirmationRepository,
    UserRepository
)

logger = logging.getLogger(__name__)

_ORG_UNIT_CODE_MARKERS = ("uq_org_units_active_code", "org_units.code")


def translate_storage_error(exc: SQLAlchemyError) -> StorageError:
    """Map a SQLAlchemy failure to a StorageError without leaking driver text."""
    detail = str(getattr(exc, "orig", exc))

    if isinstance(exc, IntegrityError):
        if any(marker in detail for marker in _ORG_UNIT_CODE_MARKERS):
            return StorageError(Messages.DUPLICATE_UNIT, code="DUPLICATE_ENTRY")
        if "unique" in detail.lower() or "duplicate" in detail.lower():
            return StorageError(Messages.OPERATION_FAILED, code="DUPLICATE_ENTRY")
        return StorageError(Messages.OPERATION_FAILED, code="INTEGRITY_ERROR")

    if isinstance(exc, OperationalError):
        return StorageError(Messages.OPERATION_FAILED, code="DATABASE_UNAVAILABLE")

    return StorageError(Messages.OPERATION_FAILED, code="DATABASE_ERROR")


class UnitOfWork:
    def __init__(self, db: Session):
        self.db = db
        self.fiscal_years = FiscalYearRepository(db)
        self.levels = LevelDefinitionRepository(db)
        self.org_units = OrgUnitRepository(db)
        self.assignments = UserAssignmentRepository(db)
        self.champions = KpiChampionRepository(db)
        self.confirmations = StructureConfirmationRepository(db)
        self.users = UserRepository(db)

    def commit(self):
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(f"Commit failed: {exc.__class__.__name__}", exc_info=True)
            raise translate_storage_error(exc) from exc

    def rollback(self):
        self.db.rollback()

    @contextmanager
    def transaction(self) -> Generator["UnitOfWork", None, None]:
        """
        One atomic write: commit on success, roll back on any failure.

        Storage failures raised inside the block (typically from a repository
        flush) come out as StorageError.
        """
        try:
            yield self
        except SQLAlchemyError as exc:
            self.rollback()
            logger.error(f"Transaction failed: {exc.__class__.__name__}", exc_info=True)
            raise translate_storage_error(exc) from exc
        except Exception:
            self.rollback()
            raise
        self.commit()
