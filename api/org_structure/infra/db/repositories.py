from typing import Optional, List, Tuple, Iterable
from datetime import datetime
from sqlalchemy.orm import Session
from sqlalchemy import and_, func

from models.auth import User
from models.org_structure import (
    FiscalYear, LevelDefinition, OrgUnit, UserAssignment,
    KpiChampion, StructureConfirmation, ConfirmationType
)


class FiscalYearRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, fiscal_year: FiscalYear) -> FiscalYear:
        self.db.add(fiscal_year)
        self.db.flush()
        return fiscal_year

    def get_by_id(self, fiscal_year_id: str, tenant_id: str) -> Optional[FiscalYear]:
        return self.db.query(FiscalYear).filter(
            and_(
                FiscalYear.id == fiscal_year_id,
                FiscalYear.tenant_id == tenant_id
            )
        ).first()


class LevelDefinitionRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, level: LevelDefinition) -> LevelDefinition:
        self.db.add(level)
        self.db.flush()
        return level

    def update(self, level: LevelDefinition) -> LevelDefinition:
        self.db.flush()
        return level

    def get_by_id(self, level_id: str, tenant_id: str) -> Optional[LevelDefinition]:
        return self.db.query(LevelDefinition).filter(
            and_(
                LevelDefinition.id == level_id,
                LevelDefinition.tenant_id == tenant_id
            )
        ).first()

    def list_by_fiscal_year(
        self,
        fiscal_year_id: str,
        tenant_id: str,
        enabled_only: bool = False
    ) -> List[LevelDefinition]:
        query = self.db.query(LevelDefinition).filter(
            and_(
                LevelDefinition.fiscal_year_id == fiscal_year_id,
                LevelDefinition.tenant_id == tenant_id
            )
        )

        if enabled_only:
            query = query.filter(LevelDefinition.is_enabled.is_(True))

        return query.order_by(LevelDefinition.hierarchy_level.asc()).all()


class OrgUnitRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, unit: OrgUnit) -> OrgUnit:
        self.db.add(unit)
        self.db.flush()
        return unit

    def update(self, unit: OrgUnit) -> OrgUnit:
        self.db.flush()
        return unit

    def get_by_id(self, unit_id: str, tenant_id: str) -> Optional[OrgUnit]:
        return self.db.query(OrgUnit).filter(
            and_(
                OrgUnit.id == unit_id,
                OrgUnit.tenant_id == tenant_id
            )
        ).first()

    def get_active_by_id(self, unit_id: str, tenant_id: str) -> Optional[OrgUnit]:
        return self.db.query(OrgUnit).filter(
            and_(
                OrgUnit.id == unit_id,
                OrgUnit.tenant_id == tenant_id,
                OrgUnit.is_active.is_(True)
            )
        ).first()

    def find_active_by_code(
        self,
        tenant_id: str,
        level_definition_id: str,
        code: str,
        exclude_id: Optional[str] = None
    ) -> Optional[OrgUnit]:
        query = self.db.query(OrgUnit).filter(
            and_(
                OrgUnit.tenant_id == tenant_id,
                OrgUnit.level_definition_id == level_definition_id,
                OrgUnit.code == code,
                OrgUnit.is_active.is_(True)
            )
        )

        if exclude_id:
            query = query.filter(OrgUnit.id != exclude_id)

        return query.first()

    def max_sibling_sort_order(
        self,
        tenant_id: str,
        level_definition_id: str,
        parent_id: Optional[str]
    ) -> Optional[int]:
        query = self.db.query(func.max(OrgUnit.sort_order)).filter(
            and_(
                OrgUnit.tenant_id == tenant_id,
                OrgUnit.level_definition_id == level_definition_id
            )
        )

        if parent_id is None:
            query = query.filter(OrgUnit.parent_id.is_(None))
        else:
            query = query.filter(OrgUnit.parent_id == parent_id)

        return query.scalar()

    def list_units(
        self,
        tenant_id: str,
        fiscal_year_id: Optional[str] = None,
        level_code: Optional[str] = None,
        parent_id: Optional[str] = None,
        include_inactive: bool = False
    ) -> List[OrgUnit]:
        query = self.db.query(OrgUnit).join(
            LevelDefinition, OrgUnit.level_definition_id == LevelDefinition.id
        ).filter(OrgUnit.tenant_id == tenant_id)

        if fiscal_year_id:
            query = query.filter(OrgUnit.fiscal_year_id == fiscal_year_id)

        if level_code:
            query = query.filter(LevelDefinition.code == level_code)

        if parent_id:
            query = query.filter(OrgUnit.parent_id == parent_id)

        if not include_inactive:
            query = query.filter(OrgUnit.is_active.is_(True))

        return query.order_by(
            LevelDefinition.hierarchy_level.asc(),
            OrgUnit.sort_order.asc(),
            OrgUnit.name.asc()
        ).all()

    def list_active_children(self, unit_id: str, tenant_id: str) -> List[OrgUnit]:
        return self.db.query(OrgUnit).filter(
            and_(
                OrgUnit.parent_id == unit_id,
                OrgUnit.tenant_id == tenant_id,
                OrgUnit.is_active.is_(True)
            )
        ).order_by(OrgUnit.sort_order.asc(), OrgUnit.name.asc()).all()

    def count_active_children(self, unit_id: str, tenant_id: str) -> int:
        return self.db.query(OrgUnit).filter(
            and_(
                OrgUnit.parent_id == unit_id,
                OrgUnit.tenant_id == tenant_id,
                OrgUnit.is_active.is_(True)
            )
        ).count()

    def count_active(self, tenant_id: str, fiscal_year_id: str) -> int:
        return self.db.query(OrgUnit).filter(
            and_(
                OrgUnit.tenant_id == tenant_id,
                OrgUnit.fiscal_year_id == fiscal_year_id,
                OrgUnit.is_active.is_(True)
            )
        ).count()

    def hierarchy_edges(self, tenant_id: str, fiscal_year_id: str) -> List[Tuple[str, Optional[str]]]:
        """(id, parent_id) for every active unit of the fiscal year."""
        rows = self.db.query(OrgUnit.id, OrgUnit.parent_id).filter(
            and_(
                OrgUnit.tenant_id == tenant_id,
                OrgUnit.fiscal_year_id == fiscal_year_id,
                OrgUnit.is_active.is_(True)
            )
        ).all()
        return [(row.id, row.parent_id) for row in rows]


class UserAssignmentRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, assignment: UserAssignment) -> UserAssignment:
        self.db.add(assignment)
        self.db.flush()
        return assignment

    def update(self, assignment: UserAssignment) -> UserAssignment:
        self.db.flush()
        return assignment

    def list_by_unit(
        self,
        unit_id: str,
        tenant_id: str,
        include_historical: bool = False
    ) -> List[UserAssignment]:
        query = self.db.query(UserAssignment).filter(
            and_(
                UserAssignment.org_unit_id == unit_id,
                UserAssignment.tenant_id == tenant_id
            )
        )

        if not include_historical:
            query = query.filter(UserAssignment.effective_to.is_(None))

        return query.order_by(UserAssignment.effective_from.desc()).all()

    def get_active(self, unit_id: str, user_id: str, tenant_id: str) -> Optional[UserAssignment]:
        return self.db.query(UserAssignment).filter(
            and_(
                UserAssignment.org_unit_id == unit_id,
                UserAssignment.user_id == user_id,
                UserAssignment.tenant_id == tenant_id,
                UserAssignment.effective_to.is_(None)
            )
        ).first()

    def count_active_for_unit(self, unit_id: str, tenant_id: str) -> int:
        return self.db.query(UserAssignment).filter(
            and_(
                UserAssignment.org_unit_id == unit_id,
                UserAssignment.tenant_id == tenant_id,
                UserAssignment.effective_to.is_(None)
            )
        ).count()


class KpiChampionRepository:
    def __init__(self, db: Session):
        self.db = db

    def delete_by_unit(self, unit_id: str) -> int:
        deleted = self.db.query(KpiChampion).filter(
            KpiChampion.org_unit_id == unit_id
        ).delete(synchronize_session=False)
        self.db.flush()
        return deleted

    def create_many(
        self,
        unit_id: str,
        user_ids: Iterable[str],
        assigned_by: str,
        assigned_at: datetime
    ) -> List[KpiChampion]:
        champions = [
            KpiChampion(
                org_unit_id=unit_id,
                user_id=user_id,
                assigned_by=assigned_by,
                assigned_at=assigned_at
            )
            for user_id in user_ids
        ]
        self.db.add_all(champions)
        self.db.flush()
        return champions

    def list_by_unit(self, unit_id: str) -> List[KpiChampion]:
        return self.db.query(KpiChampion).filter(
            KpiChampion.org_unit_id == unit_id
        ).order_by(KpiChampion.assigned_at.desc()).all()


class StructureConfirmationRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, confirmation: StructureConfirmation) -> StructureConfirmation:
        self.db.add(confirmation)
        self.db.flush()
        return confirmation

    def get(
        self,
        fiscal_year_id: str,
        tenant_id: str,
        confirmation_type: ConfirmationType
    ) -> Optional[StructureConfirmation]:
        return self.db.query(StructureConfirmation).filter(
            and_(
                StructureConfirmation.fiscal_year_id == fiscal_year_id,
                StructureConfirmation.tenant_id == tenant_id,
                StructureConfirmation.confirmation_type == confirmation_type
            )
        ).first()

    def list_by_fiscal_year(self, fiscal_year_id: str, tenant_id: str) -> List[StructureConfirmation]:
        return self.db.query(StructureConfirmation).filter(
            and_(
                StructureConfirmation.fiscal_year_id == fiscal_year_id,
                StructureConfirmation.tenant_id == tenant_id
            )
        ).order_by(StructureConfirmation.confirmed_at.desc()).all()


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, user_id: str, tenant_id: str) -> Optional[User]:
        return self.db.query(User).filter(
            and_(
                User.id == user_id,
                User.tenant_id == tenant_id
            )
        ).first()

    def list_by_ids(self, user_ids: Iterable[str], tenant_id: str) -> List[User]:
        user_ids = list(user_ids)
        if not user_ids:
            return []
        return self.db.query(User).filter(
            and_(
                User.id.in_(user_ids),
                User.tenant_id == tenant_id
            )
        ).all()
