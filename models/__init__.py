from models.auth import User, RoleCode
from models.org_structure import (
    FiscalYear, FiscalYearStatus, LevelDefinition, OrgUnit,
    UserAssignment, KpiChampion, StructureConfirmation, ConfirmationType
)

__all__ = [
    'User', 'RoleCode',
    'FiscalYear', 'FiscalYearStatus', 'LevelDefinition', 'OrgUnit',
    'UserAssignment', 'KpiChampion', 'StructureConfirmation', 'ConfirmationType'
]
