from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from api.org_structure.config import Constants
from api.org_structure.schemas.levels import LevelSummary


class UserSummary(BaseModel):
    id: str
    name: Optional[str]
    email: str

    class Config:
        from_attributes = True


class OrgUnitSummary(BaseModel):
    id: str
    code: str
    name: str
    level_name: Optional[str] = None
    hierarchy_level: Optional[int] = None

    @classmethod
    def from_unit(cls, unit) -> "OrgUnitSummary":
        level = unit.level_definition
        return cls(
            id=unit.id,
            code=unit.code,
            name=unit.name,
            level_name=level.name if level else None,
            hierarchy_level=level.hierarchy_level if level else None,
        )


class UserAssignmentResponse(BaseModel):
    id: str
    org_unit_id: str
    user_id: str
    role: str
    effective_from: datetime
    effective_to: Optional[datetime]
    user: Optional[UserSummary] = None

    class Config:
        from_attributes = True


class KpiChampionResponse(BaseModel):
    user_id: str
    assigned_by: str
    assigned_at: datetime
    user: Optional[UserSummary] = None

    class Config:
        from_attributes = True


class OrgUnitResponse(BaseModel):
    id: str
    tenant_id: str
    fiscal_year_id: str
    level_definition_id: str
    code: str
    name: str
    description: Optional[str]
    parent_id: Optional[str]
    metadata: Dict[str, Any] = Field(default_factory=dict)
    sort_order: int
    effective_from: datetime
    effective_to: Optional[datetime]
    is_active: bool
    level: LevelSummary
    parent: Optional[OrgUnitSummary] = None
    children: List[OrgUnitSummary] = Field(default_factory=list)
    user_assignments: List[UserAssignmentResponse] = Field(default_factory=list)
    champions: List[KpiChampionResponse] = Field(default_factory=list)

    @classmethod
    def from_unit(cls, unit, children=(), assignments=(), champions=()) -> "OrgUnitResponse":
        return cls(
            id=unit.id,
            tenant_id=unit.tenant_id,
            fiscal_year_id=unit.fiscal_year_id,
            level_definition_id=unit.level_definition_id,
            code=unit.code,
            name=unit.name,
            description=unit.description,
            parent_id=unit.parent_id,
            metadata=unit.unit_metadata or {},
            sort_order=unit.sort_order,
            effective_from=unit.effective_from,
            effective_to=unit.effective_to,
            is_active=unit.is_active,
            level=LevelSummary.model_validate(unit.level_definition),
            parent=OrgUnitSummary.from_unit(unit.parent) if unit.parent else None,
            children=[OrgUnitSummary.from_unit(child) for child in children],
            user_assignments=[UserAssignmentResponse.model_validate(a) for a in assignments],
            champions=[KpiChampionResponse.model_validate(c) for c in champions],
        )


class OrgUnitFilters(BaseModel):
    level_code: Optional[str] = None
    parent_id: Optional[str] = None
    include_inactive: bool = False


class OrgUnitListResponse(BaseModel):
    org_units: List[OrgUnitResponse]
    total: int
    filters: OrgUnitFilters


class CreateOrgUnitRequest(BaseModel):
    level_definition_id: str
    name: str
    parent_id: Optional[str] = None
    code: Optional[str] = None
    description: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    effective_from: Optional[datetime] = None
    champion_user_ids: List[str] = Field(default_factory=list)


class UpdateOrgUnitRequest(BaseModel):
    """
    Partial update. Only fields present in the request body are applied;
    ``parent_id: null`` moves the unit to the root. ``champion_user_ids``
    replaces the whole champion set when present.
    """
    name: Optional[str] = None
    description: Optional[str] = None
    code: Optional[str] = None
    parent_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    sort_order: Optional[int] = None
    effective_to: Optional[datetime] = None
    champion_user_ids: Optional[List[str]] = None


class OrgUnitTreeNode(BaseModel):
    id: str
    code: str
    name: str
    level_code: str
    hierarchy_level: int
    sort_order: int
    children: List["OrgUnitTreeNode"] = Field(default_factory=list)


class AssignUserRequest(BaseModel):
    user_id: str
    role: str = Constants.DEFAULT_ASSIGNMENT_ROLE
    effective_from: Optional[datetime] = None


class AssignmentListResponse(BaseModel):
    assignments: List[UserAssignmentResponse]
    total: int
    active: int
    historical: int


OrgUnitTreeNode.model_rebuild()
