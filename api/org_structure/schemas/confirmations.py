from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List
from datetime import datetime

from models.org_structure import ConfirmationType


class ConfirmStructureRequest(BaseModel):
    confirmation_type: ConfirmationType = ConfirmationType.ORG_STRUCTURE
    metadata: Optional[Dict[str, Any]] = None


class ConfirmationResponse(BaseModel):
    id: str
    fiscal_year_id: str
    confirmation_type: ConfirmationType
    confirmed_at: datetime
    confirmed_by: str
    can_modify: bool

    class Config:
        from_attributes = True


class SetupStep(BaseModel):
    step: str
    title: str
    description: str
    required: bool


class SetupStatusResponse(BaseModel):
    fiscal_year_id: str
    has_level_definitions: bool
    has_org_units: bool
    level_definitions_count: int
    enabled_levels_count: int
    org_units_count: int
    configured_levels: List[str] = Field(default_factory=list)
    custom_levels: List[str] = Field(default_factory=list)
    org_structure_confirmed: bool
    performance_components_confirmed: bool
    next_steps: List[SetupStep] = Field(default_factory=list)
