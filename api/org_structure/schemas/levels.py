from pydantic import BaseModel
from typing import Optional


class LevelDefinitionResponse(BaseModel):
    id: str
    fiscal_year_id: str
    code: str
    name: str
    plural_name: str
    hierarchy_level: int
    is_standard: bool
    is_enabled: bool
    icon: Optional[str]
    color: Optional[str]

    class Config:
        from_attributes = True


class LevelSummary(BaseModel):
    id: str
    code: str
    name: str
    plural_name: str
    hierarchy_level: int
    icon: Optional[str] = None
    color: Optional[str] = None

    class Config:
        from_attributes = True


class SetLevelEnabledRequest(BaseModel):
    is_enabled: bool
