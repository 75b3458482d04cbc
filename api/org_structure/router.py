"""
Main router for the organizational hierarchy API.

Combines the level, org-unit and confirmation routes into a single router
that is included in the FastAPI application.
"""
from fastapi import APIRouter

from api.org_structure.api.routes_levels import levels_router
from api.org_structure.api.routes_org_units import org_units_router
from api.org_structure.api.routes_confirmations import confirmations_router

org_structure_router = APIRouter()

org_structure_router.include_router(levels_router)
org_structure_router.include_router(org_units_router)
org_structure_router.include_router(confirmations_router)

__all__ = ["org_structure_router", "levels_router", "org_units_router", "confirmations_router"]
