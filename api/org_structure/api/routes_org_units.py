from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
import logging

from settings.config import Settings, get_settings
from api.org_structure.dependencies import get_auth_context, get_uow, AuthContext
from api.org_structure.infra.db.uow import UnitOfWork
from api.org_structure.domain.policies import AuthorizationPolicy
from api.org_structure.domain.services.org_unit_store import OrgUnitStore
from api.org_structure.domain.services.assignment_service import UserAssignmentService
from api.org_structure.schemas.common import ApiResponse
from api.org_structure.schemas.org_units import (
    AssignUserRequest,
    AssignmentListResponse,
    CreateOrgUnitRequest,
    OrgUnitFilters,
    OrgUnitListResponse,
    OrgUnitResponse,
    OrgUnitTreeNode,
    UpdateOrgUnitRequest,
    UserAssignmentResponse
)

logger = logging.getLogger(__name__)

org_units_router = APIRouter(prefix="/tenants/{tenant_id}", tags=["Org Structure"])


def get_store(
    uow: UnitOfWork = Depends(get_uow),
    settings: Settings = Depends(get_settings)
) -> OrgUnitStore:
    return OrgUnitStore(uow, system_actor=settings.system_actor)


@org_units_router.get(
    "/fiscal-years/{fiscal_year_id}/org-units",
    response_model=ApiResponse[OrgUnitListResponse],
    status_code=status.HTTP_200_OK
)
async def list_org_units(
    tenant_id: str,
    fiscal_year_id: str,
    level: Optional[str] = Query(None, description="Filter by level code"),
    parent: Optional[str] = Query(None, description="Filter by parent unit id"),
    include_inactive: bool = Query(False, description="Include soft-deleted units"),
    auth: AuthContext = Depends(get_auth_context),
    store: OrgUnitStore = Depends(get_store)
):
    """
    List org units of a fiscal year.

    Ordered by hierarchy level, then sort order, then name.
    """
    AuthorizationPolicy.ensure_tenant_access(auth, tenant_id)

    filters = OrgUnitFilters(level_code=level, parent_id=parent, include_inactive=include_inactive)
    return ApiResponse(data=store.list_units(tenant_id, fiscal_year_id, filters))


@org_units_router.get(
    "/fiscal-years/{fiscal_year_id}/org-units/tree",
    response_model=ApiResponse[List[OrgUnitTreeNode]],
    status_code=status.HTTP_200_OK
)
async def get_org_unit_tree(
    tenant_id: str,
    fiscal_year_id: str,
    auth: AuthContext = Depends(get_auth_context),
    store: OrgUnitStore = Depends(get_store)
):
    AuthorizationPolicy.ensure_tenant_access(auth, tenant_id)
    return ApiResponse(data=store.get_tree(tenant_id, fiscal_year_id))


@org_units_router.post(
    "/fiscal-years/{fiscal_year_id}/org-units",
    response_model=ApiResponse[OrgUnitResponse],
    status_code=status.HTTP_201_CREATED
)
async def create_org_unit(
    tenant_id: str,
    fiscal_year_id: str,
    request: CreateOrgUnitRequest,
    auth: AuthContext = Depends(get_auth_context),
    store: OrgUnitStore = Depends(get_store)
):
    """
    Create an org unit.

    - **code**: Optional; derived from the name when omitted, otherwise 2-4 uppercase letters or digits
    - **parent_id**: Optional; the parent must sit at a higher level
    - **champion_user_ids**: KPI champions, all users of this tenant
    """
    AuthorizationPolicy.ensure_admin(auth, tenant_id)

    unit = store.create_unit(tenant_id, fiscal_year_id, request, actor_id=auth.user_id)

    logger.info(f"Org unit created via API: unit_id={unit.id}, user_id={auth.user_id}, tenant_id={tenant_id}")

    return ApiResponse(message="Organization unit created successfully", data=unit)


@org_units_router.get(
    "/org-units/{unit_id}",
    response_model=ApiResponse[OrgUnitResponse],
    status_code=status.HTTP_200_OK
)
async def get_org_unit(
    tenant_id: str,
    unit_id: str,
    auth: AuthContext = Depends(get_auth_context),
    store: OrgUnitStore = Depends(get_store)
):
    AuthorizationPolicy.ensure_tenant_access(auth, tenant_id)
    return ApiResponse(data=store.get_unit(tenant_id, unit_id))


@org_units_router.put(
    "/org-units/{unit_id}",
    response_model=ApiResponse[OrgUnitResponse],
    status_code=status.HTTP_200_OK
)
async def update_org_unit(
    tenant_id: str,
    unit_id: str,
    request: UpdateOrgUnitRequest,
    auth: AuthContext = Depends(get_auth_context),
    store: OrgUnitStore = Depends(get_store)
):
    """
    Update an org unit. Only fields sent in the body change.

    Sending ``champion_user_ids`` replaces the whole champion set.
    """
    AuthorizationPolicy.ensure_admin(auth, tenant_id)

    unit = store.update_unit(tenant_id, unit_id, request, actor_id=auth.user_id)
    return ApiResponse(message="Organization unit updated successfully", data=unit)


@org_units_router.delete(
    "/org-units/{unit_id}",
    response_model=ApiResponse[OrgUnitResponse],
    status_code=status.HTTP_200_OK
)
async def delete_org_unit(
    tenant_id: str,
    unit_id: str,
    auth: AuthContext = Depends(get_auth_context),
    store: OrgUnitStore = Depends(get_store)
):
    """
    Soft delete an org unit. The record is kept with ``is_active`` false.
    """
    AuthorizationPolicy.ensure_admin(auth, tenant_id)

    unit = store.delete_unit(tenant_id, unit_id, actor_id=auth.user_id)

    logger.info(f"Org unit deleted via API: unit_id={unit_id}, user_id={auth.user_id}, tenant_id={tenant_id}")

    return ApiResponse(message="Organization unit deleted successfully", data=unit)


@org_units_router.get(
    "/org-units/{unit_id}/users",
    response_model=ApiResponse[AssignmentListResponse],
    status_code=status.HTTP_200_OK
)
async def list_unit_users(
    tenant_id: str,
    unit_id: str,
    include_historical: bool = Query(False, description="Include ended assignments"),
    auth: AuthContext = Depends(get_auth_context),
    uow: UnitOfWork = Depends(get_uow)
):
    AuthorizationPolicy.ensure_tenant_access(auth, tenant_id)

    assignments = UserAssignmentService(uow).list_assignments(
        tenant_id, unit_id, include_historical=include_historical
    )
    return ApiResponse(data=assignments)


@org_units_router.post(
    "/org-units/{unit_id}/users",
    response_model=ApiResponse[UserAssignmentResponse],
    status_code=status.HTTP_201_CREATED
)
async def assign_unit_user(
    tenant_id: str,
    unit_id: str,
    request: AssignUserRequest,
    auth: AuthContext = Depends(get_auth_context),
    uow: UnitOfWork = Depends(get_uow)
):
    AuthorizationPolicy.ensure_admin(auth, tenant_id)

    assignment = UserAssignmentService(uow).assign_user(tenant_id, unit_id, request, actor_id=auth.user_id)
    return ApiResponse(message="User assigned successfully", data=assignment)


@org_units_router.delete(
    "/org-units/{unit_id}/users/{user_id}",
    response_model=ApiResponse[UserAssignmentResponse],
    status_code=status.HTTP_200_OK
)
async def end_unit_user_assignment(
    tenant_id: str,
    unit_id: str,
    user_id: str,
    auth: AuthContext = Depends(get_auth_context),
    uow: UnitOfWork = Depends(get_uow)
):
    """
    End a user's current assignment. The row is kept with ``effective_to`` set.
    """
    AuthorizationPolicy.ensure_admin(auth, tenant_id)

    assignment = UserAssignmentService(uow).end_assignment(tenant_id, unit_id, user_id, actor_id=auth.user_id)
    return ApiResponse(message="User assignment ended successfully", data=assignment)
