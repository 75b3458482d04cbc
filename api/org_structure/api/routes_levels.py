from typing import List
from fastapi import APIRouter, Depends, Query, status
import logging

from api.org_structure.dependencies import get_auth_context, get_uow, AuthContext
from api.org_structure.infra.db.uow import UnitOfWork
from api.org_structure.domain.policies import AuthorizationPolicy
from api.org_structure.domain.services.level_registry import LevelRegistry
from api.org_structure.schemas.common import ApiResponse
from api.org_structure.schemas.levels import LevelDefinitionResponse, SetLevelEnabledRequest

logger = logging.getLogger(__name__)

levels_router = APIRouter(prefix="/tenants/{tenant_id}/fiscal-years/{fiscal_year_id}", tags=["Org Structure"])


@levels_router.get(
    "/level-definitions",
    response_model=ApiResponse[List[LevelDefinitionResponse]],
    status_code=status.HTTP_200_OK
)
async def list_level_definitions(
    tenant_id: str,
    fiscal_year_id: str,
    enabled_only: bool = Query(False, description="Only return enabled levels"),
    auth: AuthContext = Depends(get_auth_context),
    uow: UnitOfWork = Depends(get_uow)
):
    """
    List the level ladder of a fiscal year, ordered by hierarchy level.

    - **enabled_only**: Skip disabled levels
    """
    AuthorizationPolicy.ensure_tenant_access(auth, tenant_id)

    levels = LevelRegistry(uow).list_levels(tenant_id, fiscal_year_id, enabled_only=enabled_only)
    return ApiResponse(data=levels)


@levels_router.patch(
    "/level-definitions/{level_id}",
    response_model=ApiResponse[LevelDefinitionResponse],
    status_code=status.HTTP_200_OK
)
async def set_level_enabled(
    tenant_id: str,
    fiscal_year_id: str,
    level_id: str,
    request: SetLevelEnabledRequest,
    auth: AuthContext = Depends(get_auth_context),
    uow: UnitOfWork = Depends(get_uow)
):
    """
    Enable or disable a level. The ORGANIZATION level cannot be disabled.
    """
    AuthorizationPolicy.ensure_admin(auth, tenant_id)

    level = LevelRegistry(uow).set_level_enabled(
        tenant_id, fiscal_year_id, level_id, request.is_enabled, actor_id=auth.user_id
    )

    logger.info(
        f"Level toggled via API: level_id={level_id}, is_enabled={request.is_enabled}, "
        f"user_id={auth.user_id}, tenant_id={tenant_id}"
    )

    return ApiResponse(
        message=f"Level {'enabled' if level.is_enabled else 'disabled'} successfully",
        data=level
    )
