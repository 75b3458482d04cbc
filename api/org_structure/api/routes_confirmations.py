from typing import List, Optional
from fastapi import APIRouter, Depends, status
import logging

from api.org_structure.dependencies import get_auth_context, get_uow, AuthContext
from api.org_structure.infra.db.uow import UnitOfWork
from api.org_structure.domain.policies import AuthorizationPolicy
from api.org_structure.domain.services.structure_confirmation import StructureConfirmationService
from api.org_structure.schemas.common import ApiResponse
from api.org_structure.schemas.confirmations import (
    ConfirmStructureRequest,
    ConfirmationResponse,
    SetupStatusResponse
)

logger = logging.getLogger(__name__)

confirmations_router = APIRouter(
    prefix="/tenants/{tenant_id}/fiscal-years/{fiscal_year_id}",
    tags=["Org Structure"]
)


@confirmations_router.post(
    "/confirmations",
    response_model=ApiResponse[ConfirmationResponse],
    status_code=status.HTTP_201_CREATED
)
async def confirm_structure(
    tenant_id: str,
    fiscal_year_id: str,
    request: ConfirmStructureRequest,
    auth: AuthContext = Depends(get_auth_context),
    uow: UnitOfWork = Depends(get_uow)
):
    """
    Confirm and lock a part of the fiscal year setup.

    Confirming ``org_structure`` freezes the org-unit tree of the fiscal year.
    ``performance_components`` can only be confirmed after ``org_structure``.
    """
    AuthorizationPolicy.ensure_admin(auth, tenant_id, allow_super_admin=True)

    confirmation = StructureConfirmationService(uow).confirm(
        tenant_id,
        fiscal_year_id,
        request.confirmation_type,
        confirmed_by=auth.user_id,
        metadata=request.metadata
    )

    logger.info(
        f"Structure confirmed via API: fiscal_year_id={fiscal_year_id}, "
        f"type={request.confirmation_type.value}, user_id={auth.user_id}, tenant_id={tenant_id}"
    )

    return ApiResponse(message="Structure confirmed successfully", data=confirmation)


@confirmations_router.get(
    "/confirmations",
    response_model=ApiResponse[List[ConfirmationResponse]],
    status_code=status.HTTP_200_OK
)
async def list_confirmations(
    tenant_id: str,
    fiscal_year_id: str,
    auth: AuthContext = Depends(get_auth_context),
    uow: UnitOfWork = Depends(get_uow)
):
    AuthorizationPolicy.ensure_tenant_access(auth, tenant_id, allow_super_admin=True)
    return ApiResponse(data=StructureConfirmationService(uow).list_confirmations(tenant_id, fiscal_year_id))


@confirmations_router.get(
    "/confirmations/{confirmation_type}",
    response_model=ApiResponse[Optional[ConfirmationResponse]],
    status_code=status.HTTP_200_OK
)
async def get_confirmation(
    tenant_id: str,
    fiscal_year_id: str,
    confirmation_type: str,
    auth: AuthContext = Depends(get_auth_context),
    uow: UnitOfWork = Depends(get_uow)
):
    """
    Returns ``data: null`` when the fiscal year has no confirmation of this type.
    """
    AuthorizationPolicy.ensure_tenant_access(auth, tenant_id, allow_super_admin=True)

    confirmation = StructureConfirmationService(uow).get_confirmation(
        tenant_id, fiscal_year_id, confirmation_type
    )
    return ApiResponse(data=confirmation)


@confirmations_router.get(
    "/setup-status",
    response_model=ApiResponse[SetupStatusResponse],
    status_code=status.HTTP_200_OK
)
async def get_setup_status(
    tenant_id: str,
    fiscal_year_id: str,
    auth: AuthContext = Depends(get_auth_context),
    uow: UnitOfWork = Depends(get_uow)
):
    AuthorizationPolicy.ensure_tenant_access(auth, tenant_id, allow_super_admin=True)
    return ApiResponse(data=StructureConfirmationService(uow).setup_status(tenant_id, fiscal_year_id))
