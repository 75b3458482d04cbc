from typing import Optional
import logging

from models.org_structure import UserAssignment, utcnow
from api.org_structure.config import Messages
from api.org_structure.domain.exceptions import NotFoundError, ValidationError
from api.org_structure.infra.db.uow import UnitOfWork
from api.org_structure.schemas.org_units import (
    AssignUserRequest,
    AssignmentListResponse,
    UserAssignmentResponse
)

logger = logging.getLogger(__name__)


class UserAssignmentService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    def list_assignments(
        self,
        tenant_id: str,
        unit_id: str,
        include_historical: bool = False
    ) -> AssignmentListResponse:
        if not self.uow.org_units.get_by_id(unit_id, tenant_id):
            raise NotFoundError(Messages.UNIT_NOT_FOUND)

        assignments = self.uow.assignments.list_by_unit(unit_id, tenant_id, include_historical=include_historical)
        active = len([a for a in assignments if a.effective_to is None])

        return AssignmentListResponse(
            assignments=[UserAssignmentResponse.model_validate(a) for a in assignments],
            total=len(assignments),
            active=active,
            historical=len(assignments) - active
        )

    def assign_user(
        self,
        tenant_id: str,
        unit_id: str,
        request: AssignUserRequest,
        actor_id: Optional[str] = None
    ) -> UserAssignmentResponse:
        unit = self.uow.org_units.get_active_by_id(unit_id, tenant_id)
        if not unit:
            raise NotFoundError(Messages.UNIT_INACTIVE)

        if not self.uow.users.get_by_id(request.user_id, tenant_id):
            raise ValidationError(Messages.USER_NOT_IN_TENANT)

        existing = self.uow.assignments.get_active(unit_id, request.user_id, tenant_id)
        if existing:
            level_name = unit.level_definition.name.lower() if unit.level_definition else "organization unit"
            raise ValidationError(f"User is already assigned to this {level_name}")

        with self.uow.transaction():
            assignment = UserAssignment(
                tenant_id=tenant_id,
                user_id=request.user_id,
                org_unit_id=unit_id,
                role=request.role,
                effective_from=request.effective_from or utcnow(),
                created_by=actor_id,
                modified_by=actor_id
            )
            self.uow.assignments.create(assignment)

        logger.info(
            f"User assigned: user_id={request.user_id}, unit_id={unit_id}, "
            f"role={request.role}, tenant_id={tenant_id}"
        )

        return UserAssignmentResponse.model_validate(assignment)

    def end_assignment(
        self,
        tenant_id: str,
        unit_id: str,
        user_id: str,
        actor_id: Optional[str] = None
    ) -> UserAssignmentResponse:
        assignment = self.uow.assignments.get_active(unit_id, user_id, tenant_id)
        if not assignment:
            raise NotFoundError(Messages.ASSIGNMENT_NOT_FOUND)

        with self.uow.transaction():
            assignment.effective_to = utcnow()
            assignment.modified_by = actor_id
            self.uow.assignments.update(assignment)

        logger.info(f"User assignment ended: user_id={user_id}, unit_id={unit_id}, tenant_id={tenant_id}")

        return UserAssignmentResponse.model_validate(assignment)
