from typing import Any, Dict, List, Optional
import logging

from models.org_structure import ConfirmationType, StructureConfirmation, utcnow
from api.org_structure.config import Messages
from api.org_structure.domain.exceptions import (
    AlreadyConfirmedError,
    NotFoundError,
    StructureLockedError,
    ValidationError
)
from api.org_structure.domain.hierarchy import find_cyclic_units, find_dangling_units
from api.org_structure.infra.db.uow import UnitOfWork
from api.org_structure.schemas.confirmations import (
    ConfirmationResponse,
    SetupStatusResponse,
    SetupStep
)

logger = logging.getLogger(__name__)


def parse_confirmation_type(value) -> ConfirmationType:
    if isinstance(value, ConfirmationType):
        return value
    try:
        return ConfirmationType(value)
    except ValueError:
        raise ValidationError(Messages.INVALID_CONFIRMATION_TYPE)


class StructureConfirmationService:
    """
    Per-fiscal-year sign-off.

    States: unconfirmed -> org_structure confirmed -> performance_components
    confirmed. An org_structure confirmation locks that year's org-unit tree.
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    def is_locked(self, tenant_id: str, fiscal_year_id: str) -> bool:
        confirmation = self.uow.confirmations.get(
            fiscal_year_id, tenant_id, ConfirmationType.ORG_STRUCTURE
        )
        return confirmation is not None

    def ensure_unlocked(self, tenant_id: str, fiscal_year_id: str) -> None:
        if self.is_locked(tenant_id, fiscal_year_id):
            raise StructureLockedError(Messages.STRUCTURE_LOCKED)

    def confirm(
        self,
        tenant_id: str,
        fiscal_year_id: str,
        confirmation_type,
        confirmed_by: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> ConfirmationResponse:
        confirmation_type = parse_confirmation_type(confirmation_type)
        self._get_fiscal_year(tenant_id, fiscal_year_id)

        if self.uow.confirmations.get(fiscal_year_id, tenant_id, confirmation_type):
            raise AlreadyConfirmedError(Messages.already_confirmed(confirmation_type.value))

        if confirmation_type == ConfirmationType.ORG_STRUCTURE:
            self._check_org_structure_ready(tenant_id, fiscal_year_id)
        elif not self.uow.confirmations.get(fiscal_year_id, tenant_id, ConfirmationType.ORG_STRUCTURE):
            raise ValidationError(Messages.ORG_STRUCTURE_FIRST)

        with self.uow.transaction():
            confirmation = StructureConfirmation(
                tenant_id=tenant_id,
                fiscal_year_id=fiscal_year_id,
                confirmation_type=confirmation_type,
                confirmed_at=utcnow(),
                confirmed_by=confirmed_by,
                can_modify=False,
                confirmation_metadata=metadata,
                created_by=confirmed_by
            )
            self.uow.confirmations.create(confirmation)

        logger.info(
            f"Structure confirmed: fiscal_year_id={fiscal_year_id}, "
            f"type={confirmation_type.value}, tenant_id={tenant_id}, confirmed_by={confirmed_by}"
        )

        return ConfirmationResponse.model_validate(confirmation)

    def _check_org_structure_ready(self, tenant_id: str, fiscal_year_id: str) -> None:
        enabled_levels = self.uow.levels.list_by_fiscal_year(fiscal_year_id, tenant_id, enabled_only=True)
        if not enabled_levels:
            raise ValidationError("Cannot confirm structure: No enabled organizational levels found")

        units = self.uow.org_units.list_units(tenant_id, fiscal_year_id=fiscal_year_id)
        if not units:
            raise ValidationError("Cannot confirm structure: No organizational units have been created")

        names = {unit.id: unit.name for unit in units}
        parent_map = {unit.id: unit.parent_id for unit in units}

        dangling = find_dangling_units(parent_map)
        if dangling:
            raise ValidationError(
                "Cannot confirm structure: Found organizational units with invalid parent references: "
                + ", ".join(names[unit_id] for unit_id in dangling)
            )

        cyclic = find_cyclic_units(parent_map)
        if cyclic:
            raise ValidationError(
                "Cannot confirm structure: Circular references detected in units: "
                + ", ".join(names[unit_id] for unit_id in cyclic)
            )

        if not any(parent_id is None for parent_id in parent_map.values()):
            raise ValidationError("Cannot confirm structure: No root-level organizational units found")

    def get_confirmation(
        self,
        tenant_id: str,
        fiscal_year_id: str,
        confirmation_type
    ) -> Optional[ConfirmationResponse]:
        confirmation_type = parse_confirmation_type(confirmation_type)
        self._get_fiscal_year(tenant_id, fiscal_year_id)
        confirmation = self.uow.confirmations.get(fiscal_year_id, tenant_id, confirmation_type)
        if not confirmation:
            return None
        return ConfirmationResponse.model_validate(confirmation)

    def list_confirmations(self, tenant_id: str, fiscal_year_id: str) -> List[ConfirmationResponse]:
        self._get_fiscal_year(tenant_id, fiscal_year_id)
        return [
            ConfirmationResponse.model_validate(c)
            for c in self.uow.confirmations.list_by_fiscal_year(fiscal_year_id, tenant_id)
        ]

    def setup_status(self, tenant_id: str, fiscal_year_id: str) -> SetupStatusResponse:
        self._get_fiscal_year(tenant_id, fiscal_year_id)

        levels = self.uow.levels.list_by_fiscal_year(fiscal_year_id, tenant_id)
        enabled = [level for level in levels if level.is_enabled]
        units_count = self.uow.org_units.count_active(tenant_id, fiscal_year_id)
        confirmed_types = {
            c.confirmation_type for c in self.uow.confirmations.list_by_fiscal_year(fiscal_year_id, tenant_id)
        }
        org_confirmed = ConfirmationType.ORG_STRUCTURE in confirmed_types

        next_steps = []
        if not levels:
            next_steps.append(SetupStep(
                step="configure-levels",
                title="Configure Organizational Levels",
                description="Define the organizational levels for your company (e.g., Department, Team, Individual)",
                required=True
            ))
        elif units_count == 0:
            next_steps.append(SetupStep(
                step="create-units",
                title="Create Organizational Units",
                description="Create your departments, teams, or other organizational units",
                required=True
            ))
        else:
            next_steps.append(SetupStep(
                step="assign-users",
                title="Assign Users",
                description="Assign team members to organizational units",
                required=False
            ))
            if not org_confirmed:
                next_steps.append(SetupStep(
                    step="confirm-structure",
                    title="Confirm Organizational Structure",
                    description="Review and lock the organizational structure for this fiscal year",
                    required=True
                ))

        return SetupStatusResponse(
            fiscal_year_id=fiscal_year_id,
            has_level_definitions=bool(levels),
            has_org_units=units_count > 0,
            level_definitions_count=len(levels),
            enabled_levels_count=len(enabled),
            org_units_count=units_count,
            configured_levels=[level.code for level in enabled],
            custom_levels=[level.code for level in levels if not level.is_standard],
            org_structure_confirmed=org_confirmed,
            performance_components_confirmed=ConfirmationType.PERFORMANCE_COMPONENTS in confirmed_types,
            next_steps=next_steps
        )

    def _get_fiscal_year(self, tenant_id: str, fiscal_year_id: str):
        fiscal_year = self.uow.fiscal_years.get_by_id(fiscal_year_id, tenant_id)
        if not fiscal_year:
            raise NotFoundError(Messages.FISCAL_YEAR_NOT_FOUND)
        return fiscal_year
