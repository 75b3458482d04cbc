from typing import List, Optional
import logging

from models.org_structure import FiscalYear, LevelDefinition
from api.org_structure.config import Messages
from api.org_structure.domain.exceptions import NotFoundError, ValidationError
from api.org_structure.domain.policies import ValidationPolicy
from api.org_structure.domain.services.structure_confirmation import StructureConfirmationService
from api.org_structure.infra.db.uow import UnitOfWork
from api.org_structure.schemas.levels import LevelDefinitionResponse

logger = logging.getLogger(__name__)


class LevelRegistry:
    """
    Read access to the per-fiscal-year level ladder.

    Levels are created by fiscal-year setup; the registry only resolves them
    and toggles ``is_enabled``.
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow
        self.confirmations = StructureConfirmationService(uow)

    def get_fiscal_year(self, tenant_id: str, fiscal_year_id: str) -> FiscalYear:
        fiscal_year = self.uow.fiscal_years.get_by_id(fiscal_year_id, tenant_id)
        if not fiscal_year:
            raise NotFoundError(Messages.FISCAL_YEAR_NOT_FOUND)
        return fiscal_year

    def list_levels(
        self,
        tenant_id: str,
        fiscal_year_id: str,
        enabled_only: bool = False
    ) -> List[LevelDefinitionResponse]:
        self.get_fiscal_year(tenant_id, fiscal_year_id)
        levels = self.uow.levels.list_by_fiscal_year(fiscal_year_id, tenant_id, enabled_only=enabled_only)
        return [LevelDefinitionResponse.model_validate(level) for level in levels]

    def get_level(self, tenant_id: str, level_id: str) -> LevelDefinition:
        level = self.uow.levels.get_by_id(level_id, tenant_id)
        if not level:
            raise NotFoundError(Messages.LEVEL_NOT_FOUND)
        return level

    def resolve_for_fiscal_year(
        self,
        tenant_id: str,
        fiscal_year_id: str,
        level_id: Optional[str]
    ) -> LevelDefinition:
        """The enabled level a new unit is created at; anything else is a validation failure."""
        if not level_id:
            raise ValidationError("Name and level definition are required")

        level = self.uow.levels.get_by_id(level_id, tenant_id)
        if not level or level.fiscal_year_id != fiscal_year_id or not ValidationPolicy.can_host_units(level):
            raise ValidationError(Messages.INVALID_LEVEL)
        return level

    def set_level_enabled(
        self,
        tenant_id: str,
        fiscal_year_id: str,
        level_id: str,
        is_enabled: bool,
        actor_id: Optional[str] = None
    ) -> LevelDefinitionResponse:
        level = self.get_level(tenant_id, level_id)
        if level.fiscal_year_id != fiscal_year_id:
            raise NotFoundError(Messages.LEVEL_NOT_FOUND)

        self.confirmations.ensure_unlocked(tenant_id, fiscal_year_id)

        if level.is_organization and not is_enabled:
            raise ValidationError(Messages.ORGANIZATION_DISABLE)

        with self.uow.transaction():
            level.is_enabled = is_enabled
            level.modified_by = actor_id
            self.uow.levels.update(level)

        logger.info(
            f"Level {'enabled' if is_enabled else 'disabled'}: level_id={level_id}, "
            f"code={level.code}, tenant_id={tenant_id}"
        )

        return LevelDefinitionResponse.model_validate(level)
