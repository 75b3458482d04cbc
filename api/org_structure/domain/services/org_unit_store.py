from typing import List, Optional
import logging

from models.org_structure import OrgUnit, utcnow
from api.org_structure.config import Messages
from api.org_structure.domain.exceptions import NotFoundError, ValidationError
from api.org_structure.domain.hierarchy import (
    build_children_index,
    ensure_parent_above,
    ensure_valid_reparent,
    next_sort_order,
    resolve_code
)
from api.org_structure.domain.policies import ValidationPolicy
from api.org_structure.domain.services.champion_manager import ChampionAssignmentManager
from api.org_structure.domain.services.level_registry import LevelRegistry
from api.org_structure.domain.services.structure_confirmation import StructureConfirmationService
from api.org_structure.infra.db.uow import UnitOfWork
from api.org_structure.schemas.org_units import (
    CreateOrgUnitRequest,
    OrgUnitFilters,
    OrgUnitListResponse,
    OrgUnitResponse,
    OrgUnitTreeNode,
    UpdateOrgUnitRequest
)

logger = logging.getLogger(__name__)


class OrgUnitStore:
    """
    Create, update, soft-delete and query org units.

    Every mutation checks the fiscal year's org_structure lock before doing
    anything else, then validates, then writes inside a single transaction.
    """

    def __init__(self, uow: UnitOfWork, system_actor: str = "system"):
        self.uow = uow
        self.levels = LevelRegistry(uow)
        self.champions = ChampionAssignmentManager(uow, system_actor=system_actor)
        self.confirmations = StructureConfirmationService(uow)

    def create_unit(
        self,
        tenant_id: str,
        fiscal_year_id: str,
        request: CreateOrgUnitRequest,
        actor_id: Optional[str] = None
    ) -> OrgUnitResponse:
        self.levels.get_fiscal_year(tenant_id, fiscal_year_id)
        self.confirmations.ensure_unlocked(tenant_id, fiscal_year_id)

        name = ValidationPolicy.validate_name(request.name)
        level = self.levels.resolve_for_fiscal_year(tenant_id, fiscal_year_id, request.level_definition_id)
        code = resolve_code(name, request.code)

        if self.uow.org_units.find_active_by_code(tenant_id, level.id, code):
            raise ValidationError(Messages.duplicate_code(code))

        if request.parent_id:
            parent = self._resolve_parent(tenant_id, fiscal_year_id, request.parent_id)
            ensure_parent_above(parent.level_definition.hierarchy_level, level.hierarchy_level)

        champion_ids = self.champions.validate_champions(tenant_id, request.champion_user_ids)
        sort_order = next_sort_order(
            self.uow.org_units.max_sibling_sort_order(tenant_id, level.id, request.parent_id or None)
        )

        with self.uow.transaction():
            unit = OrgUnit(
                tenant_id=tenant_id,
                fiscal_year_id=fiscal_year_id,
                level_definition_id=level.id,
                code=code,
                name=name,
                description=request.description,
                parent_id=request.parent_id or None,
                unit_metadata=request.metadata or {},
                sort_order=sort_order,
                effective_from=request.effective_from or utcnow(),
                is_active=True,
                created_by=actor_id,
                modified_by=actor_id
            )
            self.uow.org_units.create(unit)

            if champion_ids:
                self.champions.replace_champions(unit.id, champion_ids, assigned_by=actor_id)

        logger.info(
            f"Org unit created: unit_id={unit.id}, code={code}, level={level.code}, "
            f"parent_id={unit.parent_id}, tenant_id={tenant_id}"
        )

        return self._build_response(unit)

    def update_unit(
        self,
        tenant_id: str,
        unit_id: str,
        request: UpdateOrgUnitRequest,
        actor_id: Optional[str] = None
    ) -> OrgUnitResponse:
        unit = self._get_unit(tenant_id, unit_id)
        self.confirmations.ensure_unlocked(tenant_id, unit.fiscal_year_id)
        if not unit.is_active:
            raise NotFoundError(Messages.UNIT_INACTIVE)

        fields = request.model_fields_set
        changes = {}

        if "name" in fields:
            changes["name"] = ValidationPolicy.validate_name(request.name)

        if "code" in fields and request.code and request.code != unit.code:
            code = resolve_code(unit.name, request.code)
            if self.uow.org_units.find_active_by_code(
                tenant_id, unit.level_definition_id, code, exclude_id=unit.id
            ):
                raise ValidationError(Messages.duplicate_code(code))
            changes["code"] = code

        if "parent_id" in fields and request.parent_id != unit.parent_id:
            if request.parent_id:
                self._validate_move(unit, request.parent_id)
            changes["parent_id"] = request.parent_id or None

        if "description" in fields:
            changes["description"] = request.description
        if "metadata" in fields:
            changes["unit_metadata"] = request.metadata or {}
        if "sort_order" in fields and request.sort_order is not None:
            changes["sort_order"] = request.sort_order
        if "effective_to" in fields:
            changes["effective_to"] = request.effective_to

        champion_ids = None
        if request.champion_user_ids is not None:
            champion_ids = self.champions.validate_champions(tenant_id, request.champion_user_ids)

        with self.uow.transaction():
            for attr, value in changes.items():
                setattr(unit, attr, value)
            unit.modified_by = actor_id
            self.uow.org_units.update(unit)

            if champion_ids is not None:
                self.champions.replace_champions(unit.id, champion_ids, assigned_by=actor_id)

        logger.info(
            f"Org unit updated: unit_id={unit_id}, fields={sorted(changes)}, "
            f"champions_replaced={champion_ids is not None}, tenant_id={tenant_id}"
        )

        return self._build_response(unit)

    def delete_unit(self, tenant_id: str, unit_id: str, actor_id: Optional[str] = None) -> OrgUnitResponse:
        """Soft delete: the row stays, ``is_active`` goes false and ``effective_to`` is stamped."""
        unit = self._get_unit(tenant_id, unit_id)
        self.confirmations.ensure_unlocked(tenant_id, unit.fiscal_year_id)

        if not unit.is_active:
            logger.info(f"Org unit already inactive: unit_id={unit_id}")
            return self._build_response(unit)

        if unit.level_definition.is_organization:
            raise ValidationError(Messages.ORGANIZATION_UNDELETABLE)

        if self.uow.org_units.count_active_children(unit.id, tenant_id) > 0:
            raise ValidationError(Messages.ACTIVE_CHILDREN)

        if self.uow.assignments.count_active_for_unit(unit.id, tenant_id) > 0:
            raise ValidationError(Messages.ACTIVE_ASSIGNMENTS)

        with self.uow.transaction():
            unit.is_active = False
            unit.effective_to = utcnow()
            unit.modified_by = actor_id
            self.uow.org_units.update(unit)

        logger.info(f"Org unit deleted: unit_id={unit_id}, code={unit.code}, tenant_id={tenant_id}")

        return self._build_response(unit)

    def get_unit(self, tenant_id: str, unit_id: str) -> OrgUnitResponse:
        return self._build_response(self._get_unit(tenant_id, unit_id))

    def list_units(
        self,
        tenant_id: str,
        fiscal_year_id: str,
        filters: Optional[OrgUnitFilters] = None
    ) -> OrgUnitListResponse:
        filters = filters or OrgUnitFilters()
        self.levels.get_fiscal_year(tenant_id, fiscal_year_id)

        units = self.uow.org_units.list_units(
            tenant_id,
            fiscal_year_id=fiscal_year_id,
            level_code=filters.level_code,
            parent_id=filters.parent_id,
            include_inactive=filters.include_inactive
        )

        return OrgUnitListResponse(
            org_units=[self._build_response(unit) for unit in units],
            total=len(units),
            filters=filters
        )

    def get_tree(self, tenant_id: str, fiscal_year_id: str) -> List[OrgUnitTreeNode]:
        """
        Active units nested under their parents.

        Units whose parent is missing or inactive are shown as roots. Units
        caught in a parent cycle are unreachable from any root and left out.
        """
        self.levels.get_fiscal_year(tenant_id, fiscal_year_id)
        units = self.uow.org_units.list_units(tenant_id, fiscal_year_id=fiscal_year_id)
        by_id = {unit.id: unit for unit in units}
        children_index = build_children_index(
            (unit.id, unit.parent_id) for unit in units if unit.parent_id in by_id
        )

        def to_node(unit: OrgUnit) -> OrgUnitTreeNode:
            return OrgUnitTreeNode(
                id=unit.id,
                code=unit.code,
                name=unit.name,
                level_code=unit.level_definition.code,
                hierarchy_level=unit.level_definition.hierarchy_level,
                sort_order=unit.sort_order
            )

        roots = []
        visited = set()
        stack = []
        for unit in units:
            if unit.parent_id is None or unit.parent_id not in by_id:
                node = to_node(unit)
                roots.append(node)
                visited.add(unit.id)
                stack.append((unit.id, node))

        while stack:
            unit_id, node = stack.pop()
            for child_id in children_index.get(unit_id, []):
                if child_id in visited:
                    continue
                visited.add(child_id)
                child_node = to_node(by_id[child_id])
                node.children.append(child_node)
                stack.append((child_id, child_node))

        if len(visited) < len(units):
            logger.warning(
                f"Org tree skipped {len(units) - len(visited)} unreachable units: "
                f"fiscal_year_id={fiscal_year_id}, tenant_id={tenant_id}"
            )

        return roots

    def _get_unit(self, tenant_id: str, unit_id: str) -> OrgUnit:
        unit = self.uow.org_units.get_by_id(unit_id, tenant_id)
        if not unit:
            raise NotFoundError(Messages.UNIT_NOT_FOUND)
        return unit

    def _resolve_parent(self, tenant_id: str, fiscal_year_id: str, parent_id: str) -> OrgUnit:
        parent = self.uow.org_units.get_active_by_id(parent_id, tenant_id)
        if not parent or parent.fiscal_year_id != fiscal_year_id:
            raise ValidationError(Messages.INVALID_PARENT)
        return parent

    def _validate_move(self, unit: OrgUnit, new_parent_id: str) -> None:
        children_index = build_children_index(
            self.uow.org_units.hierarchy_edges(unit.tenant_id, unit.fiscal_year_id)
        )
        ensure_valid_reparent(unit.id, new_parent_id, children_index)

        parent = self._resolve_parent(unit.tenant_id, unit.fiscal_year_id, new_parent_id)
        ensure_parent_above(parent.level_definition.hierarchy_level, unit.level_definition.hierarchy_level)

    def _build_response(self, unit: OrgUnit) -> OrgUnitResponse:
        return OrgUnitResponse.from_unit(
            unit,
            children=self.uow.org_units.list_active_children(unit.id, unit.tenant_id),
            assignments=self.uow.assignments.list_by_unit(unit.id, unit.tenant_id),
            champions=self.champions.list_champions(unit.id)
        )
