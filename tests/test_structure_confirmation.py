"""
Tests for the structure confirmation workflow and setup status.

Run with:
    pytest tests/test_structure_confirmation.py -v
"""

import pytest

from models.org_structure import ConfirmationType, LevelDefinition, OrgUnit, StructureConfirmation
from api.org_structure.config import Messages
from api.org_structure.domain.exceptions import (
    AlreadyConfirmedError,
    NotFoundError,
    StructureLockedError,
    ValidationError,
)
from tests.conftest import TENANT_ID, OTHER_TENANT_ID


class TestConfirmOrgStructure:

    def test_zero_units_fails_then_succeeds_with_a_root(self, confirmations, fiscal_year, make_unit):
        with pytest.raises(ValidationError) as exc_info:
            confirmations.confirm(TENANT_ID, fiscal_year.id, "org_structure", confirmed_by="user-admin")
        assert "No organizational units" in exc_info.value.message
        assert confirmations.is_locked(TENANT_ID, fiscal_year.id) is False

        make_unit("ORGANIZATION", "Acme Corp")
        confirmation = confirmations.confirm(
            TENANT_ID, fiscal_year.id, "org_structure", confirmed_by="user-admin"
        )

        assert confirmation.confirmation_type == ConfirmationType.ORG_STRUCTURE
        assert confirmation.confirmed_at is not None
        assert confirmation.confirmed_by == "user-admin"
        assert confirmation.can_modify is False
        assert confirmations.is_locked(TENANT_ID, fiscal_year.id) is True

    def test_reconfirmation_is_rejected(self, confirmations, fiscal_year, org_root):
        confirmations.confirm(TENANT_ID, fiscal_year.id, "org_structure", confirmed_by="user-admin")

        with pytest.raises(AlreadyConfirmedError) as exc_info:
            confirmations.confirm(TENANT_ID, fiscal_year.id, "org_structure", confirmed_by="user-admin")
        assert exc_info.value.status_code == 409

    def test_no_enabled_levels_fails(self, db, confirmations, fiscal_year):
        db.query(LevelDefinition).filter(
            LevelDefinition.fiscal_year_id == fiscal_year.id
        ).update({"is_enabled": False})
        db.commit()

        with pytest.raises(ValidationError) as exc_info:
            confirmations.confirm(TENANT_ID, fiscal_year.id, "org_structure", confirmed_by="user-admin")
        assert "No enabled organizational levels" in exc_info.value.message

    def test_dangling_parent_fails(self, db, store, confirmations, fiscal_year, make_unit, org_root):
        finance = make_unit("DEPARTMENT", "Finance", parent=org_root)
        analyst = make_unit("INDIVIDUAL", "Analyst", parent=finance)
        # Deactivate the parent behind the store's back
        db.query(OrgUnit).filter(OrgUnit.id == finance.id).update({"is_active": False})
        db.commit()

        with pytest.raises(ValidationError) as exc_info:
            confirmations.confirm(TENANT_ID, fiscal_year.id, "org_structure", confirmed_by="user-admin")
        assert "invalid parent references" in exc_info.value.message
        assert analyst.name in exc_info.value.message

    def test_cycle_fails(self, db, confirmations, fiscal_year, make_unit, org_root):
        finance = make_unit("DEPARTMENT", "Finance", parent=org_root)
        legal = make_unit("DEPARTMENT", "Legal", parent=org_root)
        db.query(OrgUnit).filter(OrgUnit.id == finance.id).update({"parent_id": legal.id})
        db.query(OrgUnit).filter(OrgUnit.id == legal.id).update({"parent_id": finance.id})
        db.commit()

        with pytest.raises(ValidationError) as exc_info:
            confirmations.confirm(TENANT_ID, fiscal_year.id, "org_structure", confirmed_by="user-admin")
        assert "Circular references" in exc_info.value.message

    def test_missing_root_fails(self, db, confirmations, fiscal_year, make_unit, org_root):
        finance = make_unit("DEPARTMENT", "Finance", parent=org_root)
        db.query(OrgUnit).filter(OrgUnit.id == org_root.id).update({"parent_id": finance.id})
        db.query(OrgUnit).filter(OrgUnit.id == finance.id).update({"parent_id": org_root.id})
        db.commit()

        with pytest.raises(ValidationError):
            confirmations.confirm(TENANT_ID, fiscal_year.id, "org_structure", confirmed_by="user-admin")

    def test_unknown_fiscal_year(self, confirmations, fiscal_year):
        with pytest.raises(NotFoundError):
            confirmations.confirm(TENANT_ID, "missing", "org_structure", confirmed_by="user-admin")

    def test_fiscal_year_of_another_tenant(self, confirmations, fiscal_year):
        with pytest.raises(NotFoundError):
            confirmations.confirm(OTHER_TENANT_ID, fiscal_year.id, "org_structure", confirmed_by="x")


class TestConfirmPerformanceComponents:

    def test_requires_org_structure_first(self, confirmations, fiscal_year, org_root):
        with pytest.raises(ValidationError) as exc_info:
            confirmations.confirm(TENANT_ID, fiscal_year.id, "performance_components", confirmed_by="user-admin")
        assert exc_info.value.message == Messages.ORG_STRUCTURE_FIRST

    def test_follows_org_structure(self, confirmations, fiscal_year, org_root):
        confirmations.confirm(TENANT_ID, fiscal_year.id, ConfirmationType.ORG_STRUCTURE, confirmed_by="user-admin")
        confirmation = confirmations.confirm(
            TENANT_ID, fiscal_year.id, ConfirmationType.PERFORMANCE_COMPONENTS, confirmed_by="user-admin"
        )
        assert confirmation.confirmation_type == ConfirmationType.PERFORMANCE_COMPONENTS


class TestConfirmationQueries:

    def test_get_and_list(self, confirmations, fiscal_year, org_root):
        assert confirmations.get_confirmation(TENANT_ID, fiscal_year.id, "org_structure") is None
        assert confirmations.list_confirmations(TENANT_ID, fiscal_year.id) == []

        confirmations.confirm(TENANT_ID, fiscal_year.id, "org_structure", confirmed_by="user-admin")
        confirmations.confirm(TENANT_ID, fiscal_year.id, "performance_components", confirmed_by="user-admin")

        found = confirmations.get_confirmation(TENANT_ID, fiscal_year.id, "org_structure")
        assert found.confirmed_by == "user-admin"
        assert {c.confirmation_type for c in confirmations.list_confirmations(TENANT_ID, fiscal_year.id)} == {
            ConfirmationType.ORG_STRUCTURE,
            ConfirmationType.PERFORMANCE_COMPONENTS,
        }

    def test_unknown_type_is_rejected(self, confirmations, fiscal_year):
        with pytest.raises(ValidationError) as exc_info:
            confirmations.get_confirmation(TENANT_ID, fiscal_year.id, "kpis")
        assert exc_info.value.message == Messages.INVALID_CONFIRMATION_TYPE

    def test_ensure_unlocked(self, confirmations, fiscal_year, org_root):
        confirmations.ensure_unlocked(TENANT_ID, fiscal_year.id)
        confirmations.confirm(TENANT_ID, fiscal_year.id, "org_structure", confirmed_by="user-admin")
        with pytest.raises(ValidationError):
            confirmations.ensure_unlocked(TENANT_ID, fiscal_year.id)

    def test_any_org_structure_confirmation_locks(self, db, confirmations, fiscal_year, org_root):
        confirmations.confirm(TENANT_ID, fiscal_year.id, "org_structure", confirmed_by="user-admin")
        db.query(StructureConfirmation).filter(
            StructureConfirmation.fiscal_year_id == fiscal_year.id
        ).update({"can_modify": True})
        db.commit()

        assert confirmations.is_locked(TENANT_ID, fiscal_year.id) is True
        with pytest.raises(StructureLockedError):
            confirmations.ensure_unlocked(TENANT_ID, fiscal_year.id)


class TestSetupStatus:

    def test_fresh_fiscal_year_needs_units(self, confirmations, fiscal_year):
        status = confirmations.setup_status(TENANT_ID, fiscal_year.id)

        assert status.has_level_definitions is True
        assert status.has_org_units is False
        assert status.level_definitions_count == 5
        assert status.enabled_levels_count == 3
        assert status.configured_levels == ["ORGANIZATION", "DEPARTMENT", "INDIVIDUAL"]
        assert status.custom_levels == []
        assert [step.step for step in status.next_steps] == ["create-units"]

    def test_with_units_suggests_assignment_and_confirmation(self, confirmations, fiscal_year, org_root):
        status = confirmations.setup_status(TENANT_ID, fiscal_year.id)

        assert status.org_units_count == 1
        assert [step.step for step in status.next_steps] == ["assign-users", "confirm-structure"]

    def test_after_confirmation(self, confirmations, fiscal_year, org_root):
        confirmations.confirm(TENANT_ID, fiscal_year.id, "org_structure", confirmed_by="user-admin")
        status = confirmations.setup_status(TENANT_ID, fiscal_year.id)

        assert status.org_structure_confirmed is True
        assert status.performance_components_confirmed is False
        assert [step.step for step in status.next_steps] == ["assign-users"]

    def test_without_levels(self, db, confirmations, fiscal_year):
        db.query(LevelDefinition).filter(LevelDefinition.fiscal_year_id == fiscal_year.id).delete()
        db.commit()

        status = confirmations.setup_status(TENANT_ID, fiscal_year.id)
        assert status.has_level_definitions is False
        assert [step.step for step in status.next_steps] == ["configure-levels"]
