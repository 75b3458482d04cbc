"""
Tests for KPI champion validation and whole-set replacement.

Run with:
    pytest tests/test_champion_manager.py -v
"""

import pytest
from sqlalchemy.exc import IntegrityError

from api.org_structure.domain.exceptions import StorageError, ValidationError
from api.org_structure.schemas.org_units import UpdateOrgUnitRequest
from tests.conftest import TENANT_ID


@pytest.fixture
def finance(make_unit, org_root, users):
    return make_unit("DEPARTMENT", "Finance", parent=org_root, champion_user_ids=[users["alice"].id])


class TestValidateChampions:

    def test_empty_input(self, champions):
        assert champions.validate_champions(TENANT_ID, []) == []
        assert champions.validate_champions(TENANT_ID, None) == []

    def test_duplicates_are_collapsed_in_order(self, champions, users):
        ids = [users["bob"].id, users["alice"].id, users["bob"].id]
        assert champions.validate_champions(TENANT_ID, ids) == ["user-bob", "user-alice"]

    def test_single_missing_user(self, champions, users):
        with pytest.raises(ValidationError) as exc_info:
            champions.validate_champions(TENANT_ID, [users["alice"].id, "ghost"])
        assert exc_info.value.message == "1 KPI champion not found in this organization"

    def test_user_of_another_tenant_counts_as_missing(self, champions, users):
        with pytest.raises(ValidationError):
            champions.validate_champions(TENANT_ID, [users["outsider"].id])


class TestReplaceChampions:

    def test_update_replaces_the_whole_set(self, store, finance, users):
        updated = store.update_unit(
            TENANT_ID,
            finance.id,
            UpdateOrgUnitRequest(champion_user_ids=[users["bob"].id, users["admin"].id]),
            actor_id="user-admin"
        )
        assert sorted(c.user_id for c in updated.champions) == ["user-admin", "user-bob"]

    def test_resubmitted_champion_is_restamped(self, store, champions, finance, users):
        before = champions.list_champions(finance.id)[0].assigned_at

        store.update_unit(
            TENANT_ID, finance.id, UpdateOrgUnitRequest(champion_user_ids=[users["alice"].id])
        )

        after = champions.list_champions(finance.id)
        assert [c.user_id for c in after] == ["user-alice"]
        assert after[0].assigned_at >= before

    def test_empty_list_clears_champions(self, store, finance):
        updated = store.update_unit(TENANT_ID, finance.id, UpdateOrgUnitRequest(champion_user_ids=[]))
        assert updated.champions == []

    def test_omitted_list_leaves_champions_untouched(self, store, finance):
        updated = store.update_unit(TENANT_ID, finance.id, UpdateOrgUnitRequest(description="Money"))
        assert [c.user_id for c in updated.champions] == ["user-alice"]

    def test_unknown_actor_falls_back_to_system_marker(self, uow, champions, finance, users):
        with uow.transaction():
            rows = champions.replace_champions(finance.id, [users["bob"].id], assigned_by=None)
        assert [row.assigned_by for row in rows] == ["system"]

    def test_failed_insert_rolls_back_unit_and_champions(self, store, uow, champions, finance, users, monkeypatch):
        def failing_create_many(*args, **kwargs):
            raise IntegrityError(
                "INSERT INTO kpi_champions", {}, Exception("UNIQUE constraint failed: kpi_champions.user_id")
            )

        monkeypatch.setattr(uow.champions, "create_many", failing_create_many)

        with pytest.raises(StorageError) as exc_info:
            store.update_unit(
                TENANT_ID,
                finance.id,
                UpdateOrgUnitRequest(name="Finance Renamed", champion_user_ids=[users["bob"].id])
            )
        assert exc_info.value.code == "DUPLICATE_ENTRY"

        monkeypatch.undo()
        current = store.get_unit(TENANT_ID, finance.id)
        assert current.name == "Finance"
        assert [c.user_id for c in current.champions] == ["user-alice"]
