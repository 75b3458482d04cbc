"""
Tests for user assignments on org units.

Run with:
    pytest tests/test_assignment_service.py -v
"""

import pytest

from api.org_structure.config import Messages
from api.org_structure.domain.exceptions import NotFoundError, ValidationError
from api.org_structure.schemas.org_units import AssignUserRequest
from tests.conftest import TENANT_ID


@pytest.fixture
def finance(make_unit, org_root):
    return make_unit("DEPARTMENT", "Finance", parent=org_root)


class TestAssignUser:

    def test_assign_and_list(self, assignments, finance, users):
        assignment = assignments.assign_user(
            TENANT_ID, finance.id, AssignUserRequest(user_id=users["alice"].id, role="LEAD")
        )

        assert assignment.role == "LEAD"
        assert assignment.effective_to is None
        assert assignment.user.email == "alice@acme.test"

        listing = assignments.list_assignments(TENANT_ID, finance.id)
        assert listing.total == 1
        assert listing.active == 1

    def test_duplicate_active_assignment_is_rejected(self, assignments, finance, users):
        assignments.assign_user(TENANT_ID, finance.id, AssignUserRequest(user_id=users["alice"].id))

        with pytest.raises(ValidationError) as exc_info:
            assignments.assign_user(TENANT_ID, finance.id, AssignUserRequest(user_id=users["alice"].id))
        assert exc_info.value.message == "User is already assigned to this department"

    def test_user_of_another_tenant_is_rejected(self, assignments, finance, users):
        with pytest.raises(ValidationError) as exc_info:
            assignments.assign_user(TENANT_ID, finance.id, AssignUserRequest(user_id=users["outsider"].id))
        assert exc_info.value.message == Messages.USER_NOT_IN_TENANT

    def test_inactive_unit_is_rejected(self, store, assignments, finance, users):
        store.delete_unit(TENANT_ID, finance.id)
        with pytest.raises(NotFoundError):
            assignments.assign_user(TENANT_ID, finance.id, AssignUserRequest(user_id=users["alice"].id))


class TestEndAssignment:

    def test_end_assignment_keeps_history_and_unblocks_delete(self, store, assignments, finance, users):
        assignments.assign_user(TENANT_ID, finance.id, AssignUserRequest(user_id=users["alice"].id))

        ended = assignments.end_assignment(TENANT_ID, finance.id, users["alice"].id)
        assert ended.effective_to is not None

        assert assignments.list_assignments(TENANT_ID, finance.id).total == 0
        history = assignments.list_assignments(TENANT_ID, finance.id, include_historical=True)
        assert (history.total, history.active, history.historical) == (1, 0, 1)

        assert store.delete_unit(TENANT_ID, finance.id).is_active is False

    def test_ending_a_missing_assignment_is_not_found(self, assignments, finance, users):
        with pytest.raises(NotFoundError) as exc_info:
            assignments.end_assignment(TENANT_ID, finance.id, users["bob"].id)
        assert exc_info.value.message == Messages.ASSIGNMENT_NOT_FOUND

    def test_listing_unknown_unit_is_not_found(self, assignments, fiscal_year):
        with pytest.raises(NotFoundError):
            assignments.list_assignments(TENANT_ID, "missing")
