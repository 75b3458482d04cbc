"""
API tests for the org hierarchy routes.

Covers the success/failure envelopes, status code mapping and the tenant and
admin checks done at the route layer.

Run with:
    pytest tests/test_api.py -v
"""

import pytest
from fastapi.testclient import TestClient

from models.auth import RoleCode
from tests.conftest import TENANT_ID, OTHER_TENANT_ID


def fy_url(fiscal_year, suffix=""):
    return f"/tenants/{TENANT_ID}/fiscal-years/{fiscal_year.id}{suffix}"


def unit_url(unit_id, suffix=""):
    return f"/tenants/{TENANT_ID}/org-units/{unit_id}{suffix}"


@pytest.fixture
def created_root(client: TestClient, fiscal_year, levels):
    response = client.post(
        fy_url(fiscal_year, "/org-units"),
        json={"level_definition_id": levels["ORGANIZATION"].id, "name": "Acme Corp"}
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestHealthEndpoint:

    def test_health_check_returns_200(self, client: TestClient):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestLevelRoutes:

    def test_list_levels(self, client: TestClient, fiscal_year):
        response = client.get(fy_url(fiscal_year, "/level-definitions"))

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "success"
        assert [level["code"] for level in body["data"]][:2] == ["ORGANIZATION", "DIVISION"]

    def test_toggle_level(self, client: TestClient, fiscal_year, levels):
        response = client.patch(
            fy_url(fiscal_year, f"/level-definitions/{levels['TEAM'].id}"),
            json={"is_enabled": True}
        )
        assert response.status_code == 200
        assert response.json()["data"]["is_enabled"] is True

    def test_disabling_organization_is_a_validation_error(self, client: TestClient, fiscal_year, levels):
        response = client.patch(
            fy_url(fiscal_year, f"/level-definitions/{levels['ORGANIZATION'].id}"),
            json={"is_enabled": False}
        )
        assert response.status_code == 400
        assert response.json()["errors"][0]["code"] == "VALIDATION_ERROR"


class TestOrgUnitRoutes:

    def test_create_returns_success_envelope(self, created_root):
        assert created_root["code"] == "ACME_CORP"
        assert created_root["sort_order"] == 10
        assert created_root["level"]["code"] == "ORGANIZATION"

    def test_validation_failure_envelope(self, client: TestClient, fiscal_year, levels, created_root):
        response = client.post(
            fy_url(fiscal_year, "/org-units"),
            json={"level_definition_id": levels["ORGANIZATION"].id, "name": "Acme Corp"}
        )

        assert response.status_code == 400
        body = response.json()
        assert body["status"] == "failure"
        assert body["data"] is None
        assert body["errors"][0]["code"] == "VALIDATION_ERROR"
        assert "already exists at this level" in body["errors"][0]["message"]

    def test_get_update_delete(self, client: TestClient, fiscal_year, levels, created_root):
        created = client.post(
            fy_url(fiscal_year, "/org-units"),
            json={
                "level_definition_id": levels["DEPARTMENT"].id,
                "name": "Finance",
                "parent_id": created_root["id"],
                "champion_user_ids": ["user-alice"],
            }
        ).json()["data"]
        assert [c["user_id"] for c in created["champions"]] == ["user-alice"]

        fetched = client.get(unit_url(created["id"]))
        assert fetched.status_code == 200
        assert fetched.json()["data"]["parent"]["id"] == created_root["id"]

        updated = client.put(unit_url(created["id"]), json={"name": "Finance & Tax", "champion_user_ids": []})
        assert updated.status_code == 200
        assert updated.json()["data"]["name"] == "Finance & Tax"
        assert updated.json()["data"]["champions"] == []

        deleted = client.delete(unit_url(created["id"]))
        assert deleted.status_code == 200
        assert deleted.json()["data"]["is_active"] is False

    def test_list_with_filters(self, client: TestClient, fiscal_year, levels, created_root):
        client.post(
            fy_url(fiscal_year, "/org-units"),
            json={"level_definition_id": levels["DEPARTMENT"].id, "name": "Legal", "parent_id": created_root["id"]}
        )

        response = client.get(fy_url(fiscal_year, "/org-units"), params={"level": "DEPARTMENT"})
        data = response.json()["data"]
        assert data["total"] == 1
        assert data["filters"]["level_code"] == "DEPARTMENT"
        assert data["org_units"][0]["code"] == "LEGAL"

    def test_tree(self, client: TestClient, fiscal_year, created_root):
        response = client.get(fy_url(fiscal_year, "/org-units/tree"))
        assert response.status_code == 200
        assert response.json()["data"][0]["id"] == created_root["id"]

    def test_unknown_unit_is_404(self, client: TestClient, fiscal_year):
        response = client.get(unit_url("missing"))
        assert response.status_code == 404
        assert response.json()["errors"][0]["code"] == "NOT_FOUND"

    def test_deleting_organization_unit_is_400(self, client: TestClient, created_root):
        response = client.delete(unit_url(created_root["id"]))
        assert response.status_code == 400

    def test_malformed_body_is_422_in_failure_envelope(self, client: TestClient, fiscal_year):
        response = client.post(fy_url(fiscal_year, "/org-units"), json={"name": "No level"})
        assert response.status_code == 422
        assert response.json()["status"] == "failure"
        assert response.json()["errors"][0]["code"] == "REQUEST_VALIDATION_ERROR"


class TestUserAssignmentRoutes:

    def test_assign_list_end(self, client: TestClient, fiscal_year, levels, created_root):
        department = client.post(
            fy_url(fiscal_year, "/org-units"),
            json={"level_definition_id": levels["DEPARTMENT"].id, "name": "Finance", "parent_id": created_root["id"]}
        ).json()["data"]

        assigned = client.post(unit_url(department["id"], "/users"), json={"user_id": "user-bob"})
        assert assigned.status_code == 201

        listing = client.get(unit_url(department["id"], "/users")).json()["data"]
        assert listing["active"] == 1

        blocked = client.delete(unit_url(department["id"]))
        assert blocked.status_code == 400

        ended = client.delete(unit_url(department["id"], "/users/user-bob"))
        assert ended.status_code == 200
        assert ended.json()["data"]["effective_to"] is not None


class TestConfirmationRoutes:

    def test_confirm_locks_structure(self, client: TestClient, fiscal_year, levels, created_root):
        confirmed = client.post(fy_url(fiscal_year, "/confirmations"), json={"confirmation_type": "org_structure"})
        assert confirmed.status_code == 201
        assert confirmed.json()["data"]["confirmed_by"] == "user-admin"

        locked = client.post(
            fy_url(fiscal_year, "/org-units"),
            json={"level_definition_id": levels["DEPARTMENT"].id, "name": "Finance", "parent_id": created_root["id"]}
        )
        assert locked.status_code == 423
        assert locked.json()["errors"][0]["code"] == "STRUCTURE_LOCKED"

        again = client.post(fy_url(fiscal_year, "/confirmations"), json={"confirmation_type": "org_structure"})
        assert again.status_code == 409
        assert again.json()["errors"][0]["code"] == "ALREADY_CONFIRMED"

        fetched = client.get(fy_url(fiscal_year, "/confirmations/org_structure"))
        assert fetched.json()["data"]["confirmation_type"] == "org_structure"
        assert len(client.get(fy_url(fiscal_year, "/confirmations")).json()["data"]) == 1

    def test_confirm_without_units_is_400(self, client: TestClient, fiscal_year):
        response = client.post(fy_url(fiscal_year, "/confirmations"), json={})
        assert response.status_code == 400

    def test_unconfirmed_type_returns_null(self, client: TestClient, fiscal_year):
        response = client.get(fy_url(fiscal_year, "/confirmations/performance_components"))
        assert response.status_code == 200
        assert response.json()["data"] is None

    def test_setup_status(self, client: TestClient, fiscal_year):
        response = client.get(fy_url(fiscal_year, "/setup-status"))
        assert response.status_code == 200
        assert response.json()["data"]["next_steps"][0]["step"] == "create-units"


class TestAuthorization:

    def test_other_tenant_is_forbidden(self, client: TestClient, auth_context, fiscal_year):
        auth_context.tenant_id = OTHER_TENANT_ID

        response = client.get(fy_url(fiscal_year, "/org-units"))

        assert response.status_code == 403
        assert response.json()["errors"][0] == {
            "code": "INSUFFICIENT_PERMISSIONS",
            "message": "Access denied to this tenant",
        }

    def test_super_admin_of_another_tenant_cannot_touch_org_units(self, client: TestClient, auth_context, fiscal_year):
        auth_context.tenant_id = OTHER_TENANT_ID
        auth_context.roles = [RoleCode.SUPER_ADMIN.value]

        response = client.get(fy_url(fiscal_year, "/org-units"))
        assert response.status_code == 403
        assert response.json()["errors"][0]["message"] == "Access denied to this tenant"
        assert client.get(fy_url(fiscal_year, "/level-definitions")).status_code == 403

    def test_super_admin_may_confirm_for_another_tenant(self, client: TestClient, auth_context, fiscal_year,
                                                        created_root):
        auth_context.tenant_id = OTHER_TENANT_ID
        auth_context.roles = [RoleCode.SUPER_ADMIN.value]

        assert client.get(fy_url(fiscal_year, "/setup-status")).status_code == 200
        confirmed = client.post(fy_url(fiscal_year, "/confirmations"), json={"confirmation_type": "org_structure"})
        assert confirmed.status_code == 201

    def test_non_admin_can_read_but_not_write(self, client: TestClient, auth_context, fiscal_year, levels):
        auth_context.roles = [RoleCode.EMPLOYEE.value]

        assert client.get(fy_url(fiscal_year, "/org-units")).status_code == 200

        response = client.post(
            fy_url(fiscal_year, "/org-units"),
            json={"level_definition_id": levels["ORGANIZATION"].id, "name": "Acme Corp"}
        )
        assert response.status_code == 403
        assert response.json()["errors"][0]["message"] == "Admin permissions required"


class TestBearerAuth:

    def test_valid_token_is_decoded(self, client: TestClient, fiscal_year):
        import jwt
        from settings.server import org_app
        from settings.config import get_settings
        from api.org_structure.dependencies import get_auth_context

        org_app.dependency_overrides.pop(get_auth_context)
        token = jwt.encode(
            {"sub": "user-alice", "tenant_id": TENANT_ID, "roles": ["EMPLOYEE"]},
            get_settings().jwt_secret_key,
            algorithm="HS256"
        )

        response = client.get(fy_url(fiscal_year, "/org-units"), headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200

    def test_bad_token_is_401(self, client: TestClient, fiscal_year):
        from settings.server import org_app
        from api.org_structure.dependencies import get_auth_context

        org_app.dependency_overrides.pop(get_auth_context)

        response = client.get(fy_url(fiscal_year, "/org-units"), headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401
        assert response.json()["status"] == "failure"


class TestStorageFailures:

    @pytest.fixture
    def unreachable_database(self, monkeypatch):
        from sqlalchemy.exc import OperationalError
        from api.org_structure.infra.db.repositories import StructureConfirmationRepository

        def refuse(*args, **kwargs):
            raise OperationalError("SELECT structure_confirmations", {}, Exception("connection refused: db-host:5432"))

        monkeypatch.setattr(StructureConfirmationRepository, "get", refuse)

    def test_failed_read_before_a_write_uses_failure_envelope(self, client: TestClient, created_root,
                                                              unreachable_database):
        response = client.delete(unit_url(created_root["id"]))

        assert response.status_code == 500
        body = response.json()
        assert body["status"] == "failure"
        assert body["data"] is None
        assert body["errors"] == [{"code": "DATABASE_UNAVAILABLE", "message": "Operation failed"}]
        assert "db-host" not in response.text

    def test_failed_plain_read_uses_failure_envelope(self, client: TestClient, fiscal_year, unreachable_database):
        response = client.get(fy_url(fiscal_year, "/confirmations/org_structure"))

        assert response.status_code == 500
        assert response.json()["errors"][0]["code"] == "DATABASE_UNAVAILABLE"
