"""
Pytest configuration and shared fixtures for the org hierarchy tests.

This file provides:
- An in-memory SQLite database with the full schema
- A seeded tenant: users, one fiscal year and the standard level ladder
- Domain services built over a UnitOfWork on the test session
- A FastAPI test client with the database and auth dependencies overridden
"""

import pytest
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import models  # noqa: F401  registers every table on Base.metadata
from models.auth import User, RoleCode
from settings.database import Base, get_db
from api.org_structure.dependencies import AuthContext, get_auth_context
from api.org_structure.infra.db.uow import UnitOfWork
from api.org_structure.domain.services.org_unit_store import OrgUnitStore
from api.org_structure.domain.services.level_registry import LevelRegistry
from api.org_structure.domain.services.structure_confirmation import StructureConfirmationService
from api.org_structure.domain.services.champion_manager import ChampionAssignmentManager
from api.org_structure.domain.services.assignment_service import UserAssignmentService
from api.org_structure.schemas.org_units import CreateOrgUnitRequest
from management_commands.seed_fiscal_year import seed_fiscal_year

TENANT_ID = "tenant-acme"
OTHER_TENANT_ID = "tenant-globex"


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def engine():
    """Fresh in-memory database per test; StaticPool keeps one shared connection."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(engine) -> Generator:
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def uow(db) -> UnitOfWork:
    return UnitOfWork(db)


# ============================================================================
# Seed Data Fixtures
# ============================================================================

@pytest.fixture
def users(db):
    """Three users in the main tenant and one in another tenant."""
    seeded = {
        "admin": User(id="user-admin", tenant_id=TENANT_ID, email="admin@acme.test", name="Ada Admin"),
        "alice": User(id="user-alice", tenant_id=TENANT_ID, email="alice@acme.test", name="Alice"),
        "bob": User(id="user-bob", tenant_id=TENANT_ID, email="bob@acme.test", name="Bob"),
        "outsider": User(id="user-outsider", tenant_id=OTHER_TENANT_ID, email="eve@globex.test", name="Eve"),
    }
    db.add_all(seeded.values())
    db.commit()
    return seeded


@pytest.fixture
def fiscal_year(db, users):
    return seed_fiscal_year(db, tenant_id=TENANT_ID, name="FY2026", is_current=True, created_by="tests")


@pytest.fixture
def other_fiscal_year(db):
    return seed_fiscal_year(db, tenant_id=OTHER_TENANT_ID, name="FY2026")


@pytest.fixture
def levels(uow, fiscal_year):
    """Level definitions of the seeded fiscal year keyed by code."""
    return {level.code: level for level in uow.levels.list_by_fiscal_year(fiscal_year.id, TENANT_ID)}


# ============================================================================
# Service Fixtures
# ============================================================================

@pytest.fixture
def store(uow) -> OrgUnitStore:
    return OrgUnitStore(uow, system_actor="system")


@pytest.fixture
def registry(uow) -> LevelRegistry:
    return LevelRegistry(uow)


@pytest.fixture
def confirmations(uow) -> StructureConfirmationService:
    return StructureConfirmationService(uow)


@pytest.fixture
def champions(uow) -> ChampionAssignmentManager:
    return ChampionAssignmentManager(uow, system_actor="system")


@pytest.fixture
def assignments(uow) -> UserAssignmentService:
    return UserAssignmentService(uow)


@pytest.fixture
def make_unit(store, fiscal_year, levels):
    """Create a unit by level code; extra keyword arguments go to the request."""

    def _make_unit(level_code: str, name: str, parent=None, **fields):
        request = CreateOrgUnitRequest(
            level_definition_id=levels[level_code].id,
            name=name,
            parent_id=parent.id if parent is not None else None,
            **fields
        )
        return store.create_unit(TENANT_ID, fiscal_year.id, request, actor_id="user-admin")

    return _make_unit


@pytest.fixture
def org_root(make_unit):
    return make_unit("ORGANIZATION", "Acme Corp")


# ============================================================================
# API Client Fixtures
# ============================================================================

@pytest.fixture
def auth_context() -> AuthContext:
    """Mutable identity used by the test client; tests may reassign its fields."""
    return AuthContext(
        user_id="user-admin",
        tenant_id=TENANT_ID,
        email="admin@acme.test",
        roles=[RoleCode.ORGANIZATION_ADMIN.value],
    )


@pytest.fixture
def client(db, auth_context) -> Generator:
    from fastapi.testclient import TestClient
    from settings.server import org_app

    def _get_db():
        yield db

    org_app.dependency_overrides[get_db] = _get_db
    org_app.dependency_overrides[get_auth_context] = lambda: auth_context

    with TestClient(org_app) as test_client:
        yield test_client

    org_app.dependency_overrides.clear()
