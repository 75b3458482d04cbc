import enum
from sqlalchemy import (
    Column, String, Text, DateTime, Boolean, Integer, Date,
    ForeignKey, Index, UniqueConstraint, Enum, text
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from models.base_models import AuditedModel, JsonType, generate_id, utcnow


ORGANIZATION_LEVEL_CODE = "ORGANIZATION"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class FiscalYearStatus(str, enum.Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    LOCKED = "locked"
    ARCHIVED = "archived"


class ConfirmationType(str, enum.Enum):
    ORG_STRUCTURE = "org_structure"
    PERFORMANCE_COMPONENTS = "performance_components"


class AssignmentRole(str, enum.Enum):
    MEMBER = "MEMBER"
    LEAD = "LEAD"
    LINE_MANAGER = "LINE_MANAGER"


class FiscalYear(AuditedModel):
    __tablename__ = "fiscal_years"
    __table_args__ = (
        Index("idx_fiscal_years_tenant_id", "tenant_id"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    tenant_id = Column(Text, nullable=False)
    name = Column(String(100), nullable=False)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    status = Column(
        Enum(FiscalYearStatus, name="fiscal_year_status", values_callable=_enum_values),
        nullable=False,
        default=FiscalYearStatus.DRAFT
    )
    is_current = Column(Boolean, nullable=False, default=False)

    level_definitions = relationship(
        "LevelDefinition",
        back_populates="fiscal_year",
        order_by="LevelDefinition.hierarchy_level"
    )
    confirmations = relationship("StructureConfirmation", back_populates="fiscal_year")


class LevelDefinition(AuditedModel):
    __tablename__ = "level_definitions"
    __table_args__ = (
        UniqueConstraint("fiscal_year_id", "code", name="uq_level_definitions_fy_code"),
        UniqueConstraint("fiscal_year_id", "hierarchy_level", name="uq_level_definitions_fy_hierarchy_level"),
        Index("idx_level_definitions_tenant_fy", "tenant_id", "fiscal_year_id"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    tenant_id = Column(Text, nullable=False)
    fiscal_year_id = Column(String(36), ForeignKey("fiscal_years.id", ondelete="CASCADE"), nullable=False)
    code = Column(String(50), nullable=False)
    name = Column(String(100), nullable=False)
    plural_name = Column(String(100), nullable=False)
    hierarchy_level = Column(Integer, nullable=False)
    is_standard = Column(Boolean, nullable=False, default=True)
    is_enabled = Column(Boolean, nullable=False, default=True)
    icon = Column(String(50), nullable=True)
    color = Column(String(20), nullable=True, default="#6B7280")

    fiscal_year = relationship("FiscalYear", back_populates="level_definitions")

    @property
    def is_organization(self) -> bool:
        return self.code == ORGANIZATION_LEVEL_CODE


class OrgUnit(AuditedModel):
    __tablename__ = "org_units"
    __table_args__ = (
        # Storage-level backstop for code uniqueness among active units
        Index(
            "uq_org_units_active_code",
            "tenant_id", "level_definition_id", "code",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
        Index("idx_org_units_tenant_fy", "tenant_id", "fiscal_year_id"),
        Index("idx_org_units_parent_id", "parent_id"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    tenant_id = Column(Text, nullable=False)
    fiscal_year_id = Column(String(36), ForeignKey("fiscal_years.id"), nullable=False)
    level_definition_id = Column(String(36), ForeignKey("level_definitions.id"), nullable=False)
    code = Column(String(20), nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    parent_id = Column(String(36), ForeignKey("org_units.id"), nullable=True)
    unit_metadata = Column("metadata", JsonType, nullable=False, default=dict)
    sort_order = Column(Integer, nullable=False, default=10)
    effective_from = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    effective_to = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    level_definition = relationship("LevelDefinition", lazy="joined")
    parent = relationship("OrgUnit", remote_side=[id], back_populates="children")
    children = relationship("OrgUnit", back_populates="parent")
    user_assignments = relationship("UserAssignment", back_populates="org_unit")
    kpi_champions = relationship(
        "KpiChampion",
        back_populates="org_unit",
        order_by="KpiChampion.assigned_at.desc()"
    )


class UserAssignment(AuditedModel):
    __tablename__ = "user_assignments"
    __table_args__ = (
        Index("idx_user_assignments_unit_current", "org_unit_id", "effective_to"),
        Index("idx_user_assignments_user_id", "user_id"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    tenant_id = Column(Text, nullable=False)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    org_unit_id = Column(String(36), ForeignKey("org_units.id"), nullable=False)
    role = Column(String(50), nullable=False, default=AssignmentRole.MEMBER.value)
    effective_from = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    effective_to = Column(DateTime(timezone=True), nullable=True)

    org_unit = relationship("OrgUnit", back_populates="user_assignments")
    user = relationship("User", lazy="joined")


class KpiChampion(AuditedModel):
    __tablename__ = "kpi_champions"
    __table_args__ = (
        UniqueConstraint("org_unit_id", "user_id", name="uq_kpi_champions_unit_user"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    org_unit_id = Column(String(36), ForeignKey("org_units.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    assigned_by = Column(String(255), nullable=False)
    assigned_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    org_unit = relationship("OrgUnit", back_populates="kpi_champions")
    user = relationship("User", lazy="joined")


class StructureConfirmation(AuditedModel):
    __tablename__ = "structure_confirmations"
    __table_args__ = (
        UniqueConstraint("fiscal_year_id", "confirmation_type", name="uq_structure_confirmations_fy_type"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    tenant_id = Column(Text, nullable=False)
    fiscal_year_id = Column(String(36), ForeignKey("fiscal_years.id", ondelete="CASCADE"), nullable=False)
    confirmation_type = Column(
        Enum(ConfirmationType, name="confirmation_type", values_callable=_enum_values),
        nullable=False
    )
    confirmed_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    confirmed_by = Column(String(255), nullable=False)
    can_modify = Column(Boolean, nullable=False, default=False)
    confirmation_metadata = Column("metadata", JsonType, nullable=True)

    fiscal_year = relationship("FiscalYear", back_populates="confirmations")
