import enum
from sqlalchemy import Column, String, Boolean, Text, Index, UniqueConstraint
from models.base_models import AuditedModel, generate_id


class RoleCode(str, enum.Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    ORGANIZATION_ADMIN = "ORGANIZATION_ADMIN"
    STRATEGY_TEAM = "STRATEGY_TEAM"
    EMPLOYEE = "EMPLOYEE"


ADMIN_ROLES = {RoleCode.SUPER_ADMIN.value, RoleCode.ORGANIZATION_ADMIN.value}


class User(AuditedModel):
    """
    Directory entry for a tenant member.

    Authentication lives outside this service; the table is only consulted
    for tenant membership (champions, user assignments).
    """
    __tablename__ = 'users'
    __table_args__ = (
        UniqueConstraint('tenant_id', 'email', name='uq_users_tenant_email'),
        Index('idx_users_tenant_id', 'tenant_id'),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    tenant_id = Column(Text, nullable=False)
    email = Column(String(255), nullable=False)
    name = Column(String(255), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
