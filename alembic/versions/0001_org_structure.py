"""org_structure

Revision ID: 0001_org_structure
Revises:
Create Date: 2026-10-18 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '0001_org_structure'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSON_TYPE = sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), 'postgresql')


def audit_columns():
    return [
        sa.Column('created_by', sa.String(255), nullable=True),
        sa.Column('modified_by', sa.String(255), nullable=True),
        sa.Column('created_on', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('modified_on', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Create the organizational hierarchy tables."""

    op.create_table(
        'users',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('tenant_id', sa.Text(), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *audit_columns(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'email', name='uq_users_tenant_email'),
    )
    op.create_index('idx_users_tenant_id', 'users', ['tenant_id'])

    op.create_table(
        'fiscal_years',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('tenant_id', sa.Text(), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column(
            'status',
            sa.Enum('draft', 'active', 'locked', 'archived', name='fiscal_year_status'),
            nullable=False
        ),
        sa.Column('is_current', sa.Boolean(), nullable=False, server_default=sa.false()),
        *audit_columns(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_fiscal_years_tenant_id', 'fiscal_years', ['tenant_id'])

    op.create_table(
        'level_definitions',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('tenant_id', sa.Text(), nullable=False),
        sa.Column('fiscal_year_id', sa.String(36), nullable=False),
        sa.Column('code', sa.String(50), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('plural_name', sa.String(100), nullable=False),
        sa.Column('hierarchy_level', sa.Integer(), nullable=False),
        sa.Column('is_standard', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('icon', sa.String(50), nullable=True),
        sa.Column('color', sa.String(20), nullable=True),
        *audit_columns(),
        sa.ForeignKeyConstraint(['fiscal_year_id'], ['fiscal_years.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('fiscal_year_id', 'code', name='uq_level_definitions_fy_code'),
        sa.UniqueConstraint('fiscal_year_id', 'hierarchy_level', name='uq_level_definitions_fy_hierarchy_level'),
    )
    op.create_index('idx_level_definitions_tenant_fy', 'level_definitions', ['tenant_id', 'fiscal_year_id'])

    op.create_table(
        'org_units',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('tenant_id', sa.Text(), nullable=False),
        sa.Column('fiscal_year_id', sa.String(36), nullable=False),
        sa.Column('level_definition_id', sa.String(36), nullable=False),
        sa.Column('code', sa.String(20), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('parent_id', sa.String(36), nullable=True),
        sa.Column('metadata', JSON_TYPE, nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='10'),
        sa.Column('effective_from', sa.DateTime(timezone=True), nullable=False),
        sa.Column('effective_to', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *audit_columns(),
        sa.ForeignKeyConstraint(['fiscal_year_id'], ['fiscal_years.id']),
        sa.ForeignKeyConstraint(['level_definition_id'], ['level_definitions.id']),
        sa.ForeignKeyConstraint(['parent_id'], ['org_units.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'uq_org_units_active_code',
        'org_units',
        ['tenant_id', 'level_definition_id', 'code'],
        unique=True,
        postgresql_where=sa.text('is_active'),
        sqlite_where=sa.text('is_active = 1'),
    )
    op.create_index('idx_org_units_tenant_fy', 'org_units', ['tenant_id', 'fiscal_year_id'])
    op.create_index('idx_org_units_parent_id', 'org_units', ['parent_id'])

    op.create_table(
        'user_assignments',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('tenant_id', sa.Text(), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('org_unit_id', sa.String(36), nullable=False),
        sa.Column('role', sa.String(50), nullable=False, server_default='MEMBER'),
        sa.Column('effective_from', sa.DateTime(timezone=True), nullable=False),
        sa.Column('effective_to', sa.DateTime(timezone=True), nullable=True),
        *audit_columns(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['org_unit_id'], ['org_units.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_user_assignments_unit_current', 'user_assignments', ['org_unit_id', 'effective_to'])
    op.create_index('idx_user_assignments_user_id', 'user_assignments', ['user_id'])

    op.create_table(
        'kpi_champions',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('org_unit_id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('assigned_by', sa.String(255), nullable=False),
        sa.Column('assigned_at', sa.DateTime(timezone=True), nullable=False),
        *audit_columns(),
        sa.ForeignKeyConstraint(['org_unit_id'], ['org_units.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('org_unit_id', 'user_id', name='uq_kpi_champions_unit_user'),
    )

    op.create_table(
        'structure_confirmations',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('tenant_id', sa.Text(), nullable=False),
        sa.Column('fiscal_year_id', sa.String(36), nullable=False),
        sa.Column(
            'confirmation_type',
            sa.Enum('org_structure', 'performance_components', name='confirmation_type'),
            nullable=False
        ),
        sa.Column('confirmed_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('confirmed_by', sa.String(255), nullable=False),
        sa.Column('can_modify', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('metadata', JSON_TYPE, nullable=True),
        *audit_columns(),
        sa.ForeignKeyConstraint(['fiscal_year_id'], ['fiscal_years.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('fiscal_year_id', 'confirmation_type', name='uq_structure_confirmations_fy_type'),
    )


def downgrade() -> None:
    """Drop the organizational hierarchy tables."""
    op.drop_table('structure_confirmations')
    op.drop_table('kpi_champions')
    op.drop_index('idx_user_assignments_user_id', table_name='user_assignments')
    op.drop_index('idx_user_assignments_unit_current', table_name='user_assignments')
    op.drop_table('user_assignments')
    op.drop_index('idx_org_units_parent_id', table_name='org_units')
    op.drop_index('idx_org_units_tenant_fy', table_name='org_units')
    op.drop_index('uq_org_units_active_code', table_name='org_units')
    op.drop_table('org_units')
    op.drop_index('idx_level_definitions_tenant_fy', table_name='level_definitions')
    op.drop_table('level_definitions')
    op.drop_index('idx_fiscal_years_tenant_id', table_name='fiscal_years')
    op.drop_table('fiscal_years')
    op.drop_index('idx_users_tenant_id', table_name='users')
    op.drop_table('users')

    sa.Enum(name='confirmation_type').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='fiscal_year_status').drop(op.get_bind(), checkfirst=True)
