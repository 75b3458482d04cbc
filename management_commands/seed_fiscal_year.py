#!/usr/bin/env python3

import click
import sys
import os
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from api.org_structure.config import Constants  # noqa: E402
from api.org_structure.infra.db.uow import UnitOfWork  # noqa: E402
from models.org_structure import FiscalYear, FiscalYearStatus, LevelDefinition  # noqa: E402


def seed_fiscal_year(
    db: Session,
    tenant_id: str,
    name: str,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    is_current: bool = False,
    created_by: Optional[str] = None
) -> FiscalYear:
    """Create a fiscal year with the standard level ladder and commit it."""
    uow = UnitOfWork(db)
    with uow.transaction():
        fiscal_year = uow.fiscal_years.create(FiscalYear(
            tenant_id=tenant_id,
            name=name,
            start_date=start_date,
            end_date=end_date,
            status=FiscalYearStatus.DRAFT,
            is_current=is_current,
            created_by=created_by
        ))

        for code, level_name, plural_name, hierarchy_level, is_enabled in Constants.STANDARD_LEVELS:
            uow.levels.create(LevelDefinition(
                tenant_id=tenant_id,
                fiscal_year_id=fiscal_year.id,
                code=code,
                name=level_name,
                plural_name=plural_name,
                hierarchy_level=hierarchy_level,
                is_standard=True,
                is_enabled=is_enabled,
                icon=Constants.STANDARD_LEVEL_ICONS.get(code),
                color=Constants.DEFAULT_LEVEL_COLOR,
                created_by=created_by
            ))

    return fiscal_year


@click.command()
@click.argument('tenant_id')
@click.argument('name')
@click.option('--start-date', type=click.DateTime(formats=["%Y-%m-%d"]), default=None, help='First day (YYYY-MM-DD)')
@click.option('--end-date', type=click.DateTime(formats=["%Y-%m-%d"]), default=None, help='Last day (YYYY-MM-DD)')
@click.option('--current/--not-current', default=False, help='Mark as the tenant\'s current fiscal year')
def main(tenant_id, name, start_date, end_date, current):
    """Create fiscal year NAME for TENANT_ID with the standard organizational levels."""
    from settings.database import SessionLocal

    db = SessionLocal()
    try:
        fiscal_year = seed_fiscal_year(
            db,
            tenant_id=tenant_id,
            name=name,
            start_date=start_date.date() if start_date else None,
            end_date=end_date.date() if end_date else None,
            is_current=current,
            created_by="seed_fiscal_year"
        )
        fiscal_year_id = fiscal_year.id
    except Exception as e:
        db.rollback()
        raise click.ClickException(f"Could not seed fiscal year: {str(e)}")
    finally:
        db.close()

    click.echo(f"✅ Created fiscal year {name} (ID: {fiscal_year_id}) for tenant {tenant_id}")
    for code, _, _, hierarchy_level, is_enabled in Constants.STANDARD_LEVELS:
        click.echo(f"   {hierarchy_level}: {code}{'' if is_enabled else ' (disabled)'}")


if __name__ == '__main__':
    main()
