from typing import Iterable, List, Optional
import logging

from models.org_structure import KpiChampion, utcnow
from api.org_structure.config import Messages
from api.org_structure.domain.exceptions import ValidationError
from api.org_structure.infra.db.uow import UnitOfWork

logger = logging.getLogger(__name__)


class ChampionAssignmentManager:
    """
    KPI champions of an org unit, always handled as a whole set.

    ``replace_champions`` does not commit; it runs inside the caller's
    ``uow.transaction()`` so the unit write and the champion write succeed or
    fail together.
    """

    def __init__(self, uow: UnitOfWork, system_actor: str = "system"):
        self.uow = uow
        self.system_actor = system_actor

    def validate_champions(self, tenant_id: str, user_ids: Optional[Iterable[str]]) -> List[str]:
        """Distinct ids in request order; every one must be a user of ``tenant_id``."""
        requested = list(dict.fromkeys(user_ids or []))
        if not requested:
            return []

        found = {user.id for user in self.uow.users.list_by_ids(requested, tenant_id)}
        missing = len([user_id for user_id in requested if user_id not in found])
        if missing:
            raise ValidationError(Messages.missing_champions(missing))

        return requested

    def replace_champions(
        self,
        org_unit_id: str,
        user_ids: Iterable[str],
        assigned_by: Optional[str] = None
    ) -> List[KpiChampion]:
        user_ids = list(dict.fromkeys(user_ids))
        removed = self.uow.champions.delete_by_unit(org_unit_id)

        champions = []
        if user_ids:
            champions = self.uow.champions.create_many(
                org_unit_id,
                user_ids,
                assigned_by=assigned_by or self.system_actor,
                assigned_at=utcnow()
            )

        logger.info(
            f"Champions replaced: org_unit_id={org_unit_id}, removed={removed}, added={len(champions)}"
        )
        return champions

    def list_champions(self, org_unit_id: str) -> List[KpiChampion]:
        return self.uow.champions.list_by_unit(org_unit_id)
