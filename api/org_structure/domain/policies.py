from typing import Iterable, Optional

from models.auth import ADMIN_ROLES, RoleCode
from models.org_structure import LevelDefinition
from api.org_structure.config import Messages
from api.org_structure.domain.exceptions import AuthorizationError, ValidationError


class AuthorizationPolicy:
    @staticmethod
    def is_super_admin(roles: Iterable[str]) -> bool:
        return RoleCode.SUPER_ADMIN.value in set(roles)

    @staticmethod
    def is_admin(roles: Iterable[str]) -> bool:
        return bool(ADMIN_ROLES & set(roles))

    @staticmethod
    def can_access_tenant(auth, tenant_id: str, allow_super_admin: bool = False) -> bool:
        """
        Tenants must match exactly. A SUPER_ADMIN may cross tenants only where
        the caller opts in with ``allow_super_admin``.
        """
        if auth.tenant_id == tenant_id:
            return True
        return allow_super_admin and AuthorizationPolicy.is_super_admin(auth.roles)

    @staticmethod
    def ensure_tenant_access(auth, tenant_id: str, allow_super_admin: bool = False) -> None:
        if not AuthorizationPolicy.can_access_tenant(auth, tenant_id, allow_super_admin):
            raise AuthorizationError(Messages.TENANT_ACCESS)

    @staticmethod
    def ensure_admin(auth, tenant_id: str, allow_super_admin: bool = False) -> None:
        AuthorizationPolicy.ensure_tenant_access(auth, tenant_id, allow_super_admin)
        if not AuthorizationPolicy.is_admin(auth.roles):
            raise AuthorizationError(Messages.ADMIN_REQUIRED)


class ValidationPolicy:
    MAX_NAME_LENGTH = 255

    @staticmethod
    def validate_name(name: Optional[str]) -> str:
        if name is None or not name.strip():
            raise ValidationError("Name and level definition are required")
        name = name.strip()
        if len(name) > ValidationPolicy.MAX_NAME_LENGTH:
            raise ValidationError(f"Name must be at most {ValidationPolicy.MAX_NAME_LENGTH} characters")
        return name

    @staticmethod
    def can_host_units(level: LevelDefinition) -> bool:
        return bool(level.is_enabled)
