from typing import Generator, List, Optional
from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
import jwt
import logging

from models.auth import RoleCode
from settings.config import Settings, get_settings
from settings.database import get_db
from api.org_structure.infra.db.uow import UnitOfWork

logger = logging.getLogger(__name__)


class AuthContext:
    """Authentication context extracted from the bearer token."""

    def __init__(self, user_id: str, tenant_id: str, email: str, roles: Optional[List[str]] = None):
        self.user_id = user_id
        self.tenant_id = tenant_id
        self.email = email
        self.roles = list(roles or [])


# Optional security - doesn't auto-raise 403 when no Bearer token is provided
_optional_security = HTTPBearer(auto_error=False)


def decode_token(token: str, settings: Settings) -> AuthContext:
    try:
        claims = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired"
        )
    except jwt.InvalidTokenError as e:
        logger.warning(f"Invalid bearer token: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication failed"
        )

    if not claims.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User ID not found in token"
        )

    if not claims.get("tenant_id"):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is not associated with a tenant"
        )

    roles = claims.get("roles") or []
    if isinstance(roles, str):
        roles = [roles]

    return AuthContext(
        user_id=str(claims["sub"]),
        tenant_id=str(claims["tenant_id"]),
        email=claims.get("email", ""),
        roles=roles,
    )


def get_auth_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(_optional_security),
    settings: Settings = Depends(get_settings),
) -> AuthContext:
    """
    Extract authentication context from a verified token.

    In local development, returns a default admin context when no auth header
    is provided. Elsewhere a valid token is always required.
    """
    if credentials:
        return decode_token(credentials.credentials, settings)

    if settings.is_local:
        return AuthContext(
            user_id=settings.local_user_id,
            tenant_id=settings.local_tenant_id,
            email="local@dev.com",
            roles=[RoleCode.ORGANIZATION_ADMIN.value],
        )

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Authentication required"
    )


def get_uow(db: Session = Depends(get_db)) -> Generator[UnitOfWork, None, None]:
    """One UnitOfWork per request, sharing the request's session."""
    yield UnitOfWork(db)
