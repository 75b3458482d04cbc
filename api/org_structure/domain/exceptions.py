"""
Typed errors raised by the organizational hierarchy engine.

Every error carries a human-readable ``message`` naming the violated rule and a
machine ``code``. The HTTP layer maps each class to a status code; domain code
never raises ``HTTPException`` directly.
"""
from typing import Optional


class OrgStructureError(Exception):
    code = "ORG_STRUCTURE_ERROR"
    status_code = 400

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


class ValidationError(OrgStructureError):
    code = "VALIDATION_ERROR"
    status_code = 400


class StructureLockedError(ValidationError):
    code = "STRUCTURE_LOCKED"
    status_code = 423


class AlreadyConfirmedError(ValidationError):
    code = "ALREADY_CONFIRMED"
    status_code = 409


class AuthorizationError(OrgStructureError):
    code = "INSUFFICIENT_PERMISSIONS"
    status_code = 403


class NotFoundError(OrgStructureError):
    code = "NOT_FOUND"
    status_code = 404


class StorageError(OrgStructureError):
    """Persistence failure translated at the transaction boundary."""
    code = "DATABASE_ERROR"
    status_code = 500

    def __init__(self, message: str = "Operation failed", code: Optional[str] = None):
        super().__init__(message, code)
        if self.code == "DUPLICATE_ENTRY":
            self.status_code = 409
