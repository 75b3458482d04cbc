import re


class Constants:
    SORT_ORDER_STEP = 10
    DERIVED_CODE_MAX_LENGTH = 20
    EXPLICIT_CODE_PATTERN = re.compile(r"^[A-Z0-9]{2,4}$")

    DEFAULT_LEVEL_COLOR = "#6B7280"
    DEFAULT_ASSIGNMENT_ROLE = "MEMBER"

    # Standard ladder seeded for a new fiscal year: (code, name, plural, level, enabled)
    STANDARD_LEVELS = [
        ("ORGANIZATION", "Organization", "Organizations", 0, True),
        ("DIVISION", "Division", "Divisions", 1, False),
        ("DEPARTMENT", "Department", "Departments", 2, True),
        ("TEAM", "Team", "Teams", 3, False),
        ("INDIVIDUAL", "Individual", "Individuals", 4, True),
    ]
    STANDARD_LEVEL_ICONS = {
        "ORGANIZATION": "Building",
        "DIVISION": "Layers",
        "DEPARTMENT": "Briefcase",
        "TEAM": "Users",
        "INDIVIDUAL": "User",
    }


class Messages:
    FISCAL_YEAR_NOT_FOUND = "Fiscal year not found"
    LEVEL_NOT_FOUND = "Level definition not found"
    UNIT_NOT_FOUND = "Organization unit not found"
    INVALID_LEVEL = "Invalid or disabled level definition"
    INVALID_CODE = "Code must be 2-4 uppercase letters or digits"
    INVALID_PARENT = "Invalid parent organization unit"
    PARENT_LEVEL = "Parent must be at a higher organizational level"
    SELF_PARENT = "Organization unit cannot be its own parent"
    CIRCULAR_PARENT = "Cannot move unit under its own descendant (would create circular reference)"
    ORGANIZATION_UNDELETABLE = "Organization level units cannot be deleted"
    ORGANIZATION_DISABLE = "Organization level is required and cannot be disabled"
    ACTIVE_CHILDREN = (
        "Cannot delete organization unit with active child units. "
        "Please move or deactivate child units first."
    )
    ACTIVE_ASSIGNMENTS = (
        "Cannot delete organization unit with active user assignments. "
        "Please reassign users first."
    )
    STRUCTURE_LOCKED = "Organizational structure is confirmed and cannot be modified"
    DUPLICATE_UNIT = "Duplicate organizational unit"
    OPERATION_FAILED = "Operation failed"
    TENANT_ACCESS = "Access denied to this tenant"
    ADMIN_REQUIRED = "Admin permissions required"
    INVALID_CONFIRMATION_TYPE = "Invalid confirmation type"
    ORG_STRUCTURE_FIRST = "Organizational structure must be confirmed first"
    USER_NOT_IN_TENANT = "User not found or does not belong to this tenant"
    UNIT_INACTIVE = "Organization unit not found or inactive"
    ASSIGNMENT_NOT_FOUND = "Active user assignment not found"

    @staticmethod
    def duplicate_code(code: str) -> str:
        return f'Organization unit with code "{code}" already exists at this level'

    @staticmethod
    def missing_champions(missing: int) -> str:
        noun = "champion" if missing == 1 else "champions"
        return f"{missing} KPI {noun} not found in this organization"

    @staticmethod
    def already_confirmed(confirmation_type: str) -> str:
        return f"{confirmation_type} is already confirmed for this fiscal year"
