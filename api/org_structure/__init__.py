"""
Organizational Hierarchy Module

Per-fiscal-year org-unit tree with level ordering, acyclicity and code
uniqueness checks, KPI champion assignment and the structure confirmation
lock.

Endpoints (all under /tenants/{tenant_id}):
- GET   /fiscal-years/{fy}/level-definitions - List levels
- PATCH /fiscal-years/{fy}/level-definitions/{id} - Enable/disable a level (admin)
- GET   /fiscal-years/{fy}/org-units - List units
- POST  /fiscal-years/{fy}/org-units - Create unit (admin)
- GET   /fiscal-years/{fy}/org-units/tree - Nested tree of active units
- GET   /org-units/{id} - Get unit
- PUT   /org-units/{id} - Update unit (admin)
- DELETE /org-units/{id} - Soft delete unit (admin)
- GET|POST /org-units/{id}/users - List/assign users
- DELETE /org-units/{id}/users/{user_id} - End assignment (admin)
- POST  /fiscal-years/{fy}/confirmations - Confirm structure (admin)
- GET   /fiscal-years/{fy}/confirmations[/{type}] - Read confirmations
- GET   /fiscal-years/{fy}/setup-status - Setup progress
"""

from api.org_structure.router import org_structure_router

__all__ = ["org_structure_router"]
