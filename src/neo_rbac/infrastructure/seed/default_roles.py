"""
Built-in role catalogue.

Seed data for a role store. Scope-bound roles use ``{divisionId}`` and
``{branchId}`` placeholders that are filled from each assignment's binding.
"""
from typing import Any, Dict, List

from ...domain.entities.role import Role


PLATFORM_ADMIN = "platformAdmin"
SUPPORT_ADMIN = "supportAdmin"
SUPPORT_AGENT = "supportAgent"
ORG_ADMIN = "orgAdmin"
DIVISION_ADMIN = "divisionAdmin"
BRANCH_ADMIN = "branchAdmin"
TERRITORY_MANAGER = "territoryManager"
SALES_REPRESENTATIVE = "salesRepresentative"
VIEWER = "viewer"


def _perm(resource: str, action: str, scope: str = "platform", **conditions: Any) -> Dict[str, Any]:
    permission: Dict[str, Any] = {"resource": resource, "action": action, "scope": scope}
    if conditions:
        permission["conditions"] = conditions
    return permission


DEFAULT_ROLE_DEFINITIONS: List[Dict[str, Any]] = [
    # Platform roles
    {
        "id": PLATFORM_ADMIN,
        "name": "Platform Administrator",
        "description": "Full platform access with all permissions",
        "type": "platform",
        "permissions": [_perm("*", "*")],
    },
    {
        "id": SUPPORT_ADMIN,
        "name": "Support Administrator",
        "description": "Platform support access",
        "type": "platform",
        "inherits": [SUPPORT_AGENT],
        "permissions": [_perm("settings", "manage")],
    },
    {
        "id": SUPPORT_AGENT,
        "name": "Support Agent",
        "description": "Read-only platform support access",
        "type": "platform",
        "permissions": [
            _perm("organization", "read"),
            _perm("user", "read"),
            _perm("territory", "read"),
            _perm("report", "read"),
        ],
    },

    # Organization roles
    {
        "id": ORG_ADMIN,
        "name": "Organization Administrator",
        "description": "Full organization access",
        "type": "organization",
        "permissions": [
            _perm("organization", "manage", "organization"),
            _perm("division", "manage", "organization"),
            _perm("branch", "manage", "organization"),
            _perm("territory", "manage", "organization"),
            _perm("user", "manage", "organization"),
            _perm("role", "assign", "organization"),
            _perm("settings", "manage", "organization"),
            _perm("report", "manage", "organization"),
        ],
    },
    {
        "id": DIVISION_ADMIN,
        "name": "Division Administrator",
        "description": "Division-level access",
        "type": "organization",
        "inherits": [BRANCH_ADMIN],
        "permissions": [
            _perm("division", "manage", "division", divisionId="{divisionId}"),
            _perm("branch", "manage", "division", divisionId="{divisionId}"),
            _perm("territory", "manage", "division", divisionId="{divisionId}"),
            _perm("user", "manage", "division", divisionId="{divisionId}"),
            _perm("report", "read", "division"),
        ],
    },
    {
        "id": BRANCH_ADMIN,
        "name": "Branch Administrator",
        "description": "Branch-level access",
        "type": "organization",
        "inherits": [TERRITORY_MANAGER],
        "permissions": [
            _perm("branch", "manage", "branch", branchId="{branchId}"),
            _perm("territory", "manage", "branch", branchId="{branchId}"),
            _perm("user", "manage", "branch", branchId="{branchId}"),
            _perm("report", "read", "branch"),
        ],
    },
    {
        "id": TERRITORY_MANAGER,
        "name": "Territory Manager",
        "description": "Territory management access",
        "type": "organization",
        "permissions": [
            _perm("territory", "manage", "territory", ownOnly=True),
            _perm("report", "read", "territory", ownOnly=True),
        ],
    },
    {
        "id": SALES_REPRESENTATIVE,
        "name": "Sales Representative",
        "description": "Basic sales access",
        "type": "organization",
        "permissions": [
            _perm("territory", "read", "territory", ownOnly=True),
            _perm("report", "read", "territory", ownOnly=True),
        ],
    },
    {
        "id": VIEWER,
        "name": "Viewer",
        "description": "Read-only organization access",
        "type": "organization",
        "permissions": [
            _perm("territory", "read", "organization"),
            _perm("report", "read", "organization"),
        ],
    },
]


DEFAULT_ROLES: List[Role] = [Role.from_dict(definition) for definition in DEFAULT_ROLE_DEFINITIONS]


def get_default_role(role_id: str) -> Role:
    """Get a built-in role by id."""
    for role in DEFAULT_ROLES:
        if role.id == role_id:
            return role
    raise KeyError(role_id)
