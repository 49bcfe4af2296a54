"""
Role and assignment stores implemented with AsyncPG.

Read-only access to role definitions and assignments with direct SQL. Driver
and connection failures are reported as ``StoreUnavailableError``.

Expected tables in the configured schema:
    roles(id, name, description, kind, is_active)
    role_permissions(role_id, resource, action, scope, conditions jsonb)
    role_inherits(role_id, inherited_role_id, position)
    role_assignments(principal_id, organization_id, role_id, division_id, branch_id,
                     territory_id, assigned_at, assigned_by, expires_at, revoked_at)
"""
import asyncio
import json
import logging
from typing import Any, List, Optional

import asyncpg

from ...core.exceptions import InvalidPermissionError, StoreUnavailableError
from ...domain.entities.permission import Permission
from ...domain.entities.role import Role, RoleAssignment, RoleKind, ScopeBinding
from ...domain.protocols.store_protocols import AssignmentStoreProtocol, RoleStoreProtocol


logger = logging.getLogger(__name__)

STORE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError)


def _validate_schema_name(schema_name: str) -> str:
    """Validate schema name to prevent SQL injection."""
    if schema_name and schema_name.replace("_", "").isalnum() and not schema_name[0].isdigit():
        return schema_name
    raise ValueError(f"Invalid schema name: {schema_name}")


def _decode_json(value: Any) -> Any:
    if value is None or isinstance(value, (dict, list)):
        return value
    return json.loads(value)


class AsyncPGRoleStore(RoleStoreProtocol):
    """AsyncPG implementation of the role store."""

    def __init__(self, db_pool: asyncpg.Pool, schema: str = "rbac"):
        """
        Initialize role store.

        Args:
            db_pool: AsyncPG connection pool
            schema: Schema holding the RBAC tables
        """
        self._db_pool = db_pool
        self.schema = _validate_schema_name(schema)

    async def get_role(self, role_id: str) -> Optional[Role]:
        """Get a role with its permissions and inherited role ids."""
        try:
            async with self._db_pool.acquire() as conn:
                role_row = await conn.fetchrow(
                    f"""
                    SELECT id, name, description, kind
                    FROM {self.schema}.roles
                    WHERE id = $1 AND is_active = true
                    """,
                    role_id
                )
                if role_row is None:
                    return None

                permission_rows = await conn.fetch(
                    f"""
                    SELECT resource, action, scope, conditions
                    FROM {self.schema}.role_permissions
                    WHERE role_id = $1
                    """,
                    role_id
                )
                inherit_rows = await conn.fetch(
                    f"""
                    SELECT inherited_role_id
                    FROM {self.schema}.role_inherits
                    WHERE role_id = $1
                    ORDER BY position, inherited_role_id
                    """,
                    role_id
                )
        except STORE_ERRORS as e:
            raise StoreUnavailableError(f"Role store unavailable while reading role {role_id}: {e}", store="roles", cause=e)

        permissions = []
        for row in permission_rows:
            try:
                permissions.append(Permission.from_dict({
                    "resource": row["resource"],
                    "action": row["action"],
                    "scope": row["scope"],
                    "conditions": _decode_json(row["conditions"]),
                }))
            except (InvalidPermissionError, ValueError) as e:
                # A malformed grant is dropped; the rest of the role still applies
                logger.error(f"Skipping invalid permission on role {role_id}: {e}")

        return Role(
            id=role_row["id"],
            name=role_row["name"],
            description=role_row["description"] or "",
            kind=RoleKind(role_row["kind"]),
            permissions=frozenset(permissions),
            inherits=tuple(row["inherited_role_id"] for row in inherit_rows),
        )


class AsyncPGAssignmentStore(AssignmentStoreProtocol):
    """AsyncPG implementation of the assignment store."""

    def __init__(self, db_pool: asyncpg.Pool, schema: str = "rbac"):
        self._db_pool = db_pool
        self.schema = _validate_schema_name(schema)

    async def list_assignments(self, principal_id: str, organization_id: str) -> List[RoleAssignment]:
        """List active (not revoked) assignments; expiry is checked by the resolver."""
        try:
            async with self._db_pool.acquire() as conn:
                rows = await conn.fetch(
                    f"""
                    SELECT principal_id, organization_id, role_id,
                           division_id, branch_id, territory_id,
                           assigned_at, assigned_by, expires_at
                    FROM {self.schema}.role_assignments
                    WHERE principal_id = $1
                        AND organization_id = $2
                        AND revoked_at IS NULL
                    ORDER BY assigned_at, role_id
                    """,
                    principal_id, organization_id
                )
        except STORE_ERRORS as e:
            raise StoreUnavailableError(
                f"Assignment store unavailable for {principal_id} in {organization_id}: {e}",
                store="assignments",
                cause=e
            )

        return [
            RoleAssignment(
                principal_id=row["principal_id"],
                organization_id=row["organization_id"],
                role_id=row["role_id"],
                binding=ScopeBinding(
                    division_id=row["division_id"],
                    branch_id=row["branch_id"],
                    territory_id=row["territory_id"],
                ),
                assigned_at=row["assigned_at"],
                assigned_by=row["assigned_by"],
                expires_at=row["expires_at"],
            )
            for row in rows
        ]
