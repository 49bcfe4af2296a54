"""Seed data for role stores."""

from .default_roles import (
    DEFAULT_ROLES,
    DEFAULT_ROLE_DEFINITIONS,
    get_default_role,
    PLATFORM_ADMIN,
    SUPPORT_ADMIN,
    SUPPORT_AGENT,
    ORG_ADMIN,
    DIVISION_ADMIN,
    BRANCH_ADMIN,
    TERRITORY_MANAGER,
    SALES_REPRESENTATIVE,
    VIEWER,
)

__all__ = [
    "DEFAULT_ROLES",
    "DEFAULT_ROLE_DEFINITIONS",
    "get_default_role",
    "PLATFORM_ADMIN",
    "SUPPORT_ADMIN",
    "SUPPORT_AGENT",
    "ORG_ADMIN",
    "DIVISION_ADMIN",
    "BRANCH_ADMIN",
    "TERRITORY_MANAGER",
    "SALES_REPRESENTATIVE",
    "VIEWER",
]
