"""
Principal value object.

The authenticated actor supplied by the identity provider. The engine does
not authenticate; it only reads the id and the platform role claim.
"""
from dataclasses import dataclass
from typing import Any, Mapping, Optional


DEFAULT_SUPERADMIN_ROLE = "platformAdmin"


@dataclass(frozen=True)
class Principal:
    """Authenticated principal with an optional platform role claim."""
    id: str
    platform_role: Optional[str] = None
    display_name: Optional[str] = None

    def __post_init__(self):
        if not self.id:
            raise ValueError("Principal id cannot be empty")

    def is_superadmin(self, superadmin_role_id: str = DEFAULT_SUPERADMIN_ROLE) -> bool:
        """Check if the principal carries the platform super-admin marker."""
        return self.platform_role is not None and self.platform_role == superadmin_role_id

    @classmethod
    def from_claims(cls, claims: Mapping[str, Any]) -> "Principal":
        """Build a principal from identity claims (``sub``/``id`` and ``platformRole``)."""
        return cls(
            id=claims.get("sub") or claims.get("id"),
            platform_role=claims.get("platformRole") or claims.get("platform_role"),
            display_name=claims.get("name") or claims.get("preferred_username"),
        )

    def __str__(self) -> str:
        return self.id
