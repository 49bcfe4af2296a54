"""
Authorization decision value object.

Result of a check together with the evidence used to reach it, for
diagnostics and audit.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..entities.permission import Permission
from .authorization_request import AuthorizationRequest


@dataclass(frozen=True)
class AuthorizationDecision:
    """Immutable outcome of an authorization check."""
    request: AuthorizationRequest
    granted: bool
    reason: str = ""
    matched_permission: Optional[Permission] = None
    bypass: bool = False
    error: Optional[BaseException] = None
    evaluated_permissions: int = 0

    @property
    def denied(self) -> bool:
        return not self.granted

    @property
    def failed(self) -> bool:
        """True when the denial was caused by an error rather than a lack of grants."""
        return self.error is not None

    def __bool__(self) -> bool:
        return self.granted

    @classmethod
    def allow(
        cls,
        request: AuthorizationRequest,
        matched_permission: Optional[Permission] = None,
        reason: str = "Permission granted",
        bypass: bool = False,
        evaluated_permissions: int = 0
    ) -> "AuthorizationDecision":
        return cls(
            request=request,
            granted=True,
            reason=reason,
            matched_permission=matched_permission,
            bypass=bypass,
            evaluated_permissions=evaluated_permissions
        )

    @classmethod
    def deny(
        cls,
        request: AuthorizationRequest,
        reason: str = "Permission denied",
        error: Optional[BaseException] = None,
        evaluated_permissions: int = 0
    ) -> "AuthorizationDecision":
        return cls(
            request=request,
            granted=False,
            reason=reason,
            error=error,
            evaluated_permissions=evaluated_permissions
        )

    def to_dict(self) -> Dict[str, Any]:
        """Audit-friendly representation of this decision."""
        return {
            **self.request.describe(),
            "granted": self.granted,
            "reason": self.reason,
            "bypass": self.bypass,
            "matched_permission": self.matched_permission.to_dict() if self.matched_permission else None,
            "error": repr(self.error) if self.error else None,
            "evaluated_permissions": self.evaluated_permissions,
        }

    def __str__(self) -> str:
        status = "GRANTED" if self.granted else "DENIED"
        return f"{status}: {self.request} ({self.reason})"
