"""
Scope entity - Organizational breadth of permissions and requests.

Scopes form a fixed total order, broadest first:
platform > organization > division > branch > territory.
"""
from enum import Enum
from typing import Union

from ...core.exceptions import InvalidPermissionError


class Scope(str, Enum):
    """Organizational scope, declared from broadest to narrowest."""
    PLATFORM = "platform"
    ORGANIZATION = "organization"
    DIVISION = "division"
    BRANCH = "branch"
    TERRITORY = "territory"

    @property
    def rank(self) -> int:
        """Position in the ordering, 0 being the broadest scope."""
        return _SCOPE_RANKS[self]

    @classmethod
    def parse(cls, value: Union["Scope", str]) -> "Scope":
        """Parse a scope from its enum or string form."""
        if isinstance(value, Scope):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise InvalidPermissionError(
                f"Unknown scope: {value!r}",
                details={"valid_scopes": [scope.value for scope in cls]}
            )

    @classmethod
    def broadest(cls) -> "Scope":
        return cls.PLATFORM

    @classmethod
    def narrowest(cls) -> "Scope":
        return cls.TERRITORY

    def is_broader_or_equal(self, other: "Scope") -> bool:
        return broader_or_equal(self, other)


_SCOPE_RANKS = {scope: index for index, scope in enumerate(Scope)}


def broader_or_equal(a: Scope, b: Scope) -> bool:
    """True iff ``a`` is the same scope as ``b`` or broader than it."""
    return _SCOPE_RANKS[a] <= _SCOPE_RANKS[b]
