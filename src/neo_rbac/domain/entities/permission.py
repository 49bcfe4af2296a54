"""
Permission entity - A grant of an action on a resource within a scope.

Permissions are immutable and hashable so that resolved permission sets can
be deduplicated by structural equality. All validation happens at
construction; the matcher relies on it and performs no type checks.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple, Union

from ...core.exceptions import InvalidPermissionError
from .scope import Scope


WILDCARD = "*"
MANAGE = "manage"


class Unresolved(Enum):
    """Marker for a scope placeholder that could not be substituted."""
    UNRESOLVED = "<unresolved>"

    def __repr__(self) -> str:
        return "UNRESOLVED"


UNRESOLVED = Unresolved.UNRESOLVED


class ConditionKey(str, Enum):
    """Condition keys understood by the matcher."""
    OWN_ONLY = "ownOnly"
    DIVISION_ID = "divisionId"
    BRANCH_ID = "branchId"
    TERRITORY_ID = "territoryId"


SCOPE_ID_KEYS = (
    ConditionKey.DIVISION_ID.value,
    ConditionKey.BRANCH_ID.value,
    ConditionKey.TERRITORY_ID.value,
)

ConditionValue = Union[bool, str, Unresolved]


def is_placeholder(value: Any) -> bool:
    """Check if a condition value is a ``{name}`` placeholder token."""
    return isinstance(value, str) and len(value) > 2 and value.startswith("{") and value.endswith("}")


class PermissionConditions(Mapping[str, ConditionValue]):
    """Immutable, hashable mapping of validated permission conditions."""

    __slots__ = ("_items",)

    def __init__(self, conditions: Optional[Mapping[str, Any]] = None):
        items = []
        for key, value in (conditions or {}).items():
            items.append((key, self._validate(key, value)))
        self._items: Tuple[Tuple[str, ConditionValue], ...] = tuple(sorted(items, key=lambda item: item[0]))

    @staticmethod
    def _validate(key: str, value: Any) -> ConditionValue:
        if key == ConditionKey.OWN_ONLY.value:
            if not isinstance(value, bool):
                raise InvalidPermissionError(
                    f"Condition 'ownOnly' must be a boolean, got: {value!r}",
                    details={"condition": key}
                )
            return value

        if key in SCOPE_ID_KEYS:
            if value is None or value is UNRESOLVED:
                return UNRESOLVED
            if not isinstance(value, str) or not value:
                raise InvalidPermissionError(
                    f"Condition '{key}' must be a non-empty string, got: {value!r}",
                    details={"condition": key}
                )
            return value

        raise InvalidPermissionError(
            f"Unknown permission condition: {key!r}",
            details={"valid_conditions": [k.value for k in ConditionKey]}
        )

    def __getitem__(self, key: str) -> ConditionValue:
        for item_key, value in self._items:
            if item_key == key:
                return value
        raise KeyError(key)

    def __iter__(self) -> Iterator[str]:
        return (key for key, _ in self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __hash__(self) -> int:
        return hash(self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, PermissionConditions):
            return self._items == other._items
        if isinstance(other, Mapping):
            return dict(self._items) == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"PermissionConditions({dict(self._items)!r})"

    @property
    def placeholders(self) -> Dict[str, str]:
        """Condition keys whose value is still a placeholder token."""
        return {key: value for key, value in self._items if is_placeholder(value)}

    @property
    def has_unresolved(self) -> bool:
        return any(value is UNRESOLVED for _, value in self._items)


@dataclass(frozen=True)
class Permission:
    """
    Core permission entity.

    ``resource`` and ``action`` accept ``"*"``; ``action`` also accepts
    ``"manage"``, which implies every concrete action on the resource.
    An absent scope means the broadest scope (platform).
    """
    resource: str
    action: str
    scope: Scope = Scope.PLATFORM
    conditions: PermissionConditions = field(default_factory=PermissionConditions)

    def __post_init__(self):
        """Validate fields and normalize scope and conditions."""
        if not isinstance(self.resource, str) or not self.resource:
            raise InvalidPermissionError(f"Permission resource must be a non-empty string, got: {self.resource!r}")
        if not isinstance(self.action, str) or not self.action:
            raise InvalidPermissionError(f"Permission action must be a non-empty string, got: {self.action!r}")

        object.__setattr__(self, 'scope', Scope.parse(self.scope if self.scope is not None else Scope.PLATFORM))
        if not isinstance(self.conditions, PermissionConditions):
            object.__setattr__(self, 'conditions', PermissionConditions(self.conditions))

    @property
    def code(self) -> str:
        """Permission code in ``resource:action`` form."""
        return f"{self.resource}:{self.action}"

    @property
    def is_wildcard(self) -> bool:
        return self.resource == WILDCARD or self.action == WILDCARD

    @property
    def is_conditional(self) -> bool:
        return len(self.conditions) > 0

    def with_conditions(self, conditions: Mapping[str, Any]) -> "Permission":
        """Return a copy of this permission with different conditions."""
        return Permission(
            resource=self.resource,
            action=self.action,
            scope=self.scope,
            conditions=PermissionConditions(conditions)
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the store's camelCase shape. Unresolved values become None."""
        data: Dict[str, Any] = {
            "resource": self.resource,
            "action": self.action,
            "scope": self.scope.value,
        }
        if self.conditions:
            data["conditions"] = {
                key: (None if value is UNRESOLVED else value)
                for key, value in self.conditions.items()
            }
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Permission":
        """Create a permission from a store mapping."""
        try:
            return cls(
                resource=data["resource"],
                action=data["action"],
                scope=data.get("scope") or Scope.PLATFORM,
                conditions=PermissionConditions(data.get("conditions") or {})
            )
        except KeyError as e:
            raise InvalidPermissionError(
                f"Permission definition is missing field {e.args[0]!r}",
                details={"permission": dict(data)}
            )

    def __str__(self) -> str:
        return f"Permission({self.code})"

    def __repr__(self) -> str:
        conditions = f", conditions={dict(self.conditions)!r}" if self.conditions else ""
        return f"Permission({self.code}, scope={self.scope.value}{conditions})"
