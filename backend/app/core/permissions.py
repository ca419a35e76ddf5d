"""Role-based permission model.

A role is a named, ordered list of grants. Each grant names one resource
(or the wildcard ``all``) and the set of actions allowed on it:

    [{"resource": "reviews", "actions": ["create", "read", "update"]},
     {"resource": "comments", "actions": ["read"]}]

Evaluation is a pure function over a role that the caller has already
loaded. Nothing here touches the database or keeps module-level state.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol


class Resource(str, Enum):
    """Resources that can appear in a grant."""

    USERS = "users"
    CATEGORIES = "categories"
    SUBCATEGORIES = "subcategories"
    REVIEWS = "reviews"
    COMMENTS = "comments"
    TECH_NEWS = "tech-news"
    STATIC_PAGES = "static-pages"
    ALL = "all"


class Action(str, Enum):
    """Actions that can appear in a grant. Never wildcarded."""

    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    PUBLISH = "publish"
    MODERATE = "moderate"


class RoleName(str, Enum):
    """Built-in role identifiers."""

    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    EDITOR = "EDITOR"
    REVIEWER = "REVIEWER"
    USER = "USER"


RESOURCE_VALUES = frozenset(r.value for r in Resource)
ACTION_VALUES = frozenset(a.value for a in Action)


@dataclass(frozen=True)
class Grant:
    """A single (resource, actions) entry of a role."""

    resource: str
    actions: frozenset[str]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Grant":
        return cls(
            resource=_value(data.get("resource")),
            actions=frozenset(_value(a) for a in data.get("actions") or ()),
        )

    def to_dict(self) -> dict[str, Any]:
        # Keep the declared action order stable for storage and API output
        ordered = [a.value for a in Action if a.value in self.actions]
        return {"resource": self.resource, "actions": ordered}

    def allows(self, resource: str, action: str) -> bool:
        return (
            (self.resource == resource or self.resource == Resource.ALL.value)
            and action in self.actions
        )


class RoleLike(Protocol):
    """Anything carrying a list of grants (ORM Role, test doubles)."""

    permissions: list[dict[str, Any]]


def _value(item: Any) -> str:
    return item.value if isinstance(item, Enum) else str(item)


def parse_grants(permissions: Iterable[Mapping[str, Any] | Grant] | None) -> list[Grant]:
    """Normalize stored grant dicts (or Grant objects) into Grant values."""
    grants: list[Grant] = []
    for item in permissions or ():
        grants.append(item if isinstance(item, Grant) else Grant.from_dict(item))
    return grants


def has_permission(
    role: RoleLike | None,
    resource: Resource | str,
    action: Action | str,
) -> bool:
    """Return True iff the role may perform ``action`` on ``resource``.

    Deny by default: a missing or inactive role, or a resource/action outside
    the fixed enumerations, evaluates to False instead of raising.
    """
    if role is None or getattr(role, "is_active", True) is False:
        return False

    resource_value = _value(resource)
    action_value = _value(action)
    if resource_value not in RESOURCE_VALUES or action_value not in ACTION_VALUES:
        return False

    return any(
        grant.allows(resource_value, action_value)
        for grant in parse_grants(role.permissions)
    )


def permission_codes(role: RoleLike | None) -> list[str]:
    """Flatten a role's grants into ``resource:action`` codes for tokens and /me."""
    if role is None:
        return []
    codes: list[str] = []
    for grant in parse_grants(role.permissions):
        codes.extend(f"{grant.resource}:{a}" for a in grant.to_dict()["actions"])
    return codes
