"""Unit tests for role grant evaluation."""

from types import SimpleNamespace

import pytest

from app.core.permissions import (
    Action,
    Grant,
    Resource,
    RoleName,
    has_permission,
    parse_grants,
    permission_codes,
)
from app.modules.auth.models import DEFAULT_ROLES
from tests.fixtures.auth import make_role


def _role(*grants: dict, is_active: bool = True) -> SimpleNamespace:
    return SimpleNamespace(permissions=list(grants), is_active=is_active)


class TestHasPermission:
    """Tests for has_permission."""

    @pytest.mark.unit
    def test_exact_grant_allows(self) -> None:
        role = _role({"resource": "reviews", "actions": ["create", "read"]})

        assert has_permission(role, Resource.REVIEWS, Action.CREATE) is True
        assert has_permission(role, "reviews", "read") is True

    @pytest.mark.unit
    def test_missing_action_denies(self) -> None:
        role = _role({"resource": "reviews", "actions": ["read"]})

        assert has_permission(role, Resource.REVIEWS, Action.DELETE) is False

    @pytest.mark.unit
    def test_other_resource_denies(self) -> None:
        role = _role({"resource": "reviews", "actions": ["read"]})

        assert has_permission(role, Resource.COMMENTS, Action.READ) is False

    @pytest.mark.unit
    def test_wildcard_resource_covers_every_resource(self) -> None:
        role = _role({"resource": "all", "actions": ["read"]})

        for resource in Resource:
            assert has_permission(role, resource, Action.READ) is True
        assert has_permission(role, Resource.CATEGORIES, Action.DELETE) is False

    @pytest.mark.unit
    def test_later_grant_can_allow(self) -> None:
        """Grants are OR-ed: any matching entry is enough."""
        role = _role(
            {"resource": "comments", "actions": ["read"]},
            {"resource": "comments", "actions": ["moderate"]},
        )

        assert has_permission(role, Resource.COMMENTS, Action.MODERATE) is True

    @pytest.mark.unit
    def test_no_role_denies(self) -> None:
        assert has_permission(None, Resource.REVIEWS, Action.READ) is False

    @pytest.mark.unit
    def test_inactive_role_denies(self) -> None:
        role = _role({"resource": "all", "actions": ["read"]}, is_active=False)

        assert has_permission(role, Resource.REVIEWS, Action.READ) is False

    @pytest.mark.unit
    def test_empty_grants_deny(self) -> None:
        assert has_permission(_role(), Resource.REVIEWS, Action.READ) is False

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("resource", "action"),
        [
            ("articles", "read"),
            ("reviews", "approve"),
            ("", ""),
        ],
    )
    def test_unknown_resource_or_action_denies(self, resource: str, action: str) -> None:
        role = _role({"resource": "all", "actions": [a.value for a in Action]})

        assert has_permission(role, resource, action) is False

    @pytest.mark.unit
    def test_malformed_grant_is_ignored(self) -> None:
        """A grant without actions never matches instead of raising."""
        role = _role(
            {"resource": "reviews"},
            {"resource": "reviews", "actions": None},
            {"resource": "comments", "actions": ["read"]},
        )

        assert has_permission(role, Resource.REVIEWS, Action.READ) is False
        assert has_permission(role, Resource.COMMENTS, Action.READ) is True

    @pytest.mark.unit
    def test_action_is_never_wildcarded(self) -> None:
        role = _role({"resource": "reviews", "actions": ["all"]})

        assert has_permission(role, Resource.REVIEWS, Action.READ) is False


class TestDefaultRoles:
    """The seeded roles grant what their descriptions promise."""

    @pytest.mark.unit
    def test_super_admin_can_do_everything(self) -> None:
        role = make_role(RoleName.SUPER_ADMIN)

        for resource in Resource:
            for action in Action:
                assert has_permission(role, resource, action) is True

    @pytest.mark.unit
    def test_admin_manages_catalog(self) -> None:
        role = make_role(RoleName.ADMIN)

        assert has_permission(role, Resource.CATEGORIES, Action.DELETE) is True
        assert has_permission(role, Resource.COMMENTS, Action.MODERATE) is True
        assert has_permission(role, Resource.COMMENTS, Action.CREATE) is False

    @pytest.mark.unit
    def test_editor_publishes_but_cannot_touch_catalog(self) -> None:
        role = make_role(RoleName.EDITOR)

        assert has_permission(role, Resource.REVIEWS, Action.PUBLISH) is True
        assert has_permission(role, Resource.TECH_NEWS, Action.PUBLISH) is True
        assert has_permission(role, Resource.CATEGORIES, Action.READ) is True
        assert has_permission(role, Resource.CATEGORIES, Action.CREATE) is False
        assert has_permission(role, Resource.REVIEWS, Action.DELETE) is False

    @pytest.mark.unit
    def test_reviewer_cannot_publish(self) -> None:
        role = make_role(RoleName.REVIEWER)

        assert has_permission(role, Resource.REVIEWS, Action.CREATE) is True
        assert has_permission(role, Resource.REVIEWS, Action.PUBLISH) is False

    @pytest.mark.unit
    def test_user_can_comment_only(self) -> None:
        role = make_role(RoleName.USER)

        assert has_permission(role, Resource.COMMENTS, Action.CREATE) is True
        assert has_permission(role, Resource.COMMENTS, Action.MODERATE) is False
        assert has_permission(role, Resource.REVIEWS, Action.CREATE) is False
        assert has_permission(role, Resource.USERS, Action.READ) is False

    @pytest.mark.unit
    def test_default_grants_use_known_values(self) -> None:
        for config in DEFAULT_ROLES.values():
            for grant in parse_grants(config["permissions"]):
                assert grant.resource in {r.value for r in Resource}
                assert grant.actions <= {a.value for a in Action}


class TestGrantHelpers:
    """Tests for Grant parsing and flattening."""

    @pytest.mark.unit
    def test_to_dict_orders_actions(self) -> None:
        grant = Grant.from_dict({"resource": "reviews", "actions": ["publish", "read", "create"]})

        assert grant.to_dict() == {"resource": "reviews", "actions": ["create", "read", "publish"]}

    @pytest.mark.unit
    def test_from_dict_accepts_enums(self) -> None:
        grant = Grant.from_dict({"resource": Resource.COMMENTS, "actions": [Action.READ]})

        assert grant.allows("comments", "read") is True

    @pytest.mark.unit
    def test_permission_codes(self) -> None:
        role = _role(
            {"resource": "reviews", "actions": ["read", "create"]},
            {"resource": "comments", "actions": ["read"]},
        )

        assert permission_codes(role) == ["reviews:create", "reviews:read", "comments:read"]

    @pytest.mark.unit
    def test_permission_codes_without_role(self) -> None:
        assert permission_codes(None) == []
