"""
Unit tests for the role and permission dependencies.
"""

import pytest
from fastapi import HTTPException

from app.domain.models.user import User, UserRole
from app.infrastructure.auth.dependencies import require_roles, require_permission


def make_user(role=UserRole.CLIENT, permissions=None):
    return User(
        id=1,
        email="user@example.com",
        username="user",
        role=role,
        permissions=permissions or []
    )


class TestRoleChecker:

    @pytest.mark.asyncio
    async def test_allows_listed_role(self):
        checker = require_roles(UserRole.ADMIN, UserRole.ACCOUNTS)
        user = make_user(UserRole.ACCOUNTS)

        assert await checker(user) is user

    @pytest.mark.asyncio
    async def test_rejects_other_roles(self):
        checker = require_roles(UserRole.ADMIN, UserRole.ACCOUNTS)

        with pytest.raises(HTTPException) as exc_info:
            await checker(make_user(UserRole.SUPPORT))

        assert exc_info.value.status_code == 403
        assert exc_info.value.detail["code"] == "FORBIDDEN"


class TestPermissionChecker:

    @pytest.mark.asyncio
    async def test_explicit_permission(self):
        user = make_user(UserRole.SUPPORT, permissions=["wallet:reconcile"])

        assert await require_permission("wallet:reconcile")(user) is user

    @pytest.mark.asyncio
    async def test_admin_bypasses_permissions(self):
        admin = make_user(UserRole.ADMIN)

        assert await require_permission("wallet:reconcile")(admin) is admin

    @pytest.mark.asyncio
    async def test_missing_permission(self):
        with pytest.raises(HTTPException) as exc_info:
            await require_permission("wallet:reconcile")(make_user())

        assert exc_info.value.status_code == 403
        assert "wallet:reconcile" in exc_info.value.detail["message"]
