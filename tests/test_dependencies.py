"""
tests/test_dependencies.py -- Unit tests for the role gate in auth/dependencies.py.

require_admin() reads only request.state.role, so it is exercised here on a
bare Starlette Request without going through authenticate().
"""

from __future__ import annotations

import pytest
from starlette.requests import Request

from auth.dependencies import require_admin
from auth.models import Role
from core.errors import AdminRequired


def _request(**state) -> Request:
    return Request({"type": "http", "method": "GET", "path": "/api/v1/admin/tasks", "headers": [], "state": state})


def test_role_absent_is_rejected() -> None:
    with pytest.raises(AdminRequired) as exc_info:
        require_admin(_request())
    assert exc_info.value.status_code == 403
    assert exc_info.value.message == "Admin access required"


def test_member_is_rejected() -> None:
    with pytest.raises(AdminRequired):
        require_admin(_request(role=Role.MEMBER))


def test_role_string_is_not_trusted() -> None:
    """Only the enum published by authenticate() passes, not a raw claim string."""
    with pytest.raises(AdminRequired):
        require_admin(_request(role="ADMIN"))


def test_administrator_passes() -> None:
    assert require_admin(_request(role=Role.ADMINISTRATOR)) is None
