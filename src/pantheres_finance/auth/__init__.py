"""Contrôle d'accès par rôle."""

from __future__ import annotations

from pantheres_finance.auth.rbac import (
    EXPORT_ALLOWED_FUNCTIONS,
    NAVIGATION_BY_ROLE,
    ROLE_PERMISSIONS,
    Permission,
    Role,
    can_access_page,
    can_export,
    has_permission,
    parse_role,
)
from pantheres_finance.auth.session import AuthContext, SessionUser, decode_session_token, extract_token

__all__ = [
    "EXPORT_ALLOWED_FUNCTIONS",
    "NAVIGATION_BY_ROLE",
    "ROLE_PERMISSIONS",
    "AuthContext",
    "Permission",
    "Role",
    "SessionUser",
    "can_access_page",
    "can_export",
    "decode_session_token",
    "extract_token",
    "has_permission",
    "parse_role",
]
