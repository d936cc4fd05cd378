"""Gardes appelées à l'intérieur de chaque action.

Chaque garde reçoit le contexte d'authentification explicitement et échoue
fermé : contexte absent, rôle non autorisé ou fonction inconnue lèvent une
exception, à traduire une seule fois à la frontière (API ou CLI).
"""

from __future__ import annotations

from collections.abc import Iterable

from pantheres_finance.auth.rbac import Permission, Role, can_export, has_permission
from pantheres_finance.auth.session import AuthContext
from pantheres_finance.models import AccesRefuseError, NonAuthentifieError


def require_role(ctx: AuthContext | None, allowed_roles: Iterable[Role]) -> AuthContext:
    if ctx is None:
        raise NonAuthentifieError("Non authentifié")
    allowed = list(allowed_roles)
    if ctx.role not in allowed:
        raise AccesRefuseError(
            f"Accès refusé. Rôle requis : {' ou '.join(r.value for r in allowed)}. "
            f"Rôle actuel : {ctx.role.value}"
        )
    return ctx


def require_tresorier(ctx: AuthContext | None) -> AuthContext:
    return require_role(ctx, [Role.TRESORIER])


def require_tresorier_or_bureau(ctx: AuthContext | None) -> AuthContext:
    return require_role(ctx, [Role.TRESORIER, Role.BUREAU])


def require_auth(ctx: AuthContext | None) -> AuthContext:
    return require_role(ctx, list(Role))


def require_permission(ctx: AuthContext | None, permission: Permission) -> AuthContext:
    if ctx is None:
        raise NonAuthentifieError("Non authentifié")
    if not has_permission(ctx.role, permission):
        raise AccesRefuseError(f"Accès refusé. Permission requise : {permission.value}")
    return ctx


def require_export(ctx: AuthContext | None) -> AuthContext:
    if ctx is None:
        raise NonAuthentifieError("Non authentifié")
    if not can_export(ctx.role, ctx.fonction_bureau):
        raise AccesRefuseError("Accès refusé. Export réservé au Trésorier et aux fonctions habilitées du bureau.")
    return ctx
