"""Matrice des rôles et permissions, navigation et droit d'export."""

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    TRESORIER = "tresorier"
    BUREAU = "bureau"
    JOUEUR = "joueur"


class Permission(str, Enum):
    # Navigation / pages
    VIEW_DASHBOARD = "view_dashboard"
    VIEW_DASHBOARD_GLOBAL = "view_dashboard_global"
    VIEW_DASHBOARD_PERSONAL = "view_dashboard_personal"
    VIEW_MEMBRES = "view_membres"
    VIEW_TRANSACTIONS = "view_transactions"
    VIEW_BUDGET = "view_budget"
    VIEW_RAPPORTS = "view_rapports"
    VIEW_PARAMETRES = "view_parametres"
    VIEW_MESSAGES = "view_messages"

    # Actions CRUD
    CREATE_TRANSACTION = "create_transaction"
    EDIT_TRANSACTION = "edit_transaction"
    DELETE_TRANSACTION = "delete_transaction"
    CREATE_MEMBRE = "create_membre"
    EDIT_MEMBRE = "edit_membre"
    DELETE_MEMBRE = "delete_membre"
    EDIT_BUDGET = "edit_budget"
    ADD_PAIEMENT = "add_paiement"

    # Exports
    EXPORT_DATA = "export_data"

    # Messages
    SEND_MESSAGE = "send_message"
    REPLY_MESSAGE = "reply_message"


# Fonctions du bureau autorisées à exporter
EXPORT_ALLOWED_FUNCTIONS = ("Président", "Manager", "Secrétaire Général")

DASHBOARD_ROOT = "/dashboard"

_BUREAU_PERMISSIONS = frozenset(
    {
        Permission.VIEW_DASHBOARD,
        Permission.VIEW_DASHBOARD_GLOBAL,
        Permission.VIEW_MEMBRES,
        Permission.VIEW_TRANSACTIONS,
        Permission.VIEW_BUDGET,
        Permission.VIEW_RAPPORTS,
        Permission.VIEW_MESSAGES,
        Permission.ADD_PAIEMENT,
        Permission.SEND_MESSAGE,
    }
)

ROLE_PERMISSIONS: dict[Role, frozenset[Permission]] = {
    # Le trésorier a toutes les permissions sauf la vue personnelle joueur
    Role.TRESORIER: frozenset(Permission) - {Permission.VIEW_DASHBOARD_PERSONAL},
    Role.BUREAU: _BUREAU_PERMISSIONS,
    Role.JOUEUR: frozenset(
        {
            Permission.VIEW_DASHBOARD,
            Permission.VIEW_DASHBOARD_PERSONAL,
            Permission.VIEW_MESSAGES,
            Permission.SEND_MESSAGE,
        }
    ),
}

NAVIGATION_BY_ROLE: dict[Role, tuple[str, ...]] = {
    Role.TRESORIER: (
        "/dashboard",
        "/dashboard/membres",
        "/dashboard/transactions",
        "/dashboard/budget",
        "/dashboard/rapports",
        "/dashboard/messages",
        "/dashboard/parametres",
    ),
    Role.BUREAU: (
        "/dashboard",
        "/dashboard/membres",
        "/dashboard/transactions",
        "/dashboard/budget",
        "/dashboard/rapports",
        "/dashboard/messages",
    ),
    Role.JOUEUR: (
        "/dashboard",
        "/dashboard/messages",
    ),
}

for _table in (ROLE_PERMISSIONS, NAVIGATION_BY_ROLE):
    _missing = set(Role) - set(_table)
    if _missing:
        raise RuntimeError(f"Rôles absents de la matrice RBAC : {sorted(r.value for r in _missing)}")


def parse_role(value: object) -> Role | None:
    """Convertit une valeur de métadonnée en Role, None si inconnue."""
    if isinstance(value, Role):
        return value
    if not isinstance(value, str):
        return None
    try:
        return Role(value.strip().lower())
    except ValueError:
        return None


def has_permission(role: Role | None, permission: Permission) -> bool:
    if role is None:
        return False
    return permission in ROLE_PERMISSIONS[role]


def can_access_page(role: Role | None, path: str) -> bool:
    """Vérifie qu'un chemin est navigable pour le rôle.

    Un chemin est autorisé s'il est égal à une section autorisée ou en est un
    sous-chemin. La racine ``/dashboard`` n'autorise qu'elle-même.
    """
    if role is None:
        return False
    normalized = path.rstrip("/") or "/"
    for allowed in NAVIGATION_BY_ROLE[role]:
        if normalized == allowed:
            return True
        if allowed != DASHBOARD_ROOT and normalized.startswith(allowed + "/"):
            return True
    return False


def can_export(role: Role | None, fonction_bureau: str | None = None) -> bool:
    """Trésorier toujours ; bureau selon sa fonction ; joueur jamais."""
    if role == Role.TRESORIER:
        return True
    if role == Role.BUREAU and fonction_bureau:
        return fonction_bureau.strip() in EXPORT_ALLOWED_FUNCTIONS
    return False
