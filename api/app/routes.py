"""Endpoints du tableau de bord : membres, paiements, transactions, budget, rapports, paramètres."""

from __future__ import annotations

import datetime
import logging

from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from pantheres_finance.auth.guard import require_permission, require_tresorier
from pantheres_finance.auth.rbac import NAVIGATION_BY_ROLE, Permission, Role, can_export, has_permission
from pantheres_finance.auth.session import AuthContext
from pantheres_finance.config.loader import AppConfig
from pantheres_finance.engine.kpis import running_balances
from pantheres_finance.models import EtatPaiement, StatutMembre, TypeTransaction
from pantheres_finance.notifications.client import EmailClient
from pantheres_finance.notifications.envois import envoyer_confirmation, envoyer_relance, relancer_membres_en_retard
from pantheres_finance.services import budget as budget_service
from pantheres_finance.services import membres as membres_service
from pantheres_finance.services import paiements as paiements_service
from pantheres_finance.services import rapports as rapports_service
from pantheres_finance.services import transactions as transactions_service
from pantheres_finance.services.dashboard import dashboard_global, dashboard_personnel

from .deps import get_auth_context, get_config, get_email_client, get_session, get_today
from .schemas import BudgetIn, MembreIn, PaiementIn, TransactionIn
from .serializers import (
    serialize_dashboard_global,
    serialize_dashboard_personnel,
    serialize_envoi,
    serialize_etat,
    serialize_ligne_budget,
    serialize_membre,
    serialize_paiement,
    serialize_rapport_envoi,
    serialize_transaction,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _attachment(content: bytes, filename: str, media_type: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/api/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/login")
async def login(redirect_to: str = Query("/dashboard", alias="redirectTo")) -> JSONResponse:
    """Point de retour des redirections : l'authentification est déléguée au fournisseur d'identité."""
    return JSONResponse(status_code=401, content={"detail": "Authentification requise", "redirectTo": redirect_to})


# --- Tableau de bord ---


@router.get("/dashboard")
def dashboard(
    ctx: AuthContext = Depends(get_auth_context),
    session: Session = Depends(get_session),
    config: AppConfig = Depends(get_config),
    today: datetime.date = Depends(get_today),
) -> dict[str, object]:
    """Vue globale pour le trésorier et le bureau, espace personnel pour le joueur."""
    navigation = list(NAVIGATION_BY_ROLE[ctx.role])
    if has_permission(ctx.role, Permission.VIEW_DASHBOARD_GLOBAL):
        data = serialize_dashboard_global(dashboard_global(session, ctx, config, today))
    else:
        data = serialize_dashboard_personnel(dashboard_personnel(session, ctx, config, today))
    data["role"] = ctx.role.value
    data["navigation"] = navigation
    data["can_export"] = can_export(ctx.role, ctx.fonction_bureau)
    return data


# --- Membres ---


@router.get("/dashboard/membres")
def list_membres(
    search: str | None = None,
    statut: StatutMembre | None = None,
    ctx: AuthContext = Depends(get_auth_context),
    session: Session = Depends(get_session),
) -> list[dict[str, object]]:
    return [serialize_membre(m) for m in membres_service.list_membres(session, ctx, search=search, statut=statut)]


@router.post("/dashboard/membres", status_code=201)
def create_membre(
    body: MembreIn,
    ctx: AuthContext = Depends(get_auth_context),
    session: Session = Depends(get_session),
    config: AppConfig = Depends(get_config),
    today: datetime.date = Depends(get_today),
) -> dict[str, object]:
    return serialize_membre(membres_service.create_membre(session, ctx, body.to_data(today), config))


@router.get("/dashboard/membres/cotisations")
def list_cotisations(
    etat: EtatPaiement | None = None,
    ctx: AuthContext = Depends(get_auth_context),
    session: Session = Depends(get_session),
    config: AppConfig = Depends(get_config),
    today: datetime.date = Depends(get_today),
) -> list[dict[str, object]]:
    etats = paiements_service.etats_cotisations(session, ctx, config, today, etat=etat)
    return [serialize_etat(e) for e in etats]


@router.post("/dashboard/membres/relances")
def relancer_retards(
    ctx: AuthContext = Depends(get_auth_context),
    session: Session = Depends(get_session),
    config: AppConfig = Depends(get_config),
    client: EmailClient = Depends(get_email_client),
    today: datetime.date = Depends(get_today),
) -> dict[str, object]:
    require_tresorier(ctx)
    return serialize_rapport_envoi(relancer_membres_en_retard(session, client, config, today))


@router.get("/dashboard/membres/{membre_id}")
def get_membre(
    membre_id: int,
    ctx: AuthContext = Depends(get_auth_context),
    session: Session = Depends(get_session),
    config: AppConfig = Depends(get_config),
    today: datetime.date = Depends(get_today),
) -> dict[str, object]:
    membre = membres_service.get_membre(session, ctx, membre_id)
    data = serialize_membre(membre)
    data["cotisation"] = serialize_etat(paiements_service.etat_cotisation_membre(membre, config, today))
    return data


@router.put("/dashboard/membres/{membre_id}")
def update_membre(
    membre_id: int,
    body: MembreIn,
    ctx: AuthContext = Depends(get_auth_context),
    session: Session = Depends(get_session),
    config: AppConfig = Depends(get_config),
    today: datetime.date = Depends(get_today),
) -> dict[str, object]:
    return serialize_membre(membres_service.update_membre(session, ctx, membre_id, body.to_data(today), config))


@router.delete("/dashboard/membres/{membre_id}", status_code=204)
def delete_membre(
    membre_id: int,
    ctx: AuthContext = Depends(get_auth_context),
    session: Session = Depends(get_session),
) -> Response:
    membres_service.delete_membre(session, ctx, membre_id)
    return Response(status_code=204)


@router.post("/dashboard/membres/{membre_id}/relance")
def relancer_membre(
    membre_id: int,
    ctx: AuthContext = Depends(get_auth_context),
    session: Session = Depends(get_session),
    config: AppConfig = Depends(get_config),
    client: EmailClient = Depends(get_email_client),
    today: datetime.date = Depends(get_today),
) -> dict[str, object]:
    require_tresorier(ctx)
    return serialize_envoi(envoyer_relance(session, client, config, membre_id, today))


# --- Paiements ---


@router.get("/dashboard/membres/{membre_id}/paiements")
def list_paiements(
    membre_id: int,
    annee: int | None = None,
    ctx: AuthContext = Depends(get_auth_context),
    session: Session = Depends(get_session),
) -> list[dict[str, object]]:
    return [serialize_paiement(p) for p in paiements_service.list_paiements(session, ctx, membre_id, annee)]


@router.post("/dashboard/membres/{membre_id}/paiements", status_code=201)
def record_paiement(
    membre_id: int,
    body: PaiementIn,
    ctx: AuthContext = Depends(get_auth_context),
    session: Session = Depends(get_session),
    config: AppConfig = Depends(get_config),
    client: EmailClient = Depends(get_email_client),
    today: datetime.date = Depends(get_today),
) -> dict[str, object]:
    paiement = paiements_service.record_paiement(session, ctx, body.to_data(membre_id))
    data = serialize_paiement(paiement)
    if body.envoyer_confirmation:
        data["confirmation"] = serialize_envoi(
            envoyer_confirmation(session, client, config, membre_id, paiement.id, today)
        )
    return data


@router.get("/dashboard/membres/{membre_id}/paiements/{paiement_id}/recu")
def recu_paiement(
    membre_id: int,
    paiement_id: int,
    ctx: AuthContext = Depends(get_auth_context),
    session: Session = Depends(get_session),
    config: AppConfig = Depends(get_config),
    today: datetime.date = Depends(get_today),
) -> Response:
    filename, content = rapports_service.recu_paiement(session, ctx, config, membre_id, paiement_id, today)
    return _attachment(content, filename, "application/pdf")


# --- Transactions ---


@router.get("/dashboard/transactions")
def list_transactions(
    type: TypeTransaction | None = None,  # noqa: A002
    categorie: str | None = None,
    debut: datetime.date | None = None,
    fin: datetime.date | None = None,
    ctx: AuthContext = Depends(get_auth_context),
    session: Session = Depends(get_session),
) -> list[dict[str, object]]:
    """Transactions filtrées ; le solde progressif est calculé sur tout le journal."""
    transactions = transactions_service.list_transactions(
        session, ctx, type_transaction=type, categorie=categorie, debut=debut, fin=fin
    )
    soldes = running_balances(transactions_service.query_transactions(session))
    return [serialize_transaction(t, soldes.get(t.id)) for t in transactions]


@router.post("/dashboard/transactions", status_code=201)
def create_transaction(
    body: TransactionIn,
    ctx: AuthContext = Depends(get_auth_context),
    session: Session = Depends(get_session),
) -> dict[str, object]:
    return serialize_transaction(transactions_service.create_transaction(session, ctx, body.to_data()))


@router.get("/dashboard/transactions/{transaction_id}")
def get_transaction(
    transaction_id: int,
    ctx: AuthContext = Depends(get_auth_context),
    session: Session = Depends(get_session),
) -> dict[str, object]:
    require_permission(ctx, Permission.VIEW_TRANSACTIONS)
    return serialize_transaction(transactions_service.load_transaction(session, transaction_id))


@router.put("/dashboard/transactions/{transaction_id}")
def update_transaction(
    transaction_id: int,
    body: TransactionIn,
    ctx: AuthContext = Depends(get_auth_context),
    session: Session = Depends(get_session),
) -> dict[str, object]:
    return serialize_transaction(transactions_service.update_transaction(session, ctx, transaction_id, body.to_data()))


@router.delete("/dashboard/transactions/{transaction_id}", status_code=204)
def delete_transaction(
    transaction_id: int,
    ctx: AuthContext = Depends(get_auth_context),
    session: Session = Depends(get_session),
) -> Response:
    transactions_service.delete_transaction(session, ctx, transaction_id)
    return Response(status_code=204)


# --- Budget ---


@router.get("/dashboard/budget")
def budget(
    debut: datetime.date | None = None,
    fin: datetime.date | None = None,
    ctx: AuthContext = Depends(get_auth_context),
    session: Session = Depends(get_session),
    config: AppConfig = Depends(get_config),
) -> list[dict[str, object]]:
    lignes = budget_service.budget_with_realise(
        session,
        ctx,
        debut or config.saison.start_date,
        fin or config.saison.end_date,
        chevauchement=debut is None and fin is None,
    )
    return [serialize_ligne_budget(b) for b in lignes]


@router.post("/dashboard/budget", status_code=201)
def create_budget_ligne(
    body: BudgetIn,
    ctx: AuthContext = Depends(get_auth_context),
    session: Session = Depends(get_session),
) -> dict[str, object]:
    ligne = budget_service.create_budget_ligne(session, ctx, body.to_data())
    return {"id": ligne.id, "categorie": ligne.categorie, "type": ligne.type, "budget_alloue": ligne.budget_alloue}


@router.put("/dashboard/budget/{ligne_id}")
def update_budget_ligne(
    ligne_id: int,
    body: BudgetIn,
    ctx: AuthContext = Depends(get_auth_context),
    session: Session = Depends(get_session),
) -> dict[str, object]:
    ligne = budget_service.update_budget_ligne(session, ctx, ligne_id, body.to_data())
    return {"id": ligne.id, "categorie": ligne.categorie, "type": ligne.type, "budget_alloue": ligne.budget_alloue}


@router.delete("/dashboard/budget/{ligne_id}", status_code=204)
def delete_budget_ligne(
    ligne_id: int,
    ctx: AuthContext = Depends(get_auth_context),
    session: Session = Depends(get_session),
) -> Response:
    budget_service.delete_budget_ligne(session, ctx, ligne_id)
    return Response(status_code=204)


# --- Rapports et exports ---


@router.get("/dashboard/rapports/export/{dataset}")
def export_dataset(
    dataset: str,
    format: rapports_service.FormatExport = Query(rapports_service.FormatExport.CSV),  # noqa: A002
    debut: datetime.date | None = None,
    fin: datetime.date | None = None,
    ctx: AuthContext = Depends(get_auth_context),
    session: Session = Depends(get_session),
    config: AppConfig = Depends(get_config),
    today: datetime.date = Depends(get_today),
) -> Response:
    filename, content = rapports_service.export_dataset(
        session, ctx, config, dataset, format, today, debut=debut, fin=fin
    )
    return _attachment(content, filename, rapports_service.MEDIA_TYPES[format])


@router.get("/dashboard/rapports/rapport-financier")
def rapport_financier(
    debut: datetime.date | None = None,
    fin: datetime.date | None = None,
    ctx: AuthContext = Depends(get_auth_context),
    session: Session = Depends(get_session),
    config: AppConfig = Depends(get_config),
    today: datetime.date = Depends(get_today),
) -> Response:
    filename, content = rapports_service.rapport_financier(session, ctx, config, today, debut, fin)
    return _attachment(content, filename, "application/pdf")


# --- Paramètres ---


@router.get("/dashboard/parametres")
def parametres(
    request: Request,
    ctx: AuthContext = Depends(get_auth_context),
    config: AppConfig = Depends(get_config),
) -> dict[str, object]:
    require_permission(ctx, Permission.VIEW_PARAMETRES)
    return {
        "club": {"nom": config.club_name, "application": config.app_name, "devise": config.currency},
        "saison": {
            "nom": config.saison.name,
            "debut": config.saison.start_date.isoformat(),
            "fin": config.saison.end_date.isoformat(),
            "duree_mois": config.saison.duration_months,
            "jour_cotisation": config.saison.jour_cotisation,
        },
        "cotisations": {
            "montant_joueur": config.cotisations.montant_joueur,
            "montant_bureau": config.cotisations.montant_bureau,
        },
        "roles": [r.value for r in Role],
        "emails_actifs": bool(request.app.state.email_client.api_key),
    }
