"""Conversion des objets métier et des lignes de base vers les structures JSON de l'API."""

from __future__ import annotations

import datetime

from pantheres_finance.db.tables import Membre, Message, Paiement, Transaction
from pantheres_finance.messaging.feed import MessageEvent
from pantheres_finance.models import (
    Alerte,
    EnvoiResultat,
    EtatCotisation,
    KpisFinanciers,
    LigneBudgetRealisee,
    RapportEnvoi,
)
from pantheres_finance.services.dashboard import DashboardGlobal, DashboardPersonnel


def _iso(value: datetime.date | datetime.datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def serialize_membre(membre: Membre) -> dict[str, object]:
    return {
        "id": membre.id,
        "nom_prenom": membre.nom_prenom,
        "telephone": membre.telephone,
        "email": membre.email,
        "statut": membre.statut,
        "role_joueur": membre.role_joueur,
        "role_bureau": membre.role_bureau,
        "fonction_bureau": membre.fonction_bureau,
        "cotisation_mensuelle": membre.cotisation_mensuelle,
        "date_entree": _iso(membre.date_entree),
    }


def serialize_paiement(paiement: Paiement) -> dict[str, object]:
    return {
        "id": paiement.id,
        "membre_id": paiement.membre_id,
        "mois": paiement.mois,
        "annee": paiement.annee,
        "montant": paiement.montant,
        "mode_paiement": paiement.mode_paiement,
        "date_paiement": _iso(paiement.date_paiement),
    }


def serialize_transaction(transaction: Transaction, solde: float | None = None) -> dict[str, object]:
    data: dict[str, object] = {
        "id": transaction.id,
        "date": _iso(transaction.date),
        "type": transaction.type,
        "categorie": transaction.categorie,
        "sous_categorie": transaction.sous_categorie,
        "tiers": transaction.tiers,
        "membre_id": transaction.membre_id,
        "libelle": transaction.libelle,
        "entree": transaction.entree,
        "sortie": transaction.sortie,
        "mode_paiement": transaction.mode_paiement,
    }
    if solde is not None:
        data["solde"] = round(solde, 2)
    return data


def serialize_etat(etat: EtatCotisation) -> dict[str, object]:
    return {
        "membre_id": etat.membre_id,
        "nom_prenom": etat.nom_prenom,
        "email": etat.email,
        "cotisation_mensuelle": etat.cotisation_mensuelle,
        "mois_ecoules": etat.mois_ecoules,
        "total_du": etat.total_du,
        "total_paye": etat.total_paye,
        "reste_a_payer": etat.reste_a_payer,
        "pourcentage_paye": etat.pourcentage_paye,
        "etat_paiement": etat.etat_paiement.value,
    }


def serialize_ligne_budget(ligne: LigneBudgetRealisee) -> dict[str, object]:
    return {
        "id": ligne.id,
        "categorie": ligne.categorie,
        "type": ligne.type.value,
        "budget_alloue": ligne.budget_alloue,
        "periode_debut": _iso(ligne.periode_debut),
        "periode_fin": _iso(ligne.periode_fin),
        "realise": ligne.realise,
        "ecart": ligne.ecart,
        "pourcentage": round(ligne.pourcentage, 2),
        "statut": ligne.statut.value,
        "ecart_nature": ligne.ecart_nature,
    }


def serialize_kpis(kpis: KpisFinanciers) -> dict[str, object]:
    return {
        "total_recettes": kpis.total_recettes,
        "total_depenses": kpis.total_depenses,
        "solde_actuel": kpis.solde_actuel,
        "taux_recouvrement": round(kpis.taux_recouvrement, 2),
        "membres_actifs": kpis.membres_actifs,
        "membres_en_retard": kpis.membres_en_retard,
    }


def serialize_alerte(alerte: Alerte) -> dict[str, object]:
    return {
        "id": alerte.id,
        "type": alerte.type,
        "categorie": alerte.categorie,
        "titre": alerte.titre,
        "description": alerte.description,
        "lien": alerte.lien,
        "action": alerte.libelle_action,
    }


def serialize_dashboard_global(vue: DashboardGlobal) -> dict[str, object]:
    return {
        "vue": "globale",
        "kpis": serialize_kpis(vue.kpis),
        "alertes": [serialize_alerte(a) for a in vue.alertes],
        "transactions_recentes": [serialize_transaction(t) for t in vue.transactions_recentes],
        "cotisations": [serialize_etat(e) for e in vue.cotisations],
        "budget": [serialize_ligne_budget(b) for b in vue.budget],
    }


def serialize_dashboard_personnel(vue: DashboardPersonnel) -> dict[str, object]:
    return {
        "vue": "personnelle",
        "membre": serialize_membre(vue.membre),
        "cotisation": serialize_etat(vue.cotisation),
        "paiements": [serialize_paiement(p) for p in vue.paiements],
    }


def serialize_message(message: Message) -> dict[str, object]:
    return {
        "id": message.id,
        "parent_id": message.parent_id,
        "sujet": message.sujet,
        "contenu": message.contenu,
        "type_message": message.type_message,
        "statut": message.statut,
        "is_from_tresorier": message.is_from_tresorier,
        "created_at": _iso(message.created_at),
        "auteur": (
            {
                "id": message.auteur.id,
                "nom_prenom": message.auteur.nom_prenom,
                "fonction_bureau": message.auteur.fonction_bureau,
            }
            if message.auteur is not None
            else None
        ),
    }


def serialize_thread(message: Message) -> dict[str, object]:
    data = serialize_message(message)
    data["reponses"] = [serialize_message(r) for r in message.reponses]
    return data


def serialize_event(event: MessageEvent) -> dict[str, object]:
    return {
        "id": event.id,
        "parent_id": event.parent_id,
        "thread_id": event.thread_id,
        "membre_id": event.membre_id,
        "auteur": event.auteur,
        "sujet": event.sujet,
        "contenu": event.contenu,
        "type_message": event.type_message,
        "statut": event.statut,
        "is_from_tresorier": event.is_from_tresorier,
        "created_at": _iso(event.created_at),
    }


def serialize_envoi(resultat: EnvoiResultat) -> dict[str, object]:
    return {"success": resultat.success, "message_id": resultat.message_id, "error": resultat.error}


def serialize_rapport_envoi(rapport: RapportEnvoi) -> dict[str, object]:
    return {
        "total": rapport.total,
        "succes": len(rapport.envoyes),
        "echecs": len(rapport.erreurs),
        "details": [{"email": email, "status": "sent"} for email in rapport.envoyes]
        + [{"email": email, "status": "failed", "error": error} for email, error in rapport.erreurs],
    }
