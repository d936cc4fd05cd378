"""Envois d'emails métier et journalisation dans notifications_log.

Chaque envoi, réussi ou non, laisse une ligne dans le journal. Les envois
groupés continuent au destinataire suivant en cas d'échec et renvoient le
bilan complet.
"""

from __future__ import annotations

import datetime
import logging

from sqlalchemy.orm import Session

from pantheres_finance.config.loader import AppConfig
from pantheres_finance.db.tables import Membre, NotificationLog
from pantheres_finance.models import (
    MOIS_FR,
    EnvoiResultat,
    EtatPaiement,
    RapportEnvoi,
    StatutMembre,
    TypeTransaction,
)
from pantheres_finance.notifications import templates
from pantheres_finance.notifications.client import EmailClient
from pantheres_finance.services.dashboard import query_kpis
from pantheres_finance.services.membres import load_membre
from pantheres_finance.services.paiements import etat_cotisation_membre, load_paiement, query_etats_cotisations
from pantheres_finance.services.transactions import query_transactions

logger = logging.getLogger(__name__)


def _journaliser(
    session: Session,
    contenu: templates.EmailContenu,
    email: str,
    destinataire_id: int | None,
    resultat: EnvoiResultat,
) -> None:
    session.add(
        NotificationLog(
            type=contenu.type,
            destinataire_email=email,
            destinataire_id=destinataire_id,
            objet=contenu.objet,
            corps=contenu.resume if resultat.success else None,
            statut="success" if resultat.success else "failed",
            error_message=resultat.error,
        )
    )
    session.commit()


def _envoyer(
    session: Session,
    client: EmailClient,
    contenu: templates.EmailContenu,
    email: str | None,
    destinataire_id: int | None,
) -> EnvoiResultat:
    if not email:
        resultat = EnvoiResultat(success=False, error="Adresse email du destinataire manquante")
    else:
        resultat = client.send(email, contenu.objet, contenu.html)
    _journaliser(session, contenu, email or "", destinataire_id, resultat)
    if not resultat.success:
        logger.warning("Échec %s pour %s : %s", contenu.type, email or f"membre #{destinataire_id}", resultat.error)
    return resultat


def mois_nom(mois: int) -> str:
    return MOIS_FR[mois - 1]


def envoyer_relance(
    session: Session,
    client: EmailClient,
    config: AppConfig,
    membre_id: int,
    today: datetime.date,
) -> EnvoiResultat:
    """Relance de cotisation pour le mois courant."""
    membre = load_membre(session, membre_id)
    contenu = templates.relance_cotisation(
        club=config.club_name,
        nom_membre=membre.nom_prenom,
        montant=membre.cotisation_mensuelle,
        mois=mois_nom(today.month),
        jour_limite=config.saison.jour_cotisation,
        currency=config.currency,
    )
    return _envoyer(session, client, contenu, membre.email, membre.id)


def envoyer_confirmation(
    session: Session,
    client: EmailClient,
    config: AppConfig,
    membre_id: int,
    paiement_id: int,
    today: datetime.date,
) -> EnvoiResultat:
    """Confirmation d'un paiement avec le cumul de la saison."""
    membre = load_membre(session, membre_id)
    paiement = load_paiement(session, membre_id, paiement_id)
    etat = etat_cotisation_membre(membre, config, today)
    contenu = templates.confirmation_paiement(
        club=config.club_name,
        saison=config.saison.name,
        nom_membre=membre.nom_prenom,
        montant=paiement.montant,
        mois=mois_nom(paiement.mois),
        total_paye=etat.total_paye,
        reste_a_payer=etat.reste_a_payer,
        currency=config.currency,
    )
    return _envoyer(session, client, contenu, membre.email, membre.id)


def envoyer_rapport_mensuel(
    session: Session,
    client: EmailClient,
    config: AppConfig,
    today: datetime.date,
) -> RapportEnvoi:
    """Envoie le rapport financier du mois à chaque membre actif du bureau."""
    destinataires = (
        session.query(Membre)
        .filter(Membre.role_bureau.is_(True), Membre.statut == StatutMembre.ACTIF.value)
        .order_by(Membre.nom_prenom)
        .all()
    )
    if not destinataires:
        logger.warning("Rapport mensuel : aucun membre du bureau trouvé")
        return RapportEnvoi(total=0, envoyes=[], erreurs=[])

    kpis, _ = query_kpis(session, config, today)
    debut_mois = today.replace(day=1)
    depenses_mois = sum(
        t.sortie
        for t in query_transactions(session, type_transaction=TypeTransaction.DEPENSE, debut=debut_mois, fin=today)
    )
    contenu = templates.rapport_mensuel(
        club=config.club_name,
        mois=f"{mois_nom(today.month)} {today.year}",
        kpis=kpis,
        depenses_mois=depenses_mois,
        currency=config.currency,
    )

    envoyes: list[str] = []
    erreurs: list[tuple[str, str]] = []
    for membre in destinataires:
        resultat = _envoyer(session, client, contenu, membre.email, membre.id)
        if resultat.success:
            envoyes.append(membre.email)
        else:
            erreurs.append((membre.email or membre.nom_prenom, resultat.error or "Erreur inconnue"))

    logger.info("Rapport mensuel : %d/%d envoyés", len(envoyes), len(destinataires))
    return RapportEnvoi(total=len(destinataires), envoyes=envoyes, erreurs=erreurs)


def relancer_membres_en_retard(
    session: Session,
    client: EmailClient,
    config: AppConfig,
    today: datetime.date,
) -> RapportEnvoi:
    """Relance chaque membre en retard ayant un reste à payer."""
    en_retard = [
        e
        for e in query_etats_cotisations(session, config, today, etat=EtatPaiement.RETARD)
        if e.reste_a_payer > 0
    ]

    envoyes: list[str] = []
    erreurs: list[tuple[str, str]] = []
    for etat in en_retard:
        resultat = envoyer_relance(session, client, config, etat.membre_id, today)
        if resultat.success:
            envoyes.append(etat.email or etat.nom_prenom)
        else:
            erreurs.append((etat.email or etat.nom_prenom, resultat.error or "Erreur inconnue"))

    logger.info("Relances : %d envoyées, %d en échec sur %d membres en retard", len(envoyes), len(erreurs), len(en_retard))
    return RapportEnvoi(total=len(en_retard), envoyes=envoyes, erreurs=erreurs)
