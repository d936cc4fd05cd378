"""Génération des alertes du tableau de bord."""

from __future__ import annotations

import logging

from pantheres_finance.config.loader import AppConfig
from pantheres_finance.models import Alerte, KpisFinanciers, LigneBudgetRealisee, TypeTransaction

logger = logging.getLogger(__name__)

PRIORITE = {"critique": 0, "warning": 1, "info": 2}


class AlertChecker:
    """Contrôles des KPIs et du budget produisant des alertes triées par priorité."""

    @staticmethod
    def check(
        kpis: KpisFinanciers,
        lignes_budget: list[LigneBudgetRealisee],
        config: AppConfig,
    ) -> list[Alerte]:
        alertes: list[Alerte] = []
        alertes.extend(AlertChecker._check_recouvrement(kpis, config))
        alertes.extend(AlertChecker._check_solde(kpis, config))
        alertes.extend(AlertChecker._check_budget(lignes_budget, config))

        logger.debug("%d alertes générées", len(alertes))
        return sorted(alertes, key=lambda a: PRIORITE[a.type])

    @staticmethod
    def _check_recouvrement(kpis: KpisFinanciers, config: AppConfig) -> list[Alerte]:
        taux = kpis.taux_recouvrement
        seuils = config.alertes

        if taux < seuils.recouvrement_critique:
            return [
                Alerte(
                    id="recouvrement-critique",
                    type="critique",
                    categorie="recouvrement",
                    titre="Taux de recouvrement très faible",
                    description=(
                        f"Seulement {taux:.0f}% des cotisations ont été collectées. "
                        "Relance urgente nécessaire."
                    ),
                    lien="/dashboard/membres",
                    libelle_action="Voir les membres en retard",
                )
            ]
        if taux < seuils.recouvrement_warning:
            return [
                Alerte(
                    id="recouvrement-warning",
                    type="warning",
                    categorie="recouvrement",
                    titre="Taux de recouvrement à surveiller",
                    description=f"{taux:.0f}% des cotisations collectées. Objectif : 90%+",
                    lien="/dashboard/membres",
                    libelle_action="Consulter les paiements",
                )
            ]
        return []

    @staticmethod
    def _check_solde(kpis: KpisFinanciers, config: AppConfig) -> list[Alerte]:
        solde = kpis.solde_actuel
        seuil = kpis.total_recettes * config.alertes.solde_ratio

        if solde <= 0:
            return [
                Alerte(
                    id="solde-negatif",
                    type="critique",
                    categorie="solde",
                    titre="Solde négatif",
                    description=f"Le solde est négatif : {solde:.2f} {config.currency}. Action immédiate requise.",
                    lien="/dashboard/budget",
                    libelle_action="Consulter le budget",
                )
            ]
        if solde < seuil:
            return [
                Alerte(
                    id="solde-faible",
                    type="warning",
                    categorie="solde",
                    titre="Solde faible",
                    description=(
                        f"Solde actuel : {solde:.2f} {config.currency} "
                        f"(< {config.alertes.solde_ratio * 100:.0f}% des recettes totales)"
                    ),
                    lien="/dashboard/transactions",
                    libelle_action="Voir les transactions",
                )
            ]
        return []

    @staticmethod
    def _check_budget(lignes: list[LigneBudgetRealisee], config: AppConfig) -> list[Alerte]:
        seuils = config.alertes
        depenses = [b for b in lignes if b.type == TypeTransaction.DEPENSE]
        alertes: list[Alerte] = []

        depassements = sorted(
            (b for b in depenses if b.pourcentage > 100),
            key=lambda b: b.ecart,
            reverse=True,
        )
        for index, dep in enumerate(depassements[: seuils.max_depassements]):
            alertes.append(
                Alerte(
                    id=f"depassement-{index}",
                    type="critique" if dep.pourcentage > seuils.budget_critique else "warning",
                    categorie="budget",
                    titre=f"Dépassement : {dep.categorie}",
                    description=(
                        f"{dep.pourcentage:.0f}% du budget consommé "
                        f"(+{dep.ecart:.0f} {config.currency})"
                    ),
                    lien="/dashboard/budget",
                    libelle_action="Consulter le budget",
                )
            )

        proches = sorted(
            (b for b in depenses if seuils.budget_attention < b.pourcentage <= 100),
            key=lambda b: b.pourcentage,
            reverse=True,
        )
        if proches:
            proche = proches[0]
            alertes.append(
                Alerte(
                    id="proche-depassement",
                    type="warning",
                    categorie="budget",
                    titre=f"Attention : {proche.categorie}",
                    description=(
                        f"{proche.pourcentage:.0f}% du budget consommé "
                        f"({proche.realise:.0f}/{proche.budget_alloue:.0f} {config.currency})"
                    ),
                    lien="/dashboard/budget",
                    libelle_action="Surveiller le budget",
                )
            )

        return alertes
