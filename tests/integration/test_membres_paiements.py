"""Tests d'intégration : membres, paiements et état des cotisations sur base SQLite."""

from __future__ import annotations

import datetime

import pytest
from sqlalchemy.orm import Session

from pantheres_finance.auth.rbac import Role
from pantheres_finance.auth.session import AuthContext, SessionUser
from pantheres_finance.config.loader import AppConfig
from pantheres_finance.db.tables import Paiement
from pantheres_finance.models import (
    AccesRefuseError,
    EtatPaiement,
    IntrouvableError,
    ModePaiement,
    PaiementDejaEnregistreError,
    StatutMembre,
    ValidationMetierError,
)
from pantheres_finance.services.membres import (
    MembreData,
    build_auth_context,
    create_membre,
    delete_membre,
    get_membre,
    list_membres,
    update_membre,
)
from pantheres_finance.services.paiements import (
    PaiementData,
    etats_cotisations,
    list_paiements,
    query_etats_cotisations,
    record_paiement,
)


def _membre_data(**overrides: object) -> MembreData:
    values: dict[str, object] = {
        "nom_prenom": "Karim Tazi",
        "telephone": "0600000000",
        "email": " Karim@Example.com ",
        "statut": StatutMembre.ACTIF,
        "role_joueur": True,
        "role_bureau": False,
        "fonction_bureau": "Président",
        "date_entree": datetime.date(2026, 3, 1),
    }
    values.update(overrides)
    return MembreData(**values)  # type: ignore[arg-type]


def _paiement(membre_id: int, mois: int, montant: float = 100.0, annee: int = 2026) -> PaiementData:
    return PaiementData(
        membre_id=membre_id,
        mois=mois,
        annee=annee,
        montant=montant,
        mode_paiement=ModePaiement.VIREMENT,
        date_paiement=datetime.date(annee, mois, 6),
    )


class TestMembres:
    def test_create_derives_cotisation(self, session: Session, tresorier_ctx: AuthContext, sample_config: AppConfig) -> None:
        membre = create_membre(session, tresorier_ctx, _membre_data(), sample_config)

        assert membre.id is not None
        assert membre.email == "karim@example.com"
        assert membre.cotisation_mensuelle == 100.0
        # La fonction n'est conservée que pour un membre du bureau
        assert membre.fonction_bureau is None

    def test_bureau_rate_takes_priority(self, session: Session, tresorier_ctx: AuthContext, sample_config: AppConfig) -> None:
        membre = create_membre(session, tresorier_ctx, _membre_data(role_bureau=True), sample_config)
        assert membre.cotisation_mensuelle == 150.0
        assert membre.fonction_bureau == "Président"

    def test_update_recomputes_cotisation(self, session: Session, tresorier_ctx: AuthContext, sample_config: AppConfig) -> None:
        membre = create_membre(session, tresorier_ctx, _membre_data(), sample_config)
        updated = update_membre(session, tresorier_ctx, membre.id, _membre_data(role_joueur=False), sample_config)
        assert updated.cotisation_mensuelle == 0.0

    def test_empty_name_rejected(self, session: Session, tresorier_ctx: AuthContext, sample_config: AppConfig) -> None:
        with pytest.raises(ValidationMetierError):
            create_membre(session, tresorier_ctx, _membre_data(nom_prenom="  "), sample_config)

    def test_bureau_cannot_create(self, session: Session, bureau_ctx: AuthContext, sample_config: AppConfig) -> None:
        with pytest.raises(AccesRefuseError):
            create_membre(session, bureau_ctx, _membre_data(), sample_config)

    def test_list_search_and_filter(self, session: Session, bureau_ctx: AuthContext, make_membre) -> None:
        make_membre("Youssef Alami", "youssef@example.com")
        make_membre("Salma Benali", "salma@example.com", statut=StatutMembre.BLESSE)

        assert [m.nom_prenom for m in list_membres(session, bureau_ctx)] == ["Salma Benali", "Youssef Alami"]
        assert [m.nom_prenom for m in list_membres(session, bureau_ctx, search="salma")] == ["Salma Benali"]
        assert [m.nom_prenom for m in list_membres(session, bureau_ctx, statut=StatutMembre.ACTIF)] == ["Youssef Alami"]

    def test_joueur_sees_only_own_record(self, session: Session, make_ctx, make_membre) -> None:
        moi = make_membre("Youssef Alami", "youssef@example.com")
        autre = make_membre("Salma Benali", "salma@example.com")
        ctx = make_ctx(Role.JOUEUR, member_id=moi.id)

        assert get_membre(session, ctx, moi.id).id == moi.id
        with pytest.raises(AccesRefuseError):
            get_membre(session, ctx, autre.id)
        with pytest.raises(AccesRefuseError):
            list_membres(session, ctx)

    def test_delete_cascades_payments(self, session: Session, tresorier_ctx: AuthContext, make_membre) -> None:
        membre = make_membre()
        record_paiement(session, tresorier_ctx, _paiement(membre.id, 3))
        record_paiement(session, tresorier_ctx, _paiement(membre.id, 4))

        delete_membre(session, tresorier_ctx, membre.id)
        assert session.query(Paiement).count() == 0
        with pytest.raises(IntrouvableError):
            delete_membre(session, tresorier_ctx, membre.id)


class TestAuthContext:
    def test_member_resolved_by_email(self, session: Session, make_membre) -> None:
        membre = make_membre("Salma Benali", "salma@example.com", role_bureau=True, fonction_bureau="Manager")
        ctx = build_auth_context(session, SessionUser(user_id="u1", email="SALMA@example.com", role=Role.BUREAU))

        assert ctx.member_id == membre.id
        assert ctx.fonction_bureau == "Manager"
        assert ctx.role == Role.BUREAU

    def test_unknown_email(self, session: Session) -> None:
        ctx = build_auth_context(session, SessionUser(user_id="u1", email="inconnu@example.com", role=Role.JOUEUR))
        assert ctx.member_id is None
        assert ctx.fonction_bureau is None


class TestPaiements:
    def test_record_and_list(self, session: Session, bureau_ctx: AuthContext, make_membre) -> None:
        membre = make_membre()
        paiement = record_paiement(session, bureau_ctx, _paiement(membre.id, 4))

        assert paiement.id is not None
        assert paiement.mode_paiement == "Virement"
        assert [p.mois for p in list_paiements(session, bureau_ctx, membre.id)] == [4]
        assert [p.id for p in membre.paiements] == [paiement.id]

    def test_duplicate_month_rejected(self, session: Session, tresorier_ctx: AuthContext, make_membre) -> None:
        membre = make_membre()
        first = record_paiement(session, tresorier_ctx, _paiement(membre.id, 3, montant=100.0))

        with pytest.raises(PaiementDejaEnregistreError) as exc_info:
            record_paiement(session, tresorier_ctx, _paiement(membre.id, 3, montant=80.0))

        assert str(exc_info.value) == "Ce mois est déjà payé"
        assert exc_info.value.mois == 3
        rows = session.query(Paiement).all()
        assert len(rows) == 1
        assert rows[0].id == first.id
        assert rows[0].montant == 100.0

    def test_same_month_other_year_allowed(self, session: Session, tresorier_ctx: AuthContext, make_membre) -> None:
        membre = make_membre()
        record_paiement(session, tresorier_ctx, _paiement(membre.id, 3, annee=2026))
        record_paiement(session, tresorier_ctx, _paiement(membre.id, 3, annee=2027))
        assert session.query(Paiement).count() == 2

    @pytest.mark.parametrize(("mois", "montant"), [(0, 100.0), (13, 100.0), (5, 0.0), (5, -10.0)])
    def test_invalid_values(self, session: Session, tresorier_ctx: AuthContext, make_membre, mois: int, montant: float) -> None:
        membre = make_membre()
        with pytest.raises(ValidationMetierError):
            record_paiement(session, tresorier_ctx, PaiementData(membre.id, mois, 2026, montant, ModePaiement.ESPECES))

    def test_unknown_member(self, session: Session, tresorier_ctx: AuthContext) -> None:
        with pytest.raises(IntrouvableError):
            record_paiement(session, tresorier_ctx, _paiement(999, 3))

    def test_joueur_cannot_record(self, session: Session, make_ctx, make_membre) -> None:
        membre = make_membre()
        with pytest.raises(AccesRefuseError):
            record_paiement(session, make_ctx(Role.JOUEUR, member_id=membre.id), _paiement(membre.id, 3))


class TestEtatsCotisations:
    def test_states_after_payments(
        self,
        session: Session,
        tresorier_ctx: AuthContext,
        sample_config: AppConfig,
        make_membre,
        today: datetime.date,
    ) -> None:
        a_jour = make_membre("Amine Idrissi", "amine@example.com")
        retard = make_membre("Youssef Alami", "youssef@example.com")
        make_membre("Ancien Joueur", None, statut=StatutMembre.DEPART)
        for mois in (3, 4, 5):
            record_paiement(session, tresorier_ctx, _paiement(a_jour.id, mois))
        record_paiement(session, tresorier_ctx, _paiement(retard.id, 3))
        # Hors saison : ignoré dans le total payé
        record_paiement(session, tresorier_ctx, _paiement(retard.id, 1))

        etats = etats_cotisations(session, tresorier_ctx, sample_config, today)
        assert [e.nom_prenom for e in etats] == ["Amine Idrissi", "Youssef Alami"]

        amine, youssef = etats
        assert amine.etat_paiement == EtatPaiement.A_JOUR
        assert amine.pourcentage_paye == 100
        assert youssef.total_du == 300.0
        assert youssef.total_paye == 100.0
        assert youssef.reste_a_payer == 200.0
        assert youssef.etat_paiement == EtatPaiement.RETARD

        en_retard = query_etats_cotisations(session, sample_config, today, etat=EtatPaiement.RETARD)
        assert [e.membre_id for e in en_retard] == [retard.id]

    def test_joueur_cannot_list_states(self, session: Session, joueur_ctx: AuthContext, sample_config: AppConfig, today: datetime.date) -> None:
        with pytest.raises(AccesRefuseError):
            etats_cotisations(session, joueur_ctx, sample_config, today)
