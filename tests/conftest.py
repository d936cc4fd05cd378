import datetime
from collections.abc import Iterator
from pathlib import Path

import pytest
from sqlalchemy.orm import Session

from pantheres_finance.auth.rbac import Role
from pantheres_finance.auth.session import AuthContext
from pantheres_finance.config.loader import AlertesConfig, AppConfig, CotisationsConfig, EmailConfig, SaisonConfig
from pantheres_finance.db.database import create_db_engine, init_db, make_session_factory
from pantheres_finance.db.tables import Membre
from pantheres_finance.models import StatutMembre

# Date de référence des tests : 3e mois de la saison 2026 (mars → mai)
TODAY = datetime.date(2026, 5, 10)


@pytest.fixture
def fixtures_dir() -> Path:
    """Chemin vers le répertoire de fixtures."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def today() -> datetime.date:
    return TODAY


@pytest.fixture
def sample_config() -> AppConfig:
    """AppConfig valide minimale pour les tests."""
    return AppConfig(
        club_name="Panthères de Fès",
        app_name="Panthères Finance",
        currency="MAD",
        saison=SaisonConfig(
            name="2026",
            start_date=datetime.date(2026, 3, 5),
            end_date=datetime.date(2026, 7, 31),
            duration_months=5,
            jour_cotisation=5,
        ),
        cotisations=CotisationsConfig(montant_joueur=100.0, montant_bureau=150.0),
        email=EmailConfig(
            sender="Panthères de Fès <onboarding@resend.dev>",
            api_url="https://api.example.test/emails",
            tresorier_email="tresorier@pantheres.com",
        ),
        alertes=AlertesConfig(),
    )


@pytest.fixture
def session() -> Iterator[Session]:
    """Session sur une base SQLite en mémoire, schéma créé."""
    engine = create_db_engine("sqlite://")
    init_db(engine)
    factory = make_session_factory(engine)
    with factory() as s:
        yield s
    engine.dispose()


@pytest.fixture
def make_membre(session: Session):
    """Fabrique de membres persistés."""

    def _make(
        nom: str = "Youssef Alami",
        email: str | None = "youssef@example.com",
        role_joueur: bool = True,
        role_bureau: bool = False,
        fonction_bureau: str | None = None,
        statut: StatutMembre = StatutMembre.ACTIF,
    ) -> Membre:
        cotisation = 150.0 if role_bureau else (100.0 if role_joueur else 0.0)
        membre = Membre(
            nom_prenom=nom,
            email=email,
            statut=statut.value,
            role_joueur=role_joueur,
            role_bureau=role_bureau,
            fonction_bureau=fonction_bureau,
            cotisation_mensuelle=cotisation,
            date_entree=datetime.date(2026, 3, 1),
        )
        session.add(membre)
        session.commit()
        return membre

    return _make


def _ctx(role: Role, member_id: int | None = None, fonction: str | None = None) -> AuthContext:
    return AuthContext(
        user_id=f"user-{role.value}",
        email=f"{role.value}@pantheres.com",
        role=role,
        member_id=member_id,
        fonction_bureau=fonction,
    )


@pytest.fixture
def tresorier_ctx() -> AuthContext:
    return _ctx(Role.TRESORIER)


@pytest.fixture
def bureau_ctx() -> AuthContext:
    return _ctx(Role.BUREAU, fonction="Président")


@pytest.fixture
def joueur_ctx() -> AuthContext:
    return _ctx(Role.JOUEUR)


@pytest.fixture
def make_ctx():
    return _ctx
