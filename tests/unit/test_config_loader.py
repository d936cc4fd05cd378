"""Tests unitaires pour le module config_loader."""

import datetime
from pathlib import Path

import pytest

from pantheres_finance.config.loader import AppConfig, load_config
from pantheres_finance.models import ConfigError


VALID_CLUB = """\
club:
  name: "Panthères de Fès"
  currency: "MAD"
cotisations:
  montant_joueur: 100
  montant_bureau: 150
email:
  sender: "Panthères de Fès <onboarding@resend.dev>"
  tresorier: "tresorier@pantheres.com"
"""

VALID_SAISON = """\
saison:
  name: "2026"
  start_date: 2026-03-05
  end_date: 2026-07-31
  duration_months: 5
"""


def _write_configs(tmp_path: Path, club: str = VALID_CLUB, saison: str = VALID_SAISON) -> None:
    """Helper pour écrire les 2 fichiers de config."""
    (tmp_path / "club.yaml").write_text(club, encoding="utf-8")
    (tmp_path / "saison.yaml").write_text(saison, encoding="utf-8")


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("DUREE_SAISON_MOIS", "MONTANT_JOUEUR", "MONTANT_BUREAU"):
        monkeypatch.delenv(name, raising=False)


class TestLoadConfigValid:
    def test_load_config_valid(self, tmp_path: Path) -> None:
        _write_configs(tmp_path)
        config = load_config(tmp_path)

        assert isinstance(config, AppConfig)
        assert config.club_name == "Panthères de Fès"
        assert config.app_name == "Panthères de Fès"
        assert config.currency == "MAD"
        assert config.cotisations.montant_joueur == 100.0
        assert config.cotisations.montant_bureau == 150.0
        assert config.email.api_url == "https://api.resend.com/emails"
        assert config.email.tresorier_email == "tresorier@pantheres.com"
        assert config.saison.start_date == datetime.date(2026, 3, 5)
        assert config.saison.duration_months == 5
        assert config.saison.jour_cotisation == 5
        assert config.alertes.recouvrement_critique == 70.0

    def test_repository_config(self) -> None:
        config = load_config(Path(__file__).parents[2] / "config")
        assert config.club_name == "Panthères de Fès"
        assert config.alertes.max_depassements == 3

    def test_montant_cotisation_bureau_prioritaire(self, tmp_path: Path) -> None:
        _write_configs(tmp_path)
        config = load_config(tmp_path)
        assert config.montant_cotisation(is_player=True, is_office=True) == 150.0
        assert config.montant_cotisation(is_player=True, is_office=False) == 100.0
        assert config.montant_cotisation(is_player=False, is_office=False) == 0.0


class TestEnvOverrides:
    def test_duree_and_montants(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _write_configs(tmp_path)
        monkeypatch.setenv("DUREE_SAISON_MOIS", "10")
        monkeypatch.setenv("MONTANT_JOUEUR", "120")
        monkeypatch.setenv("MONTANT_BUREAU", "200.5")
        config = load_config(tmp_path)

        assert config.saison.duration_months == 10
        assert config.cotisations.montant_joueur == 120.0
        assert config.cotisations.montant_bureau == 200.5

    def test_empty_override_ignored(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _write_configs(tmp_path)
        monkeypatch.setenv("MONTANT_JOUEUR", "  ")
        assert load_config(tmp_path).cotisations.montant_joueur == 100.0

    @pytest.mark.parametrize("value", ["abc", "-5", "0"])
    def test_invalid_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, value: str) -> None:
        _write_configs(tmp_path)
        monkeypatch.setenv("MONTANT_BUREAU", value)
        with pytest.raises(ConfigError, match="MONTANT_BUREAU"):
            load_config(tmp_path)

    def test_non_integer_duration(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _write_configs(tmp_path)
        monkeypatch.setenv("DUREE_SAISON_MOIS", "4.5")
        with pytest.raises(ConfigError, match="entier"):
            load_config(tmp_path)


class TestLoadConfigMissingFiles:
    def test_club_missing(self, tmp_path: Path) -> None:
        (tmp_path / "saison.yaml").write_text(VALID_SAISON, encoding="utf-8")
        with pytest.raises(ConfigError, match="club.yaml"):
            load_config(tmp_path)

    def test_saison_missing(self, tmp_path: Path) -> None:
        (tmp_path / "club.yaml").write_text(VALID_CLUB, encoding="utf-8")
        with pytest.raises(ConfigError, match="saison.yaml"):
            load_config(tmp_path)


class TestLoadConfigInvalid:
    def test_malformed_yaml(self, tmp_path: Path) -> None:
        _write_configs(tmp_path, club="club: [unclosed")
        with pytest.raises(ConfigError, match="YAML malformé"):
            load_config(tmp_path)

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        _write_configs(tmp_path, saison="- 1\n- 2\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(tmp_path)

    def test_missing_key(self, tmp_path: Path) -> None:
        club = VALID_CLUB.replace("  montant_bureau: 150\n", "")
        _write_configs(tmp_path, club=club)
        with pytest.raises(ConfigError, match="montant_bureau"):
            load_config(tmp_path)

    def test_negative_amount(self, tmp_path: Path) -> None:
        _write_configs(tmp_path, club=VALID_CLUB.replace("montant_joueur: 100", "montant_joueur: -1"))
        with pytest.raises(ConfigError, match="négatif"):
            load_config(tmp_path)

    def test_end_before_start(self, tmp_path: Path) -> None:
        _write_configs(tmp_path, saison=VALID_SAISON.replace("2026-07-31", "2026-01-31"))
        with pytest.raises(ConfigError, match="end_date"):
            load_config(tmp_path)

    def test_invalid_date(self, tmp_path: Path) -> None:
        _write_configs(tmp_path, saison=VALID_SAISON.replace("2026-03-05", '"pas une date"'))
        with pytest.raises(ConfigError, match="Date invalide"):
            load_config(tmp_path)

    def test_duration_zero(self, tmp_path: Path) -> None:
        _write_configs(tmp_path, saison=VALID_SAISON.replace("duration_months: 5", "duration_months: 0"))
        with pytest.raises(ConfigError, match="duration_months"):
            load_config(tmp_path)

    def test_jour_cotisation_out_of_range(self, tmp_path: Path) -> None:
        _write_configs(tmp_path, saison=VALID_SAISON + "  jour_cotisation: 31\n")
        with pytest.raises(ConfigError, match="jour_cotisation"):
            load_config(tmp_path)

    def test_inverted_alert_thresholds(self, tmp_path: Path) -> None:
        club = VALID_CLUB + "alertes:\n  recouvrement_critique: 90\n  recouvrement_warning: 80\n"
        _write_configs(tmp_path, club=club)
        with pytest.raises(ConfigError, match="recouvrement_critique"):
            load_config(tmp_path)

    @pytest.mark.parametrize(
        ("ligne", "cle"),
        [
            ('  solde_ratio: "dix pour cent"\n', "solde_ratio"),
            ("  budget_critique: [120]\n", "budget_critique"),
            ('  max_depassements: "trois"\n', "max_depassements"),
            ("  max_depassements: 2.5\n", "max_depassements"),
        ],
    )
    def test_non_numeric_alert_threshold(self, tmp_path: Path, ligne: str, cle: str) -> None:
        _write_configs(tmp_path, club=VALID_CLUB + "alertes:\n" + ligne)
        with pytest.raises(ConfigError, match=cle):
            load_config(tmp_path)

    def test_partial_alertes_keeps_defaults(self, tmp_path: Path) -> None:
        _write_configs(tmp_path, club=VALID_CLUB + "alertes:\n  solde_ratio: 0.2\n")
        config = load_config(tmp_path)
        assert config.alertes.solde_ratio == 0.2
        assert config.alertes.max_depassements == 3
