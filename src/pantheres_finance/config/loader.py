"""Chargement et validation de la configuration YAML."""

from __future__ import annotations

import datetime
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from pantheres_finance.models import ConfigError

logger = logging.getLogger(__name__)

ENV_DUREE_SAISON = "DUREE_SAISON_MOIS"
ENV_MONTANT_JOUEUR = "MONTANT_JOUEUR"
ENV_MONTANT_BUREAU = "MONTANT_BUREAU"


@dataclass
class SaisonConfig:
    """Paramètres de la saison en cours."""

    name: str
    start_date: datetime.date
    end_date: datetime.date
    duration_months: int
    jour_cotisation: int = 5


@dataclass
class CotisationsConfig:
    """Montants mensuels de cotisation (MAD)."""

    montant_joueur: float
    montant_bureau: float


@dataclass
class EmailConfig:
    """Paramètres du fournisseur d'emails transactionnels."""

    sender: str
    api_url: str
    tresorier_email: str


@dataclass
class AlertesConfig:
    """Seuils des alertes du tableau de bord."""

    recouvrement_critique: float = 70.0
    recouvrement_warning: float = 85.0
    solde_ratio: float = 0.10
    budget_critique: float = 120.0
    budget_attention: float = 80.0
    max_depassements: int = 3


@dataclass
class AppConfig:
    """Configuration complète de l'application (non frozen — dataclass technique)."""

    club_name: str
    app_name: str
    currency: str
    saison: SaisonConfig
    cotisations: CotisationsConfig
    email: EmailConfig
    alertes: AlertesConfig = field(default_factory=AlertesConfig)

    def montant_cotisation(self, is_player: bool, is_office: bool) -> float:
        """Cotisation mensuelle selon les rôles (priorité au bureau)."""
        if is_office:
            return self.cotisations.montant_bureau
        if is_player:
            return self.cotisations.montant_joueur
        return 0.0


def _load_yaml(filepath: Path) -> dict[str, object]:
    """Charge un fichier YAML et retourne son contenu."""
    if not filepath.exists():
        raise ConfigError(f"Fichier de configuration manquant : {filepath}")
    try:
        with open(filepath, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"YAML malformé dans {filepath} : {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Le fichier {filepath} doit contenir un mapping YAML (reçu : {type(data).__name__})")
    return data


def _require_key(data: dict[str, object], key: str, context: str) -> object:
    """Vérifie qu'une clé existe dans un dictionnaire."""
    if key not in data:
        raise ConfigError(f"Clé obligatoire '{key}' manquante dans {context}")
    return data[key]


def _require_mapping(data: dict[str, object], key: str, context: str) -> dict[str, object]:
    value = _require_key(data, key, context)
    if not isinstance(value, dict):
        raise ConfigError(f"'{key}' doit être un mapping dans {context}")
    return value


def _parse_date(value: object, key: str, context: str) -> datetime.date:
    """Accepte une date YAML native ou une chaîne ISO."""
    if isinstance(value, datetime.date):
        return value
    try:
        return datetime.date.fromisoformat(str(value))
    except ValueError as e:
        raise ConfigError(f"Date invalide pour '{key}' dans {context} : {value!r}") from e


def _parse_amount(value: object, key: str, context: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"'{key}' doit être un nombre dans {context}")
    amount = float(value)
    if amount < 0:
        raise ConfigError(f"'{key}' ne peut pas être négatif dans {context} : {amount}")
    return amount


def _validate_club(data: dict[str, object]) -> tuple[str, str, str, CotisationsConfig, EmailConfig, AlertesConfig]:
    """Valide et extrait club.yaml."""
    context = "club.yaml"

    club = _require_mapping(data, "club", context)
    club_name = str(_require_key(club, "name", f"{context}/club"))
    app_name = str(club.get("app_name", club_name))
    currency = str(club.get("currency", "MAD"))

    cotisations_raw = _require_mapping(data, "cotisations", context)
    cotisations = CotisationsConfig(
        montant_joueur=_parse_amount(
            _require_key(cotisations_raw, "montant_joueur", f"{context}/cotisations"), "montant_joueur", context
        ),
        montant_bureau=_parse_amount(
            _require_key(cotisations_raw, "montant_bureau", f"{context}/cotisations"), "montant_bureau", context
        ),
    )

    email_raw = _require_mapping(data, "email", context)
    email = EmailConfig(
        sender=str(_require_key(email_raw, "sender", f"{context}/email")),
        api_url=str(email_raw.get("api_url", "https://api.resend.com/emails")),
        tresorier_email=str(_require_key(email_raw, "tresorier", f"{context}/email")),
    )

    alertes_raw = data.get("alertes", {})
    if not isinstance(alertes_raw, dict):
        raise ConfigError(f"'alertes' doit être un mapping dans {context}")
    defaults = AlertesConfig()

    def _seuil(key: str, default: float) -> float:
        if key not in alertes_raw:
            return default
        return _parse_amount(alertes_raw[key], key, f"{context}/alertes")

    max_depassements = alertes_raw.get("max_depassements", defaults.max_depassements)
    if isinstance(max_depassements, bool) or not isinstance(max_depassements, int) or max_depassements < 0:
        raise ConfigError(
            f"'max_depassements' doit être un entier positif dans {context}/alertes (reçu : {max_depassements!r})"
        )
    alertes = AlertesConfig(
        recouvrement_critique=_seuil("recouvrement_critique", defaults.recouvrement_critique),
        recouvrement_warning=_seuil("recouvrement_warning", defaults.recouvrement_warning),
        solde_ratio=_seuil("solde_ratio", defaults.solde_ratio),
        budget_critique=_seuil("budget_critique", defaults.budget_critique),
        budget_attention=_seuil("budget_attention", defaults.budget_attention),
        max_depassements=max_depassements,
    )
    if alertes.recouvrement_critique > alertes.recouvrement_warning:
        raise ConfigError(
            f"'recouvrement_critique' ({alertes.recouvrement_critique}) doit être "
            f"inférieur à 'recouvrement_warning' ({alertes.recouvrement_warning}) dans {context}"
        )

    return club_name, app_name, currency, cotisations, email, alertes


def _validate_saison(data: dict[str, object]) -> SaisonConfig:
    """Valide et extrait saison.yaml."""
    context = "saison.yaml"

    saison = _require_mapping(data, "saison", context)
    name = str(_require_key(saison, "name", context))
    start_date = _parse_date(_require_key(saison, "start_date", context), "start_date", context)
    end_date = _parse_date(_require_key(saison, "end_date", context), "end_date", context)
    if end_date < start_date:
        raise ConfigError(f"'end_date' ({end_date}) antérieure à 'start_date' ({start_date}) dans {context}")

    duration = _require_key(saison, "duration_months", context)
    if isinstance(duration, bool) or not isinstance(duration, int) or duration < 1:
        raise ConfigError(f"'duration_months' doit être un entier positif dans {context} (reçu : {duration!r})")

    jour = saison.get("jour_cotisation", 5)
    if isinstance(jour, bool) or not isinstance(jour, int) or not 1 <= jour <= 28:
        raise ConfigError(f"'jour_cotisation' doit être compris entre 1 et 28 dans {context} (reçu : {jour!r})")

    return SaisonConfig(
        name=name,
        start_date=start_date,
        end_date=end_date,
        duration_months=duration,
        jour_cotisation=jour,
    )


def _env_number(name: str) -> float | None:
    """Lit un override numérique strictement positif depuis l'environnement."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigError(f"Variable d'environnement {name} non numérique : {raw!r}") from e
    if value <= 0:
        raise ConfigError(f"Variable d'environnement {name} doit être positive (reçu : {raw!r})")
    return value


def _apply_env_overrides(config: AppConfig) -> None:
    duree = _env_number(ENV_DUREE_SAISON)
    if duree is not None:
        if duree != int(duree):
            raise ConfigError(f"{ENV_DUREE_SAISON} doit être un entier (reçu : {duree})")
        config.saison.duration_months = int(duree)
        logger.info("Durée de saison surchargée par l'environnement : %d mois", config.saison.duration_months)

    montant_joueur = _env_number(ENV_MONTANT_JOUEUR)
    if montant_joueur is not None:
        config.cotisations.montant_joueur = montant_joueur

    montant_bureau = _env_number(ENV_MONTANT_BUREAU)
    if montant_bureau is not None:
        config.cotisations.montant_bureau = montant_bureau


def load_config(config_dir: Path) -> AppConfig:
    """Charge et valide la configuration complète depuis un répertoire.

    Args:
        config_dir: Répertoire contenant club.yaml et saison.yaml.

    Returns:
        AppConfig validée, surchargée par les variables d'environnement.

    Raises:
        ConfigError: Si un fichier est manquant, malformé, ou contient des valeurs invalides.
    """
    logger.info("Chargement de la configuration depuis %s", config_dir)

    club_data = _load_yaml(config_dir / "club.yaml")
    saison_data = _load_yaml(config_dir / "saison.yaml")

    club_name, app_name, currency, cotisations, email, alertes = _validate_club(club_data)
    saison = _validate_saison(saison_data)

    config = AppConfig(
        club_name=club_name,
        app_name=app_name,
        currency=currency,
        saison=saison,
        cotisations=cotisations,
        email=email,
        alertes=alertes,
    )
    _apply_env_overrides(config)

    logger.debug(
        "Saison %s : %d mois, joueur %.2f, bureau %.2f",
        config.saison.name,
        config.saison.duration_months,
        config.cotisations.montant_joueur,
        config.cotisations.montant_bureau,
    )

    return config
