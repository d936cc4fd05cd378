"""Point d'entrée CLI de pantheres-finance."""

from __future__ import annotations

import argparse
import datetime
import logging
import sys
from pathlib import Path

from pantheres_finance.config.loader import load_config
from pantheres_finance.db.database import create_db_engine, init_db, make_session_factory
from pantheres_finance.models import ConfigError, PantheresError, RapportEnvoi
from pantheres_finance.notifications.client import EmailClient
from pantheres_finance.notifications.envois import envoyer_rapport_mensuel, relancer_membres_en_retard
from pantheres_finance.services.rapports import DATASETS, FormatExport, build_rapport_financier, build_tableau, render

logger = logging.getLogger("pantheres_finance.main")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s — %(message)s"
VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def _date(value: str) -> datetime.date:
    try:
        return datetime.date.fromisoformat(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Date invalide : {value} (attendu AAAA-MM-JJ)") from e


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse les arguments CLI."""
    parser = argparse.ArgumentParser(
        prog="pantheres-finance",
        description="Gestion financière du club Panthères de Fès",
    )
    parser.add_argument(
        "--config-dir",
        default="./config/",
        help="Répertoire de configuration YAML (défaut : ./config/)",
    )
    parser.add_argument(
        "--database-url",
        default=None,
        help="URL SQLAlchemy de la base (défaut : $DATABASE_URL ou sqlite local)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=VALID_LOG_LEVELS,
        help="Niveau de log (défaut : INFO)",
    )
    parser.add_argument(
        "--date",
        type=_date,
        default=None,
        help="Date de référence des calculs (défaut : aujourd'hui)",
    )

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("init-db", help="Crée les tables manquantes")

    export = sub.add_parser("export", help="Exporte un jeu de données")
    export.add_argument("dataset", choices=[*DATASETS, "rapport-financier"])
    export.add_argument("output_file", help="Fichier de sortie")
    export.add_argument("--format", dest="format_export", choices=[f.value for f in FormatExport], default=None)
    export.add_argument("--debut", type=_date, default=None)
    export.add_argument("--fin", type=_date, default=None)

    sub.add_parser("relance", help="Relance par email les membres en retard")
    sub.add_parser("rapport", help="Envoie le rapport mensuel au bureau")
    return parser.parse_args(args)


def _format_for(output: Path, explicit: str | None) -> FormatExport:
    if explicit:
        return FormatExport(explicit)
    suffix = output.suffix.lower().lstrip(".")
    try:
        return FormatExport(suffix)
    except ValueError:
        return FormatExport.CSV


def _print_rapport(titre: str, rapport: RapportEnvoi) -> None:
    print(f"=== {titre} ===")
    print(f"Destinataires : {rapport.total}")
    print(f"Envoyés : {len(rapport.envoyes)}")
    if rapport.erreurs:
        print(f"Échecs : {len(rapport.erreurs)}")
        for destinataire, erreur in rapport.erreurs:
            print(f"  {destinataire} : {erreur}")


def run(parsed: argparse.Namespace) -> None:
    config = load_config(Path(parsed.config_dir))
    engine = create_db_engine(parsed.database_url)
    init_db(engine)
    if parsed.command == "init-db":
        return

    today = parsed.date or datetime.date.today()
    factory = make_session_factory(engine)
    with factory() as session:
        if parsed.command == "export":
            output = Path(parsed.output_file)
            if parsed.dataset == "rapport-financier":
                content = build_rapport_financier(session, config, today, parsed.debut, parsed.fin)
            else:
                format_export = _format_for(output, parsed.format_export)
                tableau = build_tableau(session, config, parsed.dataset, today, debut=parsed.debut, fin=parsed.fin)
                content = render(tableau, format_export, config, today)
            output.write_bytes(content)
            logger.info("Export écrit : %s (%d octets)", output, len(content))
        elif parsed.command == "relance":
            client = EmailClient(config.email)
            _print_rapport("Relances cotisations", relancer_membres_en_retard(session, client, config, today))
        elif parsed.command == "rapport":
            client = EmailClient(config.email)
            _print_rapport("Rapport mensuel", envoyer_rapport_mensuel(session, client, config, today))


def main(args: list[str] | None = None) -> None:
    """Point d'entrée principal."""
    parsed = parse_args(args)

    logging.basicConfig(
        level=getattr(logging, parsed.log_level),
        format=LOG_FORMAT,
    )

    try:
        run(parsed)
    except ConfigError as e:
        logger.error("Erreur de configuration : %s", e)
        sys.exit(2)
    except PantheresError as e:
        logger.error("%s", e)
        sys.exit(3)
    except Exception:
        logger.exception("Erreur inattendue")
        sys.exit(1)


if __name__ == "__main__":
    main()
