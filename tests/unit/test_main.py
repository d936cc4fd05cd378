"""Tests unitaires pour le point d'entrée CLI main.py."""

from __future__ import annotations

from pathlib import Path

import pytest

from pantheres_finance.main import main, parse_args

FIXTURES_CONFIG = Path(__file__).parents[1] / "fixtures" / "config"


def _db_url(tmp_path: Path) -> str:
    return f"sqlite:///{tmp_path / 'pantheres.db'}"


class TestParseArgs:
    def test_export_args(self) -> None:
        args = parse_args(["export", "transactions", "out.csv"])
        assert args.command == "export"
        assert args.dataset == "transactions"
        assert args.output_file == "out.csv"
        assert args.config_dir == "./config/"
        assert args.log_level == "INFO"
        assert args.format_export is None

    def test_missing_command(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            parse_args([])
        assert exc_info.value.code == 2

    def test_unknown_dataset(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            parse_args(["export", "factures", "out.csv"])
        assert exc_info.value.code == 2

    def test_global_options(self) -> None:
        args = parse_args(["--config-dir", "/custom/config", "--date", "2026-05-10", "--log-level", "DEBUG", "relance"])
        assert args.config_dir == "/custom/config"
        assert args.date.isoformat() == "2026-05-10"
        assert args.log_level == "DEBUG"

    def test_invalid_date(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            parse_args(["--date", "10/05/2026", "init-db"])
        assert exc_info.value.code == 2

    def test_log_level_invalid(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            parse_args(["--log-level", "VERBOSE", "init-db"])
        assert exc_info.value.code == 2


class TestMain:
    def test_init_db(self, tmp_path: Path) -> None:
        main(["--config-dir", str(FIXTURES_CONFIG), "--database-url", _db_url(tmp_path), "init-db"])
        assert (tmp_path / "pantheres.db").exists()

    def test_export_csv(self, tmp_path: Path) -> None:
        output = tmp_path / "transactions.csv"
        main([
            "--config-dir", str(FIXTURES_CONFIG),
            "--database-url", _db_url(tmp_path),
            "--date", "2026-05-10",
            "export", "transactions", str(output),
        ])
        content = output.read_bytes()
        assert content.startswith(b"\xef\xbb\xbf")
        assert "Catégorie" in content.decode("utf-8-sig")

    def test_export_format_from_suffix(self, tmp_path: Path) -> None:
        output = tmp_path / "budget.xlsx"
        main(["--config-dir", str(FIXTURES_CONFIG), "--database-url", _db_url(tmp_path), "export", "budget", str(output)])
        assert output.read_bytes().startswith(b"PK")

    def test_export_rapport_financier(self, tmp_path: Path) -> None:
        output = tmp_path / "rapport.pdf"
        main([
            "--config-dir", str(FIXTURES_CONFIG),
            "--database-url", _db_url(tmp_path),
            "--date", "2026-05-10",
            "export", "rapport-financier", str(output),
        ])
        assert output.read_bytes().startswith(b"%PDF")

    def test_relance_without_members(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        main(["--config-dir", str(FIXTURES_CONFIG), "--database-url", _db_url(tmp_path), "relance"])
        out = capsys.readouterr().out
        assert "=== Relances cotisations ===" in out
        assert "Destinataires : 0" in out

    def test_missing_config(self, tmp_path: Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--config-dir", str(tmp_path / "absent"), "--database-url", _db_url(tmp_path), "init-db"])
        assert exc_info.value.code == 2
