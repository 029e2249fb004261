"""Tests for the certnag CLI entry point (certnag.cli.main).

``main()`` uses deferred imports, so patches target the *source*
module (e.g. ``certnag.config.CertnagConfig``), not ``certnag.cli.main``.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock, patch

import pytest

from certnag.cli.main import _build_parser, main

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def parser(monkeypatch):
    """Return a freshly built ArgumentParser with EMAIL_LIMIT unset."""
    monkeypatch.delenv("EMAIL_LIMIT", raising=False)
    return _build_parser()


@pytest.fixture
def tmp_config(tmp_config_file):
    return str(tmp_config_file)


def _mock_config():
    """Create a MagicMock that impersonates a CertnagConfig object."""
    cfg = MagicMock()
    cfg.settings.mailer.warning_days = (1, 3, 7, 14)
    cfg.settings.mailer.message_limit = 0
    cfg.settings.smtp.host = "smtp.example.com"
    cfg.settings.smtp.port = 587
    cfg.settings.database.user = "test"
    cfg.settings.database.host = "localhost"
    cfg.settings.database.port = 5432
    cfg.settings.database.database = "test"
    return cfg


# ===========================================================================
# Parser construction
# ===========================================================================


class TestBuildParser:
    def test_config_required(self, parser):
        with pytest.raises(SystemExit):
            parser.parse_args([])

    def test_no_subcommand(self, parser, tmp_config):
        args = parser.parse_args(["-c", tmp_config])
        assert args.command is None
        assert args.message_limit is None
        assert args.now is None

    def test_run_subcommand(self, parser, tmp_config):
        assert parser.parse_args(["-c", tmp_config, "run"]).command == "run"

    def test_db_subcommand(self, parser, tmp_config):
        args = parser.parse_args(["-c", tmp_config, "db", "status"])
        assert args.command == "db"
        assert args.db_command == "status"

    def test_flags(self, parser, tmp_config):
        args = parser.parse_args(["-c", tmp_config, "--debug", "--validate-only"])
        assert args.debug is True
        assert args.validate_only is True

    def test_message_limit(self, parser, tmp_config):
        args = parser.parse_args(["-c", tmp_config, "--message-limit", "25"])
        assert args.message_limit == 25

    def test_negative_message_limit_rejected(self, parser, tmp_config):
        with pytest.raises(SystemExit):
            parser.parse_args(["-c", tmp_config, "--message-limit", "-1"])

    def test_message_limit_from_env(self, monkeypatch, tmp_config):
        monkeypatch.setenv("EMAIL_LIMIT", "7")
        args = _build_parser().parse_args(["-c", tmp_config])
        assert args.message_limit == 7

    def test_invalid_env_limit_ignored(self, monkeypatch, tmp_config):
        monkeypatch.setenv("EMAIL_LIMIT", "lots")
        args = _build_parser().parse_args(["-c", tmp_config])
        assert args.message_limit is None

    def test_flag_overrides_env(self, monkeypatch, tmp_config):
        monkeypatch.setenv("EMAIL_LIMIT", "7")
        args = _build_parser().parse_args(["-c", tmp_config, "--message-limit", "3"])
        assert args.message_limit == 3

    def test_now_with_z_suffix(self, parser, tmp_config):
        args = parser.parse_args(["-c", tmp_config, "--now", "2024-05-01T12:00:00Z"])
        assert args.now == datetime(2024, 5, 1, 12, 0, tzinfo=UTC)

    def test_now_with_offset(self, parser, tmp_config):
        args = parser.parse_args(["-c", tmp_config, "--now", "2024-05-01T14:00:00+02:00"])
        assert args.now.utcoffset() == timedelta(hours=2)
        assert args.now == datetime(2024, 5, 1, 12, 0, tzinfo=UTC)

    def test_invalid_now_rejected(self, parser, tmp_config):
        with pytest.raises(SystemExit):
            parser.parse_args(["-c", tmp_config, "--now", "yesterday"])


# ===========================================================================
# main() entry point
# ===========================================================================


class TestMain:
    def test_nonexistent_config_file_exits_1(self):
        with pytest.raises(SystemExit) as exc_info:
            main(["--config", "/no/such/path/config.yaml"])
        assert exc_info.value.code == 1

    def test_validate_only_exits_0(self, tmp_config):
        with (
            patch("certnag.config.CertnagConfig", return_value=_mock_config()),
            patch("certnag.logging.configure_logging"),
            patch("certnag.cli.main._print_settings_summary") as mock_summary,
            pytest.raises(SystemExit) as exc_info,
        ):
            main(["--config", tmp_config, "--validate-only"])

        assert exc_info.value.code == 0
        mock_summary.assert_called_once()

    def test_validate_only_real_config(self, tmp_config, capsys):
        with (
            patch("certnag.logging.configure_logging"),
            pytest.raises(SystemExit) as exc_info,
        ):
            main(["--config", tmp_config, "--validate-only"])

        assert exc_info.value.code == 0
        out = capsys.readouterr().out
        assert "Configuration OK" in out
        assert "[1, 3, 7, 14]" in out

    def test_config_validation_error_exits_1(self, tmp_config, capsys):
        from certnag.config import ConfigValidationError

        with (
            patch(
                "certnag.config.CertnagConfig",
                side_effect=ConfigValidationError(["bad thresholds"]),
            ),
            pytest.raises(SystemExit) as exc_info,
        ):
            main(["--config", tmp_config])

        assert exc_info.value.code == 1
        assert "bad thresholds" in capsys.readouterr().err

    def test_generic_load_error_exits_1(self, tmp_config):
        with (
            patch("certnag.config.CertnagConfig", side_effect=ValueError("bad yaml")),
            pytest.raises(SystemExit) as exc_info,
        ):
            main(["--config", tmp_config])
        assert exc_info.value.code == 1

    def test_generic_load_error_reraised_in_debug(self, tmp_config):
        with (
            patch("certnag.config.CertnagConfig", side_effect=ValueError("bad yaml")),
            pytest.raises(ValueError, match="bad yaml"),
        ):
            main(["--config", tmp_config, "--debug"])

    def test_default_command_runs_mailer(self, tmp_config):
        cfg = _mock_config()
        with (
            patch("certnag.config.CertnagConfig", return_value=cfg),
            patch("certnag.logging.configure_logging"),
            patch("certnag.cli.commands.run.run_mailer") as mock_run,
        ):
            main(["--config", tmp_config])

        mock_run.assert_called_once()
        assert mock_run.call_args[0][0] is cfg

    def test_db_command_dispatched(self, tmp_config):
        with (
            patch("certnag.config.CertnagConfig", return_value=_mock_config()),
            patch("certnag.logging.configure_logging"),
            patch("certnag.cli.commands.db.run_db") as mock_db,
        ):
            main(["--config", tmp_config, "db", "status"])

        mock_db.assert_called_once()
