"""Tests for the CLI subcommand handlers.

Commands use deferred imports (``from certnag.db import init_database``
inside function bodies), so patches target the *source* module, not the
command module.
"""

from __future__ import annotations

from argparse import Namespace
from datetime import UTC, datetime
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from certnag.cli.commands.db import run_db
from certnag.cli.commands.run import run_mailer
from certnag.config.settings import build_settings
from certnag.core.clock import FakeClock, SystemClock

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _config(**sections):
    data = {
        "database": {"database": "certnag", "user": "certnag"},
        "smtp": {"host": "smtp.example.com", "from_address": "certnag@example.com"},
    }
    data.update(sections)
    return SimpleNamespace(settings=build_settings(data))


def _args(**kwargs):
    defaults = {"debug": False, "message_limit": None, "now": None, "db_command": None}
    defaults.update(kwargs)
    return Namespace(**defaults)


def _run_result(completed=True):
    return SimpleNamespace(completed=completed)


# ===========================================================================
# run_mailer
# ===========================================================================


class TestRunMailer:
    @patch("certnag.services.ExpirationMailerRun")
    @patch("certnag.db.init_database")
    def test_completed_run_returns(self, mock_init_db, mock_run_cls):
        mock_run_cls.return_value.run.return_value = _run_result(completed=True)

        run_mailer(_config(), _args())

        mock_run_cls.return_value.run.assert_called_once()
        kwargs = mock_run_cls.call_args.kwargs
        assert kwargs["settings"].warning_days == (1, 3, 7, 14)
        assert isinstance(kwargs["clock"], SystemClock)

    @patch("certnag.services.ExpirationMailerRun")
    @patch("certnag.db.init_database")
    def test_halted_run_exits_1(self, mock_init_db, mock_run_cls):
        mock_run_cls.return_value.run.return_value = _run_result(completed=False)

        with pytest.raises(SystemExit) as exc_info:
            run_mailer(_config(), _args())
        assert exc_info.value.code == 1

    @patch("certnag.services.ExpirationMailerRun")
    @patch("certnag.db.init_database")
    def test_message_limit_flag_overrides_config(self, mock_init_db, mock_run_cls):
        mock_run_cls.return_value.run.return_value = _run_result()

        run_mailer(_config(mailer={"message_limit": 100}), _args(message_limit=5))

        assert mock_run_cls.call_args.kwargs["settings"].message_limit == 5

    @patch("certnag.services.ExpirationMailerRun")
    @patch("certnag.db.init_database")
    def test_config_limit_used_without_flag(self, mock_init_db, mock_run_cls):
        mock_run_cls.return_value.run.return_value = _run_result()

        run_mailer(_config(mailer={"message_limit": 100}), _args())

        assert mock_run_cls.call_args.kwargs["settings"].message_limit == 100

    @patch("certnag.services.ExpirationMailerRun")
    @patch("certnag.db.init_database")
    def test_now_pins_clock(self, mock_init_db, mock_run_cls):
        mock_run_cls.return_value.run.return_value = _run_result()
        pinned = datetime(2024, 5, 1, tzinfo=UTC)

        run_mailer(_config(), _args(now=pinned))

        clock = mock_run_cls.call_args.kwargs["clock"]
        assert isinstance(clock, FakeClock)
        assert clock.now() == pinned

    @patch("certnag.services.ExpirationMailerRun")
    @patch("certnag.db.init_database")
    def test_metrics_textfile_written(self, mock_init_db, mock_run_cls, tmp_path):
        mock_run_cls.return_value.run.return_value = _run_result()
        target = tmp_path / "certnag.prom"

        run_mailer(_config(metrics={"textfile_path": str(target)}), _args())

        assert "certnag_last_run_timestamp_seconds" in target.read_text(encoding="utf-8")

    @patch("certnag.db.init_database", side_effect=RuntimeError("no route to host"))
    def test_database_failure_exits_1(self, mock_init_db):
        with pytest.raises(SystemExit) as exc_info:
            run_mailer(_config(), _args())
        assert exc_info.value.code == 1

    @patch("certnag.db.init_database", side_effect=RuntimeError("no route to host"))
    def test_database_failure_reraised_in_debug(self, mock_init_db):
        with pytest.raises(RuntimeError, match="no route"):
            run_mailer(_config(), _args(debug=True))


# ===========================================================================
# run_db
# ===========================================================================


class TestRunDb:
    @patch("certnag.db.init_database")
    def test_status_ok(self, mock_init_db, capsys):
        db = MagicMock()
        db.health_check.return_value = True
        db.table_exists.return_value = True
        mock_init_db.return_value = db

        run_db(_config(), _args(db_command="status"))

        out = capsys.readouterr().out
        assert "Database: OK" in out
        assert "Schema:   OK" in out

    @patch("certnag.db.init_database")
    def test_status_missing_tables_exits_1(self, mock_init_db, capsys):
        db = MagicMock()
        db.health_check.return_value = True
        db.table_exists.side_effect = lambda name: name != "certificate_nag_state"
        mock_init_db.return_value = db

        with pytest.raises(SystemExit) as exc_info:
            run_db(_config(), _args(db_command="status"))

        assert exc_info.value.code == 1
        assert "certificate_nag_state" in capsys.readouterr().out

    @patch("certnag.db.init_database")
    def test_status_unreachable_exits_1(self, mock_init_db):
        mock_init_db.return_value.health_check.return_value = False

        with pytest.raises(SystemExit) as exc_info:
            run_db(_config(), _args(db_command="status"))
        assert exc_info.value.code == 1

    @patch("certnag.db.init_database", side_effect=RuntimeError("refused"))
    def test_status_init_failure_exits_1(self, mock_init_db):
        with pytest.raises(SystemExit) as exc_info:
            run_db(_config(), _args(db_command="status"))
        assert exc_info.value.code == 1

    def test_missing_subcommand_exits_1(self):
        with pytest.raises(SystemExit) as exc_info:
            run_db(_config(), _args(db_command=None))
        assert exc_info.value.code == 1
