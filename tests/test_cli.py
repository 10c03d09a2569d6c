from decimal import Decimal

import pytest
from click.testing import CliRunner

from app import cli as cli_module
from models.channel_partner_commissions import Commission


@pytest.fixture()
def runner(db_session, monkeypatch):
    monkeypatch.setattr(cli_module, "SessionLocal", lambda: db_session)
    return CliRunner()


def test_cli_help(runner):
    result = runner.invoke(cli_module.cli, ["--help"])
    assert result.exit_code == 0
    assert "run-monthly" in result.output
    assert "backfill" in result.output


def test_run_monthly(runner, db_session, active_referral):
    active_referral()

    result = runner.invoke(cli_module.cli, ["run-monthly", "--month", "2026-04"])

    assert result.exit_code == 0, result.output
    assert "2026-04: create=1 totale=49.80" in result.output
    assert db_session.query(Commission).count() == 1


def test_run_monthly_bad_month(runner):
    result = runner.invoke(cli_module.cli, ["run-monthly", "--month", "april"])
    assert result.exit_code != 0
    assert "YYYY-MM" in result.output


def test_backfill(runner, db_session, active_referral):
    active_referral()

    result = runner.invoke(cli_module.cli, ["backfill", "--from", "2026-01", "--to", "2026-02"])

    assert result.exit_code == 0, result.output
    assert "2026-01: create=1" in result.output
    assert "2026-02: create=1" in result.output
    total = sum((c.commission_amount for c in db_session.query(Commission).all()), Decimal("0"))
    assert total == Decimal("99.60")
