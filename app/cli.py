#!/usr/bin/env python
"""
Comandi per lo scheduler mensile delle commissioni channel partner.

    python -m app.cli run-monthly --month 2026-03
    python -m app.cli backfill --from 2026-01 --to 2026-03
"""

import logging
from typing import Optional

import click
from dotenv import load_dotenv

from app import commission_engine
from app.config import settings
from app.db import SessionLocal
from app.errors import ChannelPartnerError


def _echo_result(result: commission_engine.BatchResult) -> None:
    click.echo(
        f"{result.month_reference}: create={result.created} "
        f"totale={result.total_amount} saltate={result.skipped} errori={result.failed}"
    )


@click.group()
def cli() -> None:
    """Channel partner commission ledger CLI."""
    load_dotenv()
    logging.basicConfig(level=settings.log_level.upper())


@cli.command("run-monthly")
@click.option("--month", default=None, help="Mese di riferimento YYYY-MM (default: mese corrente)")
def run_monthly(month: Optional[str]) -> None:
    """Calcola le commissioni del mese per i referral attivi."""
    db = SessionLocal()
    try:
        result = commission_engine.calculate_monthly_commissions(db, month)
    except ChannelPartnerError as e:
        raise click.ClickException(e.detail)
    finally:
        db.close()

    _echo_result(result)
    if result.failed:
        raise SystemExit(2)


@cli.command()
@click.option("--from", "from_month", required=True, help="Primo mese YYYY-MM")
@click.option("--to", "to_month", required=True, help="Ultimo mese YYYY-MM")
def backfill(from_month: str, to_month: str) -> None:
    """Riprocessa un intervallo di mesi, dal più vecchio al più recente."""
    db = SessionLocal()
    try:
        results = commission_engine.backfill_commissions(db, from_month, to_month)
    except ChannelPartnerError as e:
        raise click.ClickException(e.detail)
    finally:
        db.close()

    for result in results:
        _echo_result(result)
    if any(r.failed for r in results):
        raise SystemExit(2)


if __name__ == "__main__":
    cli()
