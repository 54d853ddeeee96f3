"""Command-line interface for the tuition loan calculator.

This module uses the ``click`` library to implement a multi-command
interface. Users can compute the full loan timeline, view the summary only or
ask for the suggested level payment of an arbitrary balance. Results can be
printed to the terminal or exported to JSON/CSV files.
"""

from __future__ import annotations

import csv
import json
import logging
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional

import click

from .data_models import DEFAULT_CONFIG, LoanConfig, LoanResult
from .engine import calculate_suggested_payment, compute_loan_timeline, suggested_payment_for
from .formatter import format_currency, print_summary, print_timeline, serialize_timeline, summarize
from .utils import MAX_LOAN_TERM_YEARS, build_config, parse_amount, parse_percent, validate_payment, validate_rate


def build_config_from_options(
    tuition: str,
    quarters: int,
    years: int,
    rate: str,
    term: int,
) -> LoanConfig:
    try:
        return build_config(tuition, quarters, years, rate, term)
    except ValueError as exc:
        raise click.BadParameter(str(exc))


def resolve_payment(payment: Optional[str], config: LoanConfig) -> Decimal:
    """Parse ``--payment`` or fall back to the suggested payment."""
    if not payment:
        return suggested_payment_for(config)
    try:
        return validate_payment(parse_amount(payment))
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--payment")


def export_to_json(path: Path, result: LoanResult, summary: Dict[str, Any]) -> None:
    """Export timeline and summary to a JSON file."""
    data = {"summary": summary, "timeline": serialize_timeline(result.timeline)}
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def export_to_csv(path: Path, result: LoanResult) -> None:
    """Export the timeline to a CSV file."""
    header = ["Month", "Principal", "Interest", "Balance", "Total_Paid"]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for p in result.timeline:
            writer.writerow(
                [p.month, float(p.principal), float(p.interest), float(p.balance), float(p.total_paid)]
            )


def loan_options(func):
    """Attach the loan configuration and payment options to a command."""
    options: List[Any] = [
        click.option("--tuition", "tuition", default=str(DEFAULT_CONFIG.annual_tuition), show_default=True, help="Annual tuition"),
        click.option("--quarters", "quarters", type=int, default=DEFAULT_CONFIG.quarters_per_year, show_default=True, help="Disbursements per school year"),
        click.option("--years", "years", type=int, default=DEFAULT_CONFIG.school_years, show_default=True, help="School years"),
        click.option("--rate", "-r", "rate", default=str(DEFAULT_CONFIG.annual_interest_rate), show_default=True, help="Annual interest rate (percent)"),
        click.option("--term", "-t", "term", type=int, default=DEFAULT_CONFIG.loan_term_years, show_default=True, help="Target repayment term in years"),
        click.option("--payment", "-p", "payment", help="Monthly payment after graduation (defaults to the suggested payment)"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log engine details to stderr")
def cli(verbose: bool) -> None:
    """A command-line calculator for deferred-payment tuition loans."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@loan_options
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def timeline(
    tuition: str,
    quarters: int,
    years: int,
    rate: str,
    term: int,
    payment: Optional[str],
    output: Optional[str],
) -> None:
    """Compute and print the month-by-month loan timeline."""
    config = build_config_from_options(tuition, quarters, years, rate, term)
    monthly_payment = resolve_payment(payment, config)
    result = compute_loan_timeline(config, monthly_payment)
    summary_data = summarize(result, config, monthly_payment)
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, result, summary_data)
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, result)
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv", param_hint="--output")
        click.echo(f"Timeline exported to {path}")
    else:
        print_summary(summary_data)
        print_timeline(result.timeline, result.graduation_month)


@cli.command()
@loan_options
@click.option("--output", "output", type=str, help="Output file path (.json)")
def summary(
    tuition: str,
    quarters: int,
    years: int,
    rate: str,
    term: int,
    payment: Optional[str],
    output: Optional[str],
) -> None:
    """Compute and print only the summary metrics for a loan."""
    config = build_config_from_options(tuition, quarters, years, rate, term)
    monthly_payment = resolve_payment(payment, config)
    result = compute_loan_timeline(config, monthly_payment)
    summary_data = summarize(result, config, monthly_payment)
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Summary export must use .json extension", param_hint="--output")
        with path.open("w", encoding="utf-8") as f:
            json.dump({"summary": summary_data}, f, indent=2)
        click.echo(f"Summary exported to {path}")
    else:
        print_summary(summary_data)


@cli.command()
@click.option("--principal", "principal", required=True, help="Balance to amortize")
@click.option("--rate", "-r", "rate", required=True, help="Annual interest rate (percent)")
@click.option("--term", "-t", "term", required=True, type=click.IntRange(min=1, max=MAX_LOAN_TERM_YEARS), help="Term in years")
def suggest(principal: str, rate: str, term: int) -> None:
    """Print the level monthly payment that pays off PRINCIPAL in TERM years."""
    try:
        principal_value = parse_amount(principal)
        rate_value = validate_rate(parse_percent(rate))
    except ValueError as exc:
        raise click.BadParameter(str(exc))
    if principal_value <= 0:
        raise click.BadParameter("Principal must be positive", param_hint="--principal")
    payment = calculate_suggested_payment(principal_value, rate_value, term)
    click.echo(f"{format_currency(payment)}/month")


if __name__ == "__main__":
    cli()
