"""Command-line interface for the warranty tracker.

This module uses the ``click`` library to implement a multi-command
interface. Users can compute the warranty periods for an inspection date,
view a summary, pick the relevant report from an exported reports file or
list upcoming maintenance alerts. Results can be printed to the terminal or
exported to JSON/CSV files.
"""

from __future__ import annotations

import csv
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import click

from .alerts import DEFAULT_URGENT_DAYS, DEFAULT_WINDOW_DAYS, find_alerts, urgent_alerts
from .data_models import Report, WarrantyBasis, WarrantySchedule
from .engine import compute_all, summarize
from .formatter import print_alerts, print_schedule, print_summary
from .reports import basis_for_report, count_active_warranties, parse_reports, select_report
from .utils import parse_date

logger = logging.getLogger(__name__)


def resolve_now(now: Optional[str]) -> datetime:
    """Return the evaluation instant: ``--now`` if given, else the system clock.

    The clock is read once per command so that every period is classified
    against the same instant.
    """
    if now:
        try:
            return parse_date(now)
        except ValueError as exc:
            raise click.BadParameter(str(exc), param_hint="--now")
    return datetime.now()


def build_basis_from_options(inspection_date: str, now: Optional[str]) -> WarrantyBasis:
    try:
        start = parse_date(inspection_date)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--inspection-date")
    return WarrantyBasis.create(start, resolve_now(now))


def load_reports(path: str) -> List[Report]:
    """Read a JSON file holding a list of reports (or ``{"data": [...]}``)."""
    try:
        with Path(path).open("r", encoding="utf-8") as f:
            payload = json.load(f)
    except json.JSONDecodeError as exc:
        raise click.BadParameter(f"{path} is not valid JSON: {exc}")
    if isinstance(payload, dict):
        payload = payload.get("data", [])
    if not isinstance(payload, list):
        raise click.BadParameter(f"{path} must contain a list of reports")
    try:
        return parse_reports(payload)
    except ValueError as exc:
        raise click.BadParameter(str(exc))


def export_to_json(path: Path, schedule: WarrantySchedule, summary: Dict[str, Any]) -> None:
    """Export periods and summary to a JSON file."""
    data = {"summary": summary, "periods": schedule.to_dict()}
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def export_to_csv(path: Path, schedule: WarrantySchedule) -> None:
    """Export periods to a CSV file."""
    header = [
        "Period",
        "State",
        "Progress_Percent",
        "Remaining_Days",
        "Days_Until_Start",
        "Start_Date",
        "End_Date",
    ]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for p in schedule.periods():
            writer.writerow(
                [
                    p.name,
                    p.state,
                    round(p.progress_percent, 2),
                    p.remaining_days,
                    p.days_until_start,
                    p.start_date.date().isoformat(),
                    p.end_date.date().isoformat(),
                ]
            )


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Track warranty and maintenance periods of repaired devices."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@cli.command()
@click.option("--inspection-date", "-i", "inspection_date", required=True, help="Inspection date (YYYY-MM-DD)")
@click.option("--now", "-n", "now", help="Evaluation date (YYYY-MM-DD); defaults to today")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def periods(inspection_date: str, now: Optional[str], output: Optional[str]) -> None:
    """Compute and print the four warranty periods."""
    basis = build_basis_from_options(inspection_date, now)
    schedule = compute_all(basis)
    summary_data = summarize(schedule)
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, schedule, summary_data)
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, schedule)
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
        click.echo(f"Periods exported to {path}")
    else:
        print_summary(summary_data)
        print_schedule(schedule)


@cli.command()
@click.option("--inspection-date", "-i", "inspection_date", required=True, help="Inspection date (YYYY-MM-DD)")
@click.option("--now", "-n", "now", help="Evaluation date (YYYY-MM-DD); defaults to today")
@click.option("--output", "output", type=str, help="Output file path (.json)")
def summary(inspection_date: str, now: Optional[str], output: Optional[str]) -> None:
    """Compute and print only the summary of the warranty."""
    basis = build_basis_from_options(inspection_date, now)
    summary_data = summarize(compute_all(basis))
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Summary export must use .json extension")
        with path.open("w", encoding="utf-8") as f:
            json.dump({"summary": summary_data}, f, indent=2)
        click.echo(f"Summary exported to {path}")
    else:
        print_summary(summary_data)


@cli.command()
@click.argument("reports_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--id", "report_id", help="Use this report instead of the latest completed one")
@click.option("--now", "-n", "now", help="Evaluation date (YYYY-MM-DD); defaults to today")
def report(reports_file: str, report_id: Optional[str], now: Optional[str]) -> None:
    """Show the warranty of the latest completed report in REPORTS_FILE."""
    reports = load_reports(reports_file)
    selected = select_report(reports, report_id)
    if selected is None:
        click.echo("No active warranty: no completed report found.")
        return
    logger.debug("Using report %s inspected on %s", selected.id, selected.inspection_date)
    schedule = compute_all(basis_for_report(selected, resolve_now(now)))
    click.echo(f"Report {selected.id} {selected.device_model}".rstrip())
    print_summary(summarize(schedule))
    print_schedule(schedule)


@cli.command()
@click.argument("reports_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--now", "-n", "now", help="Evaluation date (YYYY-MM-DD); defaults to today")
def count(reports_file: str, now: Optional[str]) -> None:
    """Count reports in REPORTS_FILE whose manufacturing warranty is active."""
    reports = load_reports(reports_file)
    active = count_active_warranties(reports, resolve_now(now))
    click.echo(f"Active warranties: {active} of {len(reports)} reports")


@cli.command()
@click.argument("reports_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--now", "-n", "now", help="Evaluation date (YYYY-MM-DD); defaults to today")
@click.option("--window", "window_days", type=int, default=DEFAULT_WINDOW_DAYS, show_default=True, help="Alert window in days")
@click.option("--urgent", is_flag=True, help=f"Only alerts due within {DEFAULT_URGENT_DAYS} days")
def alerts(reports_file: str, now: Optional[str], window_days: int, urgent: bool) -> None:
    """List maintenance cycles ending soon for reports in REPORTS_FILE."""
    if window_days < 0:
        raise click.BadParameter("Window must not be negative", param_hint="--window")
    reports = load_reports(reports_file)
    found = find_alerts(reports, resolve_now(now), window_days)
    if urgent:
        found = urgent_alerts(found)
    print_alerts(found)


if __name__ == "__main__":
    cli()
