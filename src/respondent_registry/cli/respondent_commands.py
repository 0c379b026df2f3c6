"""Respondent record CLI commands for the Respondent Registry.

This module provides commands to add, list, update, delete and export
respondent records.
"""

import json as json_lib
import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional

import click

from respondent_registry.actions import (
    ActionResponse,
    create_record,
    delete_record,
    update_record,
)
from respondent_registry.browser import ASCENDING, DESCENDING, RecordBrowser
from respondent_registry.cli.context import get_config, get_store
from respondent_registry.config import get_registry_config
from respondent_registry.export import ExportFormat
from respondent_registry.utils.dates import parse_timestamp
from respondent_registry.utils.exceptions import (
    ExportError,
    RecordNotFoundError,
    StoreError,
)

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"


def respondent_options(func):
    """Attach one option per respondent field."""
    options = [
        click.option("--name", help="Full name (at least 2 characters)"),
        click.option("--dob", help="Date of birth (YYYY-MM-DD)"),
        click.option("--phone", help="Phone number (at least 10 characters, unique)"),
        click.option("--email", help="Email address"),
        click.option("--height", help="Height in centimeters"),
        click.option("--weight", help="Weight in kilograms"),
        click.option("--pob", help="Place of birth (extended schema)"),
        click.option(
            "--gender",
            type=click.Choice(["male", "female"], case_sensitive=False),
            help="Gender (extended schema)",
        ),
        click.option("--address", help="Home address (extended schema)"),
        click.option("--semester", help="Semester, 1 or higher (extended schema)"),
        click.option("--medical-history", help="Medical history (extended schema)"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _given(fields: dict[str, Any]) -> dict[str, Any]:
    return {name: value for name, value in fields.items() if value is not None}


def _report(response: ActionResponse) -> None:
    """Print an action outcome and exit 1 on failure."""
    if response.success:
        detail = f" (id: {response.record_id})" if response.record_id else ""
        click.secho(f"✓ {response.message}{detail}", fg="green")
        return

    click.secho(f"✗ {response.message}", fg="red", err=True)
    for violation in response.violations:
        click.secho(f"  {violation.field}: {violation.message}", fg="red", err=True)
    sys.exit(1)


@click.command("add")
@respondent_options
@click.pass_context
def add(ctx: click.Context, **fields: Any) -> None:
    """Add a respondent.

    Every field is validated and all problems are reported together. The
    phone number must not already be on file.

    Examples:

        respondent-registry add --name "Ana Lopez" --dob 1999-04-02 \\
            --phone +10000000001 --email ana@example.com --height 165 --weight 60
    """
    store = get_store(ctx)
    logger.info("Adding respondent from CLI")
    _report(create_record(store, _given(fields)))


@click.command("update")
@click.argument("record_id")
@respondent_options
@click.pass_context
def update(ctx: click.Context, record_id: str, **fields: Any) -> None:
    """Update a respondent.

    Only the given options change; the other fields keep their stored values.
    The result is validated as a whole.

    Examples:

        respondent-registry update 3f2a... --weight 62.5
    """
    store = get_store(ctx)
    try:
        current = store.get(record_id)
    except RecordNotFoundError:
        click.secho(f"✗ Respondent not found: {record_id}", fg="red", err=True)
        sys.exit(1)
    except StoreError as e:
        click.secho(f"Store error: {e}", fg="red", err=True)
        logger.error(f"Store error while loading {record_id}: {e}")
        sys.exit(1)

    data = current.to_dict()
    data.update(_given(fields))
    _report(update_record(store, record_id, data))


@click.command("delete")
@click.argument("record_id")
@click.option("--yes", is_flag=True, help="Delete without asking for confirmation")
@click.pass_context
def delete(ctx: click.Context, record_id: str, yes: bool) -> None:
    """Delete a respondent permanently."""
    if not yes:
        click.confirm(
            f"This will permanently delete respondent {record_id}. Continue?",
            abort=True,
        )
    store = get_store(ctx)
    _report(delete_record(store, record_id))


def _browser(ctx: click.Context, filter_text: str, sort: Optional[str], direction: str) -> RecordBrowser:
    store = get_store(ctx)
    browser = RecordBrowser(store)
    browser.refresh()
    if browser.last_error is not None:
        click.secho(f"Store error: {browser.last_error}", fg="red", err=True)
        sys.exit(1)

    browser.set_filter(filter_text)
    if sort:
        try:
            browser.request_sort(sort)
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint="--sort")
        if direction == DESCENDING:
            browser.request_sort(sort)
    return browser


@contextmanager
def _console_logging_suppressed() -> Iterator[None]:
    """Silence console log handlers, leaving file handlers untouched."""
    silenced = []
    for handler in logging.getLogger().handlers:
        if isinstance(handler, logging.StreamHandler) and not hasattr(handler, "baseFilename"):
            silenced.append((handler, handler.level))
            handler.setLevel(logging.CRITICAL + 1)
    try:
        yield
    finally:
        for handler, level in silenced:
            handler.setLevel(level)


def _format_value(key: str, value: Any) -> str:
    if value is None:
        return NOT_AVAILABLE
    if key == "created_at":
        return parse_timestamp(value).strftime("%Y-%m-%d %H:%M")
    if key == "dob":
        return parse_timestamp(value).strftime("%Y-%m-%d")
    return str(value)


sort_options = [
    click.option("--filter", "filter_text", default="", help="Match name, phone or email"),
    click.option("--sort", default=None, help="Column to sort by (e.g. name, age, bmi)"),
    click.option(
        "--direction",
        type=click.Choice([ASCENDING, DESCENDING]),
        default=ASCENDING,
        show_default=True,
        help="Sort direction",
    ),
]


def view_options(func):
    for option in reversed(sort_options):
        func = option(func)
    return func


@click.command("list")
@view_options
@click.option("--json", "json_output", is_flag=True, help="Output results as JSON")
@click.pass_context
def list_respondents(
    ctx: click.Context,
    filter_text: str,
    sort: Optional[str],
    direction: str,
    json_output: bool,
) -> None:
    """List respondents with computed age and BMI.

    Examples:

        respondent-registry list

        respondent-registry list --filter ana --sort bmi --direction descending

        respondent-registry list --json
    """
    if json_output:
        # Keep console logging out of machine-readable output
        with _console_logging_suppressed():
            browser = _browser(ctx, filter_text, sort, direction)
            rows = browser.rows
        click.echo(json_lib.dumps([row.to_dict() for row in rows], indent=2))
        return

    browser = _browser(ctx, filter_text, sort, direction)
    rows = browser.rows

    if not rows:
        click.secho("No respondents found.", fg="yellow")
        return

    columns = [("id", "ID")] + [(c.key, c.label) for c in browser.columns]
    table = [[_format_value(key, row.value(key)) for key, _ in columns] for row in rows]
    widths = [
        max(len(label), *(len(line[i]) for line in table))
        for i, (_, label) in enumerate(columns)
    ]

    click.echo("  ".join(label.ljust(w) for (_, label), w in zip(columns, widths)))
    click.echo("  ".join("-" * w for w in widths))
    for line in table:
        click.echo("  ".join(cell.ljust(w) for cell, w in zip(line, widths)))
    click.echo(f"\n{len(rows)} respondent(s)")


@click.command("export")
@view_options
@click.option(
    "--format",
    "fmt",
    type=click.Choice([f.value for f in ExportFormat], case_sensitive=False),
    default=ExportFormat.CSV.value,
    show_default=True,
    help="Export file format",
)
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory to write the export to (default: registry.export_dir)",
)
@click.pass_context
def export(
    ctx: click.Context,
    filter_text: str,
    sort: Optional[str],
    direction: str,
    fmt: str,
    output_dir: Optional[Path],
) -> None:
    """Export the respondents matching the filter, in sort order.

    Writes respondents_<YYYYMMDD>.csv or .xlsx.

    Examples:

        respondent-registry export --format xlsx

        respondent-registry export --filter ana --sort name --output-dir exports/
    """
    browser = _browser(ctx, filter_text, sort, direction)
    destination = output_dir or get_registry_config(get_config(ctx)).export_dir

    try:
        path = browser.export(fmt, destination)
    except ExportError as e:
        click.secho(f"Export failed: {e}", fg="red", err=True)
        logger.error(f"Export failed: {e}")
        sys.exit(1)

    click.secho(f"✓ Exported {len(browser.rows)} respondent(s) to {path}", fg="green")
