"""Main CLI entry point for the Respondent Registry.

Defines the respondent-registry command group and its config subcommands.
"""

from pathlib import Path
from typing import Optional

import click

from respondent_registry import __version__
from respondent_registry.cli.respondent_commands import add, delete, export, list_respondents, update
from respondent_registry.cli.serve_commands import serve
from respondent_registry.config import get_logging_config, load_config
from respondent_registry.logging_audit import (
    configure_logging,
    configure_operation_logging_from_config,
)
from respondent_registry.utils.exceptions import ConfigurationError


@click.group()
@click.version_option(version=__version__, prog_name="respondent-registry")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: ./config/config.json)",
)
@click.option("--verbose", is_flag=True, help="Enable verbose logging (DEBUG level)")
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to log file (overrides config file)",
)
@click.option(
    "--redact-pii",
    is_flag=True,
    help="Redact PII (respondent names, phone numbers, emails) from logs",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Optional[Path],
    verbose: bool,
    log_file: Optional[Path],
    redact_pii: bool,
) -> None:
    """Respondent Registry - record management for survey respondents.

    Captures respondent details, keeps phone numbers unique, and lists,
    edits, deletes and exports records with computed age and BMI.

    Common usage:

        # Add a respondent
        respondent-registry add --name "Ana Lopez" --dob 1999-04-02 \\
            --phone +10000000001 --email ana@example.com --height 165 --weight 60

        # List respondents sorted by BMI, highest first
        respondent-registry list --sort bmi --direction descending

        # Export the respondents matching a filter
        respondent-registry export --format xlsx --filter ana

        # Serve the JSON API
        respondent-registry serve --port 8000

    Use --help with any command for more information.
    """
    ctx.ensure_object(dict)

    try:
        settings = load_config(config)
    except ConfigurationError as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        ctx.exit(1)
    ctx.obj["config"] = settings

    # Flags win over the config file
    logging_settings = get_logging_config(settings)
    configure_logging(
        level="DEBUG" if verbose else logging_settings.level,
        log_file=log_file or logging_settings.log_file,
        redact_pii=redact_pii or logging_settings.redact_pii,
    )
    configure_operation_logging_from_config(settings.operation_logging)


cli.add_command(add)
cli.add_command(list_respondents)
cli.add_command(update)
cli.add_command(delete)
cli.add_command(export)
cli.add_command(serve)


@cli.group()
def config() -> None:
    """Configuration management commands."""
    pass


@config.command()
@click.argument("config_file", type=click.Path(exists=True, path_type=Path))
def validate(config_file: Path) -> None:
    """Validate a configuration file.

    Example:
        respondent-registry config validate config/config.json
    """
    try:
        config_obj = load_config(config_file)
    except ConfigurationError as e:
        click.echo(click.style("✗", fg="red", bold=True) + " Configuration validation failed")
        click.echo(f"\n{e}", err=True)
        raise click.exceptions.Exit(1)

    sections = {
        "Store": [("URL", config_obj.store.url)],
        "Registry": [
            ("Schema", config_obj.registry.schema_variant.value),
            ("Export dir", config_obj.registry.export_dir),
        ],
        "API": [("Address", f"{config_obj.api.host}:{config_obj.api.port}")],
        "Logging": [
            ("Level", config_obj.logging.level),
            ("Log file", config_obj.logging.log_file),
            ("Redact PII", config_obj.logging.redact_pii),
        ],
    }

    click.echo(click.style("✓", fg="green", bold=True) + " Configuration is valid")
    click.echo(f"\nConfiguration file: {config_file}")
    for title, rows in sections.items():
        click.echo(f"\n{title}:")
        for label, value in rows:
            click.echo(f"  {label + ':':<13}{value}")


@cli.command()
def version() -> None:
    """Display version information."""
    click.echo(f"respondent-registry version {__version__}")


if __name__ == "__main__":
    cli()
