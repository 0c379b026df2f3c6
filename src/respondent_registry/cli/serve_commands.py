"""API server CLI command for the Respondent Registry."""

import logging
import sys
from typing import Optional

import click

from respondent_registry.api import run_server
from respondent_registry.cli.context import get_config, get_store

logger = logging.getLogger(__name__)


@click.command("serve")
@click.option("--host", default=None, help="Host address (default: api.host from config)")
@click.option(
    "--port",
    type=click.IntRange(1, 65535),
    default=None,
    help="Port number (default: api.port from config)",
)
@click.option("--debug", is_flag=True, help="Enable Flask debug mode")
@click.pass_context
def serve(ctx: click.Context, host: Optional[str], port: Optional[int], debug: bool) -> None:
    """Serve the respondent JSON API.

    Runs in the foreground until interrupted.

    Examples:

        respondent-registry serve

        respondent-registry serve --host 0.0.0.0 --port 8080
    """
    config = get_config(ctx)
    store = get_store(ctx)

    try:
        run_server(store, config=config, host=host, port=port, debug=debug)
    except OSError as e:
        click.secho(f"Failed to start server: {e}", fg="red", err=True)
        logger.error(f"Failed to start server: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nServer stopped.")
