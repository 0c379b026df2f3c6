"""Shared CLI helpers for reaching the respondent store."""

import click

from respondent_registry.config import get_registry_config, get_store_config
from respondent_registry.config.schema import Config
from respondent_registry.store import RespondentStore, StoreClient
from respondent_registry.utils.exceptions import StoreError


def get_config(ctx: click.Context) -> Config:
    obj = ctx.find_root().obj or {}
    return obj.get("config") or Config()


def get_store(ctx: click.Context) -> RespondentStore:
    """Open the configured store once per invocation.

    The client is closed when the root context tears down. A store already
    present in the context object is reused as is.
    """
    root = ctx.find_root()
    root.ensure_object(dict)
    if root.obj.get("store") is not None:
        return root.obj["store"]

    config = get_config(ctx)
    client = StoreClient.from_config(get_store_config(config))
    try:
        client.open()
    except StoreError as e:
        click.secho(f"Store error: {e}", fg="red", err=True)
        raise click.exceptions.Exit(1)
    root.call_on_close(client.close)

    store = RespondentStore(client, variant=get_registry_config(config).schema_variant)
    root.obj["store"] = store
    return store
