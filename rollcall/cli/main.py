"""Command-line interface for rollcall store administration."""

import asyncio
import json
import logging
import sys
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import click

from rollcall.core.config import LoggingSettings, Settings
from rollcall.core.exceptions import RollcallError
from rollcall.core.keys import deployment_key_hash
from rollcall.manager import StoreManager
from rollcall.observability.logging import bind_context, clear_context, configure_logging

T = TypeVar("T")


def _run(
    settings: Settings, action: Callable[[StoreManager], Awaitable[T]], **context: Any
) -> T:
    """Run one action against a freshly built store, then close it.

    Keyword arguments are bound to every log line emitted by the action.
    """

    async def execute() -> T:
        async with StoreManager.from_settings(settings) as store:
            return await action(store)

    bind_context(**context)
    try:
        return asyncio.run(execute())
    except RollcallError as e:
        click.echo(f"Error [{e.code}]: {e.message}", err=True)
        sys.exit(1)
    finally:
        clear_context()


@click.group()
@click.option(
    "--log-level",
    default="warning",
    type=click.Choice(["debug", "info", "warning", "error"]),
    help="Logging level",
    show_default=True,
)
@click.pass_context
def cli(ctx: click.Context, log_level: str) -> None:
    """rollcall - response cache and deployment metrics store."""
    configure_logging(level=log_level, settings=LoggingSettings())
    logging.getLogger().setLevel(log_level.upper())
    ctx.obj = Settings()


@cli.command()
@click.pass_obj
def health(settings: Settings) -> None:
    """Ping the cache and metrics databases."""

    async def check(store: StoreManager) -> None:
        await store.check_health()

    _run(settings, check)
    click.echo("ok")


@cli.command()
@click.argument("deployment_key")
@click.option("--label", help="Only show counters for this label")
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.pass_obj
def metrics(
    settings: Settings, deployment_key: str, label: str | None, output_json: bool
) -> None:
    """Show the rollout counters of a deployment."""

    async def read(store: StoreManager) -> dict[str, int]:
        if label:
            grouped = await store.metrics.read_label_metrics(deployment_key, label)
            return grouped.model_dump(exclude={"label"})
        return await store.metrics.read_metrics(deployment_key)

    counters = _run(settings, read, deployment_key=deployment_key)

    if output_json:
        click.echo(json.dumps(counters, indent=2, sort_keys=True))
        return

    if not counters:
        click.echo(f"No metrics recorded for {deployment_key}")
        return

    width = max(len(field) for field in counters)
    for field in sorted(counters):
        click.echo(f"{field:<{width}}  {counters[field]:>8}")


@cli.command()
@click.argument("deployment_key")
@click.pass_obj
def invalidate(settings: Settings, deployment_key: str) -> None:
    """Drop every cached response of a deployment."""
    scope_key = deployment_key_hash(deployment_key)

    async def drop(store: StoreManager) -> None:
        await store.cache.invalidate(scope_key)

    _run(settings, drop, deployment_key=deployment_key)
    click.echo(f"Invalidated {scope_key}")


@cli.command("clear-metrics")
@click.argument("deployment_key")
@click.confirmation_option(prompt="Delete all counters for this deployment?")
@click.pass_obj
def clear_metrics(settings: Settings, deployment_key: str) -> None:
    """Delete the counters of a decommissioned deployment."""

    async def clear(store: StoreManager) -> None:
        await store.metrics.clear_metrics(deployment_key)

    _run(settings, clear, deployment_key=deployment_key)
    click.echo(f"Cleared metrics for {deployment_key}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
