"""CLI interface for Syncro"""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Tuple

import click

from syncro.application.subscription_client import SubscriptionError, SyncroClient
from syncro.domain.config import AppConfig
from syncro.infrastructure.batch import BatchResult
from syncro.infrastructure.config.config_manager import ConfigManager, ConfigurationError
from syncro.infrastructure.http_client import TransportFailure

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    logging.getLogger().setLevel(level)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def _die(message: str, verbose: bool = False, exc: Optional[Exception] = None) -> None:
    """Exit with a user-friendly error message"""
    if exc is not None:
        logger.error(message, exc_info=verbose)
    else:
        logger.error(message)
    raise click.ClickException(message)


def _load_config(ctx: click.Context) -> AppConfig:
    """Load config and apply CLI overrides on top of file and env values"""
    verbose = ctx.obj.get("verbose", False)
    try:
        config = ConfigManager(config_path=ctx.obj.get("config_path")).config
    except ConfigurationError as e:
        _die(str(e), verbose=verbose, exc=e)

    if ctx.obj.get("api_key"):
        config.api.api_key = ctx.obj["api_key"]
    if ctx.obj.get("base_url"):
        config.api.base_url = ctx.obj["base_url"]
    return config


def _create_client(config: AppConfig, verbose: bool) -> SyncroClient:
    try:
        return SyncroClient.from_config(config)
    except ValueError as e:
        _die(str(e), verbose=verbose, exc=e)


def _output_batch_results(result: BatchResult) -> None:
    for item in result.results:
        if item.success:
            line = f"OK      {item.id}"
            if item.data is not None and item.data.redirect_url:
                line += f"  -> {item.data.redirect_url}"
            click.echo(line)
        else:
            click.echo(f"FAILED  {item.id}: {item.error}", err=True)

    click.echo(f"\n{result.success_count} succeeded, {result.failure_count} failed")


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to .syncro.yml config file",
)
@click.option("--api-key", type=str, help="API key. Overrides config and SYNCRO_API_KEY.")
@click.option("--base-url", type=str, help="API root URL. Overrides config and SYNCRO_BASE_URL.")
@click.pass_context
def cli(ctx, verbose: bool, config: Path, api_key: str, base_url: str):
    """Syncro - subscription management from the command line"""
    ctx.ensure_object(dict)
    setup_logging(verbose)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose
    ctx.obj["api_key"] = api_key
    ctx.obj["base_url"] = base_url


@cli.command()
@click.argument("subscription_id", type=str)
@click.pass_context
def get(ctx, subscription_id: str):
    """Show a subscription.

    SUBSCRIPTION_ID: ID of the subscription to fetch
    """
    verbose = ctx.obj.get("verbose", False)
    config = _load_config(ctx)

    async def _run():
        async with _create_client(config, verbose) as client:
            return await client.get_subscription(subscription_id)

    try:
        subscription = asyncio.run(_run())
    except click.ClickException:
        raise
    except TransportFailure as e:
        _die(f"Failed to fetch {subscription_id}: {e}", verbose=verbose, exc=e)
    except Exception as e:
        _die(f"Fatal error: {e}", verbose=verbose, exc=e)

    click.echo(json.dumps(subscription.to_dict(), indent=2))


@cli.command()
@click.argument("subscription_ids", nargs=-1, required=True, type=str)
@click.pass_context
def cancel(ctx, subscription_ids: Tuple[str, ...]):
    """Cancel one or more subscriptions.

    Several ids are cancelled concurrently; one failure does not stop the rest.

    SUBSCRIPTION_IDS: IDs of the subscriptions to cancel
    """
    verbose = ctx.obj.get("verbose", False)
    config = _load_config(ctx)
    logger.info(f"Cancelling {len(subscription_ids)} subscription(s)")

    async def _run():
        async with _create_client(config, verbose) as client:
            if len(subscription_ids) == 1:
                return await client.cancel_subscription(subscription_ids[0])
            return await client.cancel_subscriptions(list(subscription_ids))

    try:
        outcome = asyncio.run(_run())
    except click.ClickException:
        raise
    except SubscriptionError as e:
        _die(str(e), verbose=verbose, exc=e)
    except Exception as e:
        _die(f"Fatal error: {e}", verbose=verbose, exc=e)

    if isinstance(outcome, BatchResult):
        _output_batch_results(outcome)
        if not outcome.all_succeeded:
            sys.exit(1)
        return

    click.echo(f"Cancelled {outcome.subscription.id} ({outcome.status.value})")
    if outcome.redirect_url:
        click.echo(f"Finish cancellation at: {outcome.redirect_url}")


def main():
    """Main entry point"""
    cli(obj={})


if __name__ == "__main__":
    main()
