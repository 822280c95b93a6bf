"""
Operator commands for a ledger store.
"""
import asyncio
import json
from typing import Optional

import click
import structlog

from ..config import LedgerSettings, configure_logging, log_error
from ..core.types import Genesis, SortOrder
from ..dal import LedgerDAL
from ..errors import LedgerError

logger = structlog.get_logger()


def _open(database_url: Optional[str]) -> LedgerDAL:
    settings = LedgerSettings()
    if database_url:
        settings = settings.model_copy(update={"DATABASE_URL": database_url})
    configure_logging(settings.LOG_LEVEL, json_output=False)
    dal = LedgerDAL(settings)
    dal.store.migrate_latest()
    return dal


def _run(dal: LedgerDAL, coroutine):
    async def run():
        try:
            return await coroutine
        finally:
            await dal.destroy()
    return asyncio.run(run())


database_url_option = click.option(
    '--database-url', '-d', type=str, default=None, help='SQLAlchemy database URL (overrides LDPOS_DAL_DATABASE_URL)'
)


@click.group()
def cli():
    """Ledger data access layer command line interface"""
    pass


@cli.command()
@click.argument('genesis_file', type=click.Path(exists=True, dir_okay=False))
@database_url_option
def bootstrap(genesis_file: str, database_url: Optional[str]):
    """Seed an empty store from a genesis JSON document."""
    try:
        with open(genesis_file, 'r') as f:
            genesis = Genesis.model_validate(json.load(f))
    except ValueError as e:
        # json.JSONDecodeError and pydantic.ValidationError
        log_error(logger, e, {"genesis_file": genesis_file})
        raise click.ClickException(f"Invalid genesis file {genesis_file}: {e}")

    dal = _open(database_url)
    try:
        seeded = _run(dal, dal.init(genesis))
    except (LedgerError, ValueError) as e:
        log_error(logger, e, {"genesis_file": genesis_file})
        raise click.ClickException(str(e))

    if seeded:
        click.echo(f"Store seeded from {genesis_file}")
    else:
        click.echo("Store already contains data, genesis not applied")


@cli.command()
@database_url_option
def tip(database_url: Optional[str]):
    """Print the chain tip height."""
    dal = _open(database_url)
    click.echo(_run(dal, dal.get_max_block_height()))


@cli.command()
@database_url_option
@click.option('--offset', type=int, default=0, show_default=True)
@click.option('--limit', '-l', type=int, default=101, show_default=True)
@click.option('--order', type=click.Choice(['asc', 'desc']), default='desc', show_default=True)
def delegates(database_url: Optional[str], offset: int, limit: int, order: str):
    """Print delegates ranked by vote weight."""
    dal = _open(database_url)
    ranking = _run(dal, dal.get_delegates_by_vote_weight(offset, limit, SortOrder(order)))
    for position, delegate in enumerate(ranking, start=offset + 1):
        click.echo(f"{position}\t{delegate.address}\t{delegate.vote_weight}")


@cli.command()
@database_url_option
@click.option('--yes', is_flag=True, help='Confirm deletion of every row')
def clear(database_url: Optional[str], yes: bool):
    """Delete all data from the store."""
    if not yes:
        raise click.UsageError("Refusing to clear the store without --yes")
    dal = _open(database_url)
    _run(dal, dal.clear_all_data())
    click.echo("All tables cleared")
