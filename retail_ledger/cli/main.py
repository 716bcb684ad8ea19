# retail_ledger/cli/main.py
import click

from retail_ledger.cli.create_tables import create_tables
from retail_ledger.cli.run_job import run_job


@click.group()
def cli():
    """Retail ledger management commands."""


cli.add_command(create_tables)
cli.add_command(run_job)


if __name__ == "__main__":
    cli()
