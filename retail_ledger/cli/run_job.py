# retail_ledger/cli/run_job.py
import asyncio

import click

from retail_ledger.core.logging_config import configure_logging
from retail_ledger.scheduler import JOB_SCHEDULES, run_job as run_maintenance_job


@click.command("run-job")
@click.argument("name", type=click.Choice(sorted(JOB_SCHEDULES)))
def run_job(name):
    """Run one maintenance job immediately."""
    configure_logging()
    summary = asyncio.run(run_maintenance_job(name))
    for key, value in summary.items():
        click.echo(f"{key}: {value}")


if __name__ == "__main__":
    run_job()
