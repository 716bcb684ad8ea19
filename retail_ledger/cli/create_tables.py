# retail_ledger/cli/create_tables.py
import asyncio

import click

from retail_ledger.database import Base, engine

# Import the models so they are registered with the Base
from retail_ledger import models  # noqa: F401


@click.command("create-tables")
@click.option("--drop", is_flag=True, help="Drop existing tables first")
def create_tables(drop):
    """Create all database tables directly using SQLAlchemy"""

    async def _create_tables():
        async with engine.begin() as conn:
            if drop:
                await conn.run_sync(Base.metadata.drop_all)
                click.echo("Existing tables dropped")
            await conn.run_sync(Base.metadata.create_all)
        await engine.dispose()
        click.echo("All tables created successfully!")

    asyncio.run(_create_tables())


if __name__ == "__main__":
    create_tables()
