# retail_ledger/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from retail_ledger.core.config import get_settings
from retail_ledger.core.logging_config import configure_logging
from retail_ledger.routes import activity, health, orders, reports
from retail_ledger.scheduler import start_scheduler, stop_scheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    logger.info("Starting Retail Ledger (%s)", settings.ENVIRONMENT)

    await start_scheduler()
    try:
        yield
    finally:
        await stop_scheduler()
        logger.info("Retail Ledger shut down")


app = FastAPI(title="Retail Ledger", lifespan=lifespan)

app.include_router(health.router)
app.include_router(orders.router)
app.include_router(activity.router)
app.include_router(reports.router)
