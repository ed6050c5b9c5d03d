"""FastAPI application entrypoint."""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from dotenv import load_dotenv
from fastapi import FastAPI

from app.adapters.inbound.http.routes import get_services, router
from app.infrastructure.config.settings import settings
from app.infrastructure.db import create_schema
from app.infrastructure.logging.logger import log_event

# Load environment variables from .env file
load_dotenv()


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    """Create the SQLite schema in development and seed the first admin."""
    if settings.database_url.startswith("sqlite"):
        create_schema()
    if settings.bootstrap_admin_email and settings.bootstrap_admin_password:
        await get_services().directory.bootstrap_admin(
            settings.bootstrap_admin_email,
            settings.bootstrap_admin_password,
            settings.bootstrap_admin_name,
        )
    log_event(component="app", action="startup", lead_repository=settings.lead_repository)
    yield


app = FastAPI(
    title="Opportunity Tracker",
    description="School sales lead tracker: lead lifecycle, bulk upload and dashboards",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(router)
