import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from kardexcare.api import (
    auth, customers, assets, tickets, ticket_comments, ticket_reports, offers, service_zones, users,
    dashboard, import_export
)
from kardexcare.config import Settings, settings as default_settings
from kardexcare.database import Database
from kardexcare.errors import register_exception_handlers
from kardexcare.services.storage import prepare_storage
from kardexcare.zone_assign import route as zone_assign_route

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings):
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )


def create_app(settings: Settings = None) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings)

    database = Database(settings.database_connection_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database.connect()
        if settings.force_migrate or database.is_sqlite:
            database.create_all()
            logger.info("Database tables created")
        try:
            yield
        finally:
            database.dispose()

    app = FastAPI(title="KardexCare API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database

    register_exception_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
        allow_headers=["*"],
    )

    prepare_storage(settings)

    app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
    app.include_router(customers.router, prefix="/api", tags=["Customers"])
    app.include_router(assets.router, prefix="/api", tags=["Assets"])
    app.include_router(tickets.router, prefix="/api", tags=["Tickets"])
    app.include_router(ticket_comments.router, prefix="/api", tags=["Tickets"])
    app.include_router(ticket_reports.router, prefix="/api", tags=["Tickets"])
    app.include_router(offers.router, prefix="/api", tags=["Offers"])
    app.include_router(service_zones.router, prefix="/api", tags=["Service Zones"])
    app.include_router(zone_assign_route.router, prefix="/api")
    app.include_router(users.router, prefix="/api", tags=["Users"])
    app.include_router(dashboard.router, prefix="/api")
    app.include_router(import_export.router, prefix="/api", tags=["Import/Export"])

    @app.get("/api/health")
    async def health_check():
        return {"status": "healthy", "service": "kardexcare"}

    return app
