from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from finance_tracker.api.routes import categories, dashboard, imports, transactions, users
from finance_tracker.core import settings
from finance_tracker.core.configuration import AppConfig, load_app_config
from finance_tracker.integration.archive import build_archive
from finance_tracker.logger import get_logger, setup_logging
from finance_tracker.resolvers.factory import build_resolver
from finance_tracker.services.dashboard import DashboardAggregator
from finance_tracker.services.importer import ImportOrchestrator
from finance_tracker.services.uploads import UploadPipeline
from finance_tracker.storage.database import build_engine, build_session_factory, create_schema
from finance_tracker.storage.sql import SqlLedgerStore

logger = get_logger(__name__)


def create_app(config: AppConfig | None = None) -> FastAPI:
    settings.load_environment()
    setup_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Initializing services...")
        settings.log_environment()

        app_config = config or load_app_config()
        engine = build_engine(app_config.database_url)
        create_schema(engine)

        store = SqlLedgerStore(build_session_factory(engine))
        orchestrator = ImportOrchestrator(store=store, resolver=build_resolver(app_config))
        archive = build_archive(app_config)

        app.state.config = app_config
        app.state.store = store
        app.state.aggregator = DashboardAggregator(store=store)
        app.state.upload_pipeline = UploadPipeline(
            config=app_config,
            orchestrator=orchestrator,
            archive=archive,
        )

        logger.info(
            "Services initialized (category matching: %s, archive: %s).",
            app_config.category_match_mode,
            archive.__class__.__name__,
        )
        yield
        logger.info("Service shutting down.")
        await archive.aclose()
        engine.dispose()

    app = FastAPI(title="Finance Tracker", lifespan=lifespan)

    app.include_router(users.router)
    app.include_router(categories.router)
    app.include_router(transactions.router)
    app.include_router(dashboard.router)
    app.include_router(imports.router)

    return app


app = create_app()
