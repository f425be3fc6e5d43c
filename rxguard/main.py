"""RxGuard API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map RxGuardError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Collaborators (HTTP clients, stores, cache, composer) built once in the
      lifespan, stored on app.state, closed on shutdown

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - SQLite URLs get create_all on startup; PostgreSQL schema is owned by Alembic
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rxguard.api.error_handlers import register_error_handlers
from rxguard.api.routes import health, rxguard
from rxguard.config import get_settings
from rxguard.infrastructure.baseline_client import BaselineModelClient
from rxguard.infrastructure.blob_store import FileBlobStore
from rxguard.infrastructure.database import init_db
from rxguard.infrastructure.label_store import SqlLabelRepository
from rxguard.infrastructure.observability import setup_logging
from rxguard.infrastructure.openfda_client import OpenFdaClient
from rxguard.services.label_cache import LabelCache
from rxguard.services.rxguard_answer import RxGuardAnswerService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    if settings.database_url.startswith("sqlite"):
        await manager.create_all()

    openfda = OpenFdaClient(
        base_url=settings.openfda_base_url,
        api_key=settings.openfda_api_key,
        timeout_seconds=settings.openfda_timeout_seconds,
    )
    baseline = None
    if settings.rxguard_llm_base_url:
        baseline = BaselineModelClient(
            base_url=settings.rxguard_llm_base_url,
            provider=settings.rxguard_llm_provider,
            api_key=settings.rxguard_llm_api_key,
            timeout_seconds=settings.baseline_timeout_seconds,
        )

    label_cache = LabelCache(
        label_source=openfda,
        repository=SqlLabelRepository(manager.session),
        blob_store=FileBlobStore(settings.blob_store_dir),
        candidate_limit=settings.label_candidate_limit,
        inline_max_bytes=settings.label_inline_max_bytes,
    )
    app.state.label_cache = label_cache
    app.state.answer_service = RxGuardAnswerService(
        label_cache, settings, baseline_client=baseline,
    )
    logger.info("RxGuard API started")
    yield
    logger.info("RxGuard API shutting down")
    await openfda.aclose()
    if baseline:
        await baseline.aclose()
    await manager.dispose()


app = FastAPI(title="RxGuard API", version="0.1.0", lifespan=lifespan)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(rxguard.router)

register_error_handlers(app)
