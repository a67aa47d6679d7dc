import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rounds_memory.config import Settings, get_settings
from rounds_memory.database import build_engine, build_session_factory, init_db
from rounds_memory.api.router import api_router
from rounds_memory.api.health import router as health_router
from rounds_memory.memory.context import ContextBuilder
from rounds_memory.storage.registry import MemoryStoreRegistry

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the service. Database and store registry are wired in lifespan."""
    settings = settings or get_settings()

    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        logger.info("Starting application...")
        engine = build_engine(settings.database_url)
        init_db(engine)
        app.state.session_factory = build_session_factory(engine)
        app.state.registry = MemoryStoreRegistry(
            app.state.session_factory,
            limits=settings.memory_limits,
        )
        app.state.context_builder = ContextBuilder(normalizer=app.state.registry.normalizer)

        yield
        # Shutdown
        logger.info("Shutting down application...")
        engine.dispose()

    app = FastAPI(
        title=settings.app_name,
        description="Longitudinal patient memory and context for hospital rounds conversations",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    # CORS middleware for local development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(health_router)
    app.include_router(api_router)

    @app.get("/")
    async def root():
        return {
            "app": settings.app_name,
            "version": "0.1.0",
            "docs": "/docs",
        }

    return app


app = create_app()
