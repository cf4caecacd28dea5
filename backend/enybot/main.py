"""Main FastAPI application."""

from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from enybot.config import settings
from enybot.database import Base, engine, AsyncSessionLocal, create_tables
from enybot.errors import register_exception_handlers
from enybot.redis_client import redis_cache
from enybot.seed import seed_users

# Models must be imported before create_all
from enybot import models  # noqa: F401
from enybot.api import auth, users, chat

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and seed accounts on startup; release connections on shutdown."""
    logger.info("Starting EnyBot API...")

    if settings.CREATE_TABLES_ON_STARTUP:
        await create_tables()
        logger.info(f"Registered {len(Base.metadata.tables)} SQLAlchemy tables:")
        for table_name in sorted(Base.metadata.tables.keys()):
            logger.info(f"  {table_name}")

    if settings.SEED_ON_STARTUP:
        async with AsyncSessionLocal() as db:
            await seed_users(db)

    logger.info("Registered Routes:")
    for route in app.routes:
        if hasattr(route, "path"):
            logger.info(f"  {route.path}")

    logger.info(f"API BaseUrl available at: {settings.API_PREFIX}")
    yield

    logger.info("Shutting down EnyBot API...")
    await redis_cache.close()
    await engine.dispose()


def create_app() -> FastAPI:
    app = FastAPI(
        title="EnyBot API",
        description="Middle-tier backend between the chat frontend and the AI core service",
        version="1.0.0",
        docs_url=f"{settings.API_PREFIX}{settings.SWAGGER_URL}",
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
        redirect_slashes=False,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    prefix = settings.API_PREFIX
    app.include_router(auth.router, prefix=f"{prefix}/auth", tags=["Authentication"])
    app.include_router(users.router, prefix=f"{prefix}/user", tags=["Users"])
    app.include_router(chat.router, prefix=f"{prefix}/chat", tags=["Chatbot"])

    @app.get(prefix)
    async def root():
        """Welcome message."""
        return {
            "message": f"API BaseUrl: {prefix}",
            "current_datetime": datetime.now(timezone.utc).isoformat(),
            "doc_link": f"{prefix}{settings.SWAGGER_URL}",
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": "1.0.0",
            "registered_tables": len(Base.metadata.tables),
        }

    return app


app = create_app()
