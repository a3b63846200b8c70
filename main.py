"""
Todo API — application entry point.
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.errors import register_exception_handlers
from api.middleware import register_middleware
from api.routes import router as todo_router
from auth.jwt import TokenIssuer
from auth.routes import router as user_router
from config.settings import Settings, config
from core.session_manager import SessionManager
from core.todo_manager import TodoManager
from database.session import build_engine, build_session_factory, init_models

logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
    stream=sys.stdout,
)
for _noisy in ("sqlalchemy.engine", "asyncio", "aiosqlite"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or config

    # Collaborators are built once here; a missing secret fails at startup.
    token_issuer = TokenIssuer.from_settings(settings)
    engine = build_engine(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.create_tables_on_startup:
            logger.info("Creating missing tables…")
            await init_models(engine)
        if settings.access_token_expiry_seconds < 300:
            logger.warning(
                "Access tokens expire after %ds; clients must refresh almost constantly",
                settings.access_token_expiry_seconds,
            )
        logger.info("Application ready to accept requests.")
        yield
        await engine.dispose()

    app = FastAPI(
        title="Todo API",
        version="1.0.0",
        description="Todo lists with JWT access / refresh sessions.",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.token_issuer = token_issuer
    app.state.session_manager = SessionManager(token_issuer, bcrypt_rounds=settings.bcrypt_rounds)
    app.state.todo_manager = TodoManager()

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_middleware(app)
    register_exception_handlers(app)

    # Routes
    app.include_router(user_router, prefix=f"{settings.api_prefix}/user")
    app.include_router(todo_router, prefix=f"{settings.api_prefix}/todo")

    @app.get("/health", tags=["health"])
    async def health():
        return {"status": "ok"}

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level="debug" if config.debug else "info",
    )
