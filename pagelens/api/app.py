"""FastAPI application entry point for Pagelens."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pagelens.api.routes import router
from pagelens.config.settings import PagelensConfig

VERSION = "0.1.0"


def create_app(config: PagelensConfig | None = None) -> FastAPI:
    """Factory function for creating the FastAPI application."""
    config = config or PagelensConfig()
    logging.basicConfig(level=config.log_level.upper())

    app = FastAPI(
        title="Pagelens",
        description="Heuristic page extraction and form apply",
        version=VERSION,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.allowed_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.include_router(router, prefix="/api/v1")

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy", "service": "pagelens", "version": VERSION}

    return app


app = create_app()
