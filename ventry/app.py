"""Application factory for the Ventry FastAPI backend."""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings, get_settings
from .memory import PlanStore
from .routers import plans


def _configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure a FastAPI application instance."""
    settings = settings or get_settings()
    _configure_logging(settings)

    app = FastAPI(
        title="Ventry Backend",
        version="0.1.0",
        description="AI-generated small-business plans with day-by-day task timelines.",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.allowed_origins),
        allow_origin_regex=r"http://localhost:\d+$",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.settings = settings
    app.state.plan_store = PlanStore()
    app.include_router(plans.router)
    return app


app = create_app()
