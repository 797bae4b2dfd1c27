"""Main FastAPI application."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from agenda import __version__
from agenda.api.endpoints import router
from agenda.config import AgendaConfig
from agenda.services import AgendaServices
from agenda.utils.logging import LogConfig, get_logger, setup_logging

logger = get_logger(__name__)


def create_app(services: AgendaServices | None = None, config: AgendaConfig | None = None) -> FastAPI:
    """Create the agenda application.

    Args:
        services: Prebuilt scheduling services; built from config if omitted
        config: Service configuration, read from the environment if omitted
    """
    config = config or AgendaConfig.from_env()
    setup_logging(LogConfig(level=config.log_level))
    owned = services or AgendaServices.build(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Agenda service starting")
        yield
        await owned.aclose()
        logger.info("Agenda service stopped")

    app = FastAPI(
        title="Dental Agenda",
        description=(
            "Appointment scheduling for a dental clinic: per-day agendas, "
            "double-booking protection and patient name enrichment."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
        openapi_tags=[
            {
                "name": "Agenda",
                "description": "Read a practitioner's day with patient names and status counts.",
            },
            {
                "name": "Appointments",
                "description": (
                    "Create, edit, move, cancel and delete appointments. "
                    "Every write is checked for slot conflicts first."
                ),
            },
            {
                "name": "Health",
                "description": "Service health monitoring and status checks.",
            },
        ],
    )
    app.state.services = owned

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("agenda.main:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
