import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from accident_gateway import __version__
from accident_gateway.config import Settings
from accident_gateway.routers.analysis import router as analysis_router
from accident_gateway.schemas.analysis import HealthResponse
from accident_gateway.services.ai_service import ModelClient
from accident_gateway.utils.exceptions import register_exception_handlers
from accident_gateway.utils.response import status_response

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(settings: Settings | None = None, model_client: ModelClient | None = None) -> FastAPI:
    settings = settings or Settings()
    configure_logging(settings.log_level)
    if not settings.openai_api_key:
        logger.warning("OPENAI_API_KEY is not set; /analyze-accident will fail until it is")

    app = FastAPI(
        title="Accident Analysis API",
        description="Vehicle accident photo severity and repair assessment",
        version=__version__,
    )
    app.state.settings = settings
    app.state.model_client = model_client or ModelClient(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(analysis_router)

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        return status_response("Service is running normally")

    return app


app = create_app()


def run() -> None:
    import uvicorn

    settings = app.state.settings
    logger.info("Server listening on http://localhost:%d", settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
