from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from recurring_engine.api.routes import candidates, detect, system
from recurring_engine.core import settings
from recurring_engine.core.configuration import load_detection_settings
from recurring_engine.detector import RecurringDetector
from recurring_engine.logger import get_logger, setup_logging
from recurring_engine.manager import ClassifierService
from recurring_engine.services.classification import ClassificationPipeline

logger = get_logger(__name__)


def create_app() -> FastAPI:
    setup_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Initializing services...")
        settings.log_environment()

        detection_settings = load_detection_settings()
        service = ClassifierService(data_dir=settings.get_data_dir())

        app.state.detector = RecurringDetector(detection_settings)
        app.state.service = service
        app.state.pipeline = ClassificationPipeline(
            service=service,
            min_confidence=detection_settings.classifier_min_confidence,
        )

        logger.info("Services initialized.")
        yield
        logger.info("Service shutting down.")

    app = FastAPI(title="Recurring Engine", lifespan=lifespan)

    app.include_router(detect.router)
    app.include_router(candidates.router)
    app.include_router(system.router)

    return app


app = create_app()
