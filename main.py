import logging
import logging.config
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from flower_snap.api import router as flower_router
from flower_snap.config.settings import LOGGING_CONFIG
from flower_snap.services import FlowerPipeline, close_flower_service

logger = logging.getLogger(__name__)


def create_app(pipeline_factory: Optional[Callable[[], FlowerPipeline]] = None) -> FastAPI:
    """
    Args:
        pipeline_factory: фабрика конвейера экрана (по умолчанию FlowerPipeline)
    """
    factory = pipeline_factory or FlowerPipeline

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.pipeline = factory()
        logger.info("Flower Snap запущен и готов к работе.")
        yield
        app.state.pipeline.close()
        app.state.pipeline = None
        close_flower_service()
        logger.info("Flower Snap завершает работу.")

    app = FastAPI(
        title="Flower Snap API",
        description="Распознавание цветов по снимку с описанием из Wikipedia",
        version="1.0.0",
        lifespan=lifespan
    )

    # Разрешаем CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Подключаем маршруты
    app.include_router(flower_router)

    @app.get("/")
    def root():
        return {
            "message": "Добро пожаловать! Перейдите /docs для тестирования API"
        }

    return app


logging.config.dictConfig(LOGGING_CONFIG)
app = create_app()
