from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.router import router
from src.config import settings
from src.core.exceptions import register_exception_handlers
from src.core.logging import configure_logging

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    configure_logging(settings.log_level, json_logs=settings.log_json)
    logger.info("app_started", app=settings.app_name)
    yield
    storage = getattr(app.state, "storage", None)
    if storage is not None:
        await storage.close()
    notion = getattr(app.state, "notion", None)
    if notion is not None:
        await notion.aclose()
    logger.info("app_stopped", app=settings.app_name)


app = FastAPI(title=settings.app_name, debug=settings.debug, lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_exception_handlers(app)
app.include_router(router)


def run() -> None:
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level)
