from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api import router
from logging_config import configure_logging
from services.agent import build_default_agent
from settings import CLIENT_VERSION


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    agent = build_default_agent().start()
    try:
        yield
    finally:
        agent.shutdown()
        build_default_agent.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Aquarium Temperature Monitor",
        description="Samples a 1-Wire temperature sensor and reports readings to InfluxDB.",
        version=CLIENT_VERSION,
        lifespan=lifespan,
    )
    app.include_router(router)
    return app

app = create_app()
