# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.middleware.cors import CORSMiddleware

import api.endpoints  # noqa: F401, pylint: disable=unused-import  # Importing for endpoint registration
from api.error_handler import custom_exception_handler
from api.routers import pipelines_router, projects_router
from domain.db.engine import init_db
from domain.dispatcher import EventDispatcher, log_pipeline_event
from settings import get_settings

settings = get_settings()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """FastAPI lifespan context manager"""
    # Startup actions
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format=settings.log_format,
        force=True,
    )
    logger.info(f"Starting {settings.app_name} application...")
    init_db()

    app.state.event_dispatcher = EventDispatcher()
    app.state.event_dispatcher.subscribe(log_pipeline_event)

    logger.info("Application startup completed")
    yield

    # Shutdown actions
    logger.info(f"Shutting down {settings.app_name} application...")
    app.state.event_dispatcher.shutdown()


fastapi_app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    summary=settings.summary,
    description=settings.description,
    openapi_url=settings.openapi_url,
    redoc_url=None,
    lifespan=lifespan,
)

fastapi_app.add_exception_handler(Exception, custom_exception_handler)
fastapi_app.add_exception_handler(RequestValidationError, custom_exception_handler)


@fastapi_app.get(path="/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint"""
    return {"status": "ok"}


fastapi_app.include_router(projects_router, prefix="/api/v1")
fastapi_app.include_router(pipelines_router, prefix="/api/v1")

app = CORSMiddleware(
    app=fastapi_app,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def main() -> None:
    """Main application entry point"""
    log_config = uvicorn.config.LOGGING_CONFIG
    log_config["formatters"]["default"]["fmt"] = settings.log_format
    log_config["formatters"]["access"]["fmt"] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logger.info(f"Starting {settings.app_name} in {settings.environment} mode")
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level="debug" if settings.debug else "info",
        log_config=log_config,
    )


if __name__ == "__main__":
    main()
