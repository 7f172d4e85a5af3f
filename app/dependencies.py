# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

import logging
from typing import Annotated

from fastapi import Depends, Path, Request
from sqlalchemy.orm import Session
from starlette.requests import ClientDisconnect

from domain.db.engine import get_session
from domain.db.models import ProjectDB
from domain.dispatcher import EventDispatcher
from domain.errors import WrongRequestError
from domain.messages import negotiate_language
from domain.services.pipeline import PipelineService
from domain.services.project import ProjectService
from domain.services.schemas.consumer import Consumer
from settings import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


# --- Core singletons ---
def get_event_dispatcher(request: Request) -> EventDispatcher:
    """Dependency that provides access to the EventDispatcher."""
    return request.app.state.event_dispatcher


# --- DB session dependency ---
SessionDep = Annotated[Session, Depends(get_session)]


# --- Request context ---
def get_consumer(request: Request) -> Consumer:
    """Resolve the consumer attributed to the request."""
    username = (request.headers.get(settings.consumer_header) or "").strip()
    return Consumer(username=username or settings.anonymous_consumer)


def get_language(request: Request) -> str:
    """Language negotiated from the Accept-Language header."""
    return negotiate_language(request.headers.get("accept-language"), default=settings.default_language)


async def read_request_body(request: Request) -> bytes:
    """
    Read the raw request body.

    Raises:
        WrongRequestError: if the body cannot be read.
    """
    try:
        return await request.body()
    except (ClientDisconnect, RuntimeError) as exc:
        logger.warning("Unable to read request body: %s", exc)
        raise WrongRequestError("Unable to read body") from exc


# --- Service providers ---
def get_project_service(session: SessionDep) -> ProjectService:
    """Dependency that provides a ProjectService instance."""
    return ProjectService(session=session)


def get_pipeline_service(
    session: SessionDep,
    dispatcher: Annotated[EventDispatcher, Depends(get_event_dispatcher)],
) -> PipelineService:
    """Dependency that provides a PipelineService instance."""
    return PipelineService(session=session, event_dispatcher=dispatcher)


def get_project_with_groups(
    project_key: Annotated[str, Path(min_length=1)],
    project_service: Annotated[ProjectService, Depends(get_project_service)],
) -> ProjectDB:
    """Load the project addressed by the request path, with its groups."""
    return project_service.load_project(project_key, with_groups=True)


# --- Dependency aliases ---
ProjectServiceDep = Annotated[ProjectService, Depends(get_project_service)]
PipelineServiceDep = Annotated[PipelineService, Depends(get_pipeline_service)]
ProjectWithGroupsDep = Annotated[ProjectDB, Depends(get_project_with_groups)]
RequestBodyDep = Annotated[bytes, Depends(read_request_body)]
ConsumerDep = Annotated[Consumer, Depends(get_consumer)]
LanguageDep = Annotated[str, Depends(get_language)]
