# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Protocol

from pydantic import BaseModel

from domain.services.schemas.consumer import Consumer
from domain.services.schemas.pipeline import PipelineSchema

logger = logging.getLogger(__name__)


class PipelineAddEvent(BaseModel):
    """Event fired once a pipeline import has been committed."""

    project_key: str
    pipeline: PipelineSchema
    consumer: Consumer


PipelineEvent = PipelineAddEvent


class PipelineEventListener(Protocol):
    """
    Defines a protocol for consumers that need to react to committed pipeline changes.
    """

    def __call__(self, event: PipelineEvent) -> None: ...


class EventDispatcher:
    """
    Manages and dispatches pipeline events to subscribed listeners.

    Events are dispatched asynchronously to avoid blocking HTTP responses.
    Services only hand events over after their transaction has been committed.
    """

    def __init__(self, max_workers: int = 2):
        self._listeners: list[PipelineEventListener] = []
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="event-dispatcher")

    def subscribe(self, listener: PipelineEventListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def dispatch(self, event: PipelineEvent) -> None:
        """Dispatch an event to all subscribed listeners."""
        for listener in self._listeners:
            self._executor.submit(self._safe_notify, listener, event)

    def _safe_notify(self, listener: PipelineEventListener, event: PipelineEvent) -> None:
        try:
            listener(event)
        except Exception:
            logger.exception(
                "Listener failed to process event: listener=%s, event=%s",
                listener.__class__.__name__,
                event.__class__.__name__,
            )

    def shutdown(self, wait: bool = True) -> None:
        """Shutdown the executor. Call during application shutdown."""
        self._executor.shutdown(wait=wait)


def log_pipeline_event(event: PipelineEvent) -> None:
    """Listener recording committed pipeline events in the application log."""
    logger.info(
        "Pipeline event: type=%s project=%s pipeline=%s consumer=%s",
        event.__class__.__name__,
        event.project_key,
        event.pipeline.name,
        event.consumer.username,
    )
