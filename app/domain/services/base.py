# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

import logging
from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy.orm import Session

from domain.dispatcher import EventDispatcher, PipelineEvent

logger = logging.getLogger(__name__)


class BaseService:
    def __init__(
        self,
        session: Session,
        event_dispatcher: EventDispatcher | None = None,
    ):
        """Initialize the service"""
        self.session = session
        self._dispatcher = event_dispatcher
        self._pending_events: list[PipelineEvent] = []

    @contextmanager
    def db_transaction(self) -> Generator[None, None, None]:
        """
        Context manager for database transactions with automatic event dispatching.
        Any exit other than a successful commit rolls back and drops the queued events;
        events are dispatched only after the commit went through.

        Usage:
            with self.db_transaction():
                # perform DB operations
                # create relevant events and add them to self._pending_events
        """
        try:
            yield
            self.session.commit()
        except BaseException:
            self._rollback()
            self._pending_events.clear()
            raise
        self._dispatch_pending_events()

    def _rollback(self) -> None:
        """Roll back the current transaction; a failing rollback leaves nothing to recover."""
        try:
            self.session.rollback()
        except Exception:
            logger.warning("Rollback failed", exc_info=True)

    def _dispatch_pending_events(self) -> None:
        """
        Dispatch and clear queued events (call only after a successful commit).
        """
        if self._dispatcher and self._pending_events:
            for event in self._pending_events:
                try:
                    self._dispatcher.dispatch(event)
                except Exception:
                    logger.exception("Failed to dispatch event %s", event)
        self._pending_events.clear()
