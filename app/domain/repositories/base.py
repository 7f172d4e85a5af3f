# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

import logging
from datetime import UTC, datetime
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from domain.db.models import Base

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Base repository class for database operations."""

    def __init__(self, session: Session, model: type[ModelType]) -> None:
        """Initialize the repository."""
        self.session = session
        self.model = model

    def add(self, item: ModelType) -> ModelType:
        """Add a new item to the session."""
        current_time = datetime.now(UTC)
        item.created_at, item.updated_at = current_time, current_time
        self.session.add(item)
        self.session.flush()
        logger.debug(f"Added {item}")
        return item

    def update(self, item: ModelType) -> ModelType:
        """Flush pending changes of an item attached to the session."""
        item.updated_at = datetime.now(UTC)
        self.session.flush()
        logger.debug(f"Updated {item}")
        return item
