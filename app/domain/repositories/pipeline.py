# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

import logging
from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from domain.db.models import PipelineAuditDB, PipelineDB
from domain.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class PipelineRepository(BaseRepository[PipelineDB]):
    """
    Repository of project-scoped `PipelineDB` entities and their stages.
    """

    def __init__(self, session: Session):
        """Initialize the repository."""
        super().__init__(session=session, model=PipelineDB)

    def get_by_name(self, project_id: UUID, name: str) -> PipelineDB | None:
        """Retrieve a pipeline of the project by name, with its stages."""
        stmt = (
            select(PipelineDB)
            .where(PipelineDB.project_id == project_id, PipelineDB.name == name)
            .options(selectinload(PipelineDB.stages))
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def list_all_by_project(self, project_id: UUID) -> Sequence[PipelineDB]:
        """List the pipelines of the project ordered by name."""
        stmt = (
            select(PipelineDB)
            .where(PipelineDB.project_id == project_id)
            .options(selectinload(PipelineDB.stages))
            .order_by(PipelineDB.name)
        )
        return self.session.execute(stmt).scalars().all()


class PipelineAuditRepository(BaseRepository[PipelineAuditDB]):
    """Repository of pipeline audit rows."""

    def __init__(self, session: Session):
        """Initialize the repository."""
        super().__init__(session=session, model=PipelineAuditDB)
