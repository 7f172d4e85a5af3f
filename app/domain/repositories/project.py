# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from domain.db.models import GroupDB, ProjectDB, ProjectGroupDB
from domain.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class ProjectRepository(BaseRepository[ProjectDB]):
    """
    Repository responsible for low-level persistence of `ProjectDB` entities.
    """

    def __init__(self, session: Session):
        """Initialize the repository."""
        super().__init__(session=session, model=ProjectDB)

    def get_by_key(self, key: str, with_groups: bool = False) -> ProjectDB | None:
        """Retrieve a project by its key, optionally loading its group bindings."""
        stmt = select(ProjectDB).where(ProjectDB.key == key)
        if with_groups:
            stmt = stmt.options(selectinload(ProjectDB.groups).joinedload(ProjectGroupDB.group))
        return self.session.execute(stmt).scalar_one_or_none()


class GroupRepository(BaseRepository[GroupDB]):
    """Repository of `GroupDB` entities."""

    def __init__(self, session: Session):
        """Initialize the repository."""
        super().__init__(session=session, model=GroupDB)

    def get_by_name(self, name: str) -> GroupDB | None:
        stmt = select(GroupDB).where(GroupDB.name == name)
        return self.session.execute(stmt).scalar_one_or_none()

    def get_or_add(self, name: str) -> GroupDB:
        """Return the group with the given name, creating it when missing."""
        return self.get_by_name(name) or self.add(GroupDB(name=name))
