# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from api.error_handler import extract_constraint_name
from domain.db.constraints import UniqueConstraintName
from domain.db.models import Permission, ProjectDB, ProjectGroupDB
from domain.errors import ResourceAlreadyExistsError, ResourceNotFoundError, ResourceType
from domain.repositories.project import GroupRepository, ProjectRepository
from domain.services.base import BaseService
from domain.services.schemas.mappers.project import project_db_to_schema
from domain.services.schemas.project import ProjectCreateSchema, ProjectSchema

logger = logging.getLogger(__name__)


class ProjectService(BaseService):
    """
    Service layer for projects.

    Pipelines are always imported under a project; this service loads projects
    with their group bindings and bootstraps new ones.
    """

    def __init__(
        self,
        session: Session,
        project_repository: ProjectRepository | None = None,
        group_repository: GroupRepository | None = None,
    ):
        super().__init__(session=session)
        self.project_repository = project_repository or ProjectRepository(session=session)
        self.group_repository = group_repository or GroupRepository(session=session)

    def load_project(self, key: str, with_groups: bool = True) -> ProjectDB:
        """
        Load a project entity by key.

        Raises:
            ResourceNotFoundError: If the project does not exist.
        """
        logger.debug("Project load requested: key=%s with_groups=%s", key, with_groups)
        project = self.project_repository.get_by_key(key, with_groups=with_groups)
        if not project:
            logger.error("Project not found: key=%s", key)
            raise ResourceNotFoundError(resource_type=ResourceType.PROJECT, resource_id=key)
        return project

    def get_project(self, key: str) -> ProjectSchema:
        """Retrieve a project by key."""
        return project_db_to_schema(self.load_project(key))

    def create_project(self, create_data: ProjectCreateSchema) -> ProjectSchema:
        """
        Persist a new project; every listed group gets read/write/execute permission.
        Database constraints enforce key uniqueness.
        """
        logger.debug("Project create requested: key=%s name=%s", create_data.key, create_data.name)
        project = ProjectDB(key=create_data.key, name=create_data.name)
        try:
            with self.db_transaction():
                self.project_repository.add(project)
                for group_name in dict.fromkeys(create_data.groups):
                    group = self.group_repository.get_or_add(group_name)
                    project.groups.append(
                        ProjectGroupDB(group=group, permission=Permission.READ_WRITE_EXECUTE)
                    )
                self.project_repository.update(project)
        except IntegrityError as exc:
            logger.error("Project creation failed due to constraint violation: %s", exc)
            self._handle_project_integrity_error(exc, create_data.key)

        logger.info("Project created: id=%s key=%s", project.id, project.key)
        return self.get_project(create_data.key)

    def _handle_project_integrity_error(self, exc: IntegrityError, project_key: str) -> None:
        error_msg = str(exc.orig).lower()
        constraint_name = extract_constraint_name(error_msg)
        logger.warning(
            "Project constraint violation: key=%s, constraint=%s, error=%s",
            project_key,
            constraint_name or "unknown",
            error_msg,
        )
        if constraint_name == UniqueConstraintName.PROJECT_KEY or "project.key" in error_msg:
            raise ResourceAlreadyExistsError(
                resource_type=ResourceType.PROJECT,
                resource_value=project_key,
                field="key",
            )
        raise ValueError("Database constraint violation. Please check your input and try again.")
