# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from domain.db.models import GroupDB, Permission, ProjectDB, ProjectGroupDB
from domain.errors import ResourceAlreadyExistsError, ResourceNotFoundError
from domain.services.project import ProjectService
from domain.services.schemas.project import ProjectCreateSchema


@pytest.fixture
def mock_session():
    return MagicMock()


@pytest.fixture
def mock_project_repository():
    return MagicMock()


@pytest.fixture
def mock_group_repository():
    repository = MagicMock()
    repository.get_or_add.side_effect = lambda name: GroupDB(id=uuid4(), name=name)
    return repository


@pytest.fixture
def project_service(mock_session, mock_project_repository, mock_group_repository):
    return ProjectService(
        session=mock_session,
        project_repository=mock_project_repository,
        group_repository=mock_group_repository,
    )


def make_project(key="CDS", groups=()) -> ProjectDB:
    project = ProjectDB(id=uuid4(), key=key, name="Continuous Delivery")
    for name in groups:
        project.groups.append(ProjectGroupDB(group=GroupDB(name=name), permission=Permission.READ))
    return project


def test_load_project(project_service, mock_project_repository):
    project = make_project()
    mock_project_repository.get_by_key.return_value = project

    assert project_service.load_project("CDS") is project
    mock_project_repository.get_by_key.assert_called_once_with("CDS", with_groups=True)


def test_load_project_not_found(project_service, mock_project_repository):
    mock_project_repository.get_by_key.return_value = None

    with pytest.raises(ResourceNotFoundError, match="Project CDS not found."):
        project_service.load_project("CDS")


def test_get_project(project_service, mock_project_repository):
    project = make_project(groups=["devops"])
    mock_project_repository.get_by_key.return_value = project

    result = project_service.get_project("CDS")

    assert result.id == project.id
    assert result.key == "CDS"
    assert [(group.name, group.permission) for group in result.groups] == [("devops", Permission.READ)]


def test_create_project(project_service, mock_session, mock_project_repository, mock_group_repository):
    def _add(project):
        project.id = uuid4()
        mock_project_repository.get_by_key.return_value = project
        return project

    mock_project_repository.add.side_effect = _add
    payload = ProjectCreateSchema(key="CDS", name="Continuous Delivery", groups=["devops", "qa", "devops"])

    result = project_service.create_project(payload)

    assert result.key == "CDS"
    assert [(group.name, group.permission) for group in result.groups] == [
        ("devops", Permission.READ_WRITE_EXECUTE),
        ("qa", Permission.READ_WRITE_EXECUTE),
    ]
    assert mock_group_repository.get_or_add.call_count == 2
    mock_project_repository.update.assert_called_once()
    mock_session.commit.assert_called_once()


def test_create_project_duplicate_key(project_service, mock_session, mock_project_repository):
    mock_project_repository.add.side_effect = IntegrityError(
        "INSERT INTO Project", {}, Exception("UNIQUE constraint failed: Project.key")
    )

    with pytest.raises(ResourceAlreadyExistsError) as exc:
        project_service.create_project(ProjectCreateSchema(key="CDS", name="Continuous Delivery"))

    assert exc.value.field == "key"
    assert str(exc.value) == "Project with key 'CDS' already exists."
    mock_session.rollback.assert_called_once()
    mock_session.commit.assert_not_called()


def test_create_project_other_constraint(project_service, mock_project_repository):
    mock_project_repository.add.side_effect = IntegrityError(
        "INSERT INTO Project", {}, Exception("NOT NULL constraint failed: Project.name")
    )

    with pytest.raises(ValueError, match="Database constraint violation"):
        project_service.create_project(ProjectCreateSchema(key="CDS", name="Continuous Delivery"))
