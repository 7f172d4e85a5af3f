# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

import pytest
from sqlalchemy.exc import IntegrityError

from domain.db.models import GroupDB, Permission, ProjectDB, ProjectGroupDB
from domain.repositories.project import GroupRepository, ProjectRepository


@pytest.fixture
def repo(fxt_session):
    return ProjectRepository(session=fxt_session)


@pytest.fixture
def group_repo(fxt_session):
    return GroupRepository(session=fxt_session)


@pytest.fixture
def clean_after(request, fxt_clean_table):
    request.addfinalizer(lambda: fxt_clean_table(GroupDB))
    request.addfinalizer(lambda: fxt_clean_table(ProjectDB))


def test_add_sets_timestamps(repo, fxt_session, clean_after):
    project = ProjectDB(key="CDS", name="Continuous Delivery")
    repo.add(project)
    fxt_session.commit()

    fetched = fxt_session.get(ProjectDB, project.id)
    assert fetched is not None
    assert fetched.key == "CDS"
    assert fetched.created_at is not None
    assert fetched.updated_at == fetched.created_at


def test_update_refreshes_updated_at(repo, fxt_session, clean_after):
    project = repo.add(ProjectDB(key="CDS", name="Continuous Delivery"))
    created_at = project.created_at

    project.name = "Delivery"
    repo.update(project)
    assert project.updated_at >= created_at
    fxt_session.commit()

    assert fxt_session.get(ProjectDB, project.id).name == "Delivery"


def test_get_by_key_with_groups(repo, group_repo, fxt_session, clean_after):
    project = ProjectDB(key="CDS", name="Continuous Delivery")
    repo.add(project)
    project.groups.append(ProjectGroupDB(group=group_repo.get_or_add("devops"), permission=Permission.READ_EXECUTE))
    fxt_session.commit()
    fxt_session.expunge_all()

    fetched = repo.get_by_key("CDS", with_groups=True)

    assert fetched is not None
    assert [(binding.group.name, binding.permission) for binding in fetched.groups] == [
        ("devops", Permission.READ_EXECUTE)
    ]


def test_get_by_key_not_found(repo, clean_after):
    assert repo.get_by_key("NOPE") is None


def test_duplicate_key(repo, fxt_session, clean_after):
    repo.add(ProjectDB(key="CDS", name="first"))
    fxt_session.commit()

    with pytest.raises(IntegrityError):
        repo.add(ProjectDB(key="CDS", name="second"))
    fxt_session.rollback()


def test_group_get_or_add_is_idempotent(group_repo, fxt_session, clean_after):
    first = group_repo.get_or_add("devops")
    second = group_repo.get_or_add("devops")
    fxt_session.commit()

    assert first.id == second.id
    assert fxt_session.query(GroupDB).count() == 1
