# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from domain.db.engine import init_db
from domain.db.models import GroupDB, ProjectDB


@pytest.fixture(scope="session")
def fxt_db_url(tmp_path_factory) -> str:
    db_dir = tmp_path_factory.mktemp("db")
    db_file = db_dir / "test_pipelines.sqlite"
    return f"sqlite:///{db_file}"


@pytest.fixture(scope="session")
def fxt_engine(fxt_db_url: str):
    engine = create_engine(fxt_db_url, connect_args={"check_same_thread": False})
    init_db(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def fxt_session_maker(fxt_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=fxt_engine)


@pytest.fixture
def fxt_session(fxt_session_maker):
    session = fxt_session_maker()
    try:
        yield session
        session.rollback()
    finally:
        session.close()


@pytest.fixture
def fxt_clean_table(fxt_session):
    def _clean(model_cls):
        fxt_session.rollback()
        fxt_session.query(model_cls).delete()
        fxt_session.commit()

    return _clean


@pytest.fixture
def fxt_project(fxt_session, request, fxt_clean_table) -> ProjectDB:
    """A committed project with key CDS; removed with everything below it after the test."""
    request.addfinalizer(lambda: fxt_clean_table(GroupDB))
    request.addfinalizer(lambda: fxt_clean_table(ProjectDB))
    project = ProjectDB(key="CDS", name="Continuous Delivery")
    fxt_session.add(project)
    fxt_session.commit()
    return project
