# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

from unittest.mock import MagicMock

import pytest

from domain.services.base import BaseService


@pytest.fixture
def mock_session():
    return MagicMock(name="session")


@pytest.fixture
def mock_dispatcher():
    return MagicMock(name="dispatcher")


@pytest.fixture
def service(mock_session, mock_dispatcher):
    return BaseService(session=mock_session, event_dispatcher=mock_dispatcher)


def test_commit_then_dispatch(service, mock_session, mock_dispatcher):
    event = object()

    def _dispatch(received):
        assert received is event
        mock_session.commit.assert_called_once()

    mock_dispatcher.dispatch.side_effect = _dispatch

    with service.db_transaction():
        service._pending_events.append(event)

    mock_dispatcher.dispatch.assert_called_once_with(event)
    mock_session.rollback.assert_not_called()
    assert service._pending_events == []


def test_error_rolls_back_and_drops_events(service, mock_session, mock_dispatcher):
    with pytest.raises(ValueError, match="boom"):
        with service.db_transaction():
            service._pending_events.append(object())
            raise ValueError("boom")

    mock_session.commit.assert_not_called()
    mock_session.rollback.assert_called_once()
    mock_dispatcher.dispatch.assert_not_called()
    assert service._pending_events == []


def test_commit_failure_rolls_back_without_events(service, mock_session, mock_dispatcher):
    mock_session.commit.side_effect = RuntimeError("database is locked")

    with pytest.raises(RuntimeError, match="database is locked"):
        with service.db_transaction():
            service._pending_events.append(object())

    mock_session.rollback.assert_called_once()
    mock_dispatcher.dispatch.assert_not_called()


def test_rollback_failure_keeps_the_original_error(service, mock_session):
    mock_session.rollback.side_effect = RuntimeError("connection lost")

    with pytest.raises(ValueError, match="boom"):
        with service.db_transaction():
            raise ValueError("boom")


def test_dispatch_failure_is_logged_not_raised(service, mock_session, mock_dispatcher):
    mock_dispatcher.dispatch.side_effect = [RuntimeError("executor shut down"), None]
    first, second = object(), object()

    with service.db_transaction():
        service._pending_events.extend([first, second])

    assert mock_dispatcher.dispatch.call_count == 2
    mock_session.commit.assert_called_once()


def test_no_dispatcher(mock_session):
    service = BaseService(session=mock_session)

    with service.db_transaction():
        service._pending_events.append(object())

    mock_session.commit.assert_called_once()
    assert service._pending_events == []
