# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

import pytest
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError

from api.error_handler import extract_constraint_name, localize_error, resolve_http_status
from domain.errors import (
    InvalidPipelineError,
    LocalizedInvalidPipelineError,
    PipelineAlreadyExistsError,
    PipelineImportError,
    ResourceAlreadyExistsError,
    ResourceNotFoundError,
    ResourceType,
    WrongRequestError,
)
from domain.messages import ImportMessage, MessageID
from serialization import UnsupportedFormatError


@pytest.mark.parametrize(
    "exc,expected",
    [
        (ResourceNotFoundError(ResourceType.PROJECT, "CDS"), 404),
        (ResourceAlreadyExistsError(ResourceType.PROJECT, "CDS", field="key"), 409),
        (PipelineAlreadyExistsError("build"), 409),
        (WrongRequestError("Unable to read body"), 400),
        (InvalidPipelineError("unable to parse pipeline"), 400),
        (RequestValidationError([]), 400),
        (IntegrityError("INSERT", {}, Exception("constraint")), 400),
        (UnsupportedFormatError("xml"), 400),
        (ValueError("bad value"), 400),
        (RuntimeError("boom"), None),
        (PipelineImportError([]), None),
        (KeyError("stage"), None),
    ],
)
def test_resolve_http_status(exc, expected):
    assert resolve_http_status(exc) == expected


def test_localize_error():
    error = LocalizedInvalidPipelineError(ImportMessage(id=MessageID.PIPELINE_INVALID_NAME, args=("a b",)))

    assert localize_error(error, "fr").startswith("Nom de pipeline 'a b' invalide")
    assert localize_error(PipelineAlreadyExistsError("build"), "fr") == "Le pipeline build existe déjà"
    assert localize_error(WrongRequestError("Unable to read body"), "fr") == "Unable to read body"
    assert localize_error(WrongRequestError(), "en") == "Invalid request. Please check your input and try again."


@pytest.mark.parametrize(
    "message,expected",
    [
        ("UNIQUE constraint failed: uq_pipeline_name_per_project", "uq_pipeline_name_per_project"),
        ("UNIQUE constraint failed: Project.key", "project_key"),
        ('duplicate key value violates unique constraint "uq_project_key"', "uq_project_key"),
        ("FOREIGN KEY constraint failed", None),
    ],
)
def test_extract_constraint_name(message, expected):
    assert extract_constraint_name(message) == expected
