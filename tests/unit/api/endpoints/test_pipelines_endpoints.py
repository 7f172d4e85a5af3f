# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

import json
from types import SimpleNamespace
from uuid import uuid4

import pytest
import yaml
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.testclient import TestClient

from api.error_handler import custom_exception_handler
from api.routers import pipelines_router, projects_router
from dependencies import get_pipeline_service, get_project_with_groups
from domain.errors import (
    LocalizedInvalidPipelineError,
    PipelineAlreadyExistsError,
    PipelineImportError,
    ResourceNotFoundError,
    ResourceType,
)
from domain.messages import ImportMessage, MessageID, MessageLevel
from domain.services.schemas.declarative import DeclarativePipeline
from domain.services.schemas.pipeline import (
    PipelineListItemSchema,
    PipelineSchema,
    PipelinesListSchema,
    StageSchema,
)

PROJECT = SimpleNamespace(id=uuid4(), key="CDS", groups=[])
DOCUMENT = b"name: build\nstages: [compile]\n"
CREATED_MESSAGES = [
    ImportMessage(id=MessageID.PIPELINE_CREATED, args=("build",)),
    ImportMessage(id=MessageID.STAGE_CREATED, args=("compile",)),
]
PIPELINE = PipelineSchema(name="build", stages=[StageSchema(name="compile", build_order=1)])


def _import_error(messages, cause) -> PipelineImportError:
    error = PipelineImportError(messages)
    error.__cause__ = cause
    return error


class FakePipelineService:
    """Records the calls it receives and answers with the configured behavior."""

    def __init__(self, behavior: str = "success"):
        self.behavior = behavior
        self.calls: list[dict] = []

    def import_pipeline(self, project, payload, consumer, options):
        self.calls.append({"project": project, "payload": payload, "consumer": consumer, "options": options})
        if self.behavior == "success":
            return PIPELINE, CREATED_MESSAGES
        if self.behavior == "conflict":
            raise _import_error([], PipelineAlreadyExistsError(payload.name))
        if self.behavior == "invalid_name":
            message = ImportMessage(id=MessageID.PIPELINE_INVALID_NAME, args=(payload.name,), level=MessageLevel.ERROR)
            raise _import_error(CREATED_MESSAGES[:1], LocalizedInvalidPipelineError(message))
        if self.behavior == "error":
            raise _import_error(CREATED_MESSAGES, RuntimeError("disk I/O error"))
        raise AssertionError("Unhandled behavior")

    def list_pipelines(self, project):
        return PipelinesListSchema(pipelines=[PipelineListItemSchema(name="build", stage_count=1)])

    def get_pipeline(self, project, name):
        if name != "build":
            raise ResourceNotFoundError(ResourceType.PIPELINE, resource_id=name)
        return PIPELINE

    def export_pipeline(self, project, name):
        return DeclarativePipeline.from_domain(self.get_pipeline(project, name))


@pytest.fixture
def app():
    from api.endpoints import pipelines as _  # noqa: F401

    app = FastAPI()
    app.include_router(projects_router, prefix="/api/v1")
    app.include_router(pipelines_router, prefix="/api/v1")
    app.dependency_overrides[get_project_with_groups] = lambda: PROJECT

    app.add_exception_handler(Exception, custom_exception_handler)
    app.add_exception_handler(RequestValidationError, custom_exception_handler)

    return app


@pytest.fixture
def client(app):
    return TestClient(app, raise_server_exceptions=False)


def use_service(client: TestClient, behavior: str = "success") -> FakePipelineService:
    service = FakePipelineService(behavior)
    client.app.dependency_overrides[get_pipeline_service] = lambda: service
    return service


# POST /pipelines/preview
@pytest.mark.parametrize("format_param", ["yaml", "YML", ".yaml", None])
def test_preview_yaml(client, format_param):
    params = {"format": format_param} if format_param else {}

    resp = client.post("/api/v1/pipelines/preview", params=params, content=DOCUMENT)

    assert resp.status_code == 200
    data = resp.json()
    assert data["name"] == "build"
    assert len(data["stages"]) == 1
    assert data["stages"][0] == {"name": "compile", "build_order": 1, "enabled": True, "conditions": {}, "jobs": []}


def test_preview_json(client):
    body = {"name": "build", "stages": ["compile", "package"], "jobs": {"tarball": {"stage": "package"}}}

    resp = client.post("/api/v1/pipelines/preview", params={"format": "json"}, content=json.dumps(body))

    assert resp.status_code == 200
    assert resp.json()["stages"][1]["jobs"][0]["name"] == "tarball"


@pytest.mark.parametrize(
    "format_param,body,expected_detail",
    [
        ("json", b"{", "Unable to parse json document"),
        ("yaml", b"name: [build", "Unable to parse yaml document"),
        ("yaml", b"stages: compile", "Unable to parse yaml document"),
        ("xml", DOCUMENT, "Unsupported format 'xml'."),
        ("yaml", b"name: build\nstages: [a, a]\n", "unable to parse pipeline: stage 'a' is declared more than once"),
    ],
)
def test_preview_bad_request(client, format_param, body, expected_detail):
    resp = client.post("/api/v1/pipelines/preview", params={"format": format_param}, content=body)

    assert resp.status_code == 400
    assert resp.json()["detail"].startswith(expected_detail)


# POST /projects/{project_key}/pipelines/import
def test_import_pipeline(client):
    service = use_service(client)

    resp = client.post(
        "/api/v1/projects/CDS/pipelines/import",
        content=DOCUMENT,
        headers={"X-Consumer": "alice"},
    )

    assert resp.status_code == 200
    assert resp.json() == ["Pipeline build has been created", "Stage compile has been created"]
    (call,) = service.calls
    assert call["project"] is PROJECT
    assert call["payload"].name == "build"
    assert call["consumer"].username == "alice"
    assert call["options"].force is False
    assert call["options"].pipeline_name is None


def test_import_pipeline_force_and_anonymous_consumer(client):
    service = use_service(client)

    resp = client.post("/api/v1/projects/CDS/pipelines/import", params={"force": "true"}, content=DOCUMENT)

    assert resp.status_code == 200
    assert service.calls[0]["options"].force is True
    assert service.calls[0]["consumer"].username == "anonymous"


def test_import_pipeline_localized(client):
    use_service(client)

    resp = client.post(
        "/api/v1/projects/CDS/pipelines/import",
        content=DOCUMENT,
        headers={"Accept-Language": "fr-FR,fr;q=0.9,en;q=0.5"},
    )

    assert resp.json() == ["Le pipeline build a été créé", "Le stage compile a été créé"]


@pytest.mark.parametrize(
    "behavior,language,expected_status,expected_body",
    [
        ("conflict", "en", 409, ["Pipeline build already exists"]),
        ("conflict", "fr", 409, ["Le pipeline build existe déjà"]),
        (
            "invalid_name",
            "en",
            400,
            [
                "Pipeline build has been created",
                "Invalid pipeline name 'build': only letters, digits, '.', '_' and '-' are allowed",
            ],
        ),
    ],
)
def test_import_pipeline_user_errors(client, behavior, language, expected_status, expected_body):
    use_service(client, behavior)

    resp = client.post(
        "/api/v1/projects/CDS/pipelines/import", content=DOCUMENT, headers={"Accept-Language": language}
    )

    assert resp.status_code == expected_status
    assert resp.json() == expected_body


def test_import_pipeline_internal_error(client):
    use_service(client, "error")

    resp = client.post("/api/v1/projects/CDS/pipelines/import", content=DOCUMENT)

    assert resp.status_code == 500
    assert "internal server error" in resp.json()["detail"]


def test_import_pipeline_project_not_found(client):
    service = use_service(client)

    def _missing_project():
        raise ResourceNotFoundError(ResourceType.PROJECT, resource_id="NOPE")

    client.app.dependency_overrides[get_project_with_groups] = _missing_project

    resp = client.post("/api/v1/projects/NOPE/pipelines/import", content=DOCUMENT)

    assert resp.status_code == 404
    assert resp.json()["detail"] == "Project NOPE not found."
    assert service.calls == []


@pytest.mark.parametrize(
    "format_param,body",
    [("xml", DOCUMENT), ("json", b"{"), ("yaml", b"jobs: [unit-tests")],
)
def test_import_pipeline_wrong_request(client, format_param, body):
    service = use_service(client)

    resp = client.post("/api/v1/projects/CDS/pipelines/import", params={"format": format_param}, content=body)

    assert resp.status_code == 400
    assert service.calls == []


# PUT /projects/{project_key}/pipelines/{pipeline_name}/import
def test_replace_pipeline(client):
    service = use_service(client)

    resp = client.put(
        "/api/v1/projects/CDS/pipelines/release/import",
        params={"format": "json"},
        content=json.dumps({"name": "other", "stages": ["compile"]}),
    )

    assert resp.status_code == 200
    options = service.calls[0]["options"]
    assert options.force is True
    assert options.pipeline_name == "release"


@pytest.mark.parametrize("behavior", ["conflict", "invalid_name", "error"])
def test_replace_pipeline_failure_is_always_invalid_pipeline(client, behavior):
    use_service(client, behavior)

    resp = client.put("/api/v1/projects/CDS/pipelines/build/import", content=DOCUMENT)

    assert resp.status_code == 400
    assert resp.json() == {"detail": "unable to parse and import pipeline"}


def test_replace_pipeline_unsupported_format(client):
    use_service(client)

    resp = client.put("/api/v1/projects/CDS/pipelines/build/import", params={"format": "xml"}, content=DOCUMENT)

    assert resp.status_code == 400
    assert resp.json() == {"detail": "Unsupported format 'xml'."}


# GET /projects/{project_key}/pipelines[/{pipeline_name}[/export]]
def test_list_pipelines(client):
    use_service(client)

    resp = client.get("/api/v1/projects/CDS/pipelines")

    assert resp.status_code == 200
    assert resp.json() == {"pipelines": [{"name": "build", "description": "", "stage_count": 1}]}


def test_get_pipeline(client):
    use_service(client)

    resp = client.get("/api/v1/projects/CDS/pipelines/build")

    assert resp.status_code == 200
    assert resp.json()["name"] == "build"


def test_get_pipeline_not_found(client):
    use_service(client)

    resp = client.get("/api/v1/projects/CDS/pipelines/deploy")

    assert resp.status_code == 404
    assert resp.json() == {"detail": "Pipeline deploy not found."}


@pytest.mark.parametrize(
    "params,headers,expected_type",
    [
        ({}, {}, "application/x-yaml"),
        ({"format": "json"}, {}, "application/json"),
        ({"format": "yml"}, {"Accept": "application/json"}, "application/x-yaml"),
        ({}, {"Accept": "text/html, application/json;q=0.9"}, "application/json"),
        ({}, {"Accept": "*/*"}, "application/x-yaml"),
    ],
)
def test_export_pipeline(client, params, headers, expected_type):
    use_service(client)

    resp = client.get("/api/v1/projects/CDS/pipelines/build/export", params=params, headers=headers)

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith(expected_type)
    loader = json.loads if expected_type == "application/json" else yaml.safe_load
    assert loader(resp.content) == {"version": "v1.0", "name": "build", "stages": ["compile"]}


def test_export_pipeline_unsupported_format(client):
    use_service(client)

    resp = client.get("/api/v1/projects/CDS/pipelines/build/export", params={"format": "xml"})

    assert resp.status_code == 400
