# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

import logging
from typing import Annotated

from fastapi import Header, Query, Response, status
from fastapi.responses import JSONResponse

from api.error_handler import localize_error, resolve_http_status
from api.routers import pipelines_router, projects_router
from dependencies import ConsumerDep, LanguageDep, PipelineServiceDep, ProjectWithGroupsDep, RequestBodyDep
from domain.errors import InvalidPipelineError, PipelineImportError
from domain.messages import translate
from domain.services.pipeline import parse_pipeline, preview_pipeline, resolve_format
from domain.services.schemas.pipeline import ImportOptions, PipelineSchema, PipelinesListSchema
from serialization import Format, UnsupportedFormatError, content_type, encode, format_from_content_type

logger = logging.getLogger(__name__)

FormatQuery = Annotated[
    str | None,
    Query(alias="format", description="Document format: json, yaml or yml. Defaults to yaml."),
]

_MESSAGES_EXAMPLE = {
    "application/json": {
        "example": [
            "Pipeline build has been created",
            "Stage compile has been created",
            "Job unit-tests has been created in stage compile",
        ]
    }
}


def _resolve_export_format(format_param: str | None, accept: str | None) -> Format:
    """Format of an exported document: query parameter, then Accept header, then YAML."""
    if format_param:
        return resolve_format(format_param)
    for media_range in (accept or "").split(","):
        try:
            return format_from_content_type(media_range.split(";")[0].strip())
        except UnsupportedFormatError:
            continue
    return resolve_format(None)


@pipelines_router.post(
    path="/preview",
    tags=["Pipelines"],
    status_code=status.HTTP_200_OK,
    responses={
        status.HTTP_200_OK: {
            "description": "The document parsed into the internal pipeline; nothing is stored.",
            "content": {
                "application/json": {
                    "example": {
                        "name": "build",
                        "description": "",
                        "parameters": [],
                        "stages": [
                            {"name": "compile", "build_order": 1, "enabled": True, "conditions": {}, "jobs": []}
                        ],
                    }
                }
            },
        },
        status.HTTP_400_BAD_REQUEST: {
            "description": "Unsupported format, unreadable body or invalid document",
            "content": {"application/json": {"example": {"detail": "Unsupported format 'xml'."}}},
        },
    },
)
def post_pipeline_preview(data: RequestBodyDep, format_param: FormatQuery = None) -> PipelineSchema:
    """
    Parse a declarative pipeline document and return the resulting pipeline.
    """
    payload = parse_pipeline(data, resolve_format(format_param))
    return preview_pipeline(payload)


@projects_router.post(
    path="/{project_key}/pipelines/import",
    tags=["Pipelines"],
    status_code=status.HTTP_200_OK,
    response_model=list[str],
    responses={
        status.HTTP_200_OK: {"description": "Pipeline imported", "content": _MESSAGES_EXAMPLE},
        status.HTTP_400_BAD_REQUEST: {
            "description": "Unsupported format, unreadable body or invalid pipeline",
            "content": {
                "application/json": {
                    "example": [
                        "Invalid pipeline name 'my pipeline': only letters, digits, '.', '_' and '-' are allowed"
                    ]
                }
            },
        },
        status.HTTP_404_NOT_FOUND: {
            "description": "Project not found",
            "content": {"application/json": {"example": {"detail": "Project CDS not found."}}},
        },
        status.HTTP_409_CONFLICT: {
            "description": "The pipeline already exists and force was not set",
            "content": {"application/json": {"example": ["Pipeline build already exists"]}},
        },
    },
)
def import_pipeline(
    project: ProjectWithGroupsDep,
    data: RequestBodyDep,
    pipeline_service: PipelineServiceDep,
    consumer: ConsumerDep,
    language: LanguageDep,
    format_param: FormatQuery = None,
    force: Annotated[bool, Query(description="Overwrite an existing pipeline of the same name")] = False,
) -> list[str] | JSONResponse:
    """
    Import a declarative pipeline into the project.

    User errors are answered with their status and the list of messages produced so far,
    followed by the error message.
    """
    payload = parse_pipeline(data, resolve_format(format_param))
    try:
        _, messages = pipeline_service.import_pipeline(
            project=project, payload=payload, consumer=consumer, options=ImportOptions(force=force)
        )
    except PipelineImportError as exc:
        cause = exc.__cause__ or exc
        status_code = resolve_http_status(cause)
        if status_code is None:
            raise cause from None
        content = translate(exc.messages, language) + [localize_error(cause, language)]
        return JSONResponse(status_code=status_code, content=content)
    return translate(messages, language)


@projects_router.put(
    path="/{project_key}/pipelines/{pipeline_name}/import",
    tags=["Pipelines"],
    status_code=status.HTTP_200_OK,
    responses={
        status.HTTP_200_OK: {"description": "Pipeline replaced", "content": _MESSAGES_EXAMPLE},
        status.HTTP_400_BAD_REQUEST: {
            "description": "Unsupported format, unreadable body or the pipeline could not be imported",
            "content": {"application/json": {"example": {"detail": "unable to parse and import pipeline"}}},
        },
        status.HTTP_404_NOT_FOUND: {
            "description": "Project not found",
            "content": {"application/json": {"example": {"detail": "Project CDS not found."}}},
        },
    },
)
def replace_pipeline(
    project: ProjectWithGroupsDep,
    pipeline_name: str,
    data: RequestBodyDep,
    pipeline_service: PipelineServiceDep,
    consumer: ConsumerDep,
    language: LanguageDep,
    format_param: FormatQuery = None,
) -> list[str]:
    """
    Replace the named pipeline with the document; the name in the URL wins over the document's.
    """
    payload = parse_pipeline(data, resolve_format(format_param))
    try:
        _, messages = pipeline_service.import_pipeline(
            project=project,
            payload=payload,
            consumer=consumer,
            options=ImportOptions(force=True, pipeline_name=pipeline_name),
        )
    except PipelineImportError as exc:
        raise InvalidPipelineError("unable to parse and import pipeline") from exc
    return translate(messages, language)


@projects_router.get(
    path="/{project_key}/pipelines",
    tags=["Pipelines"],
    status_code=status.HTTP_200_OK,
    responses={
        status.HTTP_200_OK: {
            "description": "Pipelines of the project",
            "content": {
                "application/json": {
                    "example": {"pipelines": [{"name": "build", "description": "", "stage_count": 2}]}
                }
            },
        },
        status.HTTP_404_NOT_FOUND: {"description": "Project not found"},
    },
)
def list_pipelines(project: ProjectWithGroupsDep, pipeline_service: PipelineServiceDep) -> PipelinesListSchema:
    """List the pipelines of the project."""
    return pipeline_service.list_pipelines(project)


@projects_router.get(
    path="/{project_key}/pipelines/{pipeline_name}",
    tags=["Pipelines"],
    status_code=status.HTTP_200_OK,
    responses={
        status.HTTP_404_NOT_FOUND: {
            "description": "Project or pipeline not found",
            "content": {"application/json": {"example": {"detail": "Pipeline build not found."}}},
        },
    },
)
def get_pipeline(
    project: ProjectWithGroupsDep, pipeline_name: str, pipeline_service: PipelineServiceDep
) -> PipelineSchema:
    """Retrieve a pipeline of the project."""
    return pipeline_service.get_pipeline(project, pipeline_name)


@projects_router.get(
    path="/{project_key}/pipelines/{pipeline_name}/export",
    tags=["Pipelines"],
    status_code=status.HTTP_200_OK,
    response_class=Response,
    responses={
        status.HTTP_200_OK: {
            "description": "Declarative document of the pipeline",
            "content": {"application/x-yaml": {}, "application/json": {}},
        },
        status.HTTP_400_BAD_REQUEST: {"description": "Unsupported format"},
        status.HTTP_404_NOT_FOUND: {"description": "Project or pipeline not found"},
    },
)
def export_pipeline(
    project: ProjectWithGroupsDep,
    pipeline_name: str,
    pipeline_service: PipelineServiceDep,
    format_param: FormatQuery = None,
    accept: Annotated[str | None, Header()] = None,
) -> Response:
    """Export a pipeline as a declarative document (YAML unless asked otherwise)."""
    fmt = _resolve_export_format(format_param, accept)
    document = pipeline_service.export_pipeline(project, pipeline_name)
    return Response(content=encode(document, fmt), media_type=content_type(fmt))
