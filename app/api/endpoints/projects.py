# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

import logging

from fastapi import Response, status

from api.routers import projects_router
from dependencies import ProjectServiceDep
from domain.services.schemas.project import ProjectCreateSchema, ProjectSchema

logger = logging.getLogger(__name__)


@projects_router.post(
    path="",
    tags=["Projects"],
    status_code=status.HTTP_201_CREATED,
    responses={
        status.HTTP_201_CREATED: {
            "description": "Successfully created a new project.",
            "headers": {
                "Location": {
                    "description": "Relative URL to retrieve the created project",
                    "schema": {"type": "string"},
                    "example": "/projects/CDS",
                }
            },
            "content": {
                "application/json": {
                    "example": {
                        "id": "123e4567-e89b-12d3-a456-426614174000",
                        "key": "CDS",
                        "name": "Continuous Delivery",
                        "groups": [{"name": "devops", "permission": 7}],
                    }
                }
            },
        },
        status.HTTP_409_CONFLICT: {
            "description": "Project with this key already exists.",
        },
        status.HTTP_500_INTERNAL_SERVER_ERROR: {
            "description": "Unexpected error occurred while creating a new project.",
        },
    },
)
def create_project(payload: ProjectCreateSchema, project_service: ProjectServiceDep) -> Response:
    """Create a new project with the given key, name and groups."""
    project = project_service.create_project(payload)
    logger.info(f"Successfully created '{project.key}' project with id {project.id}")

    return Response(
        status_code=status.HTTP_201_CREATED,
        headers={"Location": f"/projects/{project.key}"},
        content=project.model_dump_json(),
        media_type="application/json",
    )


@projects_router.get(
    path="/{project_key}",
    tags=["Projects"],
    status_code=status.HTTP_200_OK,
    responses={
        status.HTTP_200_OK: {"description": "Successfully retrieved the project."},
        status.HTTP_404_NOT_FOUND: {
            "description": "Project not found",
            "content": {"application/json": {"example": {"detail": "Project CDS not found."}}},
        },
    },
)
def get_project(project_key: str, project_service: ProjectServiceDep) -> ProjectSchema:
    """Retrieve a project with its groups."""
    return project_service.get_project(project_key)
