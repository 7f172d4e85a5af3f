# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

from domain.db.models import ProjectDB
from domain.services.schemas.project import ProjectGroupSchema, ProjectSchema


def project_db_to_schema(project: ProjectDB) -> ProjectSchema:
    """
    Map a ProjectDB ORM instance (with groups loaded) to a ProjectSchema.
    """
    return ProjectSchema(
        id=project.id,
        key=project.key,
        name=project.name,
        groups=[
            ProjectGroupSchema(name=binding.group.name, permission=binding.permission) for binding in project.groups
        ],
    )
