# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

from collections.abc import Iterable

from domain.db.models import PipelineDB, StageDB
from domain.services.schemas.pipeline import (
    JobSchema,
    ParameterSchema,
    PipelineListItemSchema,
    PipelineSchema,
    PipelinesListSchema,
    StageSchema,
)


def stage_db_to_schema(stage: StageDB) -> StageSchema:
    """
    Map a StageDB ORM instance to a StageSchema.
    """
    return StageSchema(
        name=stage.name,
        build_order=stage.build_order,
        enabled=stage.enabled,
        conditions=stage.conditions or {},
        jobs=[JobSchema.model_validate(job) for job in stage.jobs or []],
    )


def pipeline_db_to_schema(pipeline: PipelineDB) -> PipelineSchema:
    """
    Map a PipelineDB ORM instance (with stages loaded) to a PipelineSchema.
    """
    return PipelineSchema(
        name=pipeline.name,
        description=pipeline.description,
        parameters=[ParameterSchema.model_validate(parameter) for parameter in pipeline.parameters or []],
        stages=[stage_db_to_schema(stage) for stage in sorted(pipeline.stages, key=lambda s: s.build_order)],
    )


def pipelines_db_to_list_items(pipelines: Iterable[PipelineDB]) -> PipelinesListSchema:
    """
    Map PipelineDB entities to a PipelinesListSchema.
    """
    items = [
        PipelineListItemSchema(name=pipeline.name, description=pipeline.description, stage_count=len(pipeline.stages))
        for pipeline in pipelines
    ]
    return PipelinesListSchema(pipelines=items)


def stage_schema_to_db(stage: StageSchema) -> StageDB:
    """
    Create a new (unpersisted) StageDB entity from a StageSchema.
    """
    return StageDB(
        name=stage.name,
        build_order=stage.build_order,
        enabled=stage.enabled,
        conditions=dict(stage.conditions),
        jobs=[job.model_dump(mode="json") for job in stage.jobs],
    )


def pipeline_schema_to_db(pipeline: PipelineSchema) -> PipelineDB:
    """
    Create a new (unpersisted) PipelineDB entity from a PipelineSchema.
    The caller (service layer) is responsible for setting the project,
    adding it to the session and committing.
    """
    return PipelineDB(
        name=pipeline.name,
        description=pipeline.description,
        parameters=[parameter.model_dump(mode="json") for parameter in pipeline.parameters],
        stages=[stage_schema_to_db(stage) for stage in pipeline.stages],
    )
