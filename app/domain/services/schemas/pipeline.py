# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

from typing import Any

from pydantic import BaseModel, Field


class ParameterSchema(BaseModel):
    name: str
    type: str = "string"
    value: str = ""
    description: str = ""


class JobSchema(BaseModel):
    name: str
    description: str = ""
    enabled: bool = True
    steps: list[dict[str, Any]] = Field(default_factory=list)
    requirements: list[dict[str, Any]] = Field(default_factory=list)


class StageSchema(BaseModel):
    name: str
    build_order: int
    enabled: bool = True
    conditions: dict[str, str] = Field(default_factory=dict)
    jobs: list[JobSchema] = Field(default_factory=list)


class PipelineSchema(BaseModel):
    """Internal pipeline entity, as persisted under a project."""

    name: str
    description: str = ""
    parameters: list[ParameterSchema] = Field(default_factory=list)
    stages: list[StageSchema] = Field(default_factory=list)


class PipelineListItemSchema(BaseModel):
    name: str
    description: str = ""
    stage_count: int


class PipelinesListSchema(BaseModel):
    pipelines: list[PipelineListItemSchema]


class ImportOptions(BaseModel):
    """
    Options of a pipeline import.

    Attributes:
        force: overwrite an existing pipeline of the same name.
        pipeline_name: import under this name whatever name the document declares.
    """

    force: bool = False
    pipeline_name: str | None = None
