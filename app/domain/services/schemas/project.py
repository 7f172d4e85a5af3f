# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

from pydantic import BaseModel, Field

from domain.services.schemas.base import BaseIDSchema


class ProjectCreateSchema(BaseModel):
    key: str = Field(min_length=1, max_length=64, pattern=r"^[A-Z0-9_]+$")
    name: str = Field(max_length=80, min_length=1)
    groups: list[str] = Field(default_factory=list)


class ProjectGroupSchema(BaseModel):
    name: str
    permission: int


class ProjectSchema(BaseIDSchema):
    key: str
    name: str
    groups: list[ProjectGroupSchema] = Field(default_factory=list)
