# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

from enum import StrEnum


class UniqueConstraintName(StrEnum):
    """Database unique constraint names."""

    PROJECT_KEY = "uq_project_key"
    GROUP_NAME = "uq_group_name"
    GROUP_PER_PROJECT = "uq_group_per_project"
    PIPELINE_NAME_PER_PROJECT = "uq_pipeline_name_per_project"
    STAGE_NAME_PER_PIPELINE = "uq_stage_name_per_pipeline"
