# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

from fastapi import APIRouter

projects_router = APIRouter(prefix="/projects")
pipelines_router = APIRouter(prefix="/pipelines")
