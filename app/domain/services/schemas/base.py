# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

from uuid import UUID

from pydantic import BaseModel


class BaseIDSchema(BaseModel):
    """Base model with an id field."""

    id: UUID
