# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

from pydantic import BaseModel, Field


class Consumer(BaseModel):
    """Authenticated actor attributed to events and audit rows."""

    username: str = Field(min_length=1)
