# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

from . import pipelines, projects

__all__ = ["pipelines", "projects"]
