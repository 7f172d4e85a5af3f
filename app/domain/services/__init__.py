# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

# Re-exports are resolved lazily: domain.dispatcher imports schema submodules of
# this package, and eager imports here would close an import cycle through it.
__all__ = [
    "PipelineService",
    "ProjectService",
]


def __getattr__(name: str):
    if name == "PipelineService":
        from .pipeline import PipelineService

        return PipelineService
    if name == "ProjectService":
        from .project import ProjectService

        return ProjectService
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
