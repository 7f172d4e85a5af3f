# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

"""
On-the-wire declarative pipeline document (version v1.0).

Example:

    version: v1.0
    name: build
    parameters:
      branch:
        type: string
        default: main
    stages:
      - compile
      - package
    options:
      package:
        conditions:
          git.branch: main
    jobs:
      unit-tests:
        stage: compile
        steps:
          - script: make test
"""

from typing import Any

from domain.services.schemas.pipeline import JobSchema, ParameterSchema, PipelineSchema, StageSchema
from serialization import StrictFieldsModel

DECLARATIVE_VERSION = "v1.0"


class PipelineConversionError(ValueError):
    """The declarative document is structurally inconsistent."""


class ParameterSpec(StrictFieldsModel):
    type: str = "string"
    default: str | int | float | bool | None = None
    description: str | None = None


class StageOptionsSpec(StrictFieldsModel):
    enabled: bool | None = None
    conditions: dict[str, str] | None = None


class JobSpec(StrictFieldsModel):
    stage: str | None = None
    description: str | None = None
    enabled: bool | None = None
    steps: list[dict[str, Any]] | None = None
    requirements: list[dict[str, Any]] | None = None


class DeclarativePipeline(StrictFieldsModel):
    version: str | None = None
    name: str = ""
    description: str | None = None
    parameters: dict[str, ParameterSpec] | None = None
    stages: list[str] | None = None
    options: dict[str, StageOptionsSpec] | None = None
    jobs: dict[str, JobSpec] | None = None

    def to_domain(self) -> PipelineSchema:
        """
        Build the internal pipeline.

        Jobs without a stage go to the only declared stage; when no stage is
        declared at all they go to an implicit stage named after the pipeline.

        Raises:
            PipelineConversionError: on an unsupported version, duplicate stages,
                or options/jobs referencing an undeclared stage.
        """
        if self.version is not None and self.version != DECLARATIVE_VERSION:
            raise PipelineConversionError(f"unsupported version '{self.version}', expected '{DECLARATIVE_VERSION}'")

        stage_names = list(self.stages or [])
        seen: set[str] = set()
        for stage_name in stage_names:
            if stage_name in seen:
                raise PipelineConversionError(f"stage '{stage_name}' is declared more than once")
            seen.add(stage_name)

        options = self.options or {}
        for stage_name in options:
            if stage_name not in seen:
                raise PipelineConversionError(f"options reference undeclared stage '{stage_name}'")

        jobs_by_stage: dict[str, list[JobSchema]] = {name: [] for name in stage_names}
        for job_name, job in (self.jobs or {}).items():
            stage_name = job.stage or self._default_stage(job_name, stage_names)
            if stage_name not in jobs_by_stage:
                if job.stage:
                    raise PipelineConversionError(f"job '{job_name}' references undeclared stage '{stage_name}'")
                stage_names.append(stage_name)
                jobs_by_stage[stage_name] = []
            jobs_by_stage[stage_name].append(
                JobSchema(
                    name=job_name,
                    description=job.description or "",
                    enabled=job.enabled if job.enabled is not None else True,
                    steps=job.steps or [],
                    requirements=job.requirements or [],
                )
            )

        stages = []
        for order, stage_name in enumerate(stage_names, start=1):
            stage_options = options.get(stage_name) or StageOptionsSpec()
            stages.append(
                StageSchema(
                    name=stage_name,
                    build_order=order,
                    enabled=stage_options.enabled if stage_options.enabled is not None else True,
                    conditions=stage_options.conditions or {},
                    jobs=jobs_by_stage[stage_name],
                )
            )

        parameters = [
            ParameterSchema(
                name=name,
                type=spec.type,
                value=_parameter_value(spec.default),
                description=spec.description or "",
            )
            for name, spec in (self.parameters or {}).items()
        ]

        return PipelineSchema(
            name=self.name,
            description=self.description or "",
            parameters=parameters,
            stages=stages,
        )

    def _default_stage(self, job_name: str, stage_names: list[str]) -> str:
        if len(stage_names) == 1:
            return stage_names[0]
        if not stage_names:
            return self.name or "default"
        raise PipelineConversionError(f"job '{job_name}' must declare its stage")

    @classmethod
    def from_domain(cls, pipeline: PipelineSchema) -> "DeclarativePipeline":
        """Build the declarative document of an internal pipeline."""
        stages = sorted(pipeline.stages, key=lambda stage: stage.build_order)
        options = {
            stage.name: StageOptionsSpec(
                enabled=False if not stage.enabled else None,
                conditions=stage.conditions or None,
            )
            for stage in stages
            if not stage.enabled or stage.conditions
        }
        jobs = {
            job.name: JobSpec(
                stage=stage.name,
                description=job.description or None,
                enabled=False if not job.enabled else None,
                steps=job.steps or None,
                requirements=job.requirements or None,
            )
            for stage in stages
            for job in stage.jobs
        }
        parameters = {
            parameter.name: ParameterSpec(
                type=parameter.type,
                default=parameter.value or None,
                description=parameter.description or None,
            )
            for parameter in pipeline.parameters
        }
        return cls(
            version=DECLARATIVE_VERSION,
            name=pipeline.name,
            description=pipeline.description or None,
            parameters=parameters or None,
            stages=[stage.name for stage in stages] or None,
            options=options or None,
            jobs=jobs or None,
        )


def _parameter_value(value: str | int | float | bool | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
