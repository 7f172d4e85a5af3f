# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

import json
import logging
import re

import yaml
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from api.error_handler import extract_constraint_name
from domain.db.constraints import UniqueConstraintName
from domain.db.models import AuditAction, PipelineAuditDB, PipelineDB, ProjectDB, StageDB
from domain.dispatcher import EventDispatcher, PipelineAddEvent
from domain.errors import (
    InvalidPipelineError,
    LocalizedInvalidPipelineError,
    PipelineAlreadyExistsError,
    PipelineImportError,
    ResourceNotFoundError,
    ResourceType,
    WrongRequestError,
)
from domain.messages import ImportMessage, MessageID, MessageLevel
from domain.repositories.pipeline import PipelineAuditRepository, PipelineRepository
from domain.services.base import BaseService
from domain.services.schemas.consumer import Consumer
from domain.services.schemas.declarative import DeclarativePipeline, PipelineConversionError
from domain.services.schemas.mappers.pipeline import (
    pipeline_db_to_schema,
    pipeline_schema_to_db,
    pipelines_db_to_list_items,
    stage_schema_to_db,
)
from domain.services.schemas.pipeline import ImportOptions, PipelineSchema, PipelinesListSchema, StageSchema
from serialization import Format, UnsupportedFormatError, decode, format_from_path

logger = logging.getLogger(__name__)

PIPELINE_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9._-]+$")
DEFAULT_FORMAT = Format.YAML


def resolve_format(format_param: str | None) -> Format:
    """
    Resolve the ``format`` request parameter; YAML when absent.

    Raises:
        WrongRequestError: for an unsupported format.
    """
    if format_param is None or not format_param.strip():
        return DEFAULT_FORMAT
    try:
        return format_from_path(format_param)
    except UnsupportedFormatError as exc:
        raise WrongRequestError(str(exc)) from exc


def parse_pipeline(data: bytes, fmt: Format) -> DeclarativePipeline:
    """
    Decode a request body into a declarative pipeline.

    Raises:
        WrongRequestError: when the body does not parse against the declarative schema.
    """
    try:
        return decode(data, fmt, DeclarativePipeline)
    except (json.JSONDecodeError, UnicodeDecodeError, yaml.YAMLError, ValidationError) as exc:
        logger.debug("Unable to decode %s pipeline document: %s", fmt, exc)
        raise WrongRequestError(f"Unable to parse {fmt} document: {exc}") from exc


def preview_pipeline(payload: DeclarativePipeline) -> PipelineSchema:
    """
    Convert a declarative pipeline into the internal pipeline, without touching the store.

    Raises:
        InvalidPipelineError: when the document is structurally inconsistent.
    """
    try:
        return payload.to_domain()
    except PipelineConversionError as exc:
        raise InvalidPipelineError(f"unable to parse pipeline: {exc}") from exc


class PipelineService(BaseService):
    """
    Service layer orchestrating pipeline imports within a project.

    Responsibilities:
      - Validate declarative pipelines against the target project (ParseAndImport).
      - Define transaction boundaries (commit / rollback).
      - Publish a PipelineAddEvent for every committed import, never before commit.
    """

    def __init__(
        self,
        session: Session,
        pipeline_repository: PipelineRepository | None = None,
        audit_repository: PipelineAuditRepository | None = None,
        event_dispatcher: EventDispatcher | None = None,
    ):
        super().__init__(session=session, event_dispatcher=event_dispatcher)
        self.pipeline_repository = pipeline_repository or PipelineRepository(session=session)
        self.audit_repository = audit_repository or PipelineAuditRepository(session=session)

    def import_pipeline(
        self,
        project: ProjectDB,
        payload: DeclarativePipeline,
        consumer: Consumer,
        options: ImportOptions,
    ) -> tuple[PipelineSchema, list[ImportMessage]]:
        """
        Convert a declarative pipeline, then import it in a single transaction.

        The conversion runs before the transaction opens. On success the transaction
        is committed, then a PipelineAddEvent is published.

        Raises:
            PipelineImportError: when parse-and-import fails; the store is left unchanged.
                The messages produced so far are attached, the failure is the ``__cause__``.
        """
        logger.debug(
            "Pipeline import requested: project=%s name=%s force=%s target=%s consumer=%s",
            project.key,
            payload.name,
            options.force,
            options.pipeline_name,
            consumer.username,
        )
        messages: list[ImportMessage] = []
        try:
            converted = self.convert_pipeline(payload)
        except InvalidPipelineError as exc:
            logger.warning("Pipeline conversion failed for project=%s: %s", project.key, exc)
            raise PipelineImportError(messages) from exc

        with self.db_transaction():
            try:
                pipeline = self.parse_and_import(project, converted, consumer, options, messages)
            except Exception as exc:
                logger.warning("Pipeline import failed for project=%s: %s", project.key, exc)
                raise PipelineImportError(messages) from exc
            self._pending_events.append(PipelineAddEvent(project_key=project.key, pipeline=pipeline, consumer=consumer))

        logger.info("Pipeline imported: project=%s name=%s", project.key, pipeline.name)
        return pipeline, messages

    @staticmethod
    def convert_pipeline(payload: DeclarativePipeline) -> PipelineSchema:
        """
        Convert a declarative pipeline into the internal pipeline.

        Raises:
            LocalizedInvalidPipelineError: when the document is structurally inconsistent.
        """
        try:
            return payload.to_domain()
        except PipelineConversionError as exc:
            raise LocalizedInvalidPipelineError(
                ImportMessage(id=MessageID.PIPELINE_PARSE_FAILED, args=(str(exc),), level=MessageLevel.ERROR)
            ) from exc

    def parse_and_import(
        self,
        project: ProjectDB,
        pipeline: PipelineSchema,
        consumer: Consumer,
        options: ImportOptions,
        messages: list[ImportMessage],
    ) -> PipelineSchema:
        """
        Validate a converted pipeline against the project and create or update it.

        Must run inside a transaction. Messages are appended to ``messages`` as the
        import goes, so they survive a failure.

        Raises:
            InvalidPipelineError: for an invalid name.
            PipelineAlreadyExistsError: when the pipeline exists and ``force`` is not set.
        """
        if options.pipeline_name:
            pipeline.name = options.pipeline_name

        if not PIPELINE_NAME_PATTERN.match(pipeline.name):
            raise LocalizedInvalidPipelineError(
                ImportMessage(id=MessageID.PIPELINE_INVALID_NAME, args=(pipeline.name,), level=MessageLevel.ERROR)
            )

        existing = self.pipeline_repository.get_by_name(project.id, pipeline.name)
        if existing is not None and not options.force:
            raise PipelineAlreadyExistsError(pipeline.name)

        if existing is None:
            stored = self._create(project, pipeline, messages)
            action = AuditAction.CREATE
        else:
            stored = self._update(existing, pipeline, messages)
            action = AuditAction.UPDATE

        self.audit_repository.add(
            PipelineAuditDB(
                pipeline_id=stored.id,
                action=action,
                author=consumer.username,
                snapshot=pipeline.model_dump(mode="json"),
            )
        )
        return pipeline_db_to_schema(stored)

    def _create(self, project: ProjectDB, pipeline: PipelineSchema, messages: list[ImportMessage]) -> PipelineDB:
        stored = pipeline_schema_to_db(pipeline)
        stored.project_id = project.id
        try:
            self.pipeline_repository.add(stored)
        except IntegrityError as exc:
            self._handle_pipeline_integrity_error(exc, pipeline.name)

        messages.append(ImportMessage(id=MessageID.PIPELINE_CREATED, args=(pipeline.name,)))
        for stage in pipeline.stages:
            messages.append(ImportMessage(id=MessageID.STAGE_CREATED, args=(stage.name,)))
            for job in stage.jobs:
                messages.append(ImportMessage(id=MessageID.JOB_CREATED, args=(job.name, stage.name)))
        return stored

    def _update(self, existing: PipelineDB, pipeline: PipelineSchema, messages: list[ImportMessage]) -> PipelineDB:
        existing.description = pipeline.description
        existing.parameters = [parameter.model_dump(mode="json") for parameter in pipeline.parameters]

        current = {stage.name: stage for stage in existing.stages}
        wanted = {stage.name for stage in pipeline.stages}
        for name, stage in current.items():
            if name not in wanted:
                existing.stages.remove(stage)
                messages.append(ImportMessage(id=MessageID.STAGE_DELETED, args=(name,)))

        for stage in pipeline.stages:
            stored_stage = current.get(stage.name)
            if stored_stage is None:
                existing.stages.append(stage_schema_to_db(stage))
                messages.append(ImportMessage(id=MessageID.STAGE_CREATED, args=(stage.name,)))
                for job in stage.jobs:
                    messages.append(ImportMessage(id=MessageID.JOB_CREATED, args=(job.name, stage.name)))
                continue
            self._update_stage(stored_stage, stage, messages)

        self.pipeline_repository.update(existing)
        messages.append(ImportMessage(id=MessageID.PIPELINE_UPDATED, args=(pipeline.name,)))
        return existing

    def _update_stage(self, stored: StageDB, stage: StageSchema, messages: list[ImportMessage]) -> None:
        stored.build_order = stage.build_order
        stored.enabled = stage.enabled
        stored.conditions = dict(stage.conditions)

        current_jobs = {job["name"]: job for job in stored.jobs or []}
        new_jobs = [job.model_dump(mode="json") for job in stage.jobs]
        for job in new_jobs:
            previous = current_jobs.get(job["name"])
            if previous is None:
                messages.append(ImportMessage(id=MessageID.JOB_CREATED, args=(job["name"], stage.name)))
            elif previous != job:
                messages.append(ImportMessage(id=MessageID.JOB_UPDATED, args=(job["name"], stage.name)))
        wanted_jobs = {job["name"] for job in new_jobs}
        for name in current_jobs:
            if name not in wanted_jobs:
                messages.append(ImportMessage(id=MessageID.JOB_DELETED, args=(name, stage.name)))
        stored.jobs = new_jobs
        messages.append(ImportMessage(id=MessageID.STAGE_UPDATED, args=(stage.name,)))

    def _handle_pipeline_integrity_error(self, exc: IntegrityError, pipeline_name: str) -> None:
        """Map a constraint violation raised while inserting a pipeline."""
        error_msg = str(exc.orig).lower()
        constraint_name = extract_constraint_name(error_msg)
        logger.warning(
            "Pipeline constraint violation: name=%s, constraint=%s, error=%s",
            pipeline_name,
            constraint_name or "unknown",
            error_msg,
        )
        if constraint_name == UniqueConstraintName.PIPELINE_NAME_PER_PROJECT or "pipeline.name" in error_msg:
            raise PipelineAlreadyExistsError(pipeline_name) from exc
        raise exc

    def get_pipeline(self, project: ProjectDB, name: str) -> PipelineSchema:
        """
        Retrieve a pipeline of the project by name.

        Raises:
            ResourceNotFoundError: If the pipeline does not exist.
        """
        pipeline = self.pipeline_repository.get_by_name(project.id, name)
        if pipeline is None:
            logger.error("Pipeline not found: project=%s name=%s", project.key, name)
            raise ResourceNotFoundError(resource_type=ResourceType.PIPELINE, resource_id=name)
        return pipeline_db_to_schema(pipeline)

    def list_pipelines(self, project: ProjectDB) -> PipelinesListSchema:
        """List the pipelines of a project."""
        return pipelines_db_to_list_items(self.pipeline_repository.list_all_by_project(project.id))

    def export_pipeline(self, project: ProjectDB, name: str) -> DeclarativePipeline:
        """Build the declarative document of a stored pipeline."""
        return DeclarativePipeline.from_domain(self.get_pipeline(project, name))
