# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

from datetime import datetime
from enum import IntEnum, StrEnum
from uuid import UUID, uuid4

from sqlalchemy import JSON, DateTime, ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from domain.db.constraints import UniqueConstraintName


class Base(DeclarativeBase):
    __abstract__ = True
    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.current_timestamp())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.current_timestamp())


class Permission(IntEnum):
    """Permission of a group on a project."""

    READ = 4
    READ_EXECUTE = 5
    READ_WRITE_EXECUTE = 7


class GroupDB(Base):
    __tablename__ = "Group"
    name: Mapped[str] = mapped_column(nullable=False)
    __table_args__ = (UniqueConstraint("name", name=UniqueConstraintName.GROUP_NAME),)


class ProjectGroupDB(Base):
    __tablename__ = "ProjectGroup"
    project_id: Mapped[UUID] = mapped_column(ForeignKey("Project.id", ondelete="CASCADE"), nullable=False)
    group_id: Mapped[UUID] = mapped_column(ForeignKey("Group.id", ondelete="CASCADE"), nullable=False)
    permission: Mapped[int] = mapped_column(nullable=False, default=Permission.READ)
    project: Mapped["ProjectDB"] = relationship(back_populates="groups")
    group: Mapped[GroupDB] = relationship(lazy="joined")
    __table_args__ = (UniqueConstraint("project_id", "group_id", name=UniqueConstraintName.GROUP_PER_PROJECT),)


class StageDB(Base):
    __tablename__ = "Stage"
    name: Mapped[str] = mapped_column(nullable=False)
    build_order: Mapped[int] = mapped_column(nullable=False)
    enabled: Mapped[bool] = mapped_column(nullable=False, default=True)
    conditions: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    jobs: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    pipeline_id: Mapped[UUID] = mapped_column(ForeignKey("Pipeline.id", ondelete="CASCADE"), nullable=False)
    pipeline: Mapped["PipelineDB"] = relationship(back_populates="stages")
    __table_args__ = (UniqueConstraint("pipeline_id", "name", name=UniqueConstraintName.STAGE_NAME_PER_PIPELINE),)


class PipelineDB(Base):
    __tablename__ = "Pipeline"
    name: Mapped[str] = mapped_column(nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    parameters: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    project_id: Mapped[UUID] = mapped_column(ForeignKey("Project.id", ondelete="CASCADE"), nullable=False)
    project: Mapped["ProjectDB"] = relationship(back_populates="pipelines")
    stages: Mapped[list[StageDB]] = relationship(
        back_populates="pipeline",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by=StageDB.build_order,
    )
    __table_args__ = (UniqueConstraint("project_id", "name", name=UniqueConstraintName.PIPELINE_NAME_PER_PROJECT),)


class AuditAction(StrEnum):
    CREATE = "create"
    UPDATE = "update"


class PipelineAuditDB(Base):
    __tablename__ = "PipelineAudit"
    action: Mapped[AuditAction] = mapped_column(nullable=False)
    author: Mapped[str] = mapped_column(nullable=False)
    snapshot: Mapped[dict] = mapped_column(JSON, nullable=False)
    pipeline_id: Mapped[UUID] = mapped_column(ForeignKey("Pipeline.id", ondelete="CASCADE"), nullable=False)


class ProjectDB(Base):
    __tablename__ = "Project"
    key: Mapped[str] = mapped_column(nullable=False)
    name: Mapped[str] = mapped_column(nullable=False)
    groups: Mapped[list[ProjectGroupDB]] = relationship(
        back_populates="project", cascade="all, delete-orphan", passive_deletes=True
    )
    pipelines: Mapped[list[PipelineDB]] = relationship(
        back_populates="project", cascade="all, delete-orphan", passive_deletes=True
    )
    __table_args__ = (UniqueConstraint("key", name=UniqueConstraintName.PROJECT_KEY),)
