# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

from enum import Enum

from domain.messages import DEFAULT_LANGUAGE, ImportMessage, MessageID, MessageLevel


class ResourceType(str, Enum):
    """Enumeration for resource types."""

    PROJECT = "Project"
    PIPELINE = "Pipeline"


class ServiceError(Exception):
    """Base exception for service-related errors."""


class LocalizedError(ServiceError):
    """Error whose user-facing message is a translatable ImportMessage."""

    def __init__(self, message: ImportMessage):
        super().__init__(message.render())
        self.message = message

    def localized(self, language: str = DEFAULT_LANGUAGE) -> str:
        return self.message.render(language)


class ResourceError(ServiceError):
    """Base exception for resource-related errors."""

    def __init__(self, resource_type: ResourceType, resource_id: str | None, message: str):
        super().__init__(message)
        self.resource_type: ResourceType = resource_type
        self.resource_id: str | None = resource_id


class ResourceNotFoundError(ResourceError):
    """Exception raised when a resource is not found."""

    def __init__(self, resource_type: ResourceType, resource_id: str | None = None, message: str | None = None):
        msg = message or f"{resource_type.value} {resource_id} not found."
        super().__init__(resource_type, resource_id, msg)


class ResourceAlreadyExistsError(ResourceError):
    """Exception raised when a resource with the same name or key already exists."""

    def __init__(
        self,
        resource_type: ResourceType,
        resource_value: str | None = None,
        field: str = "name",
        message: str | None = None,
    ):
        """
        Initialize ResourceAlreadyExistsError.

        Args:
            resource_type: Type of resource (e.g., PROJECT, PIPELINE)
            resource_value: The actual value that caused the conflict (e.g., "build")
            field: The field that caused the conflict (e.g., "name", "key")
            message: Custom error message. If not provided, generates a default message.
        """
        if message:
            msg = message
        elif resource_value:
            msg = f"{resource_type.value} with {field} '{resource_value}' already exists."
        else:
            msg = f"{resource_type.value} constraint violation: {field} must be unique."
        super().__init__(resource_type, resource_value, msg)
        self.field = field


class PipelineAlreadyExistsError(ResourceAlreadyExistsError):
    """A pipeline with the same name already exists in the project and the import is not forced."""

    def __init__(self, pipeline_name: str):
        self.message = ImportMessage(
            id=MessageID.PIPELINE_ALREADY_EXISTS, args=(pipeline_name,), level=MessageLevel.ERROR
        )
        super().__init__(ResourceType.PIPELINE, pipeline_name, message=self.message.render())

    def localized(self, language: str = DEFAULT_LANGUAGE) -> str:
        return self.message.render(language)


class WrongRequestError(ServiceError):
    """The request body cannot be read or does not parse against the declarative schema."""


class InvalidPipelineError(ServiceError):
    """The document parses but cannot be imported."""


class LocalizedInvalidPipelineError(InvalidPipelineError, LocalizedError):
    """InvalidPipelineError carrying a translatable message."""


class PipelineImportError(ServiceError):
    """
    Raised when parse-and-import fails.

    Carries the messages produced before the failure; the underlying error is
    available as ``__cause__``.
    """

    def __init__(self, messages: list[ImportMessage]):
        super().__init__("Unable to import pipeline")
        self.messages = messages
