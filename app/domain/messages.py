# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

"""
User-facing import messages and their translations.

Messages are produced in order while a pipeline is imported and rendered in the
language negotiated from the request's Accept-Language header.
"""

from collections.abc import Iterable
from enum import StrEnum

from pydantic import BaseModel

DEFAULT_LANGUAGE = "en"


class MessageLevel(StrEnum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class MessageID(StrEnum):
    """Identifiers of translatable messages."""

    PIPELINE_CREATED = "pipeline_created"
    PIPELINE_UPDATED = "pipeline_updated"
    PIPELINE_ALREADY_EXISTS = "pipeline_already_exists"
    PIPELINE_INVALID_NAME = "pipeline_invalid_name"
    PIPELINE_PARSE_FAILED = "pipeline_parse_failed"
    STAGE_CREATED = "stage_created"
    STAGE_UPDATED = "stage_updated"
    STAGE_DELETED = "stage_deleted"
    JOB_CREATED = "job_created"
    JOB_UPDATED = "job_updated"
    JOB_DELETED = "job_deleted"


_CATALOG: dict[MessageID, dict[str, str]] = {
    MessageID.PIPELINE_CREATED: {
        "en": "Pipeline {0} has been created",
        "fr": "Le pipeline {0} a été créé",
    },
    MessageID.PIPELINE_UPDATED: {
        "en": "Pipeline {0} has been updated",
        "fr": "Le pipeline {0} a été mis à jour",
    },
    MessageID.PIPELINE_ALREADY_EXISTS: {
        "en": "Pipeline {0} already exists",
        "fr": "Le pipeline {0} existe déjà",
    },
    MessageID.PIPELINE_INVALID_NAME: {
        "en": "Invalid pipeline name '{0}': only letters, digits, '.', '_' and '-' are allowed",
        "fr": "Nom de pipeline '{0}' invalide : seuls les lettres, chiffres, '.', '_' et '-' sont autorisés",
    },
    MessageID.PIPELINE_PARSE_FAILED: {
        "en": "Unable to parse pipeline: {0}",
        "fr": "Impossible d'analyser le pipeline : {0}",
    },
    MessageID.STAGE_CREATED: {
        "en": "Stage {0} has been created",
        "fr": "Le stage {0} a été créé",
    },
    MessageID.STAGE_UPDATED: {
        "en": "Stage {0} has been updated",
        "fr": "Le stage {0} a été mis à jour",
    },
    MessageID.STAGE_DELETED: {
        "en": "Stage {0} has been deleted",
        "fr": "Le stage {0} a été supprimé",
    },
    MessageID.JOB_CREATED: {
        "en": "Job {0} has been created in stage {1}",
        "fr": "Le job {0} a été créé dans le stage {1}",
    },
    MessageID.JOB_UPDATED: {
        "en": "Job {0} has been updated in stage {1}",
        "fr": "Le job {0} a été mis à jour dans le stage {1}",
    },
    MessageID.JOB_DELETED: {
        "en": "Job {0} has been deleted from stage {1}",
        "fr": "Le job {0} a été supprimé du stage {1}",
    },
}

SUPPORTED_LANGUAGES: tuple[str, ...] = ("en", "fr")


class ImportMessage(BaseModel):
    """A localizable message emitted while importing a pipeline."""

    id: MessageID
    args: tuple[str, ...] = ()
    level: MessageLevel = MessageLevel.INFO

    def render(self, language: str = DEFAULT_LANGUAGE) -> str:
        templates = _CATALOG[self.id]
        template = templates.get(language) or templates[DEFAULT_LANGUAGE]
        return template.format(*self.args)

    def __str__(self) -> str:
        return self.render()


def negotiate_language(accept_language: str | None, default: str = DEFAULT_LANGUAGE) -> str:
    """
    Pick the best supported language from an Accept-Language header value.

    Entries are weighted by their ``q`` parameter; ties keep header order.
    Unknown languages, wildcards and malformed entries fall back to ``default``.
    """
    if not accept_language:
        return default

    candidates: list[tuple[float, int, str]] = []
    for position, entry in enumerate(accept_language.split(",")):
        tag, _, params = entry.strip().partition(";")
        language = tag.strip().split("-")[0].lower()
        if language not in SUPPORTED_LANGUAGES:
            continue
        quality = 1.0
        params = params.strip()
        if params.startswith("q="):
            try:
                quality = float(params[2:])
            except ValueError:
                quality = 0.0
        if quality > 0:
            candidates.append((-quality, position, language))

    if not candidates:
        return default
    return min(candidates)[2]


def translate(messages: Iterable[ImportMessage], language: str = DEFAULT_LANGUAGE) -> list[str]:
    """Render messages in order for the given language."""
    return [message.render(language) for message in messages]
