# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

"""
Format dispatch for declarative documents.

A document travels either as JSON or as YAML. This module maps file suffixes and
MIME content-types to a ``Format`` tag and provides decode / strict decode / encode
through a per-format function table.

Strict decoding only differs from lenient decoding for YAML: unknown fields and
duplicate mapping keys are rejected. JSON strict decoding is deliberately the same
as lenient decoding; callers that need unknown-field rejection for JSON must ask
for it explicitly rather than rely on ``decode_strict``.
"""

import json
from collections.abc import Callable, Hashable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, TypeVar

import yaml
from pydantic import BaseModel, ValidationInfo, model_validator

STRICT_FIELDS_CONTEXT_KEY = "forbid_unknown_fields"
FALLBACK_CONTENT_TYPE = "application/octet-stream"

ModelT = TypeVar("ModelT", bound=BaseModel)


class Format(StrEnum):
    """Serialization format of a document."""

    JSON = "json"
    YAML = "yaml"
    UNKNOWN = "unknown"


class UnsupportedFormatError(ValueError):
    """Raised for an unknown format tag, file suffix or content-type."""

    def __init__(self, value: str | None = None):
        message = f"Unsupported format '{value}'." if value else "Unsupported format."
        super().__init__(message)
        self.value = value


class StrictFieldsModel(BaseModel):
    """
    Base for models decoded with ``decode_strict``.

    When validated with the strict context flag, mappings carrying keys that are
    neither a field name nor a field alias are rejected. The flag is propagated
    to nested models by pydantic, so the whole document tree is checked.
    """

    @model_validator(mode="before")
    @classmethod
    def _reject_unknown_fields(cls, data: Any, info: ValidationInfo) -> Any:
        if not info.context or not info.context.get(STRICT_FIELDS_CONTEXT_KEY):
            return data
        if not isinstance(data, Mapping):
            return data
        known = set(cls.model_fields)
        known.update(field.alias for field in cls.model_fields.values() if field.alias)
        unknown = sorted(str(key) for key in data if key not in known)
        if unknown:
            raise ValueError(f"unknown field(s) {', '.join(unknown)} in {cls.__name__}")
        return data


class _StrictSafeLoader(yaml.SafeLoader):
    """SafeLoader that refuses duplicate keys in a mapping."""

    def construct_mapping(self, node: yaml.MappingNode, deep: bool = False) -> dict[Any, Any]:
        seen: set[Any] = set()
        for key_node, _ in node.value:
            if key_node.tag == "tag:yaml.org,2002:merge":
                continue
            key = self.construct_object(key_node, deep=True)
            if not isinstance(key, Hashable):
                continue
            if key in seen:
                raise yaml.constructor.ConstructorError(
                    "while constructing a mapping",
                    node.start_mark,
                    f"found duplicate key {key!r}",
                    key_node.start_mark,
                )
            seen.add(key)
        return super().construct_mapping(node, deep=deep)


def _load_json(data: bytes) -> Any:
    return json.loads(data)


def _dump_json(value: Any) -> bytes:
    return json.dumps(value, ensure_ascii=False).encode("utf-8")


def _load_yaml(data: bytes) -> Any:
    return yaml.safe_load(data)


def _load_yaml_strict(data: bytes) -> Any:
    return yaml.load(data, Loader=_StrictSafeLoader)  # noqa: S506


def _dump_yaml(value: Any) -> bytes:
    return yaml.safe_dump(value, sort_keys=False, allow_unicode=True).encode("utf-8")


@dataclass(frozen=True)
class _Codec:
    content_type: str
    load: Callable[[bytes], Any]
    load_strict: Callable[[bytes], Any]
    dump: Callable[[Any], bytes]
    # strict unknown-field rejection is only applied where the codec supports it
    rejects_unknown_fields: bool


_CODECS: dict[Format, _Codec] = {
    Format.JSON: _Codec(
        content_type="application/json",
        load=_load_json,
        load_strict=_load_json,
        dump=_dump_json,
        rejects_unknown_fields=False,
    ),
    Format.YAML: _Codec(
        content_type="application/x-yaml",
        load=_load_yaml,
        load_strict=_load_yaml_strict,
        dump=_dump_yaml,
        rejects_unknown_fields=True,
    ),
}

_PATH_FORMATS: dict[str, Format] = {
    "yaml": Format.YAML,
    "yml": Format.YAML,
    ".yaml": Format.YAML,
    ".yml": Format.YAML,
    "json": Format.JSON,
    ".json": Format.JSON,
}

_CONTENT_TYPE_FORMATS: dict[str, Format] = {
    "application/x-yaml": Format.YAML,
    "text/x-yaml": Format.YAML,
    "application/json": Format.JSON,
}


def format_from_path(path: str) -> Format:
    """
    Resolve a format from a file suffix or bare format name.

    Comparison is case-insensitive, surrounding whitespace is ignored and the
    leading dot is optional, so ``" .YML "`` resolves to YAML.

    Raises:
        UnsupportedFormatError: if the value is not a known suffix.
    """
    fmt = _PATH_FORMATS.get(path.strip().lower())
    if fmt is None:
        raise UnsupportedFormatError(path)
    return fmt


def format_from_content_type(content_type_value: str) -> Format:
    """
    Resolve a format from a MIME content-type.

    Raises:
        UnsupportedFormatError: for any content-type other than the YAML/JSON ones.
    """
    fmt = _CONTENT_TYPE_FORMATS.get(content_type_value)
    if fmt is None:
        raise UnsupportedFormatError(content_type_value)
    return fmt


def format_string(fmt: Format) -> str:
    """Return the short name of a format ("json" or "yaml")."""
    if fmt not in _CODECS:
        raise UnsupportedFormatError(str(fmt))
    return fmt.value


def content_type(fmt: Format) -> str:
    """Return the canonical MIME type of a format, octet-stream when unknown."""
    codec = _CODECS.get(fmt)
    return codec.content_type if codec else FALLBACK_CONTENT_TYPE


def _get_codec(fmt: Format) -> _Codec:
    codec = _CODECS.get(fmt)
    if codec is None:
        raise UnsupportedFormatError(str(fmt))
    return codec


def decode(data: bytes, fmt: Format, target: type[ModelT]) -> ModelT:
    """
    Decode ``data`` into an instance of ``target``, ignoring unknown fields.

    Parser errors (``json.JSONDecodeError``, ``yaml.YAMLError``) and
    ``pydantic.ValidationError`` propagate unchanged.
    """
    codec = _get_codec(fmt)
    return target.model_validate(codec.load(data))


def decode_strict(data: bytes, fmt: Format, target: type[ModelT]) -> ModelT:
    """
    Decode ``data`` into ``target`` rejecting fields unknown to the schema.

    Only YAML is tightened (unknown fields and duplicate keys). JSON decoding is
    identical to ``decode``.
    """
    codec = _get_codec(fmt)
    payload = codec.load_strict(data)
    context = {STRICT_FIELDS_CONTEXT_KEY: codec.rejects_unknown_fields}
    return target.model_validate(payload, context=context)


def encode(value: Any, fmt: Format) -> bytes:
    """
    Encode a model (or plain data) to bytes.

    An unknown format yields empty bytes rather than an error.
    """
    codec = _CODECS.get(fmt)
    if codec is None:
        return b""
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json", by_alias=True, exclude_none=True)
    return codec.dump(value)
