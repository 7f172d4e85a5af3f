# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

from .formats import (
    Format,
    StrictFieldsModel,
    UnsupportedFormatError,
    content_type,
    decode,
    decode_strict,
    encode,
    format_from_content_type,
    format_from_path,
    format_string,
)
from .opener import is_url, open_file, open_path, open_url, read_file, read_url

__all__ = [
    "Format",
    "StrictFieldsModel",
    "UnsupportedFormatError",
    "content_type",
    "decode",
    "decode_strict",
    "encode",
    "format_from_content_type",
    "format_from_path",
    "format_string",
    "is_url",
    "open_file",
    "open_path",
    "open_url",
    "read_file",
    "read_url",
]
