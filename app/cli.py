# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

"""
Command line client for the pipeline import service.

PATH arguments may be local files or HTTP(S) URLs; the document format is taken
from the file or URL suffix.

    pipelinectl lint build.yml
    pipelinectl import CDS https://example.com/pipelines/build.yml --force
    pipelinectl replace CDS build ./build.json
    pipelinectl export CDS build --format json
"""

import argparse
import json
import logging
import sys

import requests
import yaml
from pydantic import ValidationError

from domain.services.schemas.declarative import DeclarativePipeline, PipelineConversionError
from serialization import Format, UnsupportedFormatError, decode_strict, format_string, open_path
from settings import get_settings

logger = logging.getLogger(__name__)


def read_document(path: str) -> tuple[bytes, Format]:
    """Read a local or remote document fully, closing the stream on every path."""
    stream, fmt = open_path(path)
    with stream:
        return stream.read(), fmt


def get_arguments(arg_list: list[str] | None = None) -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(prog="pipelinectl", description="Preview and import declarative pipelines.")
    parser.add_argument("--server", type=str, default=settings.server_url, help="Base URL of the server")
    parser.add_argument("--consumer", type=str, default=None, help="Username attributed to the import")
    parser.add_argument("--language", type=str, default=None, help="Preferred language of the messages (en, fr)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    lint = subparsers.add_parser("lint", help="Validate a document locally, rejecting unknown YAML fields")
    lint.add_argument("path", type=str)

    preview = subparsers.add_parser("preview", help="Show the pipeline the server would build from a document")
    preview.add_argument("path", type=str)

    import_ = subparsers.add_parser("import", help="Import a document into a project")
    import_.add_argument("project", type=str)
    import_.add_argument("path", type=str)
    import_.add_argument("--force", action="store_true", help="Overwrite an existing pipeline of the same name")

    replace = subparsers.add_parser("replace", help="Replace a named pipeline of a project")
    replace.add_argument("project", type=str)
    replace.add_argument("pipeline", type=str)
    replace.add_argument("path", type=str)

    export = subparsers.add_parser("export", help="Print the declarative document of a pipeline")
    export.add_argument("project", type=str)
    export.add_argument("pipeline", type=str)
    export.add_argument("--format", type=str, default="yaml", choices=["yaml", "yml", "json"])

    return parser.parse_args(arg_list)


def lint(path: str) -> int:
    data, fmt = read_document(path)
    pipeline = decode_strict(data, fmt, DeclarativePipeline).to_domain()
    jobs = sum(len(stage.jobs) for stage in pipeline.stages)
    print(f"{path}: pipeline '{pipeline.name}' is valid ({len(pipeline.stages)} stage(s), {jobs} job(s))")
    return 0


class Client:
    """Thin HTTP client of the server API."""

    def __init__(self, server: str, consumer: str | None = None, language: str | None = None):
        settings = get_settings()
        self.base_url = server.rstrip("/") + "/api/v1"
        self.timeout = settings.remote_read_timeout
        self.headers: dict[str, str] = {}
        if consumer:
            self.headers[settings.consumer_header] = consumer
        if language:
            self.headers["Accept-Language"] = language

    def request(self, method: str, path: str, **kwargs) -> requests.Response:
        logger.debug("%s %s%s", method, self.base_url, path)
        return requests.request(
            method, f"{self.base_url}{path}", headers=self.headers, timeout=self.timeout, **kwargs
        )

    def send_document(self, method: str, path: str, document_path: str, **params) -> requests.Response:
        data, fmt = read_document(document_path)
        return self.request(method, path, data=data, params={"format": format_string(fmt), **params})


def _print_response(response: requests.Response) -> int:
    try:
        body = response.json()
    except ValueError:
        body = response.text
    output = sys.stdout if response.ok else sys.stderr
    if isinstance(body, list):
        for line in body:
            print(line, file=output)
    elif isinstance(body, dict):
        print(json.dumps(body, indent=2, ensure_ascii=False), file=output)
    else:
        print(body, file=output)
    return 0 if response.ok else 1


def run(args: argparse.Namespace) -> int:
    if args.command == "lint":
        return lint(args.path)

    client = Client(args.server, consumer=args.consumer, language=args.language)
    if args.command == "preview":
        response = client.send_document("POST", "/pipelines/preview", args.path)
    elif args.command == "import":
        response = client.send_document(
            "POST", f"/projects/{args.project}/pipelines/import", args.path, force=str(args.force).lower()
        )
    elif args.command == "replace":
        response = client.send_document("PUT", f"/projects/{args.project}/pipelines/{args.pipeline}/import", args.path)
    else:
        response = client.request(
            "GET", f"/projects/{args.project}/pipelines/{args.pipeline}/export", params={"format": args.format}
        )
        if response.ok:
            print(response.text, end="" if response.text.endswith("\n") else "\n")
            return 0
    return _print_response(response)


def main(arg_list: list[str] | None = None) -> int:
    args = get_arguments(arg_list)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    try:
        return run(args)
    except (
        UnsupportedFormatError,
        PipelineConversionError,
        ValidationError,
        yaml.YAMLError,
        json.JSONDecodeError,
        OSError,
        requests.RequestException,
    ) as exc:
        logger.debug("Command %s failed", args.command, exc_info=exc)
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
