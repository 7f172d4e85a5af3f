# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

"""Open declarative documents from the local filesystem or from an HTTP(S) URL."""

import io
import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor, wait
from pathlib import Path, PurePosixPath
from typing import Any, BinaryIO, TypeVar
from urllib.parse import urlparse

import requests

from serialization.formats import Format, format_from_path
from settings import get_settings

logger = logging.getLogger(__name__)

_URL_SCHEMES = ("http", "https")

T = TypeVar("T")


def _resolve_timeout(timeout: float | None) -> float:
    return timeout if timeout is not None else get_settings().remote_read_timeout


def _close_late_result(future: Future) -> None:
    """Release a response that arrived after its caller gave up."""
    if future.cancelled() or future.exception() is not None:
        return
    close = getattr(future.result(), "close", None)
    if callable(close):
        close()


class RemoteDeadline:
    """
    Wall-clock budget shared by every blocking step of a remote read.

    requests bounds each socket wait, not the whole exchange. Each step therefore
    runs on a worker thread and the caller waits at most for the time left. When
    the budget runs out the caller gets ``requests.Timeout`` and the worker is
    abandoned after ``on_expiry`` released its resources.
    """

    def __init__(self, url: str, timeout: float):
        self.url = url
        self.timeout = timeout
        self.expired = False
        self._expires_at = time.monotonic() + timeout
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="remote-read")

    def remaining(self) -> float:
        return max(self._expires_at - time.monotonic(), 0.0)

    def run(self, func: Callable[..., T], *args: Any, on_expiry: Callable[[], None] | None = None, **kwargs: Any) -> T:
        """
        Run ``func`` on the worker and wait for it until the deadline.

        Raises:
            requests.Timeout: if the deadline passes first.
        """
        future = self._executor.submit(func, *args, **kwargs)
        done, _ = wait([future], timeout=self.remaining())
        if done:
            return future.result()

        self.expired = True
        logger.warning("Reading %s exceeded the %ss deadline", self.url, self.timeout)
        if not future.cancel():
            future.add_done_callback(_close_late_result)
        if on_expiry is not None:
            # closing a stream blocks until the pending read returns
            threading.Thread(target=on_expiry, name="remote-read-close", daemon=True).start()
        raise requests.Timeout(f"Reading {self.url} took longer than {self.timeout} seconds.")

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)


class DeadlineStream(io.RawIOBase):
    """Streaming response body; every read shares the deadline of the request."""

    def __init__(self, response: requests.Response, deadline: RemoteDeadline):
        super().__init__()
        self._response = response
        self._deadline = deadline
        self._pending = b""

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        if not self._pending:
            self._pending = self._deadline.run(self._response.raw.read, len(buffer), on_expiry=self._response.close)
        size = min(len(buffer), len(self._pending))
        buffer[:size] = self._pending[:size]
        self._pending = self._pending[size:]
        return size

    def close(self) -> None:
        if not self.closed:
            # an expired read is closed by the deadline
            if not self._deadline.expired:
                self._response.close()
            self._deadline.close()
        super().close()


def is_url(path: str) -> bool:
    """Return True when ``path`` looks like an HTTP(S) URL."""
    parsed = urlparse(path)
    return parsed.scheme.lower() in _URL_SCHEMES and bool(parsed.netloc)


def read_file(path: str | Path) -> tuple[bytes, Format]:
    """
    Read a local file fully.

    The format is YAML unless the filename ends with ``.json``.
    """
    fmt = Format.JSON if str(path).endswith(".json") else Format.YAML
    data = Path(path).read_bytes()
    logger.debug("Read %d bytes from %s as %s", len(data), path, fmt)
    return data, fmt


def open_file(path: str | Path) -> BinaryIO:
    """Open a local file for binary reading. The caller closes it."""
    return open(path, "rb")  # noqa: SIM115


def read_url(url: str, format_hint: str, timeout: float | None = None) -> tuple[bytes, Format]:
    """
    Download a remote document.

    The format is resolved from ``format_hint`` before any network I/O, so an
    unsupported hint fails without contacting the server. The whole exchange
    (connect and body read) is bounded by ``timeout`` seconds of wall-clock time.

    Raises:
        UnsupportedFormatError: if ``format_hint`` is not a known suffix.
        requests.Timeout: if the deadline is exceeded.
        requests.HTTPError: for a non-2xx response.
    """
    fmt = format_from_path(format_hint)
    with open_url(url, timeout=timeout) as stream:
        data = stream.read()
    logger.debug("Fetched %d bytes from %s as %s", len(data), url, fmt)
    return data, fmt


def open_url(url: str, timeout: float | None = None) -> BinaryIO:
    """
    Open a remote document as a stream without reading it.

    Connecting and every later read of the stream share one deadline of
    ``timeout`` seconds. The caller closes the returned stream.

    Raises:
        requests.Timeout: if the deadline is exceeded.
        requests.HTTPError: for a non-2xx response.
    """
    timeout = _resolve_timeout(timeout)
    logger.debug("Fetching %s (timeout=%ss)", url, timeout)
    deadline = RemoteDeadline(url, timeout)
    try:
        response = deadline.run(requests.get, url, stream=True, timeout=timeout)
    except Exception:
        deadline.close()
        raise
    try:
        response.raise_for_status()
    except requests.HTTPError:
        response.close()
        deadline.close()
        raise
    response.raw.decode_content = True
    return DeadlineStream(response, deadline)


def open_path(path: str) -> tuple[BinaryIO, Format]:
    """
    Open a local path or an HTTP(S) URL.

    The format comes from the suffix of the file or of the URL path and is
    checked before anything is opened.
    """
    if is_url(path):
        fmt = format_from_path(PurePosixPath(urlparse(path).path).suffix or path)
        return open_url(path), fmt

    fmt = format_from_path(Path(path).suffix or path)
    return open_file(path), fmt
