"""Strategies retrieving the raw bytes behind a resolved image location.

A reader returns the complete resource, ``None`` when the location is not
its business (the reference is then left untouched), or raises
:class:`~img64.exceptions.ImageReadError`.
"""

from __future__ import annotations

from collections.abc import Callable
import logging
import os
from typing import Protocol, runtime_checkable

import requests

from .exceptions import ImageReadError
from .http import DEFAULT_TIMEOUT, create_session, fetch_bytes
from .resolvers import is_remote_location


logger = logging.getLogger(__name__)


@runtime_checkable
class FileReader(Protocol):
    """Protocol implemented by byte retrieval strategies."""

    def read(self, location: str) -> bytes | None: ...


def read_local_file(location: str) -> bytes:
    """Read a local file fully after normalising its path."""
    path = os.path.normpath(location)
    try:
        with open(path, "rb") as handle:
            return handle.read()
    except (OSError, ValueError) as exc:
        # open() rejects paths holding NUL bytes with ValueError.
        reason = getattr(exc, "strerror", None) or exc
        raise ImageReadError(f"Unable to read image '{path}': {reason}") from exc


class LocalFileReader:
    """Default reader: local files only, remote images are left as references."""

    def read(self, location: str) -> bytes | None:
        if is_remote_location(location):
            return None
        return read_local_file(location)

    def __repr__(self) -> str:
        return "LocalFileReader()"


class RemoteFileReader:
    """Reader that also downloads HTTP(S) images.

    Only enable it for documents whose remote images are trusted: every
    remote reference triggers a blocking request.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        *,
        timeout: float | None = DEFAULT_TIMEOUT,
        user_agent: str | None = None,
    ) -> None:
        self.session = session or create_session(user_agent)
        self.timeout = timeout

    def read(self, location: str) -> bytes | None:
        if is_remote_location(location):
            logger.debug("Fetching remote image %s", location)
            return fetch_bytes(self.session, location, timeout=self.timeout)
        return read_local_file(location)

    def close(self) -> None:
        """Release the pooled connections held by the session."""
        self.session.close()

    def __repr__(self) -> str:
        return f"RemoteFileReader(timeout={self.timeout!r})"


class CallableFileReader:
    """Adapt a plain ``str -> bytes | None`` callable to :class:`FileReader`."""

    def __init__(self, func: Callable[[str], bytes | None]) -> None:
        self.func = func

    def read(self, location: str) -> bytes | None:
        try:
            return self.func(location)
        except OSError as exc:
            raise ImageReadError(f"Unable to read image '{location}': {exc}") from exc

    def __repr__(self) -> str:
        name = getattr(self.func, "__name__", type(self.func).__name__)
        return f"CallableFileReader({name})"


def coerce_file_reader(value: object) -> FileReader:
    """Return a reader for a strategy object, a callable, or ``None``."""
    if value is None:
        return LocalFileReader()
    if isinstance(value, FileReader):
        return value
    if callable(value):
        return CallableFileReader(value)
    msg = f"Expected a file reader or a callable, got {type(value).__name__}"
    raise TypeError(msg)


__all__ = [
    "CallableFileReader",
    "FileReader",
    "LocalFileReader",
    "RemoteFileReader",
    "coerce_file_reader",
    "read_local_file",
]
