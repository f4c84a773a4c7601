"""Strategies mapping a raw image source to a location a reader can fetch.

Resolvers never touch the file system or the network. A resolver that cannot
make sense of a source simply returns something the active reader will fail
to read, which degrades to the original reference at render time.
"""

from __future__ import annotations

from collections.abc import Callable
import os
from typing import Protocol, runtime_checkable
from urllib.parse import urljoin


REMOTE_PREFIXES = ("http://", "https://")


def is_remote_location(location: str) -> bool:
    """Return True when the location uses an HTTP(S) scheme marker."""
    return location.startswith(REMOTE_PREFIXES)


@runtime_checkable
class PathResolver(Protocol):
    """Protocol implemented by path resolution strategies."""

    def resolve(self, source: str) -> str: ...


class IdentityPathResolver:
    """Default resolver: the source is already a retrievable location."""

    def resolve(self, source: str) -> str:
        return source

    def __repr__(self) -> str:
        return "IdentityPathResolver()"


class ParentPathResolver:
    """Prefix local sources with a parent directory (``/var`` + ``a.png``).

    Remote sources are returned unchanged. Absolute local sources are nested
    under the parent too: ``/var`` + ``/img/a.png`` gives ``/var/img/a.png``.
    """

    def __init__(self, parent: str | os.PathLike[str]) -> None:
        self.parent = os.fspath(parent)

    def resolve(self, source: str) -> str:
        if is_remote_location(source):
            return source
        return os.path.join(self.parent, source.lstrip("/\\"))

    def __repr__(self) -> str:
        return f"ParentPathResolver({self.parent!r})"


class BaseUrlPathResolver:
    """Resolve relative sources against the URL of a remote document."""

    def __init__(self, base_url: str) -> None:
        self.base_url = base_url

    def resolve(self, source: str) -> str:
        return urljoin(self.base_url, source)

    def __repr__(self) -> str:
        return f"BaseUrlPathResolver({self.base_url!r})"


class CallablePathResolver:
    """Adapt a plain ``str -> str`` callable to :class:`PathResolver`."""

    def __init__(self, func: Callable[[str], str]) -> None:
        self.func = func

    def resolve(self, source: str) -> str:
        return self.func(source)

    def __repr__(self) -> str:
        name = getattr(self.func, "__name__", type(self.func).__name__)
        return f"CallablePathResolver({name})"


def coerce_path_resolver(value: object) -> PathResolver:
    """Return a resolver for a strategy object, a callable, or ``None``."""
    if value is None:
        return IdentityPathResolver()
    if isinstance(value, PathResolver):
        return value
    if callable(value):
        return CallablePathResolver(value)
    msg = f"Expected a path resolver or a callable, got {type(value).__name__}"
    raise TypeError(msg)


__all__ = [
    "REMOTE_PREFIXES",
    "BaseUrlPathResolver",
    "CallablePathResolver",
    "IdentityPathResolver",
    "ParentPathResolver",
    "PathResolver",
    "coerce_path_resolver",
    "is_remote_location",
]
