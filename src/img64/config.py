"""Configuration model shared by the extension and the embedder.

Img64Config

`path_resolver` (`PathResolver`)
: Strategy mapping a raw image source to a retrievable location. Accepts an
  object exposing ``resolve(source)`` or a plain callable. Defaults to the
  identity resolver.

`file_reader` (`FileReader`)
: Strategy retrieving the bytes of a resolved location. Accepts an object
  exposing ``read(location)`` or a plain callable. Defaults to the local file
  reader, which leaves remote images untouched.

`parent_path` (`str | None`)
: Convenience shortcut for ``ParentPathResolver(parent_path)``. Ignored when
  an explicit `path_resolver` is provided.

`unsafe` (`bool`)
: Skip the dangerous-URL check. Sources such as ``javascript:`` are then
  processed like any other reference.

`xhtml` (`bool | None`)
: Close images with ``/>`` instead of ``>``. ``None`` follows the host
  Markdown instance's ``output_format``.

`emitter` (`DiagnosticEmitter`)
: Channel receiving per-image warnings and events. Defaults to a
  logging-backed emitter.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .diagnostics import DiagnosticEmitter, LoggingEmitter
from .exceptions import ConfigurationError
from .readers import LocalFileReader, coerce_file_reader
from .resolvers import (
    IdentityPathResolver,
    ParentPathResolver,
    coerce_path_resolver,
)


class Img64Config(BaseModel):
    """Immutable per-renderer configuration."""

    model_config = ConfigDict(extra="forbid", frozen=True, arbitrary_types_allowed=True)

    path_resolver: Any = Field(default_factory=IdentityPathResolver)
    file_reader: Any = Field(default_factory=LocalFileReader)
    parent_path: str | None = None
    unsafe: bool = False
    xhtml: bool | None = None
    emitter: Any = Field(default_factory=LoggingEmitter)

    @model_validator(mode="before")
    @classmethod
    def coerce_strategies(cls, data: Any) -> Any:
        """Apply ``parent_path`` and wrap plain callables into strategies."""
        if not isinstance(data, dict):
            return data
        values = {key: value for key, value in data.items() if value is not None}
        parent = values.get("parent_path")
        if parent is not None:
            values["parent_path"] = str(parent)
            values.setdefault("path_resolver", ParentPathResolver(parent))
        try:
            values["path_resolver"] = coerce_path_resolver(values.get("path_resolver"))
            values["file_reader"] = coerce_file_reader(values.get("file_reader"))
        except TypeError as exc:
            raise ValueError(str(exc)) from exc
        emitter = values.get("emitter")
        if emitter is not None and not isinstance(emitter, DiagnosticEmitter):
            msg = f"Expected a diagnostic emitter, got {type(emitter).__name__}"
            raise ValueError(msg)
        return values


def build_config(**options: Any) -> Img64Config:
    """Validate ``options`` into an :class:`Img64Config`."""
    try:
        return Img64Config(**options)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid img64 configuration: {exc}") from exc


__all__ = ["Img64Config", "build_config"]
