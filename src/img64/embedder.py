"""Decide, per image source, between a data URL and the original reference."""

from __future__ import annotations

from typing import Any

from .config import Img64Config, build_config
from .exceptions import ImageReadError, Img64Error, exception_hint
from .html import escape_html, escape_url, is_dangerous_url
from .media import ensure_embeddable, is_data_url, to_data_url


class ImageEmbedder:
    """Run a source through resolution, retrieval, classification and encoding."""

    def __init__(self, config: Img64Config | None = None, **options: Any) -> None:
        if config is not None and options:
            msg = "Pass either a configuration object or keyword options, not both."
            raise TypeError(msg)
        self.config = config or build_config(**options)

    def embed(self, source: str) -> str | None:
        """Return the data URL for ``source``.

        Returns the source itself when it is already a data URL, and ``None``
        when the reader declines the location. Read and classification
        failures raise :class:`~img64.exceptions.Img64Error`.
        """
        if is_data_url(source):
            return source

        location = self.config.path_resolver.resolve(source)
        data = self._read(location)
        if data is None:
            self.config.emitter.event("image_passthrough", {"source": source})
            return None

        media_type = ensure_embeddable(data)
        self.config.emitter.event(
            "image_embedded",
            {"source": source, "media_type": media_type, "size": len(data)},
        )
        return to_data_url(data, media_type)

    def _read(self, location: str) -> bytes | None:
        try:
            return self.config.file_reader.read(location)
        except Img64Error:
            raise
        except Exception as exc:  # noqa: BLE001 - reader strategies are user code
            raise ImageReadError(f"Unable to read image '{location}': {exc}") from exc

    def src_for(self, source: str) -> str:
        """Return the escaped ``src`` attribute value for an image reference.

        Never raises for per-image problems: dangerous sources produce an
        empty value and every other failure falls back to the original
        reference.
        """
        if not self.config.unsafe and is_dangerous_url(source):
            return ""

        try:
            encoded = self.embed(source)
        except Img64Error as exc:
            hint = exception_hint(exc) or type(exc).__name__
            self.config.emitter.warning(f"Image '{source}' left as a reference: {hint}", exc)
            encoded = None

        if encoded is None:
            return escape_html(escape_url(source))
        # Base64 payloads are unaffected; malformed data URLs cannot break the attribute.
        return escape_html(encoded)


__all__ = ["ImageEmbedder"]
