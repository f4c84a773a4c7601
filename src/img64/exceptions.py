"""Exception hierarchy for the image embedding pipeline."""

from __future__ import annotations


class Img64Error(RuntimeError):
    """Base exception for image embedding failures."""


class ConfigurationError(Img64Error, ValueError):
    """Raised when the extension receives an invalid option."""


class ImageReadError(Img64Error):
    """Raised when the bytes behind an image reference cannot be retrieved."""


class TLSCertificateError(ImageReadError):
    """Raised when TLS certificate verification fails during downloads."""


class UnsupportedMediaTypeError(Img64Error):
    """Raised when the retrieved bytes are not an embeddable web image."""

    def __init__(self, media_type: str) -> None:
        super().__init__(f"Cannot embed content of type '{media_type}'")
        self.media_type = media_type


def exception_messages(exc: BaseException) -> list[str]:
    """Return the collected message chain for an exception and its causes."""
    messages: list[str] = []
    visited: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in visited:
        visited.add(id(current))
        text = str(current).strip()
        if text:
            first_line = text.splitlines()[0].strip()
            if first_line:
                messages.append(first_line)
        current = current.__cause__ or current.__context__
    return messages


def exception_hint(exc: BaseException) -> str | None:
    """Return the most specific message available for an exception chain."""
    messages = exception_messages(exc)
    return messages[-1] if messages else None


__all__ = [
    "ConfigurationError",
    "ImageReadError",
    "Img64Error",
    "TLSCertificateError",
    "UnsupportedMediaTypeError",
    "exception_hint",
    "exception_messages",
]
