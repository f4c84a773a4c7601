"""Inline Markdown images as base64 data URLs for self-contained HTML."""

from __future__ import annotations

from .config import Img64Config, build_config
from .diagnostics import DiagnosticEmitter, LoggingEmitter, NullEmitter
from .embedder import ImageEmbedder
from .exceptions import (
    ConfigurationError,
    ImageReadError,
    Img64Error,
    TLSCertificateError,
    UnsupportedMediaTypeError,
)
from .extension import Img64Extension, convert, makeExtension
from .media import COMMON_WEB_IMAGES, detect_media_type, ensure_embeddable, to_data_url
from .readers import FileReader, LocalFileReader, RemoteFileReader
from .resolvers import (
    BaseUrlPathResolver,
    IdentityPathResolver,
    ParentPathResolver,
    PathResolver,
)
from .version import get_version


__version__ = get_version()

__all__ = [
    "COMMON_WEB_IMAGES",
    "BaseUrlPathResolver",
    "ConfigurationError",
    "DiagnosticEmitter",
    "FileReader",
    "IdentityPathResolver",
    "ImageEmbedder",
    "ImageReadError",
    "Img64Config",
    "Img64Error",
    "Img64Extension",
    "LocalFileReader",
    "LoggingEmitter",
    "NullEmitter",
    "ParentPathResolver",
    "PathResolver",
    "RemoteFileReader",
    "TLSCertificateError",
    "UnsupportedMediaTypeError",
    "__version__",
    "build_config",
    "convert",
    "detect_media_type",
    "ensure_embeddable",
    "makeExtension",
    "to_data_url",
]
