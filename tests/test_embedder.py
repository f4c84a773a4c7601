from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import pytest

from img64.config import build_config
from img64.embedder import ImageEmbedder
from img64.exceptions import ImageReadError, UnsupportedMediaTypeError


class RecordingEmitter:
    debug_enabled = False

    def __init__(self) -> None:
        self.warnings: list[tuple[str, BaseException | None]] = []
        self.events: list[tuple[str, dict[str, Any]]] = []

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        self.warnings.append((message, exc))

    def error(self, message: str, exc: BaseException | None = None) -> None:
        raise AssertionError(message)

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        self.events.append((name, dict(payload)))


@pytest.fixture
def emitter() -> RecordingEmitter:
    return RecordingEmitter()


def test_embed_encodes_local_image(
    image_dir: Path, png_data_url: str, emitter: RecordingEmitter
) -> None:
    embedder = ImageEmbedder(parent_path=str(image_dir), emitter=emitter)
    assert embedder.embed("image.png") == png_data_url
    assert emitter.events == [
        ("image_embedded", {"source": "image.png", "media_type": "image/png", "size": 67})
    ]


def test_embed_returns_data_urls_unchanged(png_data_url: str) -> None:
    embedder = ImageEmbedder()
    assert embedder.embed(png_data_url) == png_data_url


def test_embed_leaves_remote_images_to_the_reader(emitter: RecordingEmitter) -> None:
    embedder = ImageEmbedder(emitter=emitter)
    assert embedder.embed("https://example.com/image.png") is None
    assert emitter.events == [("image_passthrough", {"source": "https://example.com/image.png"})]


def test_embed_raises_for_missing_files(tmp_path: Path) -> None:
    embedder = ImageEmbedder(parent_path=str(tmp_path))
    with pytest.raises(ImageReadError):
        embedder.embed("missing.png")


def test_embed_raises_for_non_images(image_dir: Path) -> None:
    embedder = ImageEmbedder(parent_path=str(image_dir))
    with pytest.raises(UnsupportedMediaTypeError):
        embedder.embed("gopher.txt")


def test_embed_uses_custom_strategies(png_bytes: bytes, png_data_url: str) -> None:
    requested: list[str] = []

    def reader(location: str) -> bytes:
        requested.append(location)
        return png_bytes

    embedder = ImageEmbedder(path_resolver=lambda source: f"assets/{source}", file_reader=reader)
    assert embedder.embed("image.png") == png_data_url
    assert requested == ["assets/image.png"]


def test_src_for_falls_back_on_read_errors(tmp_path: Path, emitter: RecordingEmitter) -> None:
    embedder = ImageEmbedder(parent_path=str(tmp_path), emitter=emitter)
    assert embedder.src_for("missing image.png") == "missing%20image.png"
    assert len(emitter.warnings) == 1
    message, exc = emitter.warnings[0]
    assert message.startswith("Image 'missing image.png' left as a reference")
    assert isinstance(exc, ImageReadError)


def test_src_for_falls_back_on_non_images(image_dir: Path, emitter: RecordingEmitter) -> None:
    embedder = ImageEmbedder(parent_path=str(image_dir), emitter=emitter)
    assert embedder.src_for("gopher.txt") == "gopher.txt"
    message, exc = emitter.warnings[0]
    assert "text/plain" in message
    assert isinstance(exc, UnsupportedMediaTypeError)


def test_src_for_escapes_remote_references(emitter: RecordingEmitter) -> None:
    embedder = ImageEmbedder(emitter=emitter)
    assert embedder.src_for("https://example.com/a.png?x=1&y=2") == (
        "https://example.com/a.png?x=1&amp;y=2"
    )
    assert not emitter.warnings


def test_src_for_blanks_dangerous_sources(emitter: RecordingEmitter) -> None:
    embedder = ImageEmbedder(emitter=emitter)
    assert embedder.src_for("javascript:alert(1)") == ""
    assert embedder.src_for("data:text/html;base64,PHNjcmlwdD4=") == ""
    assert not emitter.warnings
    assert not emitter.events


def test_src_for_processes_dangerous_sources_when_unsafe(emitter: RecordingEmitter) -> None:
    embedder = ImageEmbedder(unsafe=True, emitter=emitter)
    assert embedder.src_for("javascript:alert(1)") == "javascript:alert(1)"
    assert len(emitter.warnings) == 1


def test_configuration_and_options_are_exclusive() -> None:
    with pytest.raises(TypeError):
        ImageEmbedder(build_config(), unsafe=True)


def test_unexpected_reader_errors_become_read_errors(emitter: RecordingEmitter) -> None:
    def reader(location: str) -> bytes:
        raise KeyError(location)

    embedder = ImageEmbedder(file_reader=reader, emitter=emitter)
    with pytest.raises(ImageReadError):
        embedder.embed("a.png")

    assert embedder.src_for("a.png") == "a.png"
    assert isinstance(emitter.warnings[0][1], ImageReadError)
