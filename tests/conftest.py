from __future__ import annotations

import base64
from collections.abc import Iterator
from functools import partial
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
import threading

import pytest
import requests

import img64.cli.state as cli_state


PNG_BASE64 = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAAAAAA6fptVAAAACklEQVQIHWP4DwABAQEANl9ngAAAAABJRU5ErkJggg=="
)


class _QuietHandler(SimpleHTTPRequestHandler):
    def log_message(self, format: str, *args: object) -> None:  # noqa: A002
        return


@pytest.fixture
def png_bytes() -> bytes:
    return base64.b64decode(PNG_BASE64)


@pytest.fixture
def png_data_url() -> str:
    return f"data:image/png;base64,{PNG_BASE64}"


@pytest.fixture
def image_dir(tmp_path: Path, png_bytes: bytes) -> Path:
    """Directory holding one PNG image and one plain-text file."""
    (tmp_path / "image.png").write_bytes(png_bytes)
    (tmp_path / "gopher.txt").write_text("Gopher", encoding="utf-8")
    return tmp_path


@pytest.fixture
def http_root(image_dir: Path) -> Iterator[str]:
    """Serve ``image_dir`` over HTTP on an ephemeral local port."""
    handler = partial(_QuietHandler, directory=str(image_dir))
    server = ThreadingHTTPServer(("127.0.0.1", 0), handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        host, port = server.server_address[:2]
        yield f"http://{host}:{port}"
    finally:
        server.shutdown()
        server.server_close()
        thread.join(timeout=5)


@pytest.fixture
def local_session() -> Iterator[requests.Session]:
    """Session ignoring proxy settings from the environment."""
    session = requests.Session()
    session.trust_env = False
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def _reset_cli_state() -> Iterator[None]:
    state = cli_state.get_cli_state()
    yield
    state.verbosity = 0
    state.show_tracebacks = False
