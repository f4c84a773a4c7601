"""Typer application wiring for the img64 CLI."""

from __future__ import annotations

from pathlib import Path

from rich.traceback import Traceback
import typer

from ..exceptions import Img64Error
from ..extension import convert
from ..http import DEFAULT_TIMEOUT, create_session, fetch_bytes
from ..readers import LocalFileReader, RemoteFileReader
from ..resolvers import BaseUrlPathResolver, ParentPathResolver, is_remote_location
from .diagnostics import CliEmitter
from .state import debug_enabled, emit_error, emit_info, get_cli_state, set_cli_state


app = typer.Typer(
    help="Render Markdown to HTML with images inlined as base64 data URLs.",
    context_settings={"help_option_names": ["--help"]},
    add_completion=False,
)


def _load_document(source: str, *, timeout: float | None) -> str:
    if is_remote_location(source):
        session = create_session()
        try:
            payload = fetch_bytes(session, source, timeout=timeout)
        finally:
            session.close()
        return payload.decode("utf-8", errors="replace")

    path = Path(source)
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise Img64Error(f"Unable to read document '{path}': {exc.strerror or exc}") from exc


@app.command()
def render(
    input_source: str = typer.Argument(
        ...,
        metavar="INPUT",
        help="Markdown file path or http(s) URL of the document to render.",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        dir_okay=False,
        writable=True,
        resolve_path=True,
        help="Write the HTML to this file instead of standard output.",
    ),
    parent_path: str | None = typer.Option(
        None,
        "--parent-path",
        help="Directory prepended to local image sources.",
    ),
    relative_to_input: bool = typer.Option(
        False,
        "--relative-to-input",
        help="Resolve local images against the directory of a local INPUT file.",
    ),
    allow_remote: bool = typer.Option(
        False,
        "--allow-remote",
        help="Download http(s) images and inline them too.",
    ),
    timeout: float = typer.Option(
        DEFAULT_TIMEOUT,
        "--timeout",
        min=0.1,
        help="Timeout in seconds for every HTTP request.",
    ),
    xhtml: bool | None = typer.Option(
        None,
        "--xhtml/--html",
        help="Close images with '/>' (XHTML) or '>' (HTML, default).",
    ),
    unsafe: bool = typer.Option(
        False,
        "--unsafe",
        help="Process sources flagged as dangerous URLs instead of blanking them.",
    ),
    extensions: list[str] = typer.Option(
        [],
        "--extension",
        "-x",
        help="Additional Python-Markdown extension to load. Repeat as needed.",
    ),
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase CLI verbosity. Combine multiple times for additional diagnostics.",
    ),
    debug: bool = typer.Option(
        False,
        "--debug/--no-debug",
        help="Show full tracebacks when an unexpected error occurs.",
    ),
) -> None:
    """Render INPUT and inline every image that can be read."""
    state = set_cli_state(verbosity=verbose, debug=debug)
    remote_document = is_remote_location(input_source)

    if relative_to_input and parent_path is not None:
        emit_error("Use either --parent-path or --relative-to-input, not both.")
        raise typer.Exit(code=2)
    if remote_document and (relative_to_input or parent_path is not None):
        emit_error("--parent-path/--relative-to-input need a local INPUT file.")
        raise typer.Exit(code=2)

    options: dict[str, object] = {
        "unsafe": unsafe,
        "xhtml": xhtml,
        "emitter": CliEmitter(state),
    }
    if remote_document:
        options["path_resolver"] = BaseUrlPathResolver(input_source)
    elif relative_to_input:
        options["path_resolver"] = ParentPathResolver(Path(input_source).resolve().parent)
    elif parent_path is not None:
        options["parent_path"] = parent_path

    reader: RemoteFileReader | None = None
    if allow_remote:
        reader = RemoteFileReader(timeout=timeout)
        options["file_reader"] = reader
    else:
        options["file_reader"] = LocalFileReader()

    try:
        text = _load_document(input_source, timeout=timeout)
        html = convert(text, extensions=extensions, **options)
    except Img64Error as exc:
        emit_error(str(exc), exception=exc)
        raise typer.Exit(code=1) from exc
    finally:
        if reader is not None:
            reader.close()

    if output is None:
        typer.echo(html)
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(html + "\n", encoding="utf-8")
    emit_info(f"Wrote {output}")


def main() -> None:
    """Entry point compatible with console scripts."""
    try:
        app()
    except typer.Exit:
        raise
    except KeyboardInterrupt as exc:
        if debug_enabled():
            raise
        emit_error("Operation cancelled by user.", exception=exc)
        raise typer.Exit(code=1) from exc
    except SystemExit:
        raise
    except Exception as exc:  # pragma: no cover - catch-all for console scripts
        state = get_cli_state()
        if state.show_tracebacks:
            tb = Traceback.from_exception(
                type(exc),
                exc,
                exc.__traceback__,
                show_locals=state.verbosity >= 2,
            )
            state.err_console.print(tb)
        else:
            emit_error(str(exc), exception=exc)
        raise typer.Exit(code=1) from exc


__all__ = ["app", "main", "render"]
