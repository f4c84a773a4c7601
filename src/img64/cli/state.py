"""Process-wide CLI settings and stderr rendering.

Standard output carries the rendered HTML, so every message printed here,
info lines included, goes to stderr.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import sys

from rich.console import Console
from rich.text import Text

from ..exceptions import exception_messages


_LEVEL_STYLES = {"error": "red", "warning": "yellow", "info": "cyan"}


@dataclass(slots=True)
class CLIState:
    """Verbosity and traceback flags for the current invocation."""

    verbosity: int = 0
    show_tracebacks: bool = False
    _err_console: Console | None = field(default=None, init=False, repr=False)

    @property
    def err_console(self) -> Console:
        # Rebuilt when sys.stderr is swapped, e.g. by test runners.
        if self._err_console is None or self._err_console.file is not sys.stderr:
            self._err_console = Console(file=sys.stderr, highlight=False)
        return self._err_console


_CLI_STATE = CLIState()


def get_cli_state() -> CLIState:
    return _CLI_STATE


def set_cli_state(*, verbosity: int | None = None, debug: bool | None = None) -> CLIState:
    """Apply the ``-v`` count and ``--debug`` flag to the shared state."""
    state = get_cli_state()
    if verbosity is not None:
        state.verbosity = max(0, verbosity)
    if debug is not None:
        state.show_tracebacks = debug
    return state


def _details(exception: BaseException, verbosity: int) -> list[str]:
    """Exception type at ``-v``; the full cause chain from ``-vv`` on."""
    lines = [f"type: {type(exception).__name__}"]
    if verbosity >= 2:
        causes = exception_messages(exception)[1:]
        lines.extend(f"  caused by: {cause}" for cause in causes)
    return lines


def render_message(
    level: str,
    message: str,
    *,
    exception: BaseException | None = None,
) -> None:
    state = get_cli_state()
    style = _LEVEL_STYLES.get(level, "cyan")
    text = Text.assemble((f"{level}: ", f"bold {style}"), (message, style))
    if exception is not None and state.verbosity >= 1:
        for line in _details(exception, state.verbosity):
            text.append(f"\n{line}", style=style)
    state.err_console.print(text)


def emit_info(message: str) -> None:
    """Print ``message`` only when running with ``-v``."""
    if get_cli_state().verbosity >= 1:
        render_message("info", message)


def emit_warning(message: str, *, exception: BaseException | None = None) -> None:
    render_message("warning", message, exception=exception)


def emit_error(message: str, *, exception: BaseException | None = None) -> None:
    render_message("error", message, exception=exception)


def debug_enabled() -> bool:
    return get_cli_state().show_tracebacks


__all__ = [
    "CLIState",
    "debug_enabled",
    "emit_error",
    "emit_info",
    "emit_warning",
    "get_cli_state",
    "render_message",
    "set_cli_state",
]
