"""Terminal output for deploy-gateway.

Payloads (listings, inventories, request IDs) go to stdout so they can be
piped into another tool. Everything else goes to stderr: negotiation
traces, confirmations, warnings and errors.

Diagnostics are rendered through a single level table (:data:`_LEVELS`).
Any value registered with :func:`mask` is replaced by ``[REDACTED]``
before a diagnostic is written. The CLI registers the credential and its
Basic encoding as soon as the configuration is resolved.

Colour is off under ``NO_COLOR``, ``TERM=dumb`` or ``--no-color``, and when
stdout is not a terminal the ``auto`` format falls back to plain text.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, NamedTuple, Optional

from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table


REDACTED = "[REDACTED]"


class OutputFormat(str, Enum):
    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class _Level(NamedTuple):
    prefix: str
    style: Optional[str]
    quiet_hides: bool
    verbose_only: bool = False
    style_prefix_only: bool = False


_LEVELS: dict[str, _Level] = {
    "info": _Level("", None, quiet_hides=True),
    "success": _Level("", "green", quiet_hides=True),
    "suggest": _Level("→ ", "dim", quiet_hides=True),
    "warning": _Level("Warning: ", "yellow", quiet_hides=False, style_prefix_only=True),
    "error": _Level("Error: ", "bold red", quiet_hides=False, style_prefix_only=True),
    "debug": _Level("[debug] ", "dim", quiet_hides=False, verbose_only=True),
}


class OutputManager:
    """Renders payloads to stdout and diagnostics to stderr.

    One instance is built by :func:`~deploy_gateway.app.main_callback` from
    the root flags and installed with :func:`set_output`; the module-level
    helpers below forward to it.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose
        self._secrets: set[str] = set()

        if format == OutputFormat.AUTO:
            rich_ok = _is_tty() and not self._no_color
            format = OutputFormat.RICH if rich_ok else OutputFormat.PLAIN
        self._format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=(format == OutputFormat.RICH),
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    def mask(self, secret: str) -> None:
        """Never let *secret* reach stderr verbatim."""
        if secret:
            self._secrets.add(secret)

    # --- stdout ---

    def format_response(self, data: Any) -> None:
        """Write one API payload in the active format. ``None`` writes nothing."""
        if data is None:
            return
        if self._format == OutputFormat.JSON:
            self._write(_to_json(data))
        elif self._format == OutputFormat.RICH and isinstance(data, (dict, list)):
            self._stdout.print(Syntax(_to_json(data), "json", theme="monokai", word_wrap=True))
        elif isinstance(data, dict):
            for key, value in data.items():
                self._write(f"{key}\t{_cell(value)}")
        elif isinstance(data, list):
            for item in data:
                values = item.values() if isinstance(item, dict) else [item]
                self._write("\t".join(_cell(v) for v in values))
        else:
            self._write(str(data))

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Write rows as JSON records, TSV with a header line, or a Rich table."""
        if self._format == OutputFormat.JSON:
            self._write(_to_json([dict(zip(headers, row)) for row in rows]))
            return
        if self._format == OutputFormat.PLAIN:
            for line in [headers, *rows]:
                self._write("\t".join(line))
            return

        table = Table(title=title, header_style="bold cyan")
        for header in headers:
            table.add_column(header)
        for row in rows:
            table.add_row(*(escape(cell) for cell in row))
        self._stdout.print(table)

    # --- stderr ---

    def emit(self, level: str, message: str) -> None:
        """Write a diagnostic at *level* (a key of :data:`_LEVELS`)."""
        spec = _LEVELS[level]
        if spec.verbose_only and not self._verbose:
            return
        if spec.quiet_hides and self._quiet:
            return

        for secret in sorted(self._secrets, key=len, reverse=True):
            message = message.replace(secret, REDACTED)

        if self._no_color or spec.style is None:
            print(f"{spec.prefix}{message}", file=sys.stderr, flush=True)
            return

        open_tag, close_tag = f"[{spec.style}]", f"[/{spec.style}]"
        if spec.style_prefix_only:
            markup = f"{open_tag}{escape(spec.prefix)}{close_tag}{escape(message)}"
        else:
            markup = f"{open_tag}{escape(spec.prefix)}{escape(message)}{close_tag}"
        self._stderr.print(markup)

    def info(self, message: str) -> None:
        self.emit("info", message)

    def success(self, message: str) -> None:
        self.emit("success", message)

    def suggest(self, message: str) -> None:
        self.emit("suggest", message)

    def warning(self, message: str) -> None:
        self.emit("warning", message)

    def error(self, message: str) -> None:
        self.emit("error", message)

    def debug(self, message: str) -> None:
        self.emit("debug", message)

    def _write(self, text: str) -> None:
        print(text, file=sys.stdout, flush=True)


def _to_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


def _cell(value: Any) -> str:
    # nested server objects stay parseable in TSV output
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, default=str)
    return "" if value is None else str(value)


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    return os.environ.get("NO_COLOR") is not None or os.environ.get("TERM") == "dumb"


# --- process-wide instance ---

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed manager, creating a default one on first use."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    global _output
    _output = None


def mask(secret: str) -> None:
    get_output().mask(secret)


def format_response(data: Any) -> None:
    get_output().format_response(data)


def print_table(headers: list[str], rows: list[list[str]], title: Optional[str] = None) -> None:
    get_output().print_table(headers, rows, title)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def suggest(message: str) -> None:
    get_output().suggest(message)


def warning(message: str) -> None:
    get_output().warning(message)


def error(message: str) -> None:
    get_output().error(message)


def debug(message: str) -> None:
    get_output().debug(message)
