from __future__ import annotations

import argparse
import logging
import os
from functools import partial
from typing import Any, Never, Sequence

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich_argparse import RawTextRichHelpFormatter
from octave_mcp import InterpreterUnavailableError, OctaveRunner, OctaveSettings
from octave_mcp.server import build_server, parse_http_address, run_http, run_stdio

# stdout carries the stdio transport, so everything human-facing goes to stderr.
_CONSOLE = Console(stderr=True, no_color=False)

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

logger = logging.getLogger("omcp")


class _CLIHelpFormatter(RawTextRichHelpFormatter):
    """Rich formatter with explicit high-contrast CLI styles.

    Example:
        ```python
        parser = argparse.ArgumentParser(formatter_class=_CLIHelpFormatter)
        ```
    """

    styles = {
        "argparse.args": "bold cyan",
        "argparse.groups": "bold magenta",
        "argparse.help": "white",
        "argparse.metavar": "bold yellow",
        "argparse.prog": "bold bright_blue",
        "argparse.syntax": "bold bright_white",
        "argparse.text": "bright_white",
    }


_HELP_FORMATTER = partial(
    _CLIHelpFormatter,
    max_help_position=34,
    width=120,
)


class _RichArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that renders errors via Rich.

    Example:
        ```python
        parser = _RichArgumentParser(prog="python -m omcp")
        ```
    """

    def error(self, message: str) -> Never:
        """Render parse errors with Rich and exit.

        Example:
            ```python
            # parser.error("invalid usage")
            ```
        """
        _CONSOLE.print(Panel.fit(f"[bold red]Error:[/bold red] {message}", border_style="red"))
        self.print_usage()
        raise SystemExit(2)

    def print_help(self, file: Any | None = None) -> None:
        """Render help text to the target stream.

        Example:
            ```python
            parser.print_help()
            ```
        """
        super().print_help(file=file)


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser for the Octave MCP server.

    Example:
        ```python
        parser = build_parser()
        ```
    """
    parser = _RichArgumentParser(
        prog="python -m omcp",
        description=(
            "octave-mcp server\n"
            "Runs GNU Octave scripts and renders plots for MCP clients.\n"
            "Serves stdio by default, or streamable HTTP on localhost with --http."
        ),
        epilog=(
            "Quick Examples:\n"
            "  python -m omcp\n"
            "  python -m omcp --http localhost:8080\n"
            "  python -m omcp --config octave-mcp.toml --log-level debug\n\n"
            "Environment:\n"
            "  OCTAVE_SCRIPT_TIMEOUT       seconds per script and version probe (default: 10)\n"
            "  OCTAVE_CONCURRENCY_LIMIT    simultaneous octave processes (default: 10)\n"
            "  OCTAVE_SCRIPT_LENGTH_LIMIT  max script characters (default: 10000)\n"
            "  LOG_LEVEL                   debug, info, warn or error (default: info)"
        ),
        formatter_class=_HELP_FORMATTER,
    )
    parser.add_argument(
        "--http",
        metavar="ADDR",
        default="",
        help=(
            "HTTP address to listen on (empty for stdio).\n"
            "Must be localhost or 127.0.0.1, e.g. localhost:8080."
        ),
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="TOML file with an [octave] table; OCTAVE_* variables override it.",
    )
    parser.add_argument(
        "--log-level",
        choices=sorted(_LOG_LEVELS),
        help="Log verbosity (default: LOG_LEVEL or info).",
    )
    return parser


def _resolve_log_level(flag: str | None) -> int:
    """Pick the log level from the flag, then ``LOG_LEVEL``, then INFO.

    Example:
        ```python
        level = _resolve_log_level("debug")  # logging.DEBUG
        ```
    """
    name = (flag or os.environ.get("LOG_LEVEL", "")).strip().lower()
    return _LOG_LEVELS.get(name, logging.INFO)


def configure_logging(level: int) -> None:
    """Send all logging through a stderr Rich handler.

    Example:
        ```python
        configure_logging(logging.INFO)
        ```
    """
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=_CONSOLE, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def load_settings(config_path: str | None) -> OctaveSettings:
    """Load settings from ``--config`` when given, else from the environment.

    Example:
        ```python
        settings = load_settings(None)
        ```
    """
    if config_path:
        return OctaveSettings.from_file(config_path)
    return OctaveSettings.from_env()


def main(argv: Sequence[str] | None = None) -> int:
    """Run the ``omcp`` server command.

    Example:
        ```python
        code = main(["--http", "localhost:8080"])
        ```
    """
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    configure_logging(_resolve_log_level(args.log_level))

    if args.http:
        try:
            parse_http_address(args.http)
        except ValueError as exc:
            _CONSOLE.print(Panel.fit(str(exc), title="Invalid address", style="bold red"))
            return 1

    logger.info("Starting octave-server")
    try:
        try:
            settings = load_settings(args.config)
            runner = OctaveRunner(settings)
        except (OSError, ValueError) as exc:
            _CONSOLE.print(Panel.fit(str(exc), title="Invalid configuration", style="bold red"))
            return 1
        except InterpreterUnavailableError as exc:
            _CONSOLE.print(Panel.fit(str(exc), title="Octave unavailable", style="bold red"))
            return 1

        server = build_server(runner)
        if args.http:
            run_http(server, args.http)
        else:
            run_stdio(server)
        return 0
    finally:
        logger.info("Shutting down octave-server")


def run() -> None:
    """Console-script entry point.

    Example:
        ```python
        run()
        ```
    """
    raise SystemExit(main())
