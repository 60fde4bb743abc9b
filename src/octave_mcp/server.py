"""MCP tool layer exposing `OctaveRunner` as ``run_octave`` and ``generate_plot``.

Transports: stdio, or streamable HTTP bound to localhost behind
`LocalOriginMiddleware`.
"""
from __future__ import annotations

import base64
import logging
from typing import Any

import uvicorn
from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError
from mcp.types import ImageContent
from starlette.datastructures import Headers, MutableHeaders
from starlette.responses import PlainTextResponse

from .errors import ExecutionError, OctaveError, PlotGenerationError
from .plot import MIME_TYPES, normalize_format
from .runner import OctaveRunner

logger = logging.getLogger(__name__)

SERVER_NAME = "octave-mcp"
LOCAL_HOSTS = ("localhost", "127.0.0.1")
SECURITY_HEADERS = {
    "Content-Security-Policy": "default-src 'self'",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
}

RUN_OCTAVE_DESCRIPTION = (
    "Executes a GNU Octave script non-interactively. "
    "Ideal for off-loading calculations from the LLM."
)
GENERATE_PLOT_DESCRIPTION = (
    "Generate a plot from a GNU Octave script. Returns image data in specified format (png/svg). "
    "Use the plot() command and any other one for labels, legend, etc. "
    "Do not try to set graphics toolkit or other format options."
)


class OctaveTools:
    """Tool handlers translating runner results and errors into MCP content.

    Example:
        ```python
        tools = OctaveTools(runner)
        text = await tools.run_octave("x = 2 + 4")
        ```
    """

    def __init__(self, runner: OctaveRunner) -> None:
        """Bind the handlers to one runner.

        Example:
            ```python
            tools = OctaveTools(OctaveRunner())
            ```
        """
        self._runner = runner

    async def run_octave(self, script: str) -> str:
        """Run a script; failures become a `ToolError` carrying the diagnostic text.

        Example:
            ```python
            await tools.run_octave("disp(pi)")  # "3.1416"
            ```
        """
        if not script:
            raise ToolError("script parameter is required")
        try:
            return await self._runner.execute_script(script)
        except ExecutionError as exc:
            raise ToolError(exc.output or str(exc)) from exc
        except OctaveError as exc:
            raise ToolError(str(exc)) from exc

    async def generate_plot(self, script: str, format: str = "png") -> ImageContent:
        """Render a plot; failures become a `ToolError`.

        Example:
            ```python
            content = await tools.generate_plot("plot([1,2,3]);", "svg")
            content.mimeType  # "image/svg+xml"
            ```
        """
        if not script:
            raise ToolError("script parameter is required")
        try:
            data = await self._runner.generate_plot(script, format)
        except PlotGenerationError as exc:
            message = f"{exc}\n{exc.output}" if exc.output.strip() else str(exc)
            raise ToolError(message) from exc
        except OctaveError as exc:
            raise ToolError(str(exc)) from exc
        return ImageContent(
            type="image",
            data=base64.b64encode(data).decode("ascii"),
            mimeType=MIME_TYPES[normalize_format(format)],
        )


def build_server(runner: OctaveRunner, *, host: str = "127.0.0.1", port: int = 8080) -> FastMCP:
    """Create a FastMCP server with the Octave tools registered.

    Example:
        ```python
        server = build_server(OctaveRunner())
        server.run(transport="stdio")
        ```
    """
    server = FastMCP(SERVER_NAME, host=host, port=port)
    tools = OctaveTools(runner)

    @server.tool(name="run_octave", description=RUN_OCTAVE_DESCRIPTION)
    async def run_octave(script: str) -> str:
        """Forward to `OctaveTools.run_octave`.

        Example:
            ```python
            await run_octave("x = 1")
            ```
        """
        return await tools.run_octave(script)

    @server.tool(name="generate_plot", description=GENERATE_PLOT_DESCRIPTION)
    async def generate_plot(script: str, format: str = "png"):
        """Forward to `OctaveTools.generate_plot`.

        Example:
            ```python
            await generate_plot("plot([1,2,3]);", "png")
            ```
        """
        return await tools.generate_plot(script, format)

    return server


class LocalOriginMiddleware:
    """ASGI middleware refusing non-localhost origins and adding security headers.

    Example:
        ```python
        app = LocalOriginMiddleware(server.streamable_http_app())
        ```
    """

    def __init__(self, app: Any) -> None:
        """Wrap an ASGI application.

        Example:
            ```python
            wrapped = LocalOriginMiddleware(app)
            ```
        """
        self.app = app

    async def __call__(self, scope: dict[str, Any], receive: Any, send: Any) -> None:
        """Check the ``Origin`` header, then inject security headers into the response.

        Example:
            ```python
            await wrapped(scope, receive, send)
            ```
        """
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        origin = Headers(scope=scope).get("origin")
        if origin and not origin.startswith("http://localhost"):
            logger.warning("Rejected request with origin %s", origin)
            response = PlainTextResponse("Invalid origin", status_code=403)
            await response(scope, receive, send)
            return

        async def send_with_headers(message: dict[str, Any]) -> None:
            """Add the security headers to the response start message.

            Example:
                ```python
                await send_with_headers({"type": "http.response.start", "status": 200, "headers": []})
                ```
            """
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                for key, value in SECURITY_HEADERS.items():
                    headers[key] = value
            await send(message)

        await self.app(scope, receive, send_with_headers)


def parse_http_address(addr: str) -> tuple[str, int]:
    """Split ``host:port`` and insist on a loopback host.

    Example:
        ```python
        parse_http_address("localhost:8080")  # ("localhost", 8080)
        ```
    """
    host, sep, port_text = addr.strip().rpartition(":")
    if not sep or host not in LOCAL_HOSTS:
        raise ValueError("HTTP server must bind to localhost for security")
    try:
        port = int(port_text)
    except ValueError as exc:
        raise ValueError(f"Invalid HTTP port in address {addr!r}") from exc
    if not 0 < port < 65536:
        raise ValueError(f"Invalid HTTP port in address {addr!r}")
    return host, port


def build_http_app(server: FastMCP) -> LocalOriginMiddleware:
    """Return the streamable HTTP app (served at ``/mcp``) wrapped in the origin check.

    Example:
        ```python
        app = build_http_app(build_server(runner))
        ```
    """
    return LocalOriginMiddleware(server.streamable_http_app())


def run_http(server: FastMCP, addr: str) -> None:
    """Serve the MCP server over streamable HTTP on a localhost address.

    Example:
        ```python
        run_http(build_server(runner), "localhost:8080")
        ```
    """
    host, port = parse_http_address(addr)
    logger.info("Starting HTTP server on %s:%d", host, port)
    uvicorn.run(build_http_app(server), host=host, port=port, log_config=None)


def run_stdio(server: FastMCP) -> None:
    """Serve the MCP server over stdin/stdout.

    Example:
        ```python
        run_stdio(build_server(runner))
        ```
    """
    logger.info("Starting stdio server")
    server.run(transport="stdio")
