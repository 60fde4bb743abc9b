import asyncio
import base64

import pytest
from mcp.server.fastmcp.exceptions import ToolError
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import PlainTextResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from helpers import failed, ok, writes_plot
from octave_mcp.server import (
    LocalOriginMiddleware,
    OctaveTools,
    build_server,
    parse_http_address,
)


def test_run_octave_returns_text(make_runner) -> None:
    runner, _ = make_runner(lambda request: ok("ans =  6\n"))
    tools = OctaveTools(runner)
    assert asyncio.run(tools.run_octave("x = 2 + 4")) == "ans =  6"


def test_run_octave_requires_script(make_runner) -> None:
    runner, engine = make_runner()
    with pytest.raises(ToolError, match="script parameter is required"):
        asyncio.run(OctaveTools(runner).run_octave(""))
    assert engine.requests == []


def test_run_octave_failure_carries_diagnostic(make_runner) -> None:
    runner, _ = make_runner(lambda request: failed("error: 'y' undefined\n", stdout="x = 1"))
    with pytest.raises(ToolError) as exc:
        asyncio.run(OctaveTools(runner).run_octave("x = 1\ny"))
    assert str(exc.value) == "error: 'y' undefined\n\nx = 1"


def test_run_octave_rejection_is_tool_error(make_runner) -> None:
    runner, _ = make_runner()
    with pytest.raises(ToolError, match=r"system\("):
        asyncio.run(OctaveTools(runner).run_octave("system('ls')"))


@pytest.mark.parametrize(("fmt", "mime"), [("png", "image/png"), ("SVG", "image/svg+xml")])
def test_generate_plot_returns_image_content(make_runner, plot_dirs, fmt: str, mime: str) -> None:
    runner, _ = make_runner(writes_plot(b"\x89PNG-ish"))
    content = asyncio.run(OctaveTools(runner).generate_plot("plot([1,2]);", fmt))

    assert content.type == "image"
    assert content.mimeType == mime
    assert base64.b64decode(content.data) == b"\x89PNG-ish"


def test_generate_plot_errors_become_tool_errors(make_runner, plot_dirs) -> None:
    runner, _ = make_runner(lambda request: ok())
    tools = OctaveTools(runner)

    with pytest.raises(ToolError, match="unsupported format: jpg"):
        asyncio.run(tools.generate_plot("plot(1);", "JPG"))
    with pytest.raises(ToolError, match="failed to read plot file"):
        asyncio.run(tools.generate_plot("x = 1;", "png"))


def test_build_server_registers_both_tools(make_runner) -> None:
    runner, _ = make_runner()
    server = build_server(runner)

    tools = asyncio.run(server.list_tools())

    assert sorted(tool.name for tool in tools) == ["generate_plot", "run_octave"]


@pytest.mark.parametrize(
    ("addr", "expected"),
    [("localhost:8080", ("localhost", 8080)), ("127.0.0.1:9000", ("127.0.0.1", 9000))],
)
def test_parse_http_address_accepts_loopback(addr: str, expected: tuple[str, int]) -> None:
    assert parse_http_address(addr) == expected


@pytest.mark.parametrize("addr", ["0.0.0.0:8080", ":8080", "example.com:80", "localhost"])
def test_parse_http_address_rejects_non_local(addr: str) -> None:
    with pytest.raises(ValueError, match="must bind to localhost"):
        parse_http_address(addr)


def test_parse_http_address_rejects_bad_port() -> None:
    with pytest.raises(ValueError, match="Invalid HTTP port"):
        parse_http_address("localhost:http")


def _client() -> TestClient:
    async def endpoint(request: Request) -> PlainTextResponse:
        return PlainTextResponse("ok")

    app = Starlette(routes=[Route("/mcp", endpoint, methods=["GET", "POST"])])
    return TestClient(LocalOriginMiddleware(app))


def test_middleware_adds_security_headers() -> None:
    response = _client().get("/mcp")

    assert response.status_code == 200
    assert response.headers["Content-Security-Policy"] == "default-src 'self'"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"


def test_middleware_allows_localhost_origin() -> None:
    response = _client().post("/mcp", headers={"Origin": "http://localhost:3000"})
    assert response.status_code == 200


def test_middleware_rejects_foreign_origin() -> None:
    response = _client().post("/mcp", headers={"Origin": "https://evil.example"})
    assert response.status_code == 403
    assert response.text == "Invalid origin"
