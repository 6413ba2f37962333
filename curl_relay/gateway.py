"""HTTP front door for the relay.

``GET /<percent-encoded curl command>`` parses the command, checks its URL
against the allowlist, runs it and returns the relayed response as JSON.
"""

from __future__ import annotations

from typing import Callable

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from curl_relay import __version__
from curl_relay.engine import ExecutionResult, execute_request, is_allowed_url
from curl_relay.parser import RequestDescriptor, parse_command

MAX_COMMAND_LENGTH = 2000

USAGE = {
    "message": "CURL Executor API",
    "usage": "GET /{urlencoded_curl_command}",
}

Executor = Callable[[RequestDescriptor], ExecutionResult]


class GatewayError(Exception):
    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_app(
    execute: Executor = execute_request,
    allow: Callable[[str], bool] = is_allowed_url,
) -> FastAPI:
    """Build the relay API.

    Args:
        execute: Runs a parsed descriptor.
        allow: URL allowlist predicate.
    """
    app = FastAPI(title="curl-relay", version=__version__)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(_, exc: GatewayError):
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(_, exc: StarletteHTTPException):
        if exc.status_code == 405:
            return error_response(405, "Method not allowed")
        return error_response(exc.status_code, str(exc.detail))

    @app.get("/")
    def root():
        return JSONResponse(content=USAGE)

    @app.get("/{command:path}")
    def relay(command: str):
        # The path arrives already percent-decoded.
        if len(command) > MAX_COMMAND_LENGTH:
            raise GatewayError("Command too long")

        try:
            parsed = parse_command(command)
            if parsed is None:
                raise GatewayError("Invalid curl command")

            if parsed.url and not allow(parsed.url):
                raise GatewayError("URL not allowed for security reasons", 403)

            result = execute(parsed)
        except GatewayError:
            raise
        except Exception as exc:
            return error_response(500, str(exc) or "An error occurred")

        return JSONResponse(status_code=result.status_code, content=result.payload)

    return app


app = create_app()


def serve(
    host: str,
    port: int,
    execute: Executor = execute_request,
    allow: Callable[[str], bool] = is_allowed_url,
) -> None:
    """Run the relay API with uvicorn until interrupted."""
    print(f"[*] Listening on http://{host}:{port}/")
    uvicorn.run(create_app(execute=execute, allow=allow), host=host, port=port)
