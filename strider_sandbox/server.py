"""Sandbox HTTP server — binds the NDJSON event protocol to FastAPI.

Routes:
    GET  /health  — liveness; the health handler's result, verbatim
    POST /prompt  — validates the body, then streams NDJSON events

Once /prompt has sent its 200 headers the status can no longer change, so
any handler failure after that point is reported as an ``error`` event on
the stream, followed by end-of-stream.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import socket
from collections.abc import AsyncIterator, Callable
from typing import TYPE_CHECKING

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from strider_sandbox.emitter import QueueEmitter
from strider_sandbox.schemas import INVALID_PROMPT_MESSAGE, PromptRequest

if TYPE_CHECKING:
    from strider_sandbox.handlers import HealthCheckHandler, PromptHandler

logger = logging.getLogger(__name__)

DEFAULT_PORT = 4001
NDJSON_MEDIA_TYPE = "application/x-ndjson"
NDJSON_HEADERS = {
    "Transfer-Encoding": "chunked",
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


async def stream_events(
    on_prompt: PromptHandler, request: PromptRequest
) -> AsyncIterator[str]:
    """Run the prompt handler and yield its NDJSON lines as they are emitted.

    The handler runs as its own task so it can suspend freely; the emitter
    queue hands lines over in emission order. If the consumer goes away
    before the handler finishes, the handler task is cancelled.
    """
    emitter = QueueEmitter()

    async def run_handler() -> None:
        try:
            await on_prompt(request.prompt, emitter, request.options)
        except Exception as e:
            message = str(e)
            logger.error(f"Prompt handler error: {message}", exc_info=True)
            emitter.error(message)
        finally:
            emitter.close()

    task = asyncio.create_task(run_handler())
    try:
        while (line := await emitter.queue.get()) is not None:
            yield line
    finally:
        if not task.done():
            logger.info("Stream closed before handler finished, cancelling it")
            task.cancel()


def create_app(
    on_prompt: PromptHandler,
    on_health_check: HealthCheckHandler | None = None,
    *,
    debug: bool = False,
) -> FastAPI:
    """Build the FastAPI app serving /health and /prompt."""
    app = FastAPI(
        title="Strider Sandbox",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    if debug:

        @app.middleware("http")
        async def log_requests(request: Request, call_next):
            logger.info(f"{request.method} {request.url.path}")
            return await call_next(request)

    # -----------------------------------------------------------------------
    # Error mapping
    # -----------------------------------------------------------------------

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        # Routes match on method + path together; a wrong method is a miss.
        if exc.status_code in (404, 405):
            return JSONResponse({"error": "Not found"}, status_code=404)
        return JSONResponse({"error": str(exc.detail)}, status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        message = str(exc)
        logger.error(f"Request error: {message}", exc_info=exc)
        return JSONResponse({"error": message}, status_code=500)

    # -----------------------------------------------------------------------
    # Routes
    # -----------------------------------------------------------------------

    @app.get("/health")
    async def health():
        """Liveness check."""
        if on_health_check is None:
            return {"status": "ok"}
        try:
            return await on_health_check()
        except Exception as e:
            message = str(e)
            logger.error(f"Health check error: {message}")
            return JSONResponse({"error": message}, status_code=500)

    @app.post("/prompt")
    async def prompt(request: Request):
        """Accept a prompt and stream the handler's events as NDJSON."""
        raw = await request.body()
        try:
            body = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError):
            return JSONResponse({"error": "Invalid JSON body"}, status_code=400)

        try:
            prompt_request = PromptRequest.model_validate(body)
        except ValidationError:
            return JSONResponse({"error": INVALID_PROMPT_MESSAGE}, status_code=400)

        return StreamingResponse(
            stream_events(on_prompt, prompt_request),
            media_type=NDJSON_MEDIA_TYPE,
            headers=NDJSON_HEADERS,
        )

    return app


# ---------------------------------------------------------------------------
# Server lifecycle
# ---------------------------------------------------------------------------


def _bind_socket(host: str, port: int) -> socket.socket:
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    sock = socket.socket(family, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        sock.bind((host, port))
    except OSError:
        sock.close()
        raise
    sock.set_inheritable(True)
    return sock


class SandboxServer:
    """A listening socket plus the uvicorn server running on it.

    Lifecycle is created -> started -> stopped. ``start`` on a running server
    raises ``RuntimeError``; ``stop`` on a server that is not running is a
    no-op. Instances share nothing, so several can run in one process.
    """

    def __init__(
        self,
        on_prompt: PromptHandler,
        on_health_check: HealthCheckHandler | None = None,
        *,
        port: int | None = None,
        host: str = "0.0.0.0",
        debug: bool = False,
        on_ready: Callable[[], None] | None = None,
        shutdown_timeout: float | None = 5.0,
    ) -> None:
        if port is None:
            port = int(os.environ.get("HTTP_PORT", DEFAULT_PORT))
        self.host = host
        self.debug = debug
        self.on_ready = on_ready
        self.shutdown_timeout = shutdown_timeout
        self.app = create_app(on_prompt, on_health_check, debug=debug)

        self._port = port
        self._socket: socket.socket | None = None
        self._server: uvicorn.Server | None = None
        self._task: asyncio.Task | None = None

    @property
    def port(self) -> int:
        """The configured port, or the bound one once started."""
        return self._port

    @property
    def started(self) -> bool:
        return self._server is not None

    async def start(self) -> None:
        """Bind the socket and wait until uvicorn is accepting connections."""
        if self._server is not None:
            raise RuntimeError(f"Server already started on port {self._port}")

        sock = _bind_socket(self.host, self._port)
        config = uvicorn.Config(
            self.app,
            log_config=None,
            log_level="debug" if self.debug else "warning",
            access_log=self.debug,
            timeout_graceful_shutdown=self.shutdown_timeout,
        )
        server = uvicorn.Server(config)
        task = asyncio.create_task(server.serve(sockets=[sock]))

        try:
            while not server.started:
                if task.done():
                    task.result()
                    raise RuntimeError("Server exited during startup")
                await asyncio.sleep(0.01)
        except BaseException:
            # Startup failed or was cancelled: release the port.
            server.should_exit = True
            task.cancel()
            for listener in getattr(server, "servers", []):
                listener.close()
            sock.close()
            raise

        self._socket, self._server, self._task = sock, server, task
        self._port = sock.getsockname()[1]
        logger.info(f"Server listening on port {self._port}")

        if self.on_ready:
            self.on_ready()

    async def stop(self) -> None:
        """Shut uvicorn down and release the socket. Safe to call repeatedly."""
        if self._server is None:
            return

        server, task, sock = self._server, self._task, self._socket
        self._server = self._task = self._socket = None

        server.should_exit = True
        try:
            await task
        finally:
            sock.close()
        logger.info("Server stopped")

    async def serve_forever(self) -> None:
        """Start if needed, then block until the server exits."""
        if self._task is None:
            await self.start()
        task = self._task
        try:
            await task
        finally:
            await self.stop()
