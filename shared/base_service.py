"""
Base service class for User Posts Gateway services.
"""

from contextlib import asynccontextmanager
from typing import Dict, Any, List, Optional, Tuple
import time

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from shared.config import BaseConfig, get_settings
from shared.errors import InternalErrorResponse
from shared.logging import clear_context, configure_logging, get_logger, set_request_id
from shared.metrics import MetricsCollector, get_metrics_collector


def request_uri(request: Request) -> str:
    """Path plus query string, as received on the request line."""
    uri = request.url.path
    if request.url.query:
        uri = f"{uri}?{request.url.query}"
    return uri


class RequestLoggingMiddleware:
    """Per-request recovery boundary and completion log.

    Anything a route raises is logged with its traceback and answered with a
    generic 500 body. Every request is logged once it completes, at error
    level when the status is a server error.

    Written against the raw ASGI interface so the route keeps the server's own
    ``receive`` channel and sees ``http.disconnect`` while it is running.
    """

    def __init__(self, app: ASGIApp, logger, metrics: MetricsCollector):
        self.app = app
        self.logger = logger
        self.metrics = metrics

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        request_id = set_request_id(request.headers.get("X-Request-ID"))
        start_time = time.time()
        body, receive = await self._buffer_body(receive)
        status_code = 500
        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal status_code, response_started
            if message["type"] == "http.response.start":
                response_started = True
                status_code = message["status"]
                MutableHeaders(scope=message).append("X-Request-ID", request_id)
            await send(message)

        try:
            try:
                await self.app(scope, receive, send_wrapper)
            except Exception as exc:
                self.logger.error(
                    "recovered from unexpected error",
                    url=request_uri(request),
                    method=request.method,
                    error=str(exc),
                    exc_info=True,
                )
                self.metrics.record_error(type(exc).__name__)
                if response_started:
                    raise
                response = JSONResponse(
                    status_code=500,
                    content=InternalErrorResponse(
                        request_url=request_uri(request),
                        msg=str(exc),
                    ).model_dump(by_alias=True),
                )
                await response(scope, receive, send_wrapper)

            duration = time.time() - start_time
            self.metrics.record_http_request(
                method=request.method,
                endpoint=request.url.path,
                status_code=status_code,
                duration=duration
            )

            log = self.logger.error if status_code >= 500 else self.logger.info
            log(
                "request completed",
                url=request_uri(request),
                method=request.method,
                body=body.decode("utf-8", errors="replace"),
                status=status_code,
                duration_ms=round(duration * 1000, 2)
            )
        finally:
            clear_context()

    @staticmethod
    async def _buffer_body(receive: Receive) -> Tuple[bytes, Receive]:
        """Read the request body for logging and hand back a replaying ``receive``.

        The replay yields the buffered messages first and then defers to the
        server's channel, so later disconnects still reach the application.
        """
        chunks = []
        pending: List[Message] = []
        while True:
            message = await receive()
            if message["type"] != "http.request":
                pending.append(message)
                break
            chunks.append(message.get("body", b""))
            if not message.get("more_body", False):
                break
        body = b"".join(chunks)
        if not pending or chunks:
            pending.insert(0, {"type": "http.request", "body": body, "more_body": False})

        async def replay() -> Message:
            if pending:
                return pending.pop(0)
            return await receive()

        return body, replay


class BaseService:
    """Base service class with common functionality."""

    def __init__(self, service_name: str, config: Optional[BaseConfig] = None):
        self.service_name = service_name
        self.config = config if config is not None else get_settings()
        self.logger = get_logger(f"{service_name}.service")
        self.metrics = get_metrics_collector(service_name)
        self._start_time = time.time()

        # Configure logging
        configure_logging(service_name, self.config.log_level)

        # Create FastAPI app
        self.app = self._create_app()

        # Set up middleware
        self._setup_middleware()

        # Set up routes
        self._setup_routes()

    def _create_app(self) -> FastAPI:
        """Create FastAPI application."""

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            await self._on_startup()
            try:
                yield
            finally:
                await self._on_shutdown()

        return FastAPI(
            title=f"{self.service_name.replace('-', ' ').title()} Service",
            description=f"User Posts Gateway - {self.service_name} service",
            version="1.0.0",
            docs_url="/docs" if self.config.env == "local" else None,
            redoc_url="/redoc" if self.config.env == "local" else None,
            lifespan=lifespan,
        )

    def _setup_middleware(self):
        """Set up middleware."""
        self.app.add_middleware(
            RequestLoggingMiddleware,
            logger=get_logger(f"{self.service_name}.http"),
            metrics=self.metrics,
        )

    def _setup_routes(self):
        """Set up common routes."""

        @self.app.get("/health")
        async def health_check():
            """Health check endpoint."""
            return {
                "service": self.service_name,
                "status": "ok",
                "uptime_seconds": self._get_uptime(),
                "version": "1.0.0",
                **self._health_details(),
            }

        @self.app.get("/metrics")
        async def metrics_endpoint():
            """Prometheus metrics endpoint."""
            from prometheus_client import CONTENT_TYPE_LATEST
            return Response(
                content=self.metrics.render(),
                media_type=CONTENT_TYPE_LATEST
            )

    async def _on_startup(self) -> None:
        """Start background resources. Override in subclasses."""

    async def _on_shutdown(self) -> None:
        """Release background resources. Override in subclasses."""

    def _health_details(self) -> Dict[str, Any]:
        """Extra health payload. Override in subclasses."""
        return {}

    def _get_uptime(self) -> float:
        """Get service uptime in seconds."""
        return time.time() - self._start_time

    def run(self):
        """Run the service."""
        import uvicorn
        self.logger.info(
            "server listening",
            host=self.config.server_host,
            port=self.config.server_port,
        )
        uvicorn.run(
            self.app,
            host=self.config.server_host,
            port=self.config.server_port,
            log_level=self.config.log_level.lower()
        )
