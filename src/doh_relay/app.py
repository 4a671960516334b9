"""FastAPI application exposing a relay over HTTP."""
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from starlette.exceptions import HTTPException as StarletteHTTPException

from .relay import BaseRelay
from .responses import CORS_HEADERS, plain_text, preflight

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE"]


def create_app(relay: BaseRelay) -> FastAPI:
    """
    Create the HTTP application for one relay tier.

    Routes: ``/`` dashboard, ``/dns-query`` DoH, ``/healthz`` health check.
    OPTIONS on any path is answered as a CORS preflight before routing, and
    every response carries the CORS headers.

    Args:
        relay: WorkerRelay or EdgeRelay instance

    Returns:
        Configured FastAPI application
    """
    settings = relay.settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if relay.client is not None:
            yield
            return
        limits = httpx.Limits(max_keepalive_connections=20, max_connections=100)
        async with httpx.AsyncClient(
            http2=settings.http2,
            timeout=settings.http_timeout,
            limits=limits,
        ) as client:
            relay.client = client
            try:
                yield
            finally:
                relay.client = None

    app = FastAPI(
        title=f"doh-relay ({settings.role})",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        redirect_slashes=False,
    )
    app.state.relay = relay

    @app.middleware("http")
    async def cors_middleware(request: Request, call_next):
        if request.method.upper() == "OPTIONS":
            return preflight()
        response = await call_next(request)
        for key, value in CORS_HEADERS.items():
            if key not in response.headers:
                response.headers[key] = value
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return plain_text("Not found", 404)
        return plain_text(str(exc.detail), exc.status_code)

    @app.api_route("/", methods=ALL_METHODS)
    async def dashboard(request: Request):
        return relay.handle_dashboard(request)

    @app.api_route("/dns-query", methods=ALL_METHODS)
    async def dns_query(request: Request):
        return await relay.handle_query(request)

    @app.api_route("/healthz", methods=ALL_METHODS)
    async def healthz(request: Request):
        return await relay.handle_health(request)

    return app
