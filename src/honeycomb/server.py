"""FastAPI application factory: REST admin API plus MCP SSE endpoints."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from honeycomb import __version__
from honeycomb.api import error_response
from honeycomb.api import router as api_router
from honeycomb.config import HoneycombConfig
from honeycomb.db import Database
from honeycomb.errors import AppError, ClientError, RegistryRefreshError
from honeycomb.registry import HandlersFactory, ServiceRegistry
from honeycomb.router import McpRouter

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
	"""Everything a request handler needs, built once per app."""

	config: HoneycombConfig
	db: Database
	registry: ServiceRegistry
	router: McpRouter


def _format_validation_error(exc: RequestValidationError) -> str:
	parts = []
	for err in exc.errors():
		loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
		parts.append(f"{loc}: {err.get('msg', 'invalid')}" if loc else str(err.get("msg", "invalid")))
	return "Invalid request body: " + "; ".join(parts) if parts else "Invalid request body"


def _install_error_handlers(app: FastAPI) -> None:
	@app.exception_handler(AppError)
	async def _app_error(request: Request, exc: AppError) -> JSONResponse:
		if isinstance(exc, ClientError):
			logger.warning("[API] %s %s -> %d: %s", request.method, request.url.path, exc.status_code, exc.message)
		else:
			logger.error(
				"[API] %s %s -> %d: %s", request.method, request.url.path, exc.status_code, exc.message,
				exc_info=exc,
			)
		return JSONResponse(error_response(exc.code, exc.message), status_code=exc.status_code)

	@app.exception_handler(RequestValidationError)
	async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
		msg = _format_validation_error(exc)
		logger.warning("[API] %s %s -> 400: %s", request.method, request.url.path, msg)
		return JSONResponse(error_response(400, msg), status_code=400)

	@app.exception_handler(StarletteHTTPException)
	async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
		if exc.status_code == 404:
			msg = f"Route not found: {request.method} {request.url.path}"
		else:
			msg = str(exc.detail)
		return JSONResponse(
			error_response(exc.status_code, msg),
			status_code=exc.status_code,
			headers=getattr(exc, "headers", None),
		)

	@app.exception_handler(Exception)
	async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
		logger.error("[API] Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
		return JSONResponse(error_response(500, str(exc) or "Internal server error"), status_code=500)


def create_app(
	config: HoneycombConfig | None = None,
	db: Database | None = None,
	handlers_factory: HandlersFactory | None = None,
) -> FastAPI:
	"""Build the application.

	Args:
		config: Loaded configuration; defaults are used when omitted.
		db: An open store. When omitted, one is opened at the configured path
			and closed on shutdown.
		handlers_factory: Override for building MCP handler pairs (tests).
	"""
	config = config or HoneycombConfig()
	owns_db = db is None
	store = db if db is not None else Database(config.database.resolved_path)
	registry = ServiceRegistry(store, handlers_factory, messages_path=config.mcp.messages_path)
	ctx = AppContext(config=config, db=store, registry=registry, router=McpRouter(registry))

	@asynccontextmanager
	async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
		logger.info("Starting honeycomb (database: %s)", store.path)
		try:
			ctx.registry.refresh()
		except RegistryRefreshError as exc:
			logger.error("Initial MCP service build failed: %s", exc.message)
		yield
		if owns_db:
			store.close()

	app = FastAPI(
		title="Honeycomb MCP Config API",
		version=__version__,
		docs_url=config.server.docs_path,
		redoc_url=None,
		lifespan=_lifespan,
	)
	app.state.ctx = ctx
	app.add_middleware(
		CORSMiddleware,
		allow_origins=config.server.cors_origins,
		allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
		allow_headers=["*"],
	)
	_install_error_handlers(app)
	app.include_router(api_router)
	app.add_route(config.mcp.sse_path, ctx.router.connect_app, methods=["GET"])
	app.add_route(config.mcp.messages_path, ctx.router.message_app, methods=["POST"])

	static_dir = config.server.static_dir
	if static_dir:
		if Path(static_dir).is_dir():
			app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")
		else:
			logger.warning("Static directory not found, admin UI disabled: %s", static_dir)

	return app
