"""Route SSE traffic to the MCP service selected by the ``MCP_ID`` header.

The same two endpoints (GET /sse and POST /messages) serve every running
configuration; the header decides which server's handler pair gets the raw
ASGI request.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Mapping

from starlette.datastructures import Headers
from starlette.responses import JSONResponse
from starlette.types import Receive, Scope, Send

from honeycomb.errors import (
	AppError,
	BadRequestError,
	InternalServerError,
	NotFoundError,
	ServiceUnavailableError,
)
from honeycomb.mcp_service import McpHandlers
from honeycomb.registry import LookupStatus, ServiceRegistry

logger = logging.getLogger(__name__)

MCP_ID_HEADER = "mcp_id"

_ID_RE = re.compile(r"[+-]?[0-9]+")


class HandlerPhase(str, Enum):
	CONNECT = "connect"
	MESSAGE = "message"


def parse_mcp_id(headers: Mapping[str, str]) -> int:
	"""Read the configuration ID from request headers.

	Header names are matched case-insensitively, so ``MCP_ID`` and ``mcp_id``
	are the same header. Surrounding whitespace is ignored; anything else that
	is not a base-10 integer is rejected.

	Raises:
		BadRequestError: If the header is missing or not an integer.
	"""
	raw = None
	for key, value in headers.items():
		if key.lower() == MCP_ID_HEADER:
			raw = value
			break
	message = "Missing or invalid MCP_ID header: set MCP_ID (or mcp_id) to a numeric config ID"
	if raw is None:
		raise BadRequestError(message)
	text = raw.strip()
	if not _ID_RE.fullmatch(text):
		raise BadRequestError(message)
	return int(text)


class McpRouter:
	"""Resolve a request to the handler pair registered for its MCP_ID."""

	def __init__(self, registry: ServiceRegistry) -> None:
		self.registry = registry
		self.connect_app = _PhaseApp(self, HandlerPhase.CONNECT)
		self.message_app = _PhaseApp(self, HandlerPhase.MESSAGE)

	def resolve(self, headers: Mapping[str, str]) -> McpHandlers:
		"""Return the handler pair for the request, or raise an AppError."""
		config_id = parse_mcp_id(headers)
		found = self.registry.lookup(config_id)
		if found.status is LookupStatus.NOT_INITIALIZED:
			raise ServiceUnavailableError("MCP services are not initialized yet")
		if found.status is LookupStatus.NOT_FOUND:
			available = ", ".join(str(i) for i in found.available_ids) or "none"
			raise NotFoundError(
				f"MCP service with ID {config_id} not found. Available MCP IDs: {available}",
			)
		if found.handlers is None:
			raise InternalServerError(f"MCP service {config_id} is registered without handlers")
		return found.handlers

	async def dispatch(self, phase: HandlerPhase, scope: Scope, receive: Receive, send: Send) -> None:
		try:
			handlers = self.resolve(Headers(scope=scope))
		except AppError as exc:
			logger.warning("[SSE] Rejected %s request: %s", phase.value, exc.message)
			response = JSONResponse(
				{"code": exc.code, "msg": exc.message, "data": None},
				status_code=exc.status_code,
			)
			await response(scope, receive, send)
			return

		logger.debug("[SSE] %s -> MCP service %s", phase.value, handlers.config_id)
		if phase is HandlerPhase.CONNECT:
			await handlers.handle_connect(scope, receive, send)
		else:
			await handlers.handle_message(scope, receive, send)


class _PhaseApp:
	"""ASGI endpoint bound to one phase of the router."""

	def __init__(self, router: McpRouter, phase: HandlerPhase) -> None:
		self.router = router
		self.phase = phase

	async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
		await self.router.dispatch(self.phase, scope, receive, send)
