"""Build MCP protocol servers from stored configurations.

Each running configuration becomes one ``mcp.server.Server`` with its tools
registered through ``list_tools``/``call_tool``. The server is wrapped in an
``McpHandlers`` pair that speaks the SSE transport: ``handle_connect`` opens a
session (GET /sse), ``handle_message`` delivers a client message (POST /messages).
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from mcp.server import Server
from mcp.server.sse import SseServerTransport
from mcp.types import CallToolResult, TextContent
from mcp.types import Tool as McpTool
from pydantic import BaseModel, ValidationError
from starlette.types import Receive, Scope, Send

from honeycomb.models import ConfigWithTools, Tool
from honeycomb.schema import SchemaTranslationError, describe, translate_schema

logger = logging.getLogger(__name__)

ErrorHook = Callable[[BaseException], None]
CloseHook = Callable[[], None]


@dataclass
class ToolBinding:
	"""A tool registered on a server, with its translated validators."""

	name: str
	description: str
	input_model: type[BaseModel]
	output_model: type[BaseModel]
	callback: str = ""

	def to_mcp_tool(self) -> McpTool:
		"""Protocol definition of the tool.

		Only the input schema is advertised. The echo handler replies with the
		validated input, not a value of the output shape, and clients reject
		results that do not match an advertised output schema.
		"""
		return McpTool(
			name=self.name,
			description=self.description,
			inputSchema=describe(self.input_model),
		)


def bind_tool(tool: Tool) -> ToolBinding:
	"""Translate a stored tool's schemas.

	Raises:
		SchemaTranslationError: If either schema is not a JSON object.
	"""
	return ToolBinding(
		name=tool.name,
		description=tool.description,
		input_model=translate_schema(tool.input_schema, f"{tool.name}Input"),
		output_model=translate_schema(tool.output_schema, f"{tool.name}Output"),
		callback=tool.callback,
	)


async def echo_handler(binding: ToolBinding, arguments: dict[str, Any]) -> CallToolResult:
	"""Placeholder tool body: reply with the validated input.

	The input comes back both as JSON text and as structured content. The
	stored ``callback`` is not executed.
	"""
	return CallToolResult(
		content=[TextContent(type="text", text=json.dumps(arguments, ensure_ascii=False))],
		structuredContent=arguments,
	)


@dataclass
class McpService:
	"""One configured protocol server and the tools bound onto it."""

	config_id: int
	name: str
	version: str
	description: str = ""
	tools: dict[str, ToolBinding] = field(default_factory=dict)
	skipped_tools: list[str] = field(default_factory=list)

	def __post_init__(self) -> None:
		self.server: Server = Server(
			self.name,
			version=self.version,
			instructions=self.description or None,
		)
		self._install_handlers()

	def _install_handlers(self) -> None:
		server = self.server

		@server.list_tools()
		async def _list_tools() -> list[McpTool]:
			return self.list_tools()

		@server.call_tool()
		async def _call_tool(name: str, arguments: dict[str, Any]) -> CallToolResult:
			return await self.call_tool(name, arguments)

	def register_tool(self, binding: ToolBinding) -> None:
		self.tools[binding.name] = binding
		logger.debug("[MCP][%s] Registered tool: %s", self.name, binding.name)

	def list_tools(self) -> list[McpTool]:
		return [b.to_mcp_tool() for b in self.tools.values()]

	async def call_tool(self, name: str, arguments: dict[str, Any] | None) -> CallToolResult:
		binding = self.tools.get(name)
		if binding is None:
			return _error_result(f"Unknown tool: '{name}'. Available: {sorted(self.tools)}")
		try:
			validated = binding.input_model.model_validate(arguments or {})
		except ValidationError as exc:
			return _error_result(f"Input validation error for '{name}': {exc}")
		logger.debug("[MCP][%s] Tool call: %s", self.name, name)
		return await echo_handler(binding, validated.model_dump(by_alias=True, exclude_unset=True))


def _error_result(message: str) -> CallToolResult:
	return CallToolResult(content=[TextContent(type="text", text=message)], isError=True)


def build_service(item: ConfigWithTools) -> McpService:
	"""Construct the server for one configuration.

	A tool whose schema cannot be translated is logged and skipped; the rest of
	the configuration is still built.
	"""
	if item.id is None:
		raise ValueError(f"Config '{item.name}' has no ID")
	cfg = item.config
	service = McpService(
		config_id=item.id,
		name=cfg.name,
		version=cfg.version,
		description=cfg.description,
	)
	for tool in item.tools:
		try:
			binding = bind_tool(tool)
		except SchemaTranslationError as exc:
			logger.error(
				"[MCP][%s] Failed to register tool %s: %s (input=%r, output=%r)",
				cfg.name, tool.name, exc, tool.input_schema, tool.output_schema,
			)
			service.skipped_tools.append(tool.name)
			continue
		service.register_tool(binding)
	return service


class McpHandlers:
	"""Handler pair bound to one server: SSE connect and message delivery.

	The error and close hooks observe sessions only; they never change how a
	request completes.
	"""

	def __init__(
		self,
		service: McpService,
		messages_path: str = "/messages",
		on_error: ErrorHook | None = None,
		on_close: CloseHook | None = None,
	) -> None:
		self.service = service
		self.transport = SseServerTransport(messages_path)
		self._on_error = on_error or self._log_error
		self._on_close = on_close or self._log_close

	@property
	def config_id(self) -> int:
		return self.service.config_id

	async def handle_connect(self, scope: Scope, receive: Receive, send: Send) -> None:
		server = self.service.server
		try:
			async with self.transport.connect_sse(scope, receive, send) as (read_stream, write_stream):
				await server.run(read_stream, write_stream, server.create_initialization_options())
		except Exception as exc:
			self._on_error(exc)
			raise
		finally:
			self._on_close()

	async def handle_message(self, scope: Scope, receive: Receive, send: Send) -> None:
		try:
			await self.transport.handle_post_message(scope, receive, send)
		except Exception as exc:
			self._on_error(exc)
			raise

	def _log_error(self, exc: BaseException) -> None:
		logger.error("[SSE][%s] Session error: %s", self.service.name, exc, exc_info=exc)

	def _log_close(self) -> None:
		logger.debug("[SSE][%s] Connection closed", self.service.name)


def build_handlers(item: ConfigWithTools, messages_path: str = "/messages") -> McpHandlers:
	"""Default handler factory used by the service registry."""
	service = build_service(item)
	logger.info(
		"[MCP] Built service %s (ID: %s, version: %s, tools: %d)",
		service.name, service.config_id, service.version, len(service.tools),
	)
	if service.tools:
		logger.debug("[MCP] Tools: %s", ", ".join(service.tools))
	return McpHandlers(service, messages_path=messages_path)
