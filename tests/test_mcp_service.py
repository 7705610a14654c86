"""Tests for building MCP servers from stored configurations."""

from __future__ import annotations

import json

import pytest

pytest.importorskip("mcp", reason="mcp package not installed")

from conftest import make_config_with_tools, make_tool, schema
from mcp import types
from mcp.shared.memory import create_connected_server_and_client_session

from honeycomb.mcp_service import McpHandlers, bind_tool, build_handlers, build_service
from honeycomb.schema import describe


class TestBindTool:
	def test_translates_both_schemas(self) -> None:
		binding = bind_tool(make_tool(name="get_weather", callback="weather.current"))
		assert binding.name == "get_weather"
		assert binding.callback == "weather.current"
		mcp_tool = binding.to_mcp_tool()
		assert mcp_tool.name == "get_weather"
		assert mcp_tool.description == "d1"
		assert mcp_tool.inputSchema["properties"]["x"]["type"] == "string"
		assert mcp_tool.outputSchema is None
		assert describe(binding.output_model)["properties"]["y"]["type"] == "string"


class TestBuildService:
	def test_server_carries_identity(self) -> None:
		item = make_config_with_tools(config_id=7, name="weather", version="2.0.0", description="forecasts")
		service = build_service(item)
		assert service.config_id == 7
		assert service.server.name == "weather"
		assert service.server.version == "2.0.0"
		assert service.server.instructions == "forecasts"
		assert list(service.tools) == ["t1"]

	def test_registers_protocol_handlers(self) -> None:
		service = build_service(make_config_with_tools())
		assert types.ListToolsRequest in service.server.request_handlers
		assert types.CallToolRequest in service.server.request_handlers

	def test_unknown_field_type_degrades_to_any(self) -> None:
		tool = make_tool(input_schema=schema(when="date", x="string"))
		service = build_service(make_config_with_tools(tools=[tool]))
		assert "t1" in service.tools
		assert service.skipped_tools == []

	def test_bad_schema_skips_only_that_tool(self) -> None:
		tools = [
			make_tool(name="good"),
			make_tool(name="broken_input", input_schema="not json"),
			make_tool(name="broken_output", output_schema="[1, 2]"),
		]
		service = build_service(make_config_with_tools(tools=tools))
		assert list(service.tools) == ["good"]
		assert service.skipped_tools == ["broken_input", "broken_output"]

	def test_config_without_tools(self) -> None:
		service = build_service(make_config_with_tools(tools=[]))
		assert service.tools == {}
		assert service.list_tools() == []

	def test_missing_id_rejected(self) -> None:
		item = make_config_with_tools()
		item.config.id = None
		with pytest.raises(ValueError, match="no ID"):
			build_service(item)


class TestCallTool:
	@pytest.mark.asyncio
	async def test_echoes_validated_input(self) -> None:
		service = build_service(make_config_with_tools())
		result = await service.call_tool("t1", {"x": "hello", "ignored": 1})
		assert result.isError is False
		assert len(result.content) == 1
		assert json.loads(result.content[0].text) == {"x": "hello"}
		assert result.structuredContent == {"x": "hello"}

	@pytest.mark.asyncio
	async def test_invalid_input_is_error_result(self) -> None:
		service = build_service(make_config_with_tools())
		result = await service.call_tool("t1", {"x": 42})
		assert result.isError is True
		assert "t1" in result.content[0].text

	@pytest.mark.asyncio
	async def test_unknown_tool_is_error_result(self) -> None:
		service = build_service(make_config_with_tools())
		result = await service.call_tool("nope", {})
		assert result.isError is True
		assert "Unknown tool" in result.content[0].text

	@pytest.mark.asyncio
	async def test_none_arguments_treated_as_empty(self) -> None:
		tool = make_tool(input_schema="{}")
		service = build_service(make_config_with_tools(tools=[tool]))
		result = await service.call_tool("t1", None)
		assert result.isError is False
		assert json.loads(result.content[0].text) == {}


class TestClientSession:
	@pytest.mark.asyncio
	async def test_list_and_call_through_client(self) -> None:
		tool = make_tool(input_schema=schema(x="string", z="mystery"))
		service = build_service(make_config_with_tools(tools=[tool]))
		async with create_connected_server_and_client_session(service.server) as client:
			listed = await client.list_tools()
			assert [t.name for t in listed.tools] == ["t1"]
			assert listed.tools[0].outputSchema is None
			result = await client.call_tool("t1", {"x": "hi"})
			assert result.isError is False
			assert result.structuredContent == {"x": "hi"}
			assert json.loads(result.content[0].text) == {"x": "hi"}

	@pytest.mark.asyncio
	async def test_invalid_input_is_error_through_client(self) -> None:
		service = build_service(make_config_with_tools())
		async with create_connected_server_and_client_session(service.server) as client:
			result = await client.call_tool("t1", {"x": 42})
			assert result.isError is True


class TestHandlers:
	def test_build_handlers_wraps_service(self) -> None:
		handlers = build_handlers(make_config_with_tools(config_id=3), messages_path="/msg")
		assert isinstance(handlers, McpHandlers)
		assert handlers.config_id == 3
		assert list(handlers.service.tools) == ["t1"]

	@pytest.mark.asyncio
	async def test_message_errors_reach_hook(self) -> None:
		seen: list[BaseException] = []
		service = build_service(make_config_with_tools())
		handlers = McpHandlers(service, on_error=seen.append)

		async def _boom(scope, receive, send):
			raise RuntimeError("transport down")

		handlers.transport.handle_post_message = _boom  # type: ignore[method-assign]
		with pytest.raises(RuntimeError):
			await handlers.handle_message({"type": "http"}, None, None)
		assert len(seen) == 1
		assert str(seen[0]) == "transport down"

	@pytest.mark.asyncio
	async def test_connect_always_calls_close_hook(self) -> None:
		closed: list[bool] = []
		errors: list[BaseException] = []
		service = build_service(make_config_with_tools())
		handlers = McpHandlers(service, on_error=errors.append, on_close=lambda: closed.append(True))

		def _fail(scope, receive, send):
			raise ConnectionError("client went away")

		handlers.transport.connect_sse = _fail  # type: ignore[method-assign]
		with pytest.raises(ConnectionError):
			await handlers.handle_connect({"type": "http"}, None, None)
		assert closed == [True]
		assert len(errors) == 1
