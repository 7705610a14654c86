"""Shared pytest fixtures and factory functions for honeycomb tests."""

from __future__ import annotations

import json
from typing import Any, Iterator

import pytest

from honeycomb.db import Database
from honeycomb.models import Configuration, ConfigWithTools, Tool


@pytest.fixture()
def db() -> Iterator[Database]:
	"""In-memory Database with schema initialized."""
	database = Database(":memory:")
	yield database
	database.close()


def schema(**fields: str) -> str:
	"""Serialize a flat field->type mapping the way tools store it."""
	return json.dumps({name: {"type": kind, "description": f"{name} field"} for name, kind in fields.items()})


def make_config(**overrides: Any) -> Configuration:
	"""Create a Configuration with sensible defaults, overridable via kwargs."""
	defaults: dict[str, Any] = {
		"name": "svc",
		"version": "1.0.0",
		"description": "test service",
	}
	defaults.update(overrides)
	return Configuration(**defaults)


def make_tool(**overrides: Any) -> Tool:
	"""Create a Tool with sensible defaults, overridable via kwargs."""
	defaults: dict[str, Any] = {
		"name": "t1",
		"description": "d1",
		"input_schema": schema(x="string"),
		"output_schema": schema(y="string"),
		"callback": "noop",
	}
	defaults.update(overrides)
	return Tool(**defaults)


def make_config_with_tools(config_id: int = 1, tools: list[Tool] | None = None, **overrides: Any) -> ConfigWithTools:
	"""Unsaved ConfigWithTools for builder tests."""
	overrides.setdefault("status", "running")
	config = make_config(id=config_id, **overrides)
	if tools is None:
		tools = [make_tool(config_id=config_id)]
	return ConfigWithTools(config=config, tools=tools)


def insert_config(db: Database, tools: int = 1, **overrides: Any) -> int:
	"""Persist a config with `tools` generated tools and return its ID."""
	config_id = db.create_config(make_config(**overrides))
	for i in range(tools):
		db.create_tool(make_tool(config_id=config_id, name=f"t{i + 1}"))
	return config_id


def tool_payload(**overrides: Any) -> dict[str, Any]:
	"""JSON body for one tool in REST requests."""
	defaults: dict[str, Any] = {
		"name": "t1",
		"description": "d1",
		"input_schema": '{"x":{"type":"string"}}',
		"output_schema": '{"y":{"type":"string"}}',
		"callback": "noop",
	}
	defaults.update(overrides)
	return defaults
