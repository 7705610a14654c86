"""Data models for MCP service configurations and their tools."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel


def _now_iso() -> str:
	return datetime.now(timezone.utc).isoformat()


class ConfigStatus(str, Enum):
	"""Lifecycle status of a configuration. Only running configs get a live server."""

	RUNNING = "running"
	STOPPED = "stopped"


STATUS_TEXT: dict[str, str] = {
	ConfigStatus.RUNNING.value: "运行中",
	ConfigStatus.STOPPED.value: "已停止",
}


def status_text(status: str) -> str:
	"""Human label for a status, falling back to the raw value."""
	return STATUS_TEXT.get(status, status)


@dataclass
class Configuration:
	"""A named, versioned MCP service definition."""

	id: int | None = None
	name: str = ""
	version: str = ""
	status: str = ConfigStatus.STOPPED.value
	description: str = ""
	created_at: str = field(default_factory=_now_iso)
	last_modified: str = field(default_factory=_now_iso)


@dataclass
class Tool:
	"""A tool owned by exactly one configuration."""

	id: int | None = None
	config_id: int = 0
	name: str = ""
	description: str = ""
	input_schema: str = "{}"
	output_schema: str = "{}"
	callback: str = ""  # stored verbatim, never executed
	created_at: str = field(default_factory=_now_iso)
	last_modified: str = field(default_factory=_now_iso)


@dataclass
class ConfigWithTools:
	"""A configuration row joined with all of its tool rows."""

	config: Configuration
	tools: list[Tool] = field(default_factory=list)

	@property
	def id(self) -> int | None:
		return self.config.id

	@property
	def name(self) -> str:
		return self.config.name

	@property
	def status(self) -> str:
		return self.config.status


# -- Request bodies --


class ToolPayload(BaseModel, extra="ignore"):
	"""A tool as submitted by the admin UI."""

	name: str
	description: str = ""
	input_schema: str = "{}"
	output_schema: str = "{}"
	callback: str = ""

	def to_tool(self, config_id: int, now: str | None = None) -> Tool:
		ts = now or _now_iso()
		return Tool(
			config_id=config_id,
			name=self.name,
			description=self.description,
			input_schema=self.input_schema,
			output_schema=self.output_schema,
			callback=self.callback,
			created_at=ts,
			last_modified=ts,
		)


class CreateConfigRequest(BaseModel, extra="ignore"):
	"""Body of POST /api/config. Required fields are checked by the handler."""

	name: str = ""
	version: str = ""
	description: str = ""
	tools: list[ToolPayload] = []

	def missing_fields(self) -> list[str]:
		return [k for k in ("name", "version", "description") if not getattr(self, k)]


class UpdateConfigRequest(BaseModel, extra="ignore"):
	"""Body of PUT /api/config/{id}. Omitted fields keep their stored value."""

	name: str | None = None
	version: str | None = None
	description: str | None = None
	tools: list[ToolPayload] | None = None

	def blank_fields(self) -> list[str]:
		return [
			k for k in ("name", "version", "description")
			if getattr(self, k) is not None and not getattr(self, k)
		]

	def changes(self) -> dict[str, str]:
		return {
			k: getattr(self, k)
			for k in ("name", "version", "description")
			if getattr(self, k) is not None
		}


# -- View objects --


def tool_to_vo(tool: Tool) -> dict[str, Any]:
	return {
		"name": tool.name,
		"description": tool.description,
		"input_schema": tool.input_schema,
		"output_schema": tool.output_schema,
		"callback": tool.callback,
	}


def config_to_vo(item: ConfigWithTools) -> dict[str, Any]:
	"""Shape a stored configuration the way the admin UI expects it."""
	cfg = item.config
	return {
		"id": cfg.id,
		"name": cfg.name,
		"version": cfg.version,
		"status": cfg.status,
		"statusText": status_text(cfg.status),
		"description": cfg.description,
		"createdAt": cfg.created_at,
		"lastModified": cfg.last_modified,
		"tools": [tool_to_vo(t) for t in item.tools],
	}
