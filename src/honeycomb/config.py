"""TOML configuration loader for honeycomb."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

DEFAULT_CONFIG = "honeycomb.toml"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass
class ServerConfig:
	"""HTTP server settings."""

	host: str = "0.0.0.0"
	port: int = 3002
	cors_origins: list[str] = field(default_factory=lambda: ["*"])
	static_dir: str = ""  # admin UI build output, served at / when set
	docs_path: str = "/api-docs"


@dataclass
class DatabaseConfig:
	"""Config store settings."""

	path: str = "mcp.db"
	base_dir: str = ""

	@property
	def resolved_path(self) -> str:
		if self.path == ":memory:":
			return self.path
		p = Path(os.path.expanduser(self.path))
		if not p.is_absolute() and self.base_dir:
			p = Path(self.base_dir) / p
		return str(p)


@dataclass
class McpConfig:
	"""SSE transport paths."""

	sse_path: str = "/sse"
	messages_path: str = "/messages"


@dataclass
class LoggingConfig:
	level: str = "INFO"
	json: bool = False


@dataclass
class HoneycombConfig:
	"""Top-level honeycomb configuration."""

	server: ServerConfig = field(default_factory=ServerConfig)
	database: DatabaseConfig = field(default_factory=DatabaseConfig)
	mcp: McpConfig = field(default_factory=McpConfig)
	logging: LoggingConfig = field(default_factory=LoggingConfig)
	source: str = ""


def _build_server(data: dict[str, Any]) -> ServerConfig:
	sc = ServerConfig()
	if "host" in data:
		sc.host = str(data["host"])
	if "port" in data:
		sc.port = int(data["port"])
	if "cors_origins" in data:
		sc.cors_origins = [str(o) for o in data["cors_origins"]]
	if "static_dir" in data:
		sc.static_dir = str(data["static_dir"])
	if "docs_path" in data:
		sc.docs_path = str(data["docs_path"])
	return sc


def _build_database(data: dict[str, Any]) -> DatabaseConfig:
	dc = DatabaseConfig()
	if "path" in data:
		dc.path = str(data["path"])
	return dc


def _build_mcp(data: dict[str, Any]) -> McpConfig:
	mc = McpConfig()
	if "sse_path" in data:
		mc.sse_path = str(data["sse_path"])
	if "messages_path" in data:
		mc.messages_path = str(data["messages_path"])
	return mc


def _build_logging(data: dict[str, Any]) -> LoggingConfig:
	lc = LoggingConfig()
	if "level" in data:
		lc.level = str(data["level"]).upper()
	if "json" in data:
		lc.json = bool(data["json"])
	return lc


def _apply_env(config: HoneycombConfig) -> None:
	env = os.environ
	if env.get("HOST"):
		config.server.host = env["HOST"]
	if env.get("PORT"):
		config.server.port = int(env["PORT"])
	if env.get("DATABASE_PATH"):
		config.database.path = env["DATABASE_PATH"]
		# env paths are relative to the working directory, not the config file
		config.database.base_dir = ""
	if env.get("LOG_LEVEL"):
		config.logging.level = env["LOG_LEVEL"].upper()


def load_config(path: str | Path | None = None) -> HoneycombConfig:
	"""Load a honeycomb.toml config file.

	Args:
		path: Path to the TOML config file. When omitted, ./honeycomb.toml is
			used if it exists, otherwise built-in defaults.

	Returns:
		Parsed HoneycombConfig with environment overrides applied.

	Raises:
		FileNotFoundError: If an explicit config path doesn't exist.
		tomllib.TOMLDecodeError: If config is invalid TOML.
	"""
	config = HoneycombConfig()
	if path is None:
		candidate = Path(DEFAULT_CONFIG)
		config_path = candidate if candidate.exists() else None
	else:
		config_path = Path(path)
		if not config_path.exists():
			raise FileNotFoundError(f"Config file not found: {config_path}")

	if config_path is not None:
		with open(config_path, "rb") as f:
			data = tomllib.load(f)
		if "server" in data:
			config.server = _build_server(data["server"])
		if "database" in data:
			config.database = _build_database(data["database"])
		if "mcp" in data:
			config.mcp = _build_mcp(data["mcp"])
		if "logging" in data:
			config.logging = _build_logging(data["logging"])
		config.database.base_dir = str(config_path.resolve().parent)
		config.source = str(config_path)

	_apply_env(config)
	return config


def validate_config(config: HoneycombConfig) -> list[tuple[str, str]]:
	"""Perform semantic validation of a loaded HoneycombConfig.

	Returns a list of (level, message) tuples where level is 'error' or 'warning'.
	"""
	issues: list[tuple[str, str]] = []

	port = config.server.port
	if not 0 < port < 65536:
		issues.append(("error", f"server.port out of range: {port}"))
	elif port < 1024:
		issues.append(("warning", f"server.port is privileged: {port}"))

	db_path = config.database.resolved_path
	if db_path != ":memory:":
		parent = Path(db_path).parent
		if not parent.is_dir():
			issues.append(("error", f"database directory does not exist: {parent}"))

	for name, value in (
		("mcp.sse_path", config.mcp.sse_path),
		("mcp.messages_path", config.mcp.messages_path),
		("server.docs_path", config.server.docs_path),
	):
		if not value.startswith("/"):
			issues.append(("error", f"{name} must start with '/': {value!r}"))
	if config.mcp.sse_path == config.mcp.messages_path:
		issues.append(("error", "mcp.sse_path and mcp.messages_path must differ"))

	if config.logging.level.upper() not in _LOG_LEVELS:
		issues.append(("error", f"unknown logging.level: {config.logging.level}"))

	if config.server.static_dir and not Path(config.server.static_dir).is_dir():
		issues.append(("error", f"server.static_dir does not exist: {config.server.static_dir}"))

	if "*" in config.server.cors_origins:
		issues.append(("warning", "CORS allows any origin"))

	return issues
