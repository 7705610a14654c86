"""SQLite config store for MCP service configurations and their tools."""

from __future__ import annotations

import logging
import sqlite3
from collections import defaultdict
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generator, Sequence

from honeycomb.errors import StoreNotInitializedError
from honeycomb.models import ConfigStatus, Configuration, ConfigWithTools, Tool, _now_iso

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS configs (
	id INTEGER PRIMARY KEY AUTOINCREMENT,
	name TEXT NOT NULL,
	version TEXT NOT NULL,
	status TEXT NOT NULL DEFAULT 'stopped' CHECK (status IN ('running', 'stopped')),
	description TEXT NOT NULL DEFAULT '',
	created_at TEXT NOT NULL,
	last_modified TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS tools (
	id INTEGER PRIMARY KEY AUTOINCREMENT,
	config_id INTEGER NOT NULL,
	name TEXT NOT NULL,
	description TEXT NOT NULL DEFAULT '',
	input_schema TEXT NOT NULL DEFAULT '{}',
	output_schema TEXT NOT NULL DEFAULT '{}',
	callback TEXT NOT NULL DEFAULT '',
	created_at TEXT NOT NULL,
	last_modified TEXT NOT NULL,
	CONSTRAINT fk_tools_config FOREIGN KEY (config_id) REFERENCES configs(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_tools_config_id ON tools(config_id);
"""

_CONFIG_COLUMNS = frozenset({"name", "version", "status", "description", "last_modified"})
_TOOL_COLUMNS = frozenset({
	"name", "description", "input_schema", "output_schema", "callback", "last_modified",
})


class Database:
	"""SQLite database holding configurations and tools.

	Every mutating method commits before returning, unless it runs inside
	``transaction()``, in which case the whole scope commits or rolls back
	together.
	"""

	def __init__(self, path: str | Path = ":memory:") -> None:
		db_path = str(path)
		self.path = db_path
		self._conn: sqlite3.Connection | None = sqlite3.connect(db_path, check_same_thread=False)
		self._conn.row_factory = sqlite3.Row
		logger.debug("Opened database connection: %s", db_path)
		if db_path != ":memory:":
			self._conn.execute("PRAGMA journal_mode=WAL")
			self._conn.execute("PRAGMA busy_timeout=5000")
		self._conn.execute("PRAGMA foreign_keys=ON")
		self._tx_depth = 0
		self._create_tables()

	@property
	def conn(self) -> sqlite3.Connection:
		if self._conn is None:
			raise StoreNotInitializedError("Database not initialized (connection closed)")
		return self._conn

	def _create_tables(self) -> None:
		self.conn.executescript(SCHEMA_SQL)

	def close(self) -> None:
		if self._conn is not None:
			logger.debug("Closing database connection")
			self._conn.close()
			self._conn = None

	def __enter__(self) -> Database:
		return self

	def __exit__(self, *args: object) -> None:
		self.close()

	@contextmanager
	def transaction(self) -> Generator[Database, None, None]:
		"""Context manager for explicit transactions.

		Commits on success, rolls back on exception. Nested scopes join the
		outermost one.
		"""
		conn = self.conn
		self._tx_depth += 1
		try:
			yield self
		except Exception:
			self._tx_depth -= 1
			if self._tx_depth == 0:
				conn.rollback()
				logger.debug("Transaction rolled back")
			raise
		else:
			self._tx_depth -= 1
			if self._tx_depth == 0:
				conn.commit()

	def _commit(self) -> None:
		if self._tx_depth == 0:
			self.conn.commit()

	# -- Configs --

	def create_config(self, config: Configuration) -> int:
		ConfigStatus(config.status)
		cursor = self.conn.execute(
			"""INSERT INTO configs
			(name, version, status, description, created_at, last_modified)
			VALUES (?, ?, ?, ?, ?, ?)""",
			(
				config.name, config.version, config.status,
				config.description, config.created_at, config.last_modified,
			),
		)
		self._commit()
		config_id = cursor.lastrowid
		if config_id is None:
			raise sqlite3.DatabaseError("Failed to create config")
		config.id = config_id
		return config_id

	def get_config(self, config_id: int) -> Configuration | None:
		row = self.conn.execute(
			"SELECT * FROM configs WHERE id=?", (config_id,),
		).fetchone()
		return self._row_to_config(row) if row else None

	def list_configs(self) -> list[Configuration]:
		rows = self.conn.execute("SELECT * FROM configs ORDER BY id ASC").fetchall()
		return [self._row_to_config(r) for r in rows]

	def update_config(self, config_id: int, **fields: Any) -> bool:
		"""Update the given columns of a config. Returns False if it does not exist."""
		if self.get_config(config_id) is None:
			return False
		unknown = set(fields) - _CONFIG_COLUMNS
		if unknown:
			raise ValueError(f"Unknown config columns: {sorted(unknown)}")
		if "status" in fields:
			fields["status"] = ConfigStatus(fields["status"]).value
		fields.setdefault("last_modified", _now_iso())
		assignments = ", ".join(f"{col}=?" for col in fields)
		self.conn.execute(
			f"UPDATE configs SET {assignments} WHERE id=?",  # noqa: S608
			(*fields.values(), config_id),
		)
		self._commit()
		return self.get_config(config_id) is not None

	def set_status(self, config_id: int, status: ConfigStatus) -> bool:
		return self.update_config(config_id, status=status.value)

	def delete_config(self, config_id: int) -> bool:
		"""Delete a config and, by cascade, all of its tools."""
		if self.get_config(config_id) is None:
			return False
		self.conn.execute("DELETE FROM configs WHERE id=?", (config_id,))
		self._commit()
		return self.get_config(config_id) is None

	@staticmethod
	def _row_to_config(row: sqlite3.Row) -> Configuration:
		return Configuration(
			id=row["id"],
			name=row["name"],
			version=row["version"],
			status=row["status"],
			description=row["description"],
			created_at=row["created_at"],
			last_modified=row["last_modified"],
		)

	# -- Tools --

	def create_tool(self, tool: Tool) -> int:
		cursor = self.conn.execute(
			"""INSERT INTO tools
			(config_id, name, description, input_schema, output_schema, callback,
			 created_at, last_modified)
			VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
			(
				tool.config_id, tool.name, tool.description,
				tool.input_schema, tool.output_schema, tool.callback,
				tool.created_at, tool.last_modified,
			),
		)
		self._commit()
		tool_id = cursor.lastrowid
		if tool_id is None:
			raise sqlite3.DatabaseError("Failed to create tool")
		tool.id = tool_id
		return tool_id

	def get_tool(self, tool_id: int) -> Tool | None:
		row = self.conn.execute(
			"SELECT * FROM tools WHERE id=?", (tool_id,),
		).fetchone()
		return self._row_to_tool(row) if row else None

	def get_tools_for_config(self, config_id: int) -> list[Tool]:
		rows = self.conn.execute(
			"SELECT * FROM tools WHERE config_id=? ORDER BY id ASC", (config_id,),
		).fetchall()
		return [self._row_to_tool(r) for r in rows]

	def list_tools(self) -> list[Tool]:
		rows = self.conn.execute("SELECT * FROM tools ORDER BY id ASC").fetchall()
		return [self._row_to_tool(r) for r in rows]

	def update_tool(self, tool_id: int, **fields: Any) -> bool:
		if self.get_tool(tool_id) is None:
			return False
		unknown = set(fields) - _TOOL_COLUMNS
		if unknown:
			raise ValueError(f"Unknown tool columns: {sorted(unknown)}")
		fields.setdefault("last_modified", _now_iso())
		assignments = ", ".join(f"{col}=?" for col in fields)
		self.conn.execute(
			f"UPDATE tools SET {assignments} WHERE id=?",  # noqa: S608
			(*fields.values(), tool_id),
		)
		self._commit()
		return True

	def delete_tool(self, tool_id: int) -> bool:
		cursor = self.conn.execute("DELETE FROM tools WHERE id=?", (tool_id,))
		self._commit()
		return cursor.rowcount > 0

	def replace_tools(self, config_id: int, tools: Sequence[Tool]) -> list[int]:
		"""Swap a config's entire tool set atomically. Returns the new tool IDs."""
		with self.transaction():
			self.conn.execute("DELETE FROM tools WHERE config_id=?", (config_id,))
			ids = []
			for tool in tools:
				tool.config_id = config_id
				ids.append(self.create_tool(tool))
		return ids

	@staticmethod
	def _row_to_tool(row: sqlite3.Row) -> Tool:
		return Tool(
			id=row["id"],
			config_id=row["config_id"],
			name=row["name"],
			description=row["description"],
			input_schema=row["input_schema"],
			output_schema=row["output_schema"],
			callback=row["callback"],
			created_at=row["created_at"],
			last_modified=row["last_modified"],
		)

	# -- Combined reads --

	def get_config_with_tools(self, config_id: int) -> ConfigWithTools | None:
		config = self.get_config(config_id)
		if config is None:
			return None
		return ConfigWithTools(config=config, tools=self.get_tools_for_config(config_id))

	def get_all_configs_with_tools(self) -> list[ConfigWithTools]:
		"""All configs with their tools: two queries, grouped in memory."""
		configs = self.list_configs()
		tools_by_config: dict[int, list[Tool]] = defaultdict(list)
		for tool in self.list_tools():
			tools_by_config[tool.config_id].append(tool)
		return [ConfigWithTools(config=c, tools=tools_by_config.get(c.id, [])) for c in configs]
