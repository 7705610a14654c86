"""Database bootstrap with the bundled sample configurations."""

from __future__ import annotations

import importlib.resources
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from honeycomb.db import Database
from honeycomb.models import ConfigStatus, Configuration, Tool, _now_iso

logger = logging.getLogger(__name__)

_SEED_FILE = importlib.resources.files("honeycomb").joinpath("seed_data.json")


@dataclass
class SeedResult:
	configs: int = 0
	tools: int = 0


def load_seed_data() -> list[dict[str, Any]]:
	"""Read the bundled sample configurations."""
	data = json.loads(_SEED_FILE.read_text(encoding="utf-8"))
	configs = data.get("configs")
	if not isinstance(configs, list):
		raise ValueError("seed_data.json must contain a 'configs' list")
	return configs


def seed_database(db: Database, configs: list[dict[str, Any]] | None = None) -> SeedResult:
	"""Insert configurations and their tools in one transaction."""
	if configs is None:
		configs = load_seed_data()
	now = _now_iso()
	result = SeedResult()
	with db.transaction():
		for entry in configs:
			config = Configuration(
				name=entry["name"],
				version=entry["version"],
				status=ConfigStatus(entry.get("status", ConfigStatus.STOPPED.value)).value,
				description=entry.get("description", ""),
				created_at=now,
				last_modified=now,
			)
			config_id = db.create_config(config)
			result.configs += 1
			for tool_data in entry.get("tools") or []:
				db.create_tool(Tool(
					config_id=config_id,
					name=tool_data["name"],
					description=tool_data.get("description", ""),
					input_schema=tool_data.get("input_schema", "{}"),
					output_schema=tool_data.get("output_schema", "{}"),
					callback=tool_data.get("callback", ""),
					created_at=now,
					last_modified=now,
				))
				result.tools += 1
			logger.debug("Seeded config %s (ID: %d)", config.name, config_id)
	logger.info("Seeded %d configs with %d tools", result.configs, result.tools)
	return result


def init_database(path: str | Path, force: bool = False, seed: bool = True) -> SeedResult:
	"""Create a fresh database file, optionally filled with sample data.

	Raises:
		FileExistsError: If the file exists and ``force`` is not set.
	"""
	db_path = Path(path)
	if db_path.exists():
		if not force:
			raise FileExistsError(f"Database already exists: {db_path} (use --force to recreate)")
		for suffix in ("", "-wal", "-shm"):
			Path(f"{db_path}{suffix}").unlink(missing_ok=True)
		logger.info("Removed existing database: %s", db_path)

	with Database(db_path) as db:
		if not seed:
			return SeedResult()
		return seed_database(db)
