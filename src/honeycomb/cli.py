"""CLI interface for honeycomb."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from honeycomb.config import HoneycombConfig, load_config, validate_config
from honeycomb.db import Database
from honeycomb.metrics import setup_logging
from honeycomb.models import status_text
from honeycomb.seed import init_database


def build_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(
		prog="honeycomb",
		description="Honeycomb - configuration-driven MCP service gateway",
	)
	sub = parser.add_subparsers(dest="command")

	# honeycomb serve
	serve = sub.add_parser("serve", help="Run the admin API and MCP SSE endpoints")
	serve.add_argument("--config", default=None, help="Config file path")
	serve.add_argument("--host", default=None, help="Bind address (overrides config)")
	serve.add_argument("--port", type=int, default=None, help="Port (overrides config)")

	# honeycomb init-db
	init_db = sub.add_parser("init-db", help="Create the database with sample configurations")
	init_db.add_argument("--config", default=None, help="Config file path")
	init_db.add_argument("--force", action="store_true", help="Replace an existing database")
	init_db.add_argument("--no-seed", action="store_true", help="Create an empty schema only")

	# honeycomb list
	list_cmd = sub.add_parser("list", help="List stored configurations")
	list_cmd.add_argument("--config", default=None, help="Config file path")

	# honeycomb validate-config
	vc = sub.add_parser("validate-config", help="Validate config file semantically")
	vc.add_argument("--config", default=None, help="Config file path")

	return parser


def _load(args: argparse.Namespace) -> HoneycombConfig:
	return load_config(args.config)


def cmd_serve(args: argparse.Namespace) -> int:
	"""Run the HTTP server."""
	import uvicorn

	from honeycomb.server import create_app

	config = _load(args)
	if args.host:
		config.server.host = args.host
	if args.port:
		config.server.port = args.port
	setup_logging(config.logging.level, config.logging.json)

	app = create_app(config)
	print(f"Honeycomb listening on http://{config.server.host}:{config.server.port}")
	print(f"API docs: http://{config.server.host}:{config.server.port}{config.server.docs_path}")
	uvicorn.run(app, host=config.server.host, port=config.server.port, log_level=config.logging.level.lower())
	return 0


def cmd_init_db(args: argparse.Namespace) -> int:
	"""Create (or recreate) the database."""
	config = _load(args)
	db_path = config.database.resolved_path
	try:
		result = init_database(db_path, force=args.force, seed=not args.no_seed)
	except FileExistsError as e:
		print(f"Error: {e}")
		return 1
	print(f"Initialized {db_path}: {result.configs} config(s), {result.tools} tool(s)")
	return 0


def cmd_list(args: argparse.Namespace) -> int:
	"""Print stored configurations."""
	config = _load(args)
	db_path = config.database.resolved_path
	if db_path != ":memory:" and not Path(db_path).exists():
		print("No database found. Run 'honeycomb init-db' first.")
		return 1

	with Database(db_path) as db:
		items = db.get_all_configs_with_tools()
		if not items:
			print("No configurations yet.")
			return 0
		for item in items:
			cfg = item.config
			print(f"[{cfg.id}] {cfg.name} v{cfg.version} | {status_text(cfg.status)} | {len(item.tools)} tool(s)")
		return 0


def cmd_validate_config(args: argparse.Namespace) -> int:
	"""Validate config file semantically."""
	config = _load(args)
	issues = validate_config(config)

	errors = [(lvl, msg) for lvl, msg in issues if lvl == "error"]
	warnings = [(lvl, msg) for lvl, msg in issues if lvl == "warning"]

	for level, msg in issues:
		print(f"[{level.upper()}] {msg}")

	if not issues:
		print("Config OK")

	print(f"\n{len(errors)} error(s), {len(warnings)} warning(s)")
	return 1 if errors else 0


COMMANDS = {
	"serve": cmd_serve,
	"init-db": cmd_init_db,
	"list": cmd_list,
	"validate-config": cmd_validate_config,
}


def main(argv: list[str] | None = None) -> int:
	parser = build_parser()
	args = parser.parse_args(argv)

	if args.command is None:
		parser.print_help()
		return 0

	if args.command != "serve":
		setup_logging("WARNING")

	try:
		return COMMANDS[args.command](args)
	except FileNotFoundError as e:
		print(f"Error: {e}")
		return 1


if __name__ == "__main__":
	sys.exit(main())
