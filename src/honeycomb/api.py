"""REST endpoints for managing MCP service configurations.

Every response uses the ``{code, msg, data}`` envelope. Each committed
mutation is followed by a registry refresh so the live MCP services track the
store.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Request, status

from honeycomb.errors import BadRequestError, InternalServerError, NotFoundError
from honeycomb.models import (
	ConfigStatus,
	Configuration,
	CreateConfigRequest,
	UpdateConfigRequest,
	config_to_vo,
)

if TYPE_CHECKING:
	from honeycomb.server import AppContext

logger = logging.getLogger(__name__)

_ID_RE = re.compile(r"[0-9]+")

router = APIRouter(prefix="/api", tags=["configs"])


def success_response(data: Any, code: int = 200) -> dict[str, Any]:
	return {"code": code, "msg": "success", "data": data}


def error_response(code: int, msg: str) -> dict[str, Any]:
	return {"code": code, "msg": msg, "data": None}


def parse_id(raw: str) -> int:
	"""Parse a path ID strictly; '12abc' and '-1' are rejected."""
	text = raw.strip()
	if not _ID_RE.fullmatch(text):
		raise BadRequestError("Invalid config ID")
	return int(text)


def _ctx(request: Request) -> AppContext:
	return request.app.state.ctx


def _load_vo(ctx: AppContext, config_id: int, action: str) -> dict[str, Any]:
	item = ctx.db.get_config_with_tools(config_id)
	if item is None:
		raise InternalServerError(f"Config {config_id} could not be read back after {action}")
	return config_to_vo(item)


@router.get("/configs")
async def list_configs(request: Request) -> dict[str, Any]:
	ctx = _ctx(request)
	items = ctx.db.get_all_configs_with_tools()
	return success_response([config_to_vo(item) for item in items])


@router.get("/configs/{config_id}")
async def get_config(config_id: str, request: Request) -> dict[str, Any]:
	ctx = _ctx(request)
	item = ctx.db.get_config_with_tools(parse_id(config_id))
	if item is None:
		raise NotFoundError("Config not found")
	return success_response(config_to_vo(item))


@router.post("/config", status_code=status.HTTP_201_CREATED)
async def create_config(body: CreateConfigRequest, request: Request) -> dict[str, Any]:
	missing = body.missing_fields()
	if missing:
		raise BadRequestError(f"Missing required fields: {', '.join(missing)}")

	ctx = _ctx(request)
	config = Configuration(
		name=body.name,
		version=body.version,
		description=body.description,
		status=ConfigStatus.STOPPED.value,
	)
	with ctx.db.transaction():
		config_id = ctx.db.create_config(config)
		for payload in body.tools:
			ctx.db.create_tool(payload.to_tool(config_id, now=config.created_at))
	logger.info("[API] Created config %s (ID: %d, tools: %d)", config.name, config_id, len(body.tools))

	ctx.registry.refresh()
	return success_response(_load_vo(ctx, config_id, "create"))


@router.put("/config/{config_id}")
async def update_config(config_id: str, body: UpdateConfigRequest, request: Request) -> dict[str, Any]:
	cid = parse_id(config_id)
	blank = body.blank_fields()
	if blank:
		raise BadRequestError(f"Fields must not be empty: {', '.join(blank)}")

	ctx = _ctx(request)
	with ctx.db.transaction():
		if not ctx.db.update_config(cid, **body.changes()):
			raise NotFoundError("Config not found")
		if body.tools is not None:
			ctx.db.replace_tools(cid, [t.to_tool(cid) for t in body.tools])
	logger.info("[API] Updated config %d (tools replaced: %s)", cid, body.tools is not None)

	ctx.registry.refresh()
	return success_response(_load_vo(ctx, cid, "update"))


@router.delete("/config/{config_id}")
async def delete_config(config_id: str, request: Request) -> dict[str, Any]:
	cid = parse_id(config_id)
	ctx = _ctx(request)
	if not ctx.db.delete_config(cid):
		raise NotFoundError("Config not found")
	logger.info("[API] Deleted config %d", cid)

	ctx.registry.refresh()
	return success_response(None)


async def _set_status(config_id: str, request: Request, target: ConfigStatus) -> dict[str, Any]:
	cid = parse_id(config_id)
	ctx = _ctx(request)
	if not ctx.db.set_status(cid, target):
		raise NotFoundError("Config not found")
	logger.info("[API] Config %d -> %s", cid, target.value)

	ctx.registry.refresh()
	return success_response(_load_vo(ctx, cid, target.value))


@router.post("/config/{config_id}/start")
async def start_config(config_id: str, request: Request) -> dict[str, Any]:
	return await _set_status(config_id, request, ConfigStatus.RUNNING)


@router.post("/config/{config_id}/stop")
async def stop_config(config_id: str, request: Request) -> dict[str, Any]:
	return await _set_status(config_id, request, ConfigStatus.STOPPED)
