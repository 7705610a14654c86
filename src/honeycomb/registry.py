"""In-memory registry of live MCP services, keyed by configuration ID.

The registry is derived state: it is rebuilt from the config store at startup
and after every committed mutation. A rebuild assembles a brand-new mapping and
swaps it in one step, so readers see either the old or the new mapping, never a
mix. If a rebuild fails the previous mapping stays active.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Callable, Mapping

from honeycomb.db import Database
from honeycomb.errors import RegistryRefreshError
from honeycomb.mcp_service import McpHandlers, build_handlers
from honeycomb.metrics import RefreshReport, Timer
from honeycomb.models import ConfigStatus, ConfigWithTools

logger = logging.getLogger(__name__)

HandlersFactory = Callable[[ConfigWithTools], McpHandlers]


class RegistryState(str, Enum):
	EMPTY = "empty"
	BUILDING = "building"
	READY = "ready"


class LookupStatus(str, Enum):
	FOUND = "found"
	NOT_FOUND = "not_found"
	NOT_INITIALIZED = "not_initialized"


@dataclass(frozen=True)
class Lookup:
	"""Result of resolving a configuration ID against the registry."""

	status: LookupStatus
	handlers: McpHandlers | None = None
	available_ids: tuple[int, ...] = field(default_factory=tuple)

	@property
	def found(self) -> bool:
		return self.status is LookupStatus.FOUND


class ServiceRegistry:
	"""Maps configuration IDs to handler pairs for running configurations."""

	def __init__(
		self,
		db: Database,
		handlers_factory: HandlersFactory | None = None,
		messages_path: str = "/messages",
	) -> None:
		self.db = db
		self._factory = handlers_factory or (lambda item: build_handlers(item, messages_path))
		self._handlers: Mapping[int, McpHandlers] = MappingProxyType({})
		self._state = RegistryState.EMPTY
		self._lock = threading.Lock()
		self._refresh_lock = threading.Lock()
		self.last_report: RefreshReport | None = None

	@property
	def state(self) -> RegistryState:
		return self._state

	def snapshot(self) -> Mapping[int, McpHandlers]:
		"""Read-only view of the current mapping."""
		with self._lock:
			return self._handlers

	def ids(self) -> list[int]:
		return sorted(self.snapshot())

	def get(self, config_id: int) -> McpHandlers | None:
		return self.snapshot().get(config_id)

	def __contains__(self, config_id: object) -> bool:
		return config_id in self.snapshot()

	def __len__(self) -> int:
		return len(self.snapshot())

	def lookup(self, config_id: int) -> Lookup:
		with self._lock:
			handlers = self._handlers
			never_built = self._state is RegistryState.EMPTY or (
				self._state is RegistryState.BUILDING and self.last_report is None
			)
		if never_built:
			return Lookup(LookupStatus.NOT_INITIALIZED)
		available = tuple(sorted(handlers))
		entry = handlers.get(config_id)
		if entry is None:
			return Lookup(LookupStatus.NOT_FOUND, available_ids=available)
		return Lookup(LookupStatus.FOUND, handlers=entry, available_ids=available)

	def build(self, configs: list[ConfigWithTools]) -> tuple[dict[int, McpHandlers], RefreshReport]:
		"""Build a new mapping without touching the exposed one."""
		report = RefreshReport(total_configs=len(configs))
		mapping: dict[int, McpHandlers] = {}
		for item in configs:
			logger.debug(
				"[MCP] Config: name=%s, id=%s, status=%s, tools=%d",
				item.name, item.id, item.status, len(item.tools),
			)
			if item.id is None:
				logger.warning("[MCP] Config '%s' has no ID, skipping", item.name)
				report.skipped += 1
				continue
			if item.status != ConfigStatus.RUNNING.value:
				report.skipped += 1
				continue
			try:
				mapping[item.id] = self._factory(item)
			except Exception:
				logger.exception("[MCP] Failed to build service %s (ID: %s)", item.name, item.id)
				report.failed += 1
				continue
			report.built += 1
		return mapping, report

	def refresh(self) -> RefreshReport:
		"""Rebuild every service from the store and swap the mapping in.

		Every running configuration gets a new handler pair, including ones
		whose stored data did not change. Each pair owns its own SSE transport,
		so a session opened before the refresh can no longer deliver messages:
		its POST /messages now gets a 404 and the client must reconnect.

		Raises:
			RegistryRefreshError: If the store could not be read. The previous
				mapping and state are kept.
		"""
		with self._refresh_lock:
			with self._lock:
				previous_state = self._state
				old_ids = set(self._handlers)
				self._state = RegistryState.BUILDING
			logger.info("[MCP] Refreshing MCP services (current: %d)", len(old_ids))

			with Timer() as timer:
				try:
					configs = self.db.get_all_configs_with_tools()
				except Exception as exc:
					with self._lock:
						self._state = previous_state
					logger.exception("[MCP] Refresh failed, keeping %d existing services", len(old_ids))
					raise RegistryRefreshError(f"Failed to refresh MCP services: {exc}") from exc
				mapping, report = self.build(configs)

			with self._lock:
				self._handlers = MappingProxyType(mapping)
				self._state = RegistryState.READY

			report.duration_s = timer.elapsed
			report.active_ids = sorted(mapping)
			report.added_ids = sorted(set(mapping) - old_ids)
			report.removed_ids = sorted(old_ids - set(mapping))
			self.last_report = report

		logger.info(
			"[MCP] Refresh complete in %dms: built=%d skipped=%d failed=%d total=%d",
			report.duration_ms, report.built, report.skipped, report.failed, report.total_configs,
		)
		if report.added_ids:
			logger.info("[MCP] Added service IDs: %s", report.added_ids)
		if report.removed_ids:
			logger.info("[MCP] Removed service IDs: %s", report.removed_ids)
		return report
