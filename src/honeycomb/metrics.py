"""Refresh statistics, timing and logging setup."""

from __future__ import annotations

import json
import logging
import re
import time
from dataclasses import dataclass, field


@dataclass
class RefreshReport:
	"""Outcome of one service registry rebuild."""

	total_configs: int = 0
	built: int = 0
	skipped: int = 0
	failed: int = 0
	duration_s: float = 0.0
	active_ids: list[int] = field(default_factory=list)
	added_ids: list[int] = field(default_factory=list)
	removed_ids: list[int] = field(default_factory=list)

	@property
	def duration_ms(self) -> int:
		return int(self.duration_s * 1000)

	def to_dict(self) -> dict[str, object]:
		return {
			"total_configs": self.total_configs,
			"built": self.built,
			"skipped": self.skipped,
			"failed": self.failed,
			"duration_ms": self.duration_ms,
			"active_ids": self.active_ids,
			"added_ids": self.added_ids,
			"removed_ids": self.removed_ids,
		}

	def to_json(self) -> str:
		return json.dumps(self.to_dict(), indent=2)


class Timer:
	"""Measure a block with the performance counter.

	``elapsed`` is in seconds and stays 0.0 until the block exits.
	"""

	def __init__(self) -> None:
		self._start: float | None = None
		self.elapsed: float = 0.0

	def __enter__(self) -> "Timer":
		self._start = time.perf_counter()
		return self

	def __exit__(self, *args: object) -> None:
		if self._start is not None:
			self.elapsed = time.perf_counter() - self._start

	@property
	def elapsed_ms(self) -> int:
		return int(self.elapsed * 1000)


LOGGER_NAME = "honeycomb"

# Protocol SDK loggers that report every request at INFO.
SDK_LOGGERS = ("mcp.server", "mcp.shared")

_TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_TAG_RE = re.compile(r"^\[(API|MCP|SSE)\](?:\[([^\]]+)\])?\s*")


def setup_logging(level: str = "INFO", json_format: bool = False) -> logging.Handler:
	"""Route honeycomb logs to stderr.

	Calling again reuses the installed handler and only switches its level
	and format. The protocol SDK loggers are held at WARNING unless ``level``
	is DEBUG.
	"""
	numeric = logging.getLevelName(level.upper())
	if not isinstance(numeric, int):
		numeric = logging.INFO

	root = logging.getLogger(LOGGER_NAME)
	root.setLevel(numeric)
	handler = next((h for h in root.handlers if getattr(h, "_honeycomb", False)), None)
	if handler is None:
		handler = logging.StreamHandler()
		handler._honeycomb = True  # type: ignore[attr-defined]
		root.addHandler(handler)

	if json_format:
		handler.setFormatter(_JsonFormatter())
	else:
		handler.setFormatter(logging.Formatter(_TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

	sdk_level = logging.DEBUG if numeric <= logging.DEBUG else logging.WARNING
	for name in SDK_LOGGERS:
		logging.getLogger(name).setLevel(sdk_level)
	return handler


class _JsonFormatter(logging.Formatter):
	"""One JSON object per record.

	A leading ``[API]``, ``[MCP]`` or ``[SSE]`` tag becomes the ``component``
	key, and a second bracketed tag (the service name) becomes ``service``.
	"""

	def format(self, record: logging.LogRecord) -> str:
		message = record.getMessage()
		data: dict[str, object] = {
			"ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
			"level": record.levelname,
			"logger": record.name,
		}
		match = _TAG_RE.match(message)
		if match:
			data["component"] = match.group(1).lower()
			if match.group(2):
				data["service"] = match.group(2)
			message = message[match.end():]
		data["msg"] = message
		if record.exc_info and record.exc_info[1] is not None:
			exc = record.exc_info[1]
			data["error"] = {"type": type(exc).__name__, "message": str(exc)}
		return json.dumps(data, ensure_ascii=False)
