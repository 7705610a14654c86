"""Error taxonomy shared by the REST API and the MCP router.

Client errors (4xx) are caused by the request; server errors (5xx) by the
store or the registry. Both render as the same ``{code, msg, data}`` envelope.
"""

from __future__ import annotations


class AppError(Exception):
	"""Base class for errors that map to an HTTP status."""

	def __init__(
		self,
		message: str,
		status_code: int = 500,
		code: int | None = None,
		is_operational: bool = True,
	) -> None:
		super().__init__(message)
		self.message = message
		self.status_code = status_code
		self.code = code if code is not None else status_code
		self.is_operational = is_operational


class ClientError(AppError):
	def __init__(self, message: str, status_code: int = 400, code: int | None = None) -> None:
		super().__init__(message, status_code, code, True)


class ServerError(AppError):
	def __init__(self, message: str, status_code: int = 500, code: int | None = None) -> None:
		super().__init__(message, status_code, code, True)


class BadRequestError(ClientError):
	def __init__(self, message: str = "Bad request") -> None:
		super().__init__(message, 400, 400)


class NotFoundError(ClientError):
	def __init__(self, message: str = "Resource not found") -> None:
		super().__init__(message, 404, 404)


class InternalServerError(ServerError):
	def __init__(self, message: str = "Internal server error") -> None:
		super().__init__(message, 500, 500)


class ServiceUnavailableError(ServerError):
	def __init__(self, message: str = "Service unavailable") -> None:
		super().__init__(message, 503, 503)


class RegistryRefreshError(ServerError):
	"""Rebuilding the service registry failed; the previous mapping is still active."""

	def __init__(self, message: str = "Failed to refresh MCP services") -> None:
		super().__init__(message, 500, 500)


class StoreNotInitializedError(RuntimeError):
	"""The config store was used after close()."""
