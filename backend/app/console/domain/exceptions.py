"""Custom exceptions for the report console core."""

from __future__ import annotations

from fastapi import status


class ConsoleError(Exception):
	"""Base class for console related errors."""

	status_code: int = status.HTTP_400_BAD_REQUEST
	detail: str = "console_error"

	def __init__(self, detail: str | None = None, *, path: str | None = None) -> None:
		super().__init__(f"{detail or self.detail}:{path}" if path else detail or self.detail)
		if detail:
			self.detail = detail
		self.path = path


class ConnectivityError(ConsoleError):
	"""Raised when the realtime store cannot be reached or a stream breaks."""

	status_code = status.HTTP_503_SERVICE_UNAVAILABLE
	detail = "connectivity_error"


class PermissionDeniedError(ConsoleError):
	"""Raised when the realtime store's access control rejects a read or write."""

	status_code = status.HTTP_403_FORBIDDEN
	detail = "permission_denied"


class NotificationError(ConsoleError):
	"""Raised when the notification write of a resolution fails.

	Wraps the underlying connectivity or permission failure in ``cause``.
	"""

	status_code = status.HTTP_502_BAD_GATEWAY
	detail = "notification_failed"

	def __init__(self, detail: str | None = None, *, cause: ConsoleError | None = None) -> None:
		super().__init__(detail)
		self.cause = cause
