"""Engine-level latest-error slot shared by the console operations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from app.console.domain.exceptions import ConsoleError
from app.console.domain.models import now_ms


@dataclass(slots=True, frozen=True)
class ErrorState:
	source: str
	kind: str
	message: str
	at: int

	def to_dict(self) -> dict[str, object]:
		return {"source": self.source, "kind": self.kind, "message": self.message, "at": self.at}


class ErrorSlot:
	"""Holds only the most recent failure; a new one replaces the old."""

	def __init__(self) -> None:
		self._latest: Optional[ErrorState] = None

	@property
	def latest(self) -> Optional[ErrorState]:
		return self._latest

	def record(self, source: str, message: str, exc: ConsoleError | None = None) -> ErrorState:
		state = ErrorState(
			source=source,
			kind=exc.detail if exc is not None else "console_error",
			message=message,
			at=now_ms(),
		)
		self._latest = state
		return state

	def clear(self) -> None:
		self._latest = None


__all__ = ["ErrorSlot", "ErrorState"]
