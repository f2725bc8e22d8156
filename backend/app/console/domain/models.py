"""Domain models for the report console."""

from __future__ import annotations

import enum
import math
import time
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def now_ms() -> int:
	"""Current wall clock time as epoch milliseconds."""
	return int(time.time() * 1000)


class ReportStatus(str, enum.Enum):
	pending = "pending"
	resolved = "resolved"

	def toggled(self) -> "ReportStatus":
		return ReportStatus.pending if self is ReportStatus.resolved else ReportStatus.resolved

	@classmethod
	def parse(cls, value: "ReportStatus | str | None") -> "ReportStatus":
		"""Anything other than ``resolved`` is treated as pending."""
		if isinstance(value, ReportStatus):
			return value
		if value is not None and str(value).lower() == cls.resolved.value:
			return cls.resolved
		return cls.pending


class Report(BaseModel):
	"""A user-submitted report as mirrored from the ``reports`` collection."""

	id: str
	created_at: Optional[int] = Field(default=None, alias="createdAt")
	description: str = ""
	email: str = ""
	phone: str = ""
	name: str = ""
	matter_type: str = Field(default="", alias="matterType")
	user_id: str = Field(default="", alias="userId")
	status: ReportStatus = ReportStatus.pending
	response: Optional[str] = None
	resolved_at: Optional[int] = Field(default=None, alias="resolvedAt")

	model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

	@field_validator("status", mode="before")
	@classmethod
	def _parse_status(cls, value: Any) -> ReportStatus:
		return ReportStatus.parse(value)

	@field_validator("description", "email", "phone", "name", "matter_type", "user_id", mode="before")
	@classmethod
	def _text(cls, value: Any) -> str:
		return "" if value is None else str(value)

	@field_validator("response", mode="before")
	@classmethod
	def _optional_text(cls, value: Any) -> Optional[str]:
		return None if value is None else str(value)

	@field_validator("created_at", "resolved_at", mode="before")
	@classmethod
	def _millis(cls, value: Any) -> Optional[int]:
		"""Timestamps written by other clients may be floats or numeric strings."""
		if isinstance(value, bool) or value is None:
			return None
		if isinstance(value, str):
			try:
				value = float(value)
			except ValueError:
				return None
		if isinstance(value, int):
			return value
		if isinstance(value, float) and math.isfinite(value):
			return int(value)
		return None

	@classmethod
	def from_snapshot(cls, key: str, value: Mapping[str, Any]) -> "Report":
		"""Build a report whose identity is always the collection key.

		A payload field named ``id`` never overrides the key.
		"""
		payload = {name: field for name, field in value.items() if name != "id"}
		return cls.model_validate({**payload, "id": key})


class User(BaseModel):
	"""The slice of a ``users`` record the console cares about."""

	id: str
	blocked: bool = False

	model_config = ConfigDict(extra="ignore", frozen=True)


class Notification(BaseModel):
	"""Record written to ``users/<uid>/notifications/<reportId>``."""

	type: str
	message: str
	response: str
	created_at: int = Field(alias="createdAt")
	read: bool = False

	model_config = ConfigDict(populate_by_name=True)

	@classmethod
	def for_response(cls, report_id: str, response: str, *, type: str, created_at: int) -> "Notification":
		return cls(
			type=type,
			message=f"Your report (ID: {report_id}) has been responded to.",
			response=response,
			created_at=created_at,
			read=False,
		)

	def to_record(self) -> dict[str, Any]:
		return self.model_dump(by_alias=True)


class Stats(BaseModel):
	total_users: int = 0
	total_reports: int = 0
	resolved_reports: int = 0

	model_config = ConfigDict(frozen=True)


class ChartEntry(BaseModel):
	name: str
	reports: int = 1

	model_config = ConfigDict(frozen=True)


__all__ = [
	"ChartEntry",
	"Notification",
	"Report",
	"ReportStatus",
	"Stats",
	"User",
	"now_ms",
]
