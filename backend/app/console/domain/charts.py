"""Derived chart views over the mirrored report list."""

from __future__ import annotations

from typing import Iterable

from app.console.domain.models import ChartEntry, Report
from app.settings import settings


def community_chart(reports: Iterable[Report], *, matter_type: str | None = None) -> list[ChartEntry]:
	"""One bar per community report, in report order.

	Reports sharing a name are not merged; every entry has a weight of one.
	"""
	wanted = matter_type or settings.console_community_matter_type
	return [ChartEntry(name=report.name, reports=1) for report in reports if report.matter_type == wanted]


__all__ = ["community_chart"]
