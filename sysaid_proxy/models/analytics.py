"""
Pydantic response models for the dashboard API.

Field names are snake_case in Python and camelCase on the wire, matching
the shapes the SPFx dashboard already consumes.
"""

from __future__ import annotations

from typing import Any, Optional, Union

from pydantic import BaseModel, Field

_ALIASED = {"populate_by_name": True}


# ═══════════════════════════════════════════════════════════════════
# Shared
# ═══════════════════════════════════════════════════════════════════

class ChartEntry(BaseModel):
    """One bar / slice of a distribution or ranking."""
    name: str
    value: int


class ErrorResponse(BaseModel):
    """Body returned with HTTP 500 whenever a handler fails."""
    success: bool = False
    error: str
    details: Optional[Any] = None


class HealthResponse(BaseModel):
    status: str = "ok"
    token_cached: bool = Field(False, alias="tokenCached")

    model_config = _ALIASED


# ═══════════════════════════════════════════════════════════════════
# Analytics overview
# ═══════════════════════════════════════════════════════════════════

class OverviewSummary(BaseModel):
    total: int = 0
    open: int = 0
    closed: int = 0


class AnalyticsOverview(BaseModel):
    assignee_distribution: list[ChartEntry] = Field(default_factory=list, alias="assigneeDistribution")
    priority_distribution: list[ChartEntry] = Field(default_factory=list, alias="priorityDistribution")
    top_administrators: list[ChartEntry] = Field(default_factory=list, alias="topAdministrators")
    top_end_users: list[ChartEntry] = Field(default_factory=list, alias="topEndUsers")
    summary: OverviewSummary = Field(default_factory=OverviewSummary)

    model_config = _ALIASED


class AnalyticsOverviewResponse(BaseModel):
    success: bool = True
    data: AnalyticsOverview


# ═══════════════════════════════════════════════════════════════════
# Weekly metrics
# ═══════════════════════════════════════════════════════════════════

Number = Union[int, float]


class TrendMetric(BaseModel):
    """Week-over-week metric computed from ticket data."""
    value: Number = 0
    previous_value: Number = Field(0, alias="previousValue")
    change: Number = 0
    benchmark: str = ""

    model_config = _ALIASED


class StaticMetric(BaseModel):
    """Placeholder KPI card (no live data source yet)."""
    value: Number
    change: Number
    benchmark: Union[str, int, float]


class WeeklyMeta(BaseModel):
    current_week_count: int = Field(0, alias="currentWeekCount")
    previous_week_count: int = Field(0, alias="previousWeekCount")

    model_config = _ALIASED


class WeeklyMetrics(BaseModel):
    mttr: TrendMetric
    satisfaction: StaticMetric
    sla_breach_rate: StaticMetric = Field(..., alias="slaBreachRate")
    incident_ratio: StaticMetric = Field(..., alias="incidentRatio")
    meta: WeeklyMeta

    model_config = _ALIASED


class WeeklyMetricsResponse(BaseModel):
    success: bool = True
    data: WeeklyMetrics


# ═══════════════════════════════════════════════════════════════════
# Tickets
# ═══════════════════════════════════════════════════════════════════

class ActiveTicketsSnapshot(BaseModel):
    """Health of non-closed tickets; percentages are 0–100."""
    total_active: int = Field(0, alias="totalActive")
    overdue_percent: float = Field(0, alias="overduePercent")
    open_more_than_5_days: float = Field(0, alias="openMoreThan5Days")
    no_due_date: float = Field(0, alias="noDueDate")

    model_config = _ALIASED


class ActiveTicketsResponse(BaseModel):
    success: bool = True
    data: ActiveTicketsSnapshot


class RawDataResponse(BaseModel):
    """Upstream body passed through untouched."""
    success: bool = True
    data: Any = None


class ActionItemsResponse(RawDataResponse):
    count: int = 0
