"""
Dashboard aggregations over raw SysAid service records.

Pure functions: every input is a list of record dicts as SysAid returns
them (plus id → name directories), and every output is plain data ready
to be serialised. Time-dependent calculations take ``now_ms`` (epoch
milliseconds) so callers and tests control the clock.
"""

from __future__ import annotations

import time
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

CLOSED_STATUS = 34

DAY_MS = 24 * 60 * 60 * 1000


def now_ms() -> float:
    """Current wall-clock time in epoch milliseconds."""
    return time.time() * 1000


UNASSIGNED = "Unassigned"
UNKNOWN_PRIORITY = "Unknown"

PRIORITY_LABELS = {
    1: "Very High",
    2: "High",
    3: "Normal",
    4: "Low",
    5: "Very Low",
}
PRIORITY_RANK = {label: code for code, label in PRIORITY_LABELS.items()}

TOP_ADMINISTRATORS_LIMIT = 4
TOP_END_USERS_LIMIT = 5

OPEN_TOO_LONG_DAYS = 5

# ═══════════════════════════════════════════════════════════════════
# Placeholder KPIs
# ═══════════════════════════════════════════════════════════════════
# No SysAid data source feeds these yet; the dashboard shows them as
# illustrative values. Replace with real calculations once one exists.

MTTR_BENCHMARK = "3.5 days"
PLACEHOLDER_SATISFACTION = {"value": 4.2, "change": 2.5, "benchmark": "4.0/5"}
PLACEHOLDER_SLA_BREACH_RATE = {"value": 8.5, "change": -12.3, "benchmark": 10}
PLACEHOLDER_INCIDENT_RATIO = {"value": 35, "change": 5.2, "benchmark": 30}


# ═══════════════════════════════════════════════════════════════════
# Input helpers
# ═══════════════════════════════════════════════════════════════════

def records_from(body: Any) -> list[dict]:
    """Read a list response that may be a bare array or a ``{"data": [...]}`` envelope."""
    if isinstance(body, list):
        return body
    if isinstance(body, dict) and isinstance(body.get("data"), list):
        return body["data"]
    return []


def build_directory(people: Iterable[dict]) -> dict[Any, str]:
    """Map agent / end-user ids to "First Last" display names."""
    directory: dict[Any, str] = {}
    for person in people:
        if person.get("id") is None:
            continue
        name = f"{person.get('firstName') or ''} {person.get('lastName') or ''}".strip()
        directory[person["id"]] = name
    return directory


def _resolve(directory: dict[Any, str], person_id: Any) -> Optional[str]:
    """Look up a display name, tolerating ids that arrive as strings."""
    if person_id is None or person_id == "":
        return None
    name = directory.get(person_id)
    if not name and isinstance(person_id, str) and person_id.isdigit():
        name = directory.get(int(person_id))
    elif not name and isinstance(person_id, int):
        name = directory.get(str(person_id))
    return name or None


def is_closed(record: dict) -> bool:
    return record.get("status") == CLOSED_STATUS


# ═══════════════════════════════════════════════════════════════════
# Status filter
# ═══════════════════════════════════════════════════════════════════

def filter_by_status(records: list[dict], status: Optional[str]) -> list[dict]:
    """
    Keep open (status != 34) or closed (status == 34) records.

    "all", None and unrecognised values return the input unchanged.
    """
    if status == "open":
        return [r for r in records if not is_closed(r)]
    if status == "closed":
        return [r for r in records if is_closed(r)]
    return records


# ═══════════════════════════════════════════════════════════════════
# Distributions & rankings
# ═══════════════════════════════════════════════════════════════════

def _entries(counts: Counter) -> list[dict]:
    # sorted() is stable and Counter preserves first-encounter order
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [{"name": name, "value": count} for name, count in ranked]


def process_assignee_distribution(records: list[dict], agents: dict[Any, str]) -> list[dict]:
    counts: Counter = Counter()
    for record in records:
        counts[_resolve(agents, record.get("assignee")) or UNASSIGNED] += 1
    return _entries(counts)


def priority_label(priority: Any) -> str:
    if isinstance(priority, bool):
        return UNKNOWN_PRIORITY
    if isinstance(priority, str) and priority.isdigit():
        priority = int(priority)
    return PRIORITY_LABELS.get(priority, UNKNOWN_PRIORITY)


def process_priority_distribution(records: list[dict]) -> list[dict]:
    """Counts per priority label, ordered Very High → Very Low, Unknown last."""
    counts = Counter(priority_label(r.get("priority")) for r in records)
    ordered = sorted(counts, key=lambda label: PRIORITY_RANK.get(label, len(PRIORITY_RANK) + 1))
    return [{"name": label, "value": counts[label]} for label in ordered]


def _top_people(
    records: list[dict],
    field: str,
    directory: dict[Any, str],
    limit: int,
) -> list[dict]:
    counts: Counter = Counter()
    for record in records:
        name = _resolve(directory, record.get(field))
        if name:
            counts[name] += 1
    return _entries(counts)[:limit]


def process_top_administrators(
    records: list[dict],
    agents: dict[Any, str],
    limit: int = TOP_ADMINISTRATORS_LIMIT,
) -> list[dict]:
    """Agents with the most assigned records; unresolved ids are left out."""
    return _top_people(records, "assignee", agents, limit)


def process_top_end_users(
    records: list[dict],
    end_users: dict[Any, str],
    limit: int = TOP_END_USERS_LIMIT,
) -> list[dict]:
    """End users who raised the most records; unresolved ids are left out."""
    return _top_people(records, "requestUser", end_users, limit)


def build_overview(
    all_records: list[dict],
    status: Optional[str],
    agents: dict[Any, str],
    end_users: dict[Any, str],
) -> dict:
    """
    Assemble the analytics overview.

    Distributions and ``summary.total`` use the status-filtered records;
    ``summary.open`` / ``summary.closed`` always count the full fetch.
    """
    records = filter_by_status(all_records, status)
    closed = sum(1 for r in all_records if is_closed(r))
    return {
        "assigneeDistribution": process_assignee_distribution(records, agents),
        "priorityDistribution": process_priority_distribution(records),
        "topAdministrators": process_top_administrators(records, agents),
        "topEndUsers": process_top_end_users(records, end_users),
        "summary": {
            "total": len(records),
            "open": len(all_records) - closed,
            "closed": closed,
        },
    }


# ═══════════════════════════════════════════════════════════════════
# Weekly trend
# ═══════════════════════════════════════════════════════════════════

def _epoch_ms(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def mean_age_days(records: list[dict], now_ms: float) -> float:
    """Mean of (now − insertTime) in days, 2 dp; 0 for an empty list."""
    ages = [now_ms - t for t in (_epoch_ms(r.get("insertTime")) for r in records) if t is not None]
    if not ages:
        return 0
    return round(sum(ages) / len(ages) / DAY_MS, 2)


def percent_change(current: float, previous: float) -> float:
    """Relative change in percent, 2 dp. 0 when there is no previous value."""
    if not previous:
        return 0
    return round((current - previous) / previous * 100, 2)


def split_weeks(records: list[dict], now_ms: float) -> tuple[list[dict], list[dict]]:
    """Partition records by updateTime into (last 7 days, the 7 days before)."""
    week_ago = now_ms - 7 * DAY_MS
    two_weeks_ago = now_ms - 14 * DAY_MS
    current, previous = [], []
    for record in records:
        updated = _epoch_ms(record.get("updateTime"))
        if updated is None:
            continue
        if updated >= week_ago:
            current.append(record)
        elif updated >= two_weeks_ago:
            previous.append(record)
    return current, previous


def compute_weekly_metrics(records: list[dict], now_ms: float) -> dict:
    """Weekly KPI cards. ``records`` should already be status-filtered."""
    current_week, previous_week = split_weeks(records, now_ms)
    current_mttr = mean_age_days(current_week, now_ms)
    previous_mttr = mean_age_days(previous_week, now_ms)

    return {
        "mttr": {
            "value": current_mttr,
            "previousValue": previous_mttr,
            "change": percent_change(current_mttr, previous_mttr),
            "benchmark": MTTR_BENCHMARK,
        },
        "satisfaction": dict(PLACEHOLDER_SATISFACTION),
        "slaBreachRate": dict(PLACEHOLDER_SLA_BREACH_RATE),
        "incidentRatio": dict(PLACEHOLDER_INCIDENT_RATIO),
        "meta": {
            "currentWeekCount": len(current_week),
            "previousWeekCount": len(previous_week),
        },
    }


# ═══════════════════════════════════════════════════════════════════
# Active-ticket health
# ═══════════════════════════════════════════════════════════════════

def parse_due_date(value: Any) -> Optional[float]:
    """Due date as epoch ms. Accepts ISO strings or epoch ms; None if unparseable."""
    if not value:
        return None
    numeric = _epoch_ms(value)
    if numeric is not None:
        return numeric
    if not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp() * 1000


def _percent(part: int, whole: int) -> float:
    return (part / whole) * 100 if whole > 0 else 0


def compute_active_snapshot(records: list[dict], now_ms: float) -> dict:
    """Overdue / aging / missing-due-date shares of the non-closed records."""
    active = [r for r in records if not is_closed(r)]
    five_days_ago = now_ms - OPEN_TOO_LONG_DAYS * DAY_MS

    overdue = 0
    open_too_long = 0
    no_due_date = 0
    for record in active:
        due = record.get("dueDate")
        if not due:
            no_due_date += 1
        else:
            due_ms = parse_due_date(due)
            if due_ms is not None and due_ms < now_ms:
                overdue += 1

        inserted = _epoch_ms(record.get("insertTime"))
        if inserted is not None and inserted < five_days_ago:
            open_too_long += 1

    total = len(active)
    return {
        "totalActive": total,
        "overduePercent": _percent(overdue, total),
        "openMoreThan5Days": _percent(open_too_long, total),
        "noDueDate": _percent(no_due_date, total),
    }
