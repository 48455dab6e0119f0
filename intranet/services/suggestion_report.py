"""Suggestion box analytics for the admin report and the CSV export."""

from __future__ import annotations

import csv
import io
import math
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timedelta

from ..models import Suggestion, SuggestionCategory
from ..shared.constants import (
    SUGGESTION_CATEGORY_COLORS,
    SUGGESTION_STATUS_COLORS,
    SUGGESTION_STATUS_LABELS,
    SUGGESTION_STATUSES,
)
from ..shared.time import end_of_day, fmt_date, parse_date, start_of_day, utcnow

DEFAULT_RANGE_DAYS = 30
RANGE_CHOICES = (("7", "7 Days"), ("30", "30 Days"), ("90", "90 Days"), ("365", "1 Year"))
EXPORT_HEADERS = [
    "Date",
    "Category",
    "Status",
    "Content",
    "Admin Notes",
    "Reviewed By",
    "Reviewed At",
]
FALLBACK_STATUS_COLOR = "#6b7280"


@dataclass
class ReportFilters:
    start: datetime
    end: datetime
    category_id: int | None = None
    status: str | None = None

    @property
    def range_days(self) -> int:
        seconds = (self.end - self.start).total_seconds()
        return max(1, math.ceil(seconds / 86400))


def round_half_up(value: float) -> float:
    """One decimal place, halves rounded up (``round`` would go to even)."""
    return math.floor(value * 10 + 0.5) / 10


def build_filters(args, now: datetime | None = None) -> ReportFilters:
    """Read ``range``/``start``/``end``/``category``/``status`` query args.

    A custom range covers whole days, the end date inclusive.
    """

    now = now or utcnow()
    range_key = (args.get("range") or str(DEFAULT_RANGE_DAYS)).strip()
    if range_key == "custom":
        start_d = parse_date(args.get("start"))
        end_d = parse_date(args.get("end"))
        start = start_of_day(start_d) if start_d else now - timedelta(days=DEFAULT_RANGE_DAYS)
        end = end_of_day(end_d) if end_d else now
    else:
        try:
            days = int(range_key)
        except ValueError:
            days = DEFAULT_RANGE_DAYS
        if days <= 0:
            days = DEFAULT_RANGE_DAYS
        start = now - timedelta(days=days)
        end = now
    if start > end:
        start, end = end, start

    category_id = None
    raw_category = (args.get("category") or "").strip()
    if raw_category.isdigit():
        category_id = int(raw_category)
    status = (args.get("status") or "").strip()
    return ReportFilters(
        start=start,
        end=end,
        category_id=category_id,
        status=status if status in SUGGESTION_STATUSES else None,
    )


def _filtered(filters: ReportFilters):
    query = Suggestion.query.filter(
        Suggestion.created_at >= filters.start, Suggestion.created_at <= filters.end
    )
    if filters.category_id:
        query = query.filter(Suggestion.category_id == filters.category_id)
    if filters.status:
        query = query.filter(Suggestion.status == filters.status)
    return query


def get_report_stats(filters: ReportFilters) -> dict:
    rows = _filtered(filters).all()
    total = len(rows)

    per_day = Counter(row.created_at.date().isoformat() for row in rows)
    peak_day = None
    if per_day:
        # earliest day wins a tie
        day, count = sorted(per_day.items(), key=lambda kv: (-kv[1], kv[0]))[0]
        peak_day = {"date": day, "count": count}

    resolution_hours = [
        (row.reviewed_at - row.created_at).total_seconds() / 3600
        for row in rows
        if row.status == "resolved" and row.reviewed_at is not None
    ]
    avg_resolution = None
    if resolution_hours:
        avg_resolution = round_half_up(sum(resolution_hours) / len(resolution_hours))

    return {
        "total": total,
        "avg_per_day": round_half_up(total / filters.range_days),
        "peak_day": peak_day,
        "avg_resolution_hours": avg_resolution,
        "by_status": dict(Counter(row.status for row in rows)),
    }


def get_category_breakdown(filters: ReportFilters) -> list[dict]:
    counts = Counter(row.category_id for row in _filtered(filters).all())
    names = {}
    ids = [cid for cid in counts if cid is not None]
    if ids:
        names = {
            cat.id: cat.name
            for cat in SuggestionCategory.query.filter(SuggestionCategory.id.in_(ids))
        }
    items = [
        {"name": names.get(cid, "Uncategorized"), "value": value}
        for cid, value in counts.items()
    ]
    items.sort(key=lambda item: item["value"], reverse=True)
    for index, item in enumerate(items):
        item["color"] = SUGGESTION_CATEGORY_COLORS[index % len(SUGGESTION_CATEGORY_COLORS)]
    return items


def get_status_breakdown(filters: ReportFilters) -> list[dict]:
    counts = Counter(row.status for row in _filtered(filters).all())
    return [
        {
            "status": status,
            "label": SUGGESTION_STATUS_LABELS.get(status, status),
            "value": counts[status],
            "color": SUGGESTION_STATUS_COLORS.get(status, FALLBACK_STATUS_COLOR),
        }
        for status in sorted(counts)
    ]


def get_timeline(filters: ReportFilters) -> list[dict]:
    counts = Counter(row.created_at.date() for row in _filtered(filters).all())
    timeline = []
    day = filters.start.date()
    last = filters.end.date()
    while day <= last:
        timeline.append({"day": day.isoformat(), "count": counts.get(day, 0)})
        day += timedelta(days=1)
    return timeline


def get_suggestions_for_export(filters: ReportFilters) -> list[dict]:
    rows = _filtered(filters).order_by(Suggestion.created_at.desc(), Suggestion.id.desc())
    return [
        {
            "date": row.created_at.date().isoformat(),
            "category": row.category.name if row.category else "N/A",
            "status": SUGGESTION_STATUS_LABELS.get(row.status, row.status),
            "content": row.content,
            "admin_notes": row.admin_notes or "",
            "reviewed_by": row.reviewed_by.name if row.reviewed_by else "",
            "reviewed_at": row.reviewed_at.date().isoformat() if row.reviewed_at else "",
        }
        for row in rows
    ]


def export_csv(filters: ReportFilters) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(EXPORT_HEADERS)
    for row in get_suggestions_for_export(filters):
        writer.writerow(
            [
                row["date"],
                row["category"],
                row["status"],
                row["content"],
                row["admin_notes"],
                row["reviewed_by"],
                row["reviewed_at"],
            ]
        )
    return buf.getvalue()


def export_filename(filters: ReportFilters) -> str:
    return (
        f"suggestions_{filters.start.date().isoformat()}_to_{filters.end.date().isoformat()}.csv"
    )


def describe_range(filters: ReportFilters) -> str:
    return f"{fmt_date(filters.start)} to {fmt_date(filters.end)}"
