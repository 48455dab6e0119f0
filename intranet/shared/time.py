from datetime import datetime, date, time, timedelta, timezone


def now_utc() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def utcnow() -> datetime:
    """Naive UTC now, matching how DateTime columns are stored."""
    return now_utc().replace(tzinfo=None)


def as_naive_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def fmt_dt(value: datetime | date | None) -> str:
    """Format datetimes without seconds; dates use D MMM YYYY."""
    if not value:
        return ""
    if isinstance(value, datetime):
        return value.strftime("%-d %b %Y %H:%M")
    if isinstance(value, date):
        return value.strftime("%-d %b %Y")
    return str(value)


def fmt_date(value: datetime | date | None) -> str:
    if not value:
        return ""
    if isinstance(value, datetime):
        value = value.date()
    return value.strftime("%-d %b %Y")


def time_ago(value: datetime | None) -> str:
    if not value:
        return ""
    delta = utcnow() - as_naive_utc(value)
    seconds = int(delta.total_seconds())
    if seconds < 60:
        return "just now"
    if seconds < 3600:
        return f"{seconds // 60}m ago"
    if seconds < 86400:
        return f"{seconds // 3600}h ago"
    if seconds < 7 * 86400:
        return f"{seconds // 86400}d ago"
    return fmt_date(value)


def parse_date(raw: str | None) -> date | None:
    """Parse YYYY-MM-DD form input; blank or invalid yields None."""
    raw = (raw or "").strip()
    if not raw:
        return None
    try:
        return date.fromisoformat(raw[:10])
    except ValueError:
        return None


def parse_datetime(raw: str | None) -> datetime | None:
    """Parse ``datetime-local`` or ISO input into a naive datetime."""
    raw = (raw or "").strip()
    if not raw:
        return None
    try:
        return as_naive_utc(datetime.fromisoformat(raw))
    except ValueError:
        parsed = parse_date(raw)
        return datetime.combine(parsed, time(0, 0)) if parsed else None


def start_of_day(value: date) -> datetime:
    return datetime.combine(value, time(0, 0))


def end_of_day(value: date) -> datetime:
    return datetime.combine(value, time(0, 0)) + timedelta(days=1) - timedelta(microseconds=1)
