from datetime import date as dt_date, datetime, timedelta, timezone


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def today() -> dt_date:
    return dt_date.today()


def today_iso() -> str:
    return today().isoformat()


def days_ago_iso(days: int, *, base: dt_date | None = None) -> str:
    return ((base or today()) - timedelta(days=days)).isoformat()


def start_of_week(d: dt_date) -> dt_date:
    # Weeks start on Sunday
    return d - timedelta(days=(d.weekday() + 1) % 7)


def month_range(current: dt_date | None = None) -> tuple[str, str]:
    current = current or today()
    month_start = dt_date(current.year, current.month, 1)
    if current.month == 12:
        next_month_start = dt_date(current.year + 1, 1, 1)
    else:
        next_month_start = dt_date(current.year, current.month + 1, 1)
    month_end = next_month_start - timedelta(days=1)
    return month_start.isoformat(), month_end.isoformat()


def format_long(value: str) -> str:
    """Render an ISO date or timestamp as e.g. ``October 19, 2026``."""
    parsed = datetime.fromisoformat(value)
    return f"{parsed:%B} {parsed.day}, {parsed.year}"


def format_medium(value: str) -> str:
    parsed = datetime.fromisoformat(value)
    return f"{parsed:%b} {parsed.day}, {parsed.year}"


def relative_date(date_str: str, *, base: dt_date | None = None) -> str:
    current = base or today()
    if date_str == current.isoformat():
        return "Today"
    if date_str == (current - timedelta(days=1)).isoformat():
        return "Yesterday"
    return format_medium(date_str)
