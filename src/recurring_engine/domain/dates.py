from datetime import date, datetime


def parse_date(value: object) -> date | None:
    """Return the calendar date of ``value``, or ``None`` when it cannot be read."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def days_between(earlier: date, later: date) -> int:
    return abs((later - earlier).days)
