"""Date parsing for NYC Open Data records.

The Socrata datasets are inconsistent about date formats:
- DOB violations:  "20230512"                  (YYYYMMDD)
- ECB / HPD:       "2023-05-12T00:00:00.000"   (ISO floating timestamp)
- DOB permits:     "05/12/2023"                (MM/DD/YYYY)
"""

from datetime import date, datetime, timezone

_FORMATS = (
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d",
    "%Y%m%d",
    "%m/%d/%Y",
    "%m/%d/%Y %H:%M:%S",
)


def parse_date(value: str | None) -> date | None:
    """
    Parse an NYC Open Data date string.

    Returns None for empty or unparsable values instead of raising.

    Examples:
        "20230512" -> date(2023, 5, 12)
        "2023-05-12T00:00:00.000" -> date(2023, 5, 12)
        "05/12/2023" -> date(2023, 5, 12)
        "N/A" -> None
    """
    if not value:
        return None
    text = value.strip()
    if not text:
        return None

    for fmt in _FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    # ISO strings with timezone offsets ("2023-05-12T00:00:00+00:00")
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None


def today_utc() -> date:
    return datetime.now(timezone.utc).date()


def age_in_days(value: date | None, as_of: date) -> int | None:
    """Days elapsed between *value* and *as_of*. Future dates count as age 0."""
    if value is None:
        return None
    return max(0, (as_of - value).days)
