"""Date parsing for dates printed on identity documents."""

from datetime import date, datetime
from typing import Any

DOCUMENT_DATE_FORMATS = ("%d/%m/%Y", "%d.%m.%Y", "%d-%m-%Y")


def parse_document_date(value: Any) -> date | None:
    """Parse an ISO date/datetime or a day-first document date.

    Returns None for anything that is not a recognizable date string.
    """
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    for fmt in DOCUMENT_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None
