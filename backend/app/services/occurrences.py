"""Occurrence resolvers: is a touchpoint due today, and under which dedup key?

Every resolver returns an `Occurrence(due, dedup_key, days_until)`. The dedup
key names one specific instance of a recurring touchpoint ("2026" for a
birthday, "christmas_2025" for a holiday, "anniversary_2025" for a policy
anniversary) and is what the idempotency ledger records.
"""
import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from dateutil.relativedelta import relativedelta

from app.core.config import settings
from app.models.client import Client, Policy
from app.services.holidays import Holiday, holiday_for

SECONDS_PER_DAY = 24 * 60 * 60

MONTHS = {
    "january": 1, "february": 2, "march": 3, "april": 4, "may": 5, "june": 6,
    "july": 7, "august": 8, "september": 9, "october": 10, "november": 11, "december": 12,
}

_ISO_DOB = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
_US_DOB = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_LONG_DOB = re.compile(
    r"^(" + "|".join(MONTHS) + r")\s+(\d{1,2}),?\s+(\d{4})$",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class Occurrence:
    due: bool
    dedup_key: str
    days_until: int = 0
    anchor: Optional[datetime] = None
    holiday: Optional[Holiday] = None


def parse_birthday(dob: Optional[str]) -> Optional[tuple[int, int]]:
    """Parse a free-text date of birth into (month, day).

    Accepts "1990-03-15", "03/15/1990" and "March 15, 1990". The first format
    that matches wins; anything else returns None.
    """
    if not dob:
        return None
    text = dob.strip()

    m = _ISO_DOB.match(text)
    if m:
        return int(m.group(2)), int(m.group(3))

    m = _US_DOB.match(text)
    if m:
        return int(m.group(1)), int(m.group(2))

    m = _LONG_DOB.match(text)
    if m:
        return MONTHS[m.group(1).lower()], int(m.group(2))

    return None


def days_until(target: datetime, now: datetime) -> int:
    return math.ceil((target - now).total_seconds() / SECONDS_PER_DAY)


def next_anniversary(created_at: datetime, now: datetime) -> datetime:
    """First whole-year anniversary of `created_at` that is not before `now`.

    Uses relativedelta so a Feb 29 policy anniversaries on Feb 28 in
    non-leap years.
    """
    years = max(1, now.year - created_at.year)
    anchor = created_at + relativedelta(years=years)
    while anchor < now:
        years += 1
        anchor = created_at + relativedelta(years=years)
    return anchor


def anniversary_key(year: int) -> str:
    return f"anniversary_{year}"


class BirthdayResolver:
    kind = "birthday"

    def resolve(self, client: Client, now: datetime) -> Occurrence:
        key = str(now.year)
        parsed = parse_birthday(client.date_of_birth)
        if not parsed:
            return Occurrence(due=False, dedup_key=key, days_until=-1)

        month, day = parsed
        if (month, day) == (now.month, now.day):
            return Occurrence(due=True, dedup_key=key, days_until=0)
        return Occurrence(due=False, dedup_key=key, days_until=_days_to_month_day(now.date(), month, day))


def _days_to_month_day(today: date, month: int, day: int) -> int:
    # Feb 29 birthdays and impossible dates (4/31) look a few years ahead
    for year in range(today.year, today.year + 9):
        try:
            candidate = date(year, month, day)
        except ValueError:
            continue
        if candidate >= today:
            return (candidate - today).days
    return -1


class HolidayResolver:
    kind = "holiday"

    def resolve(self, client: Client, now: datetime) -> Occurrence:
        holiday = holiday_for(now.date())
        if not holiday:
            return Occurrence(due=False, dedup_key="", days_until=-1)
        return Occurrence(
            due=True,
            dedup_key=f"{holiday.id}_{now.year}",
            days_until=0,
            holiday=holiday,
        )


class AnniversaryResolver:
    kind = "anniversary"

    def __init__(self, window_days: Optional[int] = None):
        self.window_days = settings.ANNIVERSARY_WINDOW_DAYS if window_days is None else window_days

    def resolve(self, policy: Policy, now: datetime) -> Occurrence:
        if not policy.created_at:
            return Occurrence(due=False, dedup_key="", days_until=-1)

        anchor = next_anniversary(policy.created_at, now)
        remaining = days_until(anchor, now)
        return Occurrence(
            due=0 <= remaining <= self.window_days,
            dedup_key=anniversary_key(anchor.year),
            days_until=remaining,
            anchor=anchor,
        )
