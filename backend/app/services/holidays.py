"""US holiday calendar for automated holiday cards.

Each holiday carries the greeting sent to clients. `{first_name}` and
`{agent_signature}` are filled in per client.
"""
from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional


@dataclass(frozen=True)
class Holiday:
    id: str  # used in dedup keys and push data
    name: str
    greeting: str
    matches: Callable[[date], bool]

    def render_greeting(self, first_name: str, agent_signature: str) -> str:
        return self.greeting.format(first_name=first_name, agent_signature=agent_signature)


def _fixed(month: int, day: int) -> Callable[[date], bool]:
    return lambda d: d.month == month and d.day == day


def _is_thanksgiving(d: date) -> bool:
    # 4th Thursday of November always falls on the 22nd-28th
    return d.month == 11 and d.weekday() == 3 and 22 <= d.day <= 28


US_HOLIDAYS = [
    Holiday(
        id="newyear",
        name="New Year's Day",
        greeting=(
            "Happy New Year, {first_name}! Here's to a fresh start and a year full of good things. "
            "I'm honored to be the one looking out for you and your family. Let's make this year "
            "a great one. - {agent_signature}"
        ),
        matches=_fixed(1, 1),
    ),
    Holiday(
        id="valentines",
        name="Valentine's Day",
        greeting=(
            "Happy Valentine's Day, {first_name}! Today is all about the people who matter most, "
            "and protecting the ones you love is something I never take lightly. Enjoy every "
            "moment with your loved ones today. - {agent_signature}"
        ),
        matches=_fixed(2, 14),
    ),
    Holiday(
        id="july4th",
        name="Independence Day",
        greeting=(
            "Happy 4th of July, {first_name}! Wishing you a day full of good food, great company "
            "and maybe a few fireworks. Enjoy the celebration. You and your family deserve it. "
            "- {agent_signature}"
        ),
        matches=_fixed(7, 4),
    ),
    Holiday(
        id="thanksgiving",
        name="Thanksgiving",
        greeting=(
            "Happy Thanksgiving, {first_name}! I'm grateful for the trust you place in me to "
            "protect what matters most to your family. I hope your table is full and your heart "
            "is fuller. - {agent_signature}"
        ),
        matches=_is_thanksgiving,
    ),
    Holiday(
        id="christmas",
        name="Christmas",
        greeting=(
            "Merry Christmas, {first_name}! Wishing you and your family a season full of warmth, "
            "joy and time together. It's a privilege to be your agent. - {agent_signature}"
        ),
        matches=_fixed(12, 25),
    ),
]

HOLIDAYS_BY_ID = {h.id: h for h in US_HOLIDAYS}


def holiday_for(d: date) -> Optional[Holiday]:
    """Return the recognized holiday falling on `d`, or None."""
    for holiday in US_HOLIDAYS:
        if holiday.matches(d):
            return holiday
    return None
