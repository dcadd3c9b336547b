"""Schedule matching — pure business logic.

Normalizes free-text recurrence expressions ("every Monday and Friday")
into the canonical lowercase form and decides whether an expression is due
on a given calendar date.

No I/O: this module only transforms data.
"""

from __future__ import annotations

from datetime import date

# Indexed Sunday=0 .. Saturday=6
WEEKDAY_TOKENS = ("sun", "mon", "tue", "wed", "thu", "fri", "sat")

_FULL_DAY_NAMES = {
    "monday": "mon",
    "tuesday": "tue",
    "wednesday": "wed",
    "thursday": "thu",
    "friday": "fri",
    "saturday": "sat",
    "sunday": "sun",
}

EVERY_DAY = "every day"
EVERY_WEEKDAY = "every weekday"
_EVERY_PREFIX = "every "


def normalize_schedule(raw: str) -> str:
    """Lowercase and abbreviate full weekday names to 3-letter tokens.

    Plain substring substitution; whitespace and separators are left as
    given. None of the seven names contains another, so order is irrelevant.
    """
    normalized = raw.lower()
    for name, token in _FULL_DAY_NAMES.items():
        normalized = normalized.replace(name, token)
    return normalized


def weekday_token(day: date) -> str:
    """Return the 3-letter token for a date's weekday ("mon" for a Monday)."""
    return WEEKDAY_TOKENS[day.isoweekday() % 7]


def is_due(schedule: str, day: date) -> bool:
    """Decide whether a schedule expression fires on the given date.

    First match wins:
      1. "every day"      -> always
      2. "every weekday"  -> Monday to Friday
      3. "every ..."      -> today's token appears anywhere in the text
      4. bare token       -> equals today's token
      5. anything else    -> never

    Step 3 is a loose containment check: "every mon/wed" and
    "every thu-ish" both match on their days.
    """
    normalized = normalize_schedule(schedule)
    today = weekday_token(day)

    if normalized == EVERY_DAY:
        return True
    if normalized == EVERY_WEEKDAY:
        return 1 <= day.isoweekday() <= 5
    if normalized.startswith(_EVERY_PREFIX):
        return today in normalized
    if normalized in WEEKDAY_TOKENS:
        return normalized == today
    return False


def is_recognized(schedule: str) -> bool:
    """True if the expression can fire on at least one day of the week."""
    normalized = normalize_schedule(schedule)
    if normalized in (EVERY_DAY, EVERY_WEEKDAY) or normalized in WEEKDAY_TOKENS:
        return True
    if normalized.startswith(_EVERY_PREFIX):
        return any(token in normalized for token in WEEKDAY_TOKENS)
    return False
