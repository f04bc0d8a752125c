"""Free-text task input parser.

Turns "Call mom tomorrow !high" into a clean title, an optional schedule time
and an importance. Pure: no I/O, no state.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Callable, Sequence

from .tasks import Importance

logger = logging.getLogger(__name__)

# (text, now) -> [(matched substring, datetime), ...] in order of appearance
DateRecognizer = Callable[[str, datetime], list[tuple[str, datetime]]]

_HIGH = re.compile(r"(?<!\w)!high\b|(?<![\w!])(?:urgent|high)\b", re.IGNORECASE)
_LOW = re.compile(r"(?<!\w)!low\b|(?<![\w!])low\b", re.IGNORECASE)

_WEEKDAYS = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
}
_DAY_WORD = re.compile(
    r"\b(today|tomorrow|" + "|".join(_WEEKDAYS) + r")\b",
    re.IGNORECASE,
)

# Single words a recognizer may claim on its own; "May review" or "Sun screen" stay titles
_STANDALONE_DATE_WORDS = {"today", "tomorrow", "tonight", *_WEEKDAYS}


@dataclass(frozen=True)
class ParsedInput:
    """Structured draft produced from raw input."""

    clean_title: str
    when: datetime | None = None
    importance: Importance = Importance.NORMAL


def dateparser_recognizer(languages: Sequence[str] = ("en",)) -> DateRecognizer:
    """
    Build a recognizer backed by dateparser's free-text search.

    Matches that name a day but no time of day ("tomorrow", "next friday")
    resolve to the start of that day rather than the current clock time.
    """

    def recognize(text: str, now: datetime) -> list[tuple[str, datetime]]:
        from dateparser import DateDataParser
        from dateparser.search import search_dates

        settings = {
            "RELATIVE_BASE": now,
            "PREFER_DATES_FROM": "future",
            "RETURN_AS_TIMEZONE_AWARE": False,
        }
        found = search_dates(text, languages=list(languages), settings=settings) or []
        if not found:
            return []

        periods = DateDataParser(
            languages=list(languages),
            settings={**settings, "RETURN_TIME_AS_PERIOD": True},
        )
        results = []
        for matched, when in found:
            if periods.get_date_data(matched).period in ("day", "week", "month", "year"):
                when = _start_of_day(when)
            results.append((matched, when))
        return results

    return recognize


def _collapse(text: str) -> str:
    return " ".join(text.split())


def extract_importance(text: str) -> tuple[Importance, str]:
    """Return (importance, text with the matched tokens removed)."""
    if _HIGH.search(text):
        return Importance.HIGH, _HIGH.sub(" ", text)
    if _LOW.search(text):
        return Importance.LOW, _LOW.sub(" ", text)
    return Importance.NORMAL, text


def _start_of_day(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), time.min)


def extract_day_word(text: str, now: datetime) -> tuple[datetime | None, str]:
    """Fallback for today/tomorrow/weekday names when the recognizer finds nothing."""
    match = _DAY_WORD.search(text)
    if not match:
        return None, text

    word = match.group(1).lower()
    today = _start_of_day(now)
    if word == "today":
        when = today
    elif word == "tomorrow":
        when = today + timedelta(days=1)
    else:
        # Next future occurrence; the same weekday means a week from now
        days_ahead = (_WEEKDAYS[word] - now.weekday()) % 7 or 7
        when = today + timedelta(days=days_ahead)

    return when, text[: match.start()] + " " + text[match.end() :]


def _recognize(recognizer: DateRecognizer, text: str, now: datetime) -> tuple[datetime | None, str]:
    if not text.strip():
        return None, text
    try:
        matches = recognizer(text, now)
    except Exception as e:
        logger.debug(f"Date recognizer failed on {text!r}: {e}")
        return None, text

    for matched, when in matches:
        if _names_a_date(matched):
            return when, text.replace(matched, " ", 1)
    return None, text


def _names_a_date(matched: str) -> bool:
    """A lone word ("May", "March", "Sun") only counts if it is a day word."""
    words = matched.split()
    if len(words) != 1 or not matched.strip().isalpha():
        return True
    return words[0].lower() in _STANDALONE_DATE_WORDS


_DEFAULT_RECOGNIZER = dateparser_recognizer()


def parse(text: str, now: datetime | None = None, recognizer: DateRecognizer | None = None) -> ParsedInput:
    """
    Parse raw task input.

    Steps: importance tokens, then the date recognizer, then the
    today/tomorrow/weekday fallback. The title never comes back empty
    unless the input itself was blank.
    """
    now = now or datetime.now()
    recognizer = recognizer or _DEFAULT_RECOGNIZER

    importance, working = extract_importance(text)

    when, working = _recognize(recognizer, working, now)
    if when is None:
        when, working = extract_day_word(working, now)

    clean_title = _collapse(working) or _collapse(text)
    return ParsedInput(clean_title=clean_title, when=when, importance=importance)
