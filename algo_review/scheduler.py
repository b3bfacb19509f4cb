"""Review scheduling and due-state computations.

Every function here is pure: the reference date is always passed in, nothing
reads the wall clock and nothing touches storage. Dates travel as zero-padded
``YYYY-MM-DD`` strings, so plain string comparison orders them correctly.
"""
import calendar
from collections import Counter, defaultdict
from datetime import MAXYEAR, MINYEAR, date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple, Union

from .errors import InvalidDate, ValidationError
from .models import REVIEW_COUNT, Problem, ReviewSlot

DATE_FORMAT = "%Y-%m-%d"

# Days between successive reviews; cumulative offsets are 1, 3, 7, 14, 28
REVIEW_GAPS = (1, 2, 4, 7, 14)

TOGGLE_MODES = ("complete_only", "flip")

DIFFICULTY_PRIORITY = ["Easy", "Medium", "Hard"]

# Calendar heat-map buckets, checked from the top
HEAT_LEVELS = [
    (10, "high"),
    (5, "medium"),
    (1, "low"),
]

DateLike = Union[str, date, datetime]


def format_date(value: date) -> str:
    # strftime("%Y") does not pad years below 1000 on every platform
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def parse_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise InvalidDate(value)
    text = value.strip()
    try:
        return datetime.strptime(text, DATE_FORMAT).date()
    except ValueError:
        pass
    # Full ISO timestamps are accepted; the time of day is dropped
    try:
        return datetime.fromisoformat(text).date()
    except ValueError as exc:
        raise InvalidDate(value) from exc


def _date_key(value: DateLike) -> str:
    return format_date(parse_date(value))


def compute_review_dates(solved_date: DateLike) -> List[str]:
    current = parse_date(solved_date)
    due_dates = []
    for gap in REVIEW_GAPS:
        current = current + timedelta(days=gap)
        due_dates.append(format_date(current))
    return due_dates


def build_schedule(solved_date: DateLike) -> List[ReviewSlot]:
    return [
        ReviewSlot(index=index, due_date=due_date, done=False)
        for index, due_date in enumerate(compute_review_dates(solved_date), start=1)
    ]


def is_slot_due(slot: ReviewSlot, today: DateLike) -> bool:
    return not slot.done and slot.due_date <= _date_key(today)


def is_due(problem: Problem, today: DateLike) -> bool:
    today_key = _date_key(today)
    return any(not slot.done and slot.due_date <= today_key for slot in problem.review_schedule)


# Overdue and due today share one bucket: a missed review stays listed until done
def due_today(problems: Iterable[Problem], today: DateLike) -> List[Problem]:
    today_key = _date_key(today)
    return [problem for problem in problems if is_due(problem, today_key)]


def week_range(today: DateLike) -> Tuple[str, str]:
    """Sunday..Saturday bounds of the week containing ``today``."""
    current = parse_date(today)
    # date.weekday() counts from Monday; shift so Sunday is day 0
    sunday = current - timedelta(days=(current.weekday() + 1) % 7)
    saturday = sunday + timedelta(days=6)
    return format_date(sunday), format_date(saturday)


# Keyed by solved_date: this is the list of problems solved this week
def due_this_week(problems: Iterable[Problem], today: DateLike) -> List[Problem]:
    sunday, saturday = week_range(today)
    return [problem for problem in problems if sunday <= problem.solved_date <= saturday]


def toggle_slot(
    problem: Problem,
    index: int,
    today: DateLike,
    mode: str = "complete_only",
) -> Problem:
    if mode not in TOGGLE_MODES:
        raise ValidationError(f"Unknown toggle mode: {mode}")
    if not 1 <= index <= REVIEW_COUNT:
        raise ValidationError(f"Review index must be between 1 and {REVIEW_COUNT}, got {index}")

    updated = problem.model_copy(deep=True)
    slot = updated.slot(index)

    if mode == "complete_only":
        slot.done = True
        return updated

    if slot.done:
        # Un-completing keeps the recorded completion date
        slot.done = False
    else:
        slot.done = True
        slot.due_date = _date_key(today)
    return updated


def sweep_missed_reviews(problems: Iterable[Problem], today: DateLike) -> List[Problem]:
    today_key = _date_key(today)
    swept = []
    for problem in problems:
        stale = [slot.index for slot in problem.review_schedule if not slot.done and slot.due_date < today_key]
        if not stale:
            swept.append(problem)
            continue
        updated = problem.model_copy(deep=True)
        for index in stale:
            updated.slot(index).due_date = today_key
        swept.append(updated)
    return swept


def _difficulty_key(problem: Problem) -> Tuple[int, int, str]:
    label = (problem.difficulty or "").strip()
    if not label:
        return (2, 0, "")
    for rank, known in enumerate(DIFFICULTY_PRIORITY):
        if label.lower() == known.lower():
            return (0, rank, "")
    return (1, 0, label.lower())


def _identifier_key(problem: Problem) -> Tuple[int, int, str]:
    # isdecimal() rejects superscripts and other digits int() cannot parse
    if problem.identifier.isdecimal():
        return (0, int(problem.identifier), "")
    return (1, 0, problem.identifier)


SORT_KEYS = {
    "solved_date": lambda problem: problem.solved_date,
    "difficulty": _difficulty_key,
    "identifier": _identifier_key,
}


def sort_problems(problems: Iterable[Problem], key: str = "solved_date") -> List[Problem]:
    if key not in SORT_KEYS:
        raise ValidationError(f"Unknown sort key: {key}. Valid keys: {list(SORT_KEYS)}")
    # sorted() is stable, so ties keep their original order
    return sorted(problems, key=SORT_KEYS[key])


def filter_by_name(problems: Iterable[Problem], query: Optional[str]) -> List[Problem]:
    if not query:
        return list(problems)
    needle = query.casefold()
    return [problem for problem in problems if needle in problem.name.casefold()]


def pending_reviews_by_date(problems: Iterable[Problem]) -> Dict[str, List[Tuple[Problem, int]]]:
    pending: Dict[str, List[Tuple[Problem, int]]] = defaultdict(list)
    for problem in problems:
        for slot in problem.review_schedule:
            if not slot.done:
                pending[slot.due_date].append((problem, slot.index))
    return dict(pending)


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    if not 1 <= month <= 12:
        raise ValidationError(f"Month must be between 1 and 12, got {month}")
    if not MINYEAR <= year <= MAXYEAR:
        raise ValidationError(f"Year must be between {MINYEAR} and {MAXYEAR}, got {year}")
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def heat_level(count: int) -> str:
    for threshold, level in HEAT_LEVELS:
        if count >= threshold:
            return level
    return "none"


def review_heatmap(problems: Iterable[Problem], year: int, month: int) -> List[Dict[str, object]]:
    start, end = month_bounds(year, month)
    counts = Counter(
        slot.due_date
        for problem in problems
        for slot in problem.review_schedule
        if not slot.done
    )

    cells = []
    for offset in range(end.day):
        key = format_date(start + timedelta(days=offset))
        count = counts.get(key, 0)
        cells.append({"date": key, "count": count, "level": heat_level(count)})
    return cells


def completion_series(problems: Iterable[Problem]) -> List[Tuple[str, int]]:
    counts = Counter(
        slot.due_date
        for problem in problems
        for slot in problem.review_schedule
        if slot.done
    )
    return sorted(counts.items())
