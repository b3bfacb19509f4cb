import logging
from typing import Dict, List, Optional, Tuple, Union

from . import scheduler
from .errors import DuplicateIdentifier, ProblemNotFound, ValidationError
from .db import ProblemStore
from .models import Problem, ProblemCreate, ProblemUpdate, slot_fields

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = {"name", "difficulty", "category", "link"}

# Taken by the /problems/today and /problems/week routes
RESERVED_IDENTIFIERS = {"today", "week"}


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class ReviewTracker:
    """In-memory view of the problem list, written through to a ProblemStore.

    The list is only changed after the store confirms a write, so a failed
    write leaves the tracker exactly as it was.
    """

    def __init__(self, store: ProblemStore, mode: str = "complete_only"):
        if mode not in scheduler.TOGGLE_MODES:
            raise ValidationError(f"Unknown toggle mode: {mode}")
        self.store = store
        self.mode = mode
        self.problems: List[Problem] = []

    def load(self, today: scheduler.DateLike) -> List[Problem]:
        problems = self.store.list_all()

        if self.mode == "flip":
            swept = scheduler.sweep_missed_reviews(problems, today)
            for before, after in zip(problems, swept):
                if after is before:
                    continue
                changes: Dict[str, object] = {}
                for old_slot, new_slot in zip(before.review_schedule, after.review_schedule):
                    if old_slot != new_slot:
                        changes.update(slot_fields(new_slot))
                self.store.update_fields(after.identifier, changes)
                logger.info(f"Rolled missed reviews of {after.identifier} forward to {today}")
            problems = swept

        self.problems = problems
        logger.debug(f"Loaded {len(problems)} problems")
        return problems

    def _index_of(self, identifier: str) -> int:
        for position, problem in enumerate(self.problems):
            if problem.identifier == identifier:
                return position
        raise ProblemNotFound(identifier)

    def get(self, identifier: str) -> Problem:
        return self.problems[self._index_of(identifier)]

    def add(self, data: Union[ProblemCreate, dict], today: scheduler.DateLike) -> Problem:
        if isinstance(data, dict):
            data = ProblemCreate.model_validate(data)

        identifier = _clean(data.problem_id)
        name = _clean(data.name)
        if not identifier or not name:
            raise ValidationError("Problem number and name are required")
        if identifier in RESERVED_IDENTIFIERS:
            raise ValidationError(f"Problem number cannot be {identifier!r}")
        if any(problem.identifier == identifier for problem in self.problems):
            raise DuplicateIdentifier(identifier)

        solved = scheduler.parse_date(data.solved_date if _clean(data.solved_date) else today)
        problem = Problem(
            identifier=identifier,
            name=name,
            difficulty=_clean(data.difficulty),
            category=_clean(data.category),
            link=_clean(data.link),
            solved_date=scheduler.format_date(solved),
            review_schedule=scheduler.build_schedule(solved),
        )

        stored = self.store.insert(problem)
        self.problems.append(stored)
        logger.info(f"Added problem {identifier}, first review on {stored.slot(1).due_date}")
        return stored

    def toggle(self, identifier: str, index: int, today: scheduler.DateLike) -> Problem:
        position = self._index_of(identifier)
        current = self.problems[position]
        updated = scheduler.toggle_slot(current, index, today, self.mode)
        if updated == current:
            return current

        self.store.update_fields(identifier, slot_fields(updated.slot(index)))
        self.problems[position] = updated
        logger.info(f"Review {index} of {identifier} is now {'done' if updated.slot(index).done else 'pending'}")
        return updated

    def edit(self, identifier: str, changes: Union[ProblemUpdate, dict]) -> Problem:
        if isinstance(changes, dict):
            extra = set(changes) - EDITABLE_FIELDS
            if extra:
                raise ValidationError(f"Fields cannot be edited: {sorted(extra)}")
            changes = ProblemUpdate.model_validate(changes)

        position = self._index_of(identifier)
        current = self.problems[position]

        fields = {}
        for column, value in changes.model_dump(exclude_unset=True).items():
            if column == "name":
                value = _clean(value)
                if not value:
                    raise ValidationError("Problem name cannot be empty")
            else:
                value = _clean(value)
            fields[column] = value
        if not fields:
            return current

        self.store.update_fields(identifier, fields)
        updated = current.model_copy(update=fields)
        self.problems[position] = updated
        return updated

    def delete(self, identifier: str) -> None:
        position = self._index_of(identifier)
        self.store.delete(identifier)
        del self.problems[position]

    def today_view(self, today: scheduler.DateLike) -> List[Problem]:
        return scheduler.due_today(self.problems, today)

    def week_view(self, today: scheduler.DateLike) -> List[Problem]:
        return scheduler.due_this_week(self.problems, today)

    def all_view(self, sort: str = "solved_date", query: Optional[str] = None) -> List[Problem]:
        return scheduler.sort_problems(scheduler.filter_by_name(self.problems, query), sort)

    def calendar(self, year: int, month: int) -> List[Dict[str, object]]:
        return scheduler.review_heatmap(self.problems, year, month)

    def pending_on(self, day: scheduler.DateLike) -> List[Tuple[Problem, int]]:
        key = scheduler.format_date(scheduler.parse_date(day))
        return scheduler.pending_reviews_by_date(self.problems).get(key, [])

    def completions(self) -> List[Tuple[str, int]]:
        return scheduler.completion_series(self.problems)
