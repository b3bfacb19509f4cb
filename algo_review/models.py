from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field as PydanticField, field_validator
from sqlmodel import Field, SQLModel

REVIEW_COUNT = 5

# Flat column names for each review slot, indexed by slot number
SLOT_COLUMNS: Dict[int, Tuple[str, str]] = {
    1: ("review1_date", "review1_done"),
    2: ("review2_date", "review2_done"),
    3: ("review3_date", "review3_done"),
    4: ("review4_date", "review4_done"),
    5: ("review5_date", "review5_done"),
}


class ProblemRecord(SQLModel, table=True):
    __tablename__ = "problem"

    id: Optional[int] = Field(default=None, primary_key=True)
    problem_id: str = Field(unique=True, index=True)
    name: str
    difficulty: Optional[str] = None
    category: Optional[str] = None
    link: Optional[str] = None
    solved_date: str
    review1_date: str
    review2_date: str
    review3_date: str
    review4_date: str
    review5_date: str
    review1_done: bool = Field(default=False)
    review2_done: bool = Field(default=False)
    review3_done: bool = Field(default=False)
    review4_done: bool = Field(default=False)
    review5_done: bool = Field(default=False)


class ReviewSlot(BaseModel):
    index: int = PydanticField(ge=1, le=REVIEW_COUNT)
    due_date: str
    done: bool = False


class Problem(BaseModel):
    identifier: str
    name: str
    difficulty: Optional[str] = None
    category: Optional[str] = None
    link: Optional[str] = None
    solved_date: str
    review_schedule: List[ReviewSlot]

    @field_validator("identifier", mode="before")
    @classmethod
    def _identifier_as_text(cls, value):
        # Numeric identifiers (e.g. problem numbers) are kept as text
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("review_schedule")
    @classmethod
    def _five_ordered_slots(cls, slots: List[ReviewSlot]) -> List[ReviewSlot]:
        if [slot.index for slot in slots] != list(range(1, REVIEW_COUNT + 1)):
            raise ValueError(f"review_schedule must hold slots 1..{REVIEW_COUNT} in order")
        return slots

    def slot(self, index: int) -> ReviewSlot:
        return self.review_schedule[index - 1]


class ProblemCreate(BaseModel):
    problem_id: Optional[str] = None
    name: Optional[str] = None
    difficulty: Optional[str] = None
    category: Optional[str] = None
    link: Optional[str] = None
    solved_date: Optional[str] = None

    @field_validator("problem_id", mode="before")
    @classmethod
    def _problem_id_as_text(cls, value):
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class ProblemUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    difficulty: Optional[str] = None
    category: Optional[str] = None
    link: Optional[str] = None


class CalendarCell(BaseModel):
    date: str
    count: int
    level: str


class PendingReview(BaseModel):
    identifier: str
    name: str
    link: Optional[str] = None
    step: int


class CompletionPoint(BaseModel):
    date: str
    count: int


def slot_fields(slot: ReviewSlot) -> Dict[str, object]:
    """Flat column values for a single review slot."""
    date_column, done_column = SLOT_COLUMNS[slot.index]
    return {date_column: slot.due_date, done_column: slot.done}


def to_record(problem: Problem) -> ProblemRecord:
    first, second, third, fourth, fifth = problem.review_schedule
    return ProblemRecord(
        problem_id=problem.identifier,
        name=problem.name,
        difficulty=problem.difficulty,
        category=problem.category,
        link=problem.link,
        solved_date=problem.solved_date,
        review1_date=first.due_date,
        review1_done=first.done,
        review2_date=second.due_date,
        review2_done=second.done,
        review3_date=third.due_date,
        review3_done=third.done,
        review4_date=fourth.due_date,
        review4_done=fourth.done,
        review5_date=fifth.due_date,
        review5_done=fifth.done,
    )


def from_record(record: ProblemRecord) -> Problem:
    return Problem(
        identifier=record.problem_id,
        name=record.name,
        difficulty=record.difficulty,
        category=record.category,
        link=record.link,
        solved_date=record.solved_date,
        review_schedule=[
            ReviewSlot(index=1, due_date=record.review1_date, done=record.review1_done),
            ReviewSlot(index=2, due_date=record.review2_date, done=record.review2_done),
            ReviewSlot(index=3, due_date=record.review3_date, done=record.review3_done),
            ReviewSlot(index=4, due_date=record.review4_date, done=record.review4_done),
            ReviewSlot(index=5, due_date=record.review5_date, done=record.review5_done),
        ],
    )
