from contextlib import asynccontextmanager
from datetime import date
from typing import List, Optional

from fastapi import Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import db
from .config import Settings, get_settings
from .errors import DuplicateIdentifier, ProblemNotFound, ReviewError, StoreError, ValidationError
from .logging_config import configure_logging
from .models import (
    CalendarCell,
    CompletionPoint,
    PendingReview,
    Problem,
    ProblemCreate,
    ProblemUpdate,
)
from .tracker import ReviewTracker

settings = get_settings()
configure_logging(settings.log_level)
engine = db.build_engine(settings.database_url, echo=settings.echo_sql)


@asynccontextmanager
async def lifespan(app: FastAPI):
    db.create_db_and_tables(engine)
    yield


app = FastAPI(title="AlgoReview", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

ERROR_STATUS = [
    (DuplicateIdentifier, 409),
    (ProblemNotFound, 404),
    (ValidationError, 422),
    (StoreError, 503),
]


@app.exception_handler(ReviewError)
async def review_error_handler(request: Request, exc: ReviewError):
    status_code = next((code for kind, code in ERROR_STATUS if isinstance(exc, kind)), 400)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


def get_store() -> db.ProblemStore:
    return db.ProblemStore(engine)


# "today" is resolved per request so long-running servers roll over at midnight
def get_today() -> date:
    return date.today()


def get_tracker(
    store: db.ProblemStore = Depends(get_store),
    today: date = Depends(get_today),
    config: Settings = Depends(get_settings),
) -> ReviewTracker:
    tracker = ReviewTracker(store, mode=config.toggle_mode)
    tracker.load(today)
    return tracker


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/problems", response_model=List[Problem])
def list_problems(
    sort: str = "solved_date",
    q: Optional[str] = None,
    tracker: ReviewTracker = Depends(get_tracker),
):
    return tracker.all_view(sort=sort, query=q)


@app.get("/problems/today", response_model=List[Problem])
def problems_due_today(
    tracker: ReviewTracker = Depends(get_tracker),
    today: date = Depends(get_today),
):
    return tracker.today_view(today)


@app.get("/problems/week", response_model=List[Problem])
def problems_this_week(
    tracker: ReviewTracker = Depends(get_tracker),
    today: date = Depends(get_today),
):
    return tracker.week_view(today)


@app.post("/problems", response_model=Problem, status_code=201)
def add_problem(
    data: ProblemCreate,
    tracker: ReviewTracker = Depends(get_tracker),
    today: date = Depends(get_today),
):
    return tracker.add(data, today)


@app.get("/problems/{identifier}", response_model=Problem)
def get_problem(identifier: str, tracker: ReviewTracker = Depends(get_tracker)):
    return tracker.get(identifier)


@app.patch("/problems/{identifier}", response_model=Problem)
def edit_problem(
    identifier: str,
    changes: ProblemUpdate,
    tracker: ReviewTracker = Depends(get_tracker),
):
    return tracker.edit(identifier, changes)


@app.delete("/problems/{identifier}", status_code=204)
def delete_problem(identifier: str, tracker: ReviewTracker = Depends(get_tracker)):
    tracker.delete(identifier)
    return Response(status_code=204)


@app.post("/problems/{identifier}/reviews/{index}/toggle", response_model=Problem)
def toggle_review(
    identifier: str,
    index: int,
    tracker: ReviewTracker = Depends(get_tracker),
    today: date = Depends(get_today),
):
    return tracker.toggle(identifier, index, today)


@app.get("/calendar", response_model=List[CalendarCell])
def calendar_month(
    year: Optional[int] = None,
    month: Optional[int] = None,
    tracker: ReviewTracker = Depends(get_tracker),
    today: date = Depends(get_today),
):
    return tracker.calendar(
        year if year is not None else today.year,
        month if month is not None else today.month,
    )


@app.get("/calendar/{day}", response_model=List[PendingReview])
def calendar_day(day: str, tracker: ReviewTracker = Depends(get_tracker)):
    return [
        PendingReview(identifier=problem.identifier, name=problem.name, link=problem.link, step=step)
        for problem, step in tracker.pending_on(day)
    ]


@app.get("/stats/completions", response_model=List[CompletionPoint])
def completions(tracker: ReviewTracker = Depends(get_tracker)):
    return [CompletionPoint(date=day, count=count) for day, count in tracker.completions()]
