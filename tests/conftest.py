"""Shared fixtures: in-memory database, tracker and API client."""

import os
from datetime import date

# Keep the app's module-level engine off the working directory
os.environ.setdefault("ALGO_REVIEW_DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine

from algo_review import main
from algo_review.config import Settings, get_settings
from algo_review.db import ProblemStore, create_db_and_tables
from algo_review.models import Problem
from algo_review.scheduler import build_schedule
from algo_review.tracker import ReviewTracker

TODAY = date(2024, 1, 10)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_db_and_tables(engine)
    return engine


@pytest.fixture
def store(engine):
    return ProblemStore(engine)


@pytest.fixture
def tracker(store):
    tracker = ReviewTracker(store)
    tracker.load(TODAY)
    return tracker


@pytest.fixture
def make_problem():
    def factory(identifier="1", name="Two Sum", solved_date="2024-01-01", done=(), **extra):
        schedule = build_schedule(solved_date)
        for slot in schedule:
            slot.done = slot.index in done
        return Problem(
            identifier=identifier,
            name=name,
            solved_date=solved_date,
            review_schedule=schedule,
            **extra,
        )

    return factory


@pytest.fixture
def settings():
    return Settings(database_url="sqlite://", toggle_mode="complete_only")


@pytest.fixture
def client(store, settings):
    main.app.dependency_overrides[main.get_store] = lambda: store
    main.app.dependency_overrides[main.get_today] = lambda: TODAY
    main.app.dependency_overrides[get_settings] = lambda: settings
    with TestClient(main.app) as client:
        yield client
    main.app.dependency_overrides.clear()
