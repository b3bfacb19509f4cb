import argparse
import csv
import os
import random
from datetime import date, timedelta
from typing import Dict, List

from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine

from . import scheduler
from .db import ProblemStore, create_db_and_tables
from .tracker import ReviewTracker

# --- Simulation Constants ---
NUM_SIMULATION_DAYS = 60
START_DATE = date(2024, 1, 1)

CATEGORIES = [
    "Arrays and Hashing", "Two Pointers", "Stack", "Sliding Window", "Binary Search",
    "Linked List", "Tree", "Tries", "Heap / Priority Queue", "Backtracking",
    "Intervals", "Greedy", "Graph", "1DDP", "2DDP", "Bit Manipulation", "Math",
]

# --- Learner profiles: new problems per day and chance of doing a due review ---
LEARNER_PROFILES = {
    "Diligent": {"new_per_day": 2, "review_chance": 0.95},
    "Casual": {"new_per_day": 1, "review_chance": 0.6},
    "Sporadic": {"new_per_day": 1, "review_chance": 0.3},
}

LOG_FIELDS = [
    "day", "date", "learner_profile", "toggle_mode", "problems_total",
    "added", "due_problems", "due_reviews", "completed", "solved_this_week",
]


def in_memory_store() -> ProblemStore:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_db_and_tables(engine)
    return ProblemStore(engine)


def run_simulation(
    num_days: int,
    learner_profile: str,
    toggle_mode: str,
    log_filename: str,
    seed: int = 0,
) -> List[Dict[str, object]]:
    if learner_profile not in LEARNER_PROFILES:
        raise ValueError(f"Unknown learner profile: {learner_profile}. Valid profiles: {list(LEARNER_PROFILES)}")

    print(f"\n===== Starting Simulation: Profile={learner_profile}, Mode={toggle_mode} =====")
    profile = LEARNER_PROFILES[learner_profile]
    rng = random.Random(seed)
    store = in_memory_store()
    next_number = 1
    rows = []

    for day in range(num_days):
        today = START_DATE + timedelta(days=day)
        # A fresh tracker per day mirrors one session per day
        tracker = ReviewTracker(store, mode=toggle_mode)
        tracker.load(today)

        for _ in range(profile["new_per_day"]):
            tracker.add(
                {
                    "problem_id": str(next_number),
                    "name": f"Problem {next_number}",
                    "difficulty": rng.choice(scheduler.DIFFICULTY_PRIORITY),
                    "category": rng.choice(CATEGORIES),
                    "solved_date": scheduler.format_date(today),
                },
                today,
            )
            next_number += 1

        due = tracker.today_view(today)
        due_reviews = 0
        completed = 0
        for problem in due:
            for slot in problem.review_schedule:
                if not scheduler.is_slot_due(slot, today):
                    continue
                due_reviews += 1
                if rng.random() < profile["review_chance"]:
                    tracker.toggle(problem.identifier, slot.index, today)
                    completed += 1

        rows.append({
            "day": day + 1,
            "date": scheduler.format_date(today),
            "learner_profile": learner_profile,
            "toggle_mode": toggle_mode,
            "problems_total": len(tracker.problems),
            "added": profile["new_per_day"],
            "due_problems": len(due),
            "due_reviews": due_reviews,
            "completed": completed,
            "solved_this_week": len(tracker.week_view(today)),
        })

    log_file_exists = os.path.exists(log_filename)
    with open(log_filename, "a", newline="", encoding="utf-8") as csvfile:
        writer = csv.DictWriter(csvfile, fieldnames=LOG_FIELDS)
        if not log_file_exists or csvfile.tell() == 0:
            writer.writeheader()
        writer.writerows(rows)

    completed_total = sum(row["completed"] for row in rows)
    due_total = sum(row["due_reviews"] for row in rows)
    print(f"===== Simulation Complete: Profile={learner_profile}, Mode={toggle_mode} =====")
    print(f"Log saved to {log_filename}")
    print(f"  Reviews completed: {completed_total} / {due_total} due")
    return rows


def run_all_simulations(num_days: int, output_dir: str = ".", base_log_filename: str = "simulation_log"):
    os.makedirs(output_dir, exist_ok=True)
    for profile in LEARNER_PROFILES:
        for mode in scheduler.TOGGLE_MODES:
            log_filename = os.path.join(output_dir, f"{base_log_filename}_{profile}_{mode}.csv")
            # Start each configuration from an empty log
            if os.path.exists(log_filename):
                os.remove(log_filename)
            run_simulation(num_days, profile, mode, log_filename)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Simulate review backlogs for different learners")
    parser.add_argument("--days", type=int, default=NUM_SIMULATION_DAYS)
    parser.add_argument("--output-dir", default=".")
    args = parser.parse_args()

    run_all_simulations(num_days=args.days, output_dir=args.output_dir)
