import math
import sys
from pathlib import Path

import pandas as pd
import pytest

REPORTS = Path(__file__).resolve().parents[1] / "reports"
if str(REPORTS) not in sys.path:
    sys.path.insert(0, str(REPORTS))

import analyze_reviews


def test_heatmap_grid_starts_on_sunday(make_problem):
    problems = [make_problem(identifier=str(i), solved_date="2024-01-01") for i in range(3)]

    grid = analyze_reviews.heatmap_grid(problems, 2024, 1)

    # 2024-01-01 is a Monday, so the first Sunday cell is blank
    assert grid.shape == (5, 7)
    assert math.isnan(grid[0, 0])
    assert grid[0, 1] == 0
    assert grid[0, 2] == 3  # 2024-01-02
    assert math.isnan(grid[4, 6])


def test_completions_frame(make_problem):
    problems = [make_problem(solved_date="2024-01-01", done=(1, 2))]

    df = analyze_reviews.completions_frame(problems)

    assert list(df["count"]) == [1, 1]
    assert list(df["date"].dt.strftime("%Y-%m-%d")) == ["2024-01-02", "2024-01-04"]


def test_summarize_simulations():
    df = pd.DataFrame(
        {
            "day": [1, 2, 1, 2],
            "learner_profile": ["Casual"] * 4,
            "toggle_mode": ["flip", "flip", "complete_only", "complete_only"],
            "due_problems": [0, 2, 0, 3],
            "due_reviews": [0, 4, 0, 2],
            "completed": [0, 2, 0, 2],
        }
    )

    summary = analyze_reviews.summarize_simulations(df)

    assert summary.loc[("Casual", "flip"), "completion_rate"] == pytest.approx(0.5)
    assert summary.loc[("Casual", "complete_only"), "completion_rate"] == pytest.approx(1.0)
    assert summary.loc[("Casual", "complete_only"), "final_due_problems"] == 3
