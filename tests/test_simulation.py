import csv

import pytest

from algo_review import simulation


def test_simulation_writes_daily_log(tmp_path):
    log_file = tmp_path / "simulation_log_Diligent_flip.csv"

    rows = simulation.run_simulation(10, "Diligent", "flip", str(log_file), seed=3)

    assert len(rows) == 10
    assert rows[-1]["problems_total"] == 20
    assert rows[0]["due_reviews"] == 0
    assert all(row["completed"] <= row["due_reviews"] for row in rows)

    with open(log_file, newline="", encoding="utf-8") as handle:
        logged = list(csv.DictReader(handle))
    assert [row["day"] for row in logged] == [str(day) for day in range(1, 11)]
    assert set(logged[0]) == set(simulation.LOG_FIELDS)


def test_simulation_rejects_unknown_profile(tmp_path):
    with pytest.raises(ValueError, match="Nobody"):
        simulation.run_simulation(1, "Nobody", "flip", str(tmp_path / "log.csv"))
