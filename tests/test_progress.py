# tests/test_progress.py
from datetime import date

from utils.progress import compute_phase_progress, compute_project_progress, task_status_counts
from utils.timeline import phase_timeline_df


def test_compute_project_progress():
    tasks = [{"status": "completed"}, {"status": "todo"}, {"status": "completed"}]
    assert compute_project_progress(tasks) == 67
    assert compute_project_progress([]) == 0


def test_compute_phase_progress_only_counts_phase_tasks():
    tasks = [
        {"status": "completed", "phase_id": "ph1"},
        {"status": "in_review", "phase_id": "ph1"},
        {"status": "completed", "phase_id": "ph2"},
    ]
    assert compute_phase_progress("ph1", tasks) == 50
    assert compute_phase_progress("ph3", tasks) == 0


def test_task_status_counts_lists_every_status():
    counts = task_status_counts([{"status": "todo"}, {"status": "todo"}, {"status": "bogus"}])
    assert counts == {"todo": 2, "in_progress": 0, "in_review": 0, "completed": 0}


def test_phase_timeline_df():
    phases = [
        {"name": "Build", "sequence_order": 2, "status": "in_progress",
         "start_date": date(2026, 2, 1), "end_date": date(2026, 2, 1)},
        {"name": "Plan", "sequence_order": 1, "status": "completed",
         "start_date": date(2026, 1, 1), "end_date": date(2026, 1, 20)},
        {"name": "Ship", "sequence_order": 3, "status": "pending", "start_date": None, "end_date": None},
    ]
    df = phase_timeline_df(phases)
    assert df["Item"].tolist() == ["1. Plan", "2. Build"]
    # zero-length phases are stretched to a day
    build = df.iloc[1]
    assert (build["Finish"] - build["Start"]).days == 1


def test_phase_timeline_df_empty():
    df = phase_timeline_df([])
    assert df.empty
    assert list(df.columns) == ["Item", "Start", "Finish", "Status", "Order"]
