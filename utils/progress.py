# utils/progress.py
from models.task import TASK_STATUSES


def compute_project_progress(tasks) -> int:
    """Share of completed tasks, as a rounded percentage (0 when there are none)."""
    tasks = list(tasks or [])
    if not tasks:
        return 0
    done = sum(1 for t in tasks if t.get("status") == "completed")
    return int(round(done * 100 / len(tasks)))


def compute_phase_progress(phase_id, tasks) -> int:
    return compute_project_progress(t for t in (tasks or []) if t.get("phase_id") == phase_id)


def task_status_counts(tasks) -> dict:
    counts = {s: 0 for s in TASK_STATUSES}
    for t in tasks or []:
        status = t.get("status")
        if status in counts:
            counts[status] += 1
    return counts
