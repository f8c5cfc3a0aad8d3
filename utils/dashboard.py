# utils/dashboard.py
"""Headline numbers for the dashboard tab, computed over what the actor can see."""
from collections import Counter
from datetime import date, datetime, timedelta, timezone

from models.project import PROJECT_STATUSES
from utils.permissions import Role
from utils.progress import compute_project_progress, task_status_counts


def _aware(ts):
    if ts is None:
        return None
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


def user_stats(users, created_at: dict, now: datetime | None = None) -> dict:
    """Counts over UserRecords; ``created_at`` maps user id -> creation timestamp."""
    now = now or datetime.now(timezone.utc)
    users = list(users)

    def _active(role=None):
        return sum(1 for u in users if u.status == "active" and (role is None or u.role is role))

    def _recent(user_id):
        ts = _aware(created_at.get(user_id))
        return ts is not None and now - ts <= timedelta(days=1)

    return {
        "total": len(users),
        "active": _active(),
        "pending": sum(1 for u in users if u.status == "pending"),
        "admins": sum(1 for u in users if u.role is Role.ADMIN),
        "active_admins": _active(Role.ADMIN),
        "project_managers": sum(1 for u in users if u.role is Role.PROJECT_MANAGER),
        "active_project_managers": _active(Role.PROJECT_MANAGER),
        "new_last_24h": sum(1 for u in users if _recent(u.id)),
    }


def project_status_counts(projects) -> dict:
    counts = {s: 0 for s in PROJECT_STATUSES}
    counts.update(Counter(p.status for p in projects if p.status in counts))
    return counts


def project_progress_rows(projects, tasks) -> list[dict]:
    by_project: dict = {}
    for t in tasks or []:
        by_project.setdefault(t["project_id"], []).append(t)
    rows = []
    for p in projects:
        mine = by_project.get(p.id, [])
        rows.append({
            "project_id": p.id,
            "name": p.name,
            "status": p.status,
            "total_tasks": len(mine),
            "completed_tasks": sum(1 for t in mine if t["status"] == "completed"),
            "progress": compute_project_progress(mine),
        })
    return rows


def overdue_tasks(tasks, today: date | None = None) -> list[dict]:
    today = today or date.today()
    return [t for t in tasks or [] if t.get("due_date") and t["due_date"] < today and t["status"] != "completed"]


def dashboard_stats(vis, users_by_id: dict, tasks, now: datetime | None = None) -> dict:
    now = now or datetime.now(timezone.utc)
    created = {uid: u.get("created_at") for uid, u in users_by_id.items()}
    return {
        "users": user_stats(vis.visible_users, created, now),
        "projects": project_status_counts(vis.visible_projects),
        "tasks": task_status_counts(tasks),
        "progress": project_progress_rows(vis.visible_projects, tasks),
        "overdue": overdue_tasks(tasks, now.date()),
    }
