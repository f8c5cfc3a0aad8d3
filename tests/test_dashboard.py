# tests/test_dashboard.py
from datetime import date, datetime, timedelta, timezone

from utils.dashboard import dashboard_stats, overdue_tasks, project_progress_rows, project_status_counts
from utils.permissions import Role
from utils.visibility import Actor, Membership, ProjectRecord, UserRecord, resolve

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)

USERS = [
    UserRecord("adm", Role.ADMIN),
    UserRecord("pm1", Role.PROJECT_MANAGER),
    UserRecord("pm2", Role.PROJECT_MANAGER, status="inactive"),
    UserRecord("u1"),
    UserRecord("u2", status="pending"),
]
PROJECTS = [
    ProjectRecord("p1", manager_id="pm1", status="active", name="Apollo",
                  members=(Membership("p1", "u1"),)),
    ProjectRecord("p2", owner_id="pm2", status="planning", name="Gemini",
                  members=(Membership("p2", "u2"),)),
]
TASKS = [
    {"project_id": "p1", "status": "completed", "due_date": date(2026, 10, 1)},
    {"project_id": "p1", "status": "todo", "due_date": date(2026, 10, 1)},
    {"project_id": "p1", "status": "in_review", "due_date": None},
    {"project_id": "p2", "status": "todo", "due_date": date(2026, 12, 1)},
]
USERS_BY_ID = {
    "adm": {"created_at": NOW - timedelta(days=30)},
    "pm1": {"created_at": (NOW - timedelta(hours=2)).replace(tzinfo=None)},
    "pm2": {"created_at": None},
    "u1": {"created_at": NOW - timedelta(hours=23)},
    "u2": {"created_at": NOW - timedelta(days=2)},
}


def test_admin_dashboard_counts_everything():
    vis = resolve(Actor("adm", Role.ADMIN), USERS, PROJECTS)
    stats = dashboard_stats(vis, USERS_BY_ID, TASKS, now=NOW)
    assert stats["users"] == {
        "total": 5, "active": 3, "pending": 1,
        "admins": 1, "active_admins": 1,
        "project_managers": 2, "active_project_managers": 1,
        "new_last_24h": 2,
    }
    assert stats["projects"]["active"] == 1 and stats["projects"]["planning"] == 1
    assert stats["tasks"] == {"todo": 2, "in_progress": 0, "in_review": 1, "completed": 1}
    assert len(stats["overdue"]) == 1


def test_dashboard_is_limited_to_visible_projects():
    vis = resolve(Actor("pm1", Role.PROJECT_MANAGER), USERS, PROJECTS)
    stats = dashboard_stats(vis, USERS_BY_ID, [t for t in TASKS if t["project_id"] in vis.visible_project_ids],
                            now=NOW)
    assert [r["name"] for r in stats["progress"]] == ["Apollo"]
    assert stats["users"]["total"] == 2
    assert stats["projects"]["planning"] == 0


def test_project_progress_rows():
    rows = project_progress_rows(PROJECTS, TASKS)
    assert rows[0] == {"project_id": "p1", "name": "Apollo", "status": "active",
                       "total_tasks": 3, "completed_tasks": 1, "progress": 33}
    assert rows[1]["progress"] == 0


def test_overdue_ignores_completed_and_undated_tasks():
    assert overdue_tasks(TASKS, today=date(2026, 10, 18)) == [TASKS[1]]
    assert overdue_tasks([], today=date(2026, 10, 18)) == []


def test_project_status_counts_ignores_unknown_statuses():
    counts = project_status_counts([ProjectRecord("x", status="weird"), ProjectRecord("y", status="completed")])
    assert counts["completed"] == 1
    assert "weird" not in counts
