# ui/assistant_panel.py
import logging

import streamlit as st
from dateutil import parser

import db
from ui.common import run_action, user_label
from ui.tasks_panel import _assignee_choices
from utils.suggestions import (
    SuggestionError, enhance_tasks, make_client, match_assignee, suggest_phases, suggest_tasks,
)

logger = logging.getLogger(__name__)


def parse_date(x):
    if not x:
        return None
    try:
        return parser.parse(str(x)).date()
    except (ValueError, OverflowError):
        return None


def project_team(project: dict, users_by_id: dict) -> list[dict]:
    """Members plus owner and manager, as the AI helpers expect them."""
    roles = {m["user_id"]: m["role"] for m in project["members"]}
    team = []
    for uid in _assignee_choices(project, users_by_id)[1:]:
        u = users_by_id[uid]
        role = roles.get(uid) or ("owner" if uid == project["owner_id"] else "manager")
        team.append({"user_id": uid, "full_name": user_label(u), "role": role,
                     "department": u.get("department"), "position": u.get("position")})
    return team


def _knowledge(project: dict, team: list, phases: list) -> dict:
    return {
        "teamMembers": [{k: m[k] for k in ("full_name", "role", "department", "position")} for m in team],
        "projectPhases": [{"name": ph["name"], "status": ph["status"], "start_date": ph["start_date"],
                           "end_date": ph["end_date"]} for ph in phases],
        "documents": [{"title": d["title"], "category": d["category"]}
                      for d in db.get_documents_for_project(project["id"])],
    }


def _project_context(project: dict) -> dict:
    return {k: project[k] for k in ("name", "description", "status", "start_date", "end_date", "progress")}


def _add_task(actor, project: dict, team: list, phases: list, s: dict):
    phase_ids = {ph["name"].lower(): ph["id"] for ph in phases}
    run_action(db.add_or_update_task, actor, project["id"], s["title"],
               priority=s["priority"], description=s["description"],
               assigned_to=match_assignee(s.get("suggested_assignee"), team),
               due_date=parse_date(s.get("suggested_due_date")),
               estimated_hours=float(s["estimated_hours"]),
               phase_id=phase_ids.get((s.get("suggested_phase") or "").lower()),
               success=f"Added task {s['title']}.", rerun=False)


def _add_phase(actor, project: dict, s: dict):
    run_action(db.add_or_update_phase, actor, project["id"], s["name"],
               status=s["suggested_status"], description=s["description"],
               sequence_order=int(s["suggested_sequence_order"]),
               start=parse_date(s.get("estimated_start_date")),
               end=parse_date(s.get("estimated_end_date")),
               success=f"Added phase {s['name']}.", rerun=False)


def _apply_enhancement(actor, project: dict, tasks_by_id: dict, e: dict):
    t = tasks_by_id[e["id"]]
    run_action(db.add_or_update_task, actor, project["id"], t["title"], status=t["status"],
               priority=e["priority"], description=t["description"],
               assigned_to=e.get("assigned_to") or t["assigned_to"], due_date=t["due_date"],
               estimated_hours=float(e["estimated_hours"]), phase_id=t["phase_id"], task_id=t["id"],
               success=f"Updated task {t['title']}.", rerun=False)


def render_assistant_panel(actor, vis, project: dict | None, users_by_id: dict):
    st.subheader("AI Assistant")
    if project is None:
        st.info("Select a project in the sidebar to get suggestions.")
        return
    if not vis.can_manage_project(project["id"]):
        st.info("Suggestions are available to the project's managers.")
        return

    phases = db.get_phases_for_project(project["id"])
    tasks = db.get_tasks_for_projects([project["id"]])
    team = project_team(project, users_by_id)
    key = f"suggestions_{project['id']}"
    c1, c2, c3 = st.columns(3)
    try:
        if c1.button("Suggest tasks", use_container_width=True):
            with st.spinner("Asking the assistant…"):
                existing = [{"title": t["title"], "status": t["status"]} for t in tasks]
                st.session_state[key] = ("task", suggest_tasks(
                    make_client(), _project_context(project), _knowledge(project, team, phases), existing))
        if c2.button("Suggest phases", use_container_width=True):
            with st.spinner("Asking the assistant…"):
                st.session_state[key] = ("phase", suggest_phases(
                    make_client(), _project_context(project),
                    [{"name": ph["name"], "sequence_order": ph["sequence_order"]} for ph in phases]))
        open_tasks = [t for t in tasks if t["status"] != "completed"]
        if c3.button("Enhance open tasks", use_container_width=True, disabled=not open_tasks):
            with st.spinner("Asking the assistant…"):
                slim = [{k: t[k] for k in ("id", "title", "description", "status", "priority",
                                           "assigned_to", "estimated_hours", "due_date")} for t in open_tasks]
                st.session_state[key] = ("enhance", enhance_tasks(
                    make_client(), _project_context(project), team,
                    [{"name": ph["name"], "status": ph["status"]} for ph in phases], slim))
    except SuggestionError as e:
        st.error(str(e))

    kind, items = st.session_state.get(key, (None, []))
    tasks_by_id = {t["id"]: t for t in tasks}
    for i, s in enumerate(items):
        if kind == "enhance" and s["id"] not in tasks_by_id:
            continue
        title = f"{s['suggested_sequence_order']}. {s['name']}" if kind == "phase" else s["title"]
        with st.expander(title, expanded=i == 0):
            if kind == "enhance":
                st.caption(f"Priority: {s['priority']} · {s['estimated_hours']}h · "
                           f"Assignee: {s.get('suggested_assignee') or '—'}")
                st.caption(s["rationale"])
                if st.button("Apply", key=f"{key}_apply_{i}"):
                    _apply_enhancement(actor, project, tasks_by_id, s)
                continue
            st.write(s["description"])
            if kind == "task":
                st.caption(f"Priority: {s['priority']} · {s['estimated_hours']}h · "
                           f"Assignee: {s.get('suggested_assignee') or '—'} · "
                           f"Due: {s.get('suggested_due_date') or '—'}")
                st.caption(s["rationale"])
            else:
                st.caption(", ".join(s["suggested_tasks"]))
            if st.button("Add to project", key=f"{key}_add_{i}"):
                if kind == "task":
                    _add_task(actor, project, team, phases, s)
                else:
                    _add_phase(actor, project, s)
