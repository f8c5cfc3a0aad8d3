# ui/tasks_panel.py
import streamlit as st
from datetime import date
import pandas as pd

import db
from models.task import TASK_STATUSES, TASK_PRIORITIES
from ui.common import run_action, user_label
from utils.progress import task_status_counts

STATUS_LABELS = {"todo": "To-Do", "in_progress": "In Progress", "in_review": "In Review", "completed": "Done"}


def _assignee_choices(project: dict, users_by_id: dict) -> list:
    ids = [m["user_id"] for m in project["members"]]
    ids += [i for i in (project["owner_id"], project["manager_id"]) if i]
    return [None] + [i for i in dict.fromkeys(ids) if i in users_by_id]


def _task_form(actor, project: dict, users_by_id: dict, phases: list, task: dict | None = None):
    key = task["id"] if task else f"new_{project['id']}"
    assignees = _assignee_choices(project, users_by_id)
    phase_ids = [None] + [ph["id"] for ph in phases]
    phase_names = {ph["id"]: ph["name"] for ph in phases}
    with st.form(f"task_form_{key}", clear_on_submit=task is None):
        title = st.text_input("Title", value=task["title"] if task else "")
        desc = st.text_area("Description", value=(task or {}).get("description") or "")
        c1, c2, c3 = st.columns(3)
        status = c1.selectbox("Status", TASK_STATUSES, format_func=STATUS_LABELS.get,
                              index=TASK_STATUSES.index(task["status"]) if task else 0)
        priority = c2.selectbox("Priority", TASK_PRIORITIES,
                                index=TASK_PRIORITIES.index(task["priority"]) if task else 1)
        hours = c3.number_input("Estimated hours", min_value=0.0, step=0.5,
                                value=float((task or {}).get("estimated_hours") or 0))
        c4, c5, c6 = st.columns(3)
        current = (task or {}).get("assigned_to")
        assigned = c4.selectbox("Assignee", assignees,
                                index=assignees.index(current) if current in assignees else 0,
                                format_func=lambda i: "Unassigned" if i is None else user_label(users_by_id[i]))
        current_phase = (task or {}).get("phase_id")
        phase_id = c5.selectbox("Phase", phase_ids,
                                index=phase_ids.index(current_phase) if current_phase in phase_ids else 0,
                                format_func=lambda i: "—" if i is None else phase_names[i])
        due = c6.date_input("Due date", value=(task or {}).get("due_date") or date.today())
        submitted = st.form_submit_button("Save task" if task else "Add task")
    if submitted:
        run_action(db.add_or_update_task, actor, project["id"], title, status=status, priority=priority,
                   description=desc or None, assigned_to=assigned, due_date=due,
                   estimated_hours=hours or None, phase_id=phase_id,
                   task_id=task["id"] if task else None,
                   success="Task saved." if task else "Task added.")


def render_tasks_panel(actor, vis, project: dict | None, users_by_id: dict):
    st.subheader("Tasks")
    if project is None:
        st.info("Select a project in the sidebar to see its tasks.")
        return

    tasks = db.get_tasks_for_projects([project["id"]])
    phases = db.get_phases_for_project(project["id"])
    manage = vis.can_manage_project(project["id"])

    counts = task_status_counts(tasks)
    cols = st.columns(len(counts))
    for col, (status, n) in zip(cols, counts.items()):
        col.metric(STATUS_LABELS[status], n)

    f1, f2 = st.columns(2)
    status_filter = f1.selectbox("Filter by status", ["all", *TASK_STATUSES], key="task_status_filter",
                                 format_func=lambda s: "All" if s == "all" else STATUS_LABELS[s])
    mine_only = f2.checkbox("Only my tasks", value=not manage, key="task_mine")
    if status_filter != "all":
        tasks = [t for t in tasks if t["status"] == status_filter]
    if mine_only:
        tasks = [t for t in tasks if t["assigned_to"] == actor.id]

    if manage:
        with st.expander("New task"):
            _task_form(actor, project, users_by_id, phases)
    else:
        st.caption("Read-only access. You can update the status of tasks assigned to you.")

    if not tasks:
        st.info("No tasks yet.")
        return

    st.dataframe(pd.DataFrame([{
        "Title": t["title"],
        "Status": STATUS_LABELS[t["status"]],
        "Priority": t["priority"],
        "Assignee": user_label(users_by_id.get(t["assigned_to"])) if t["assigned_to"] else "Unassigned",
        "Due": t["due_date"],
        "Hours": t["estimated_hours"],
    } for t in tasks]), use_container_width=True, hide_index=True)

    for t in tasks:
        if manage:
            with st.expander(f"{t['title']} — {STATUS_LABELS[t['status']]}"):
                _task_form(actor, project, users_by_id, phases, task=t)
                if st.button("Delete task", key=f"del_task_{t['id']}"):
                    run_action(db.delete_task, actor, t["id"], success="Task deleted.")
        elif t["assigned_to"] == actor.id:
            c1, c2 = st.columns([3, 1])
            new_status = c1.selectbox(t["title"], TASK_STATUSES, format_func=STATUS_LABELS.get,
                                      index=TASK_STATUSES.index(t["status"]), key=f"ts_{t['id']}")
            if c2.button("Update", key=f"tsu_{t['id']}") and new_status != t["status"]:
                run_action(db.update_task_status, actor, t["id"], new_status, success="Status updated.")
