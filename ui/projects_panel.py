# ui/projects_panel.py

import streamlit as st
from datetime import date
import pandas as pd

import db
from models.project import PROJECT_STATUSES
from ui.common import run_action, user_label
from utils.permissions import Role, can_create_projects, can_delete_projects

__all__ = ["render_projects_panel"]


def _projects_frame(projects: list[dict], users_by_id: dict) -> pd.DataFrame:
    rows = [{
        "Name": p["name"],
        "Status": p["status"],
        "Owner": user_label(users_by_id.get(p["owner_id"])),
        "Manager": user_label(users_by_id.get(p["manager_id"])),
        "Members": len(p["members"]),
        "Progress": p["progress"],
        "Start": p["start_date"],
        "End": p["end_date"],
    } for p in projects]
    return pd.DataFrame(rows, columns=["Name", "Status", "Owner", "Manager", "Members", "Progress", "Start", "End"])


def _render_new_project(actor, manager_choices: list[dict]):
    with st.expander("New project"):
        with st.form("new_project", clear_on_submit=True):
            p_name = st.text_input("Project name", placeholder="Please enter a project name")
            p_desc = st.text_area("Description")
            c1, c2, c3 = st.columns(3)
            p_start = c1.date_input("Start", value=date.today(), key="np_start")
            p_end = c2.date_input("End", value=date.today(), key="np_end")
            p_status = c3.selectbox("Status", PROJECT_STATUSES, index=0)
            p_manager = st.selectbox("Manager", [None] + manager_choices,
                                     format_func=lambda u: "—" if u is None else user_label(u))
            p_budget = st.number_input("Budget", min_value=0.0, value=0.0, step=1000.0)
            submitted = st.form_submit_button("Create project", use_container_width=True)
        if submitted:
            if not p_name:
                st.warning("Please enter a project name.")
            elif p_end < p_start:
                st.warning("End date must be after start date.")
            else:
                pid = run_action(db.create_project, actor, p_name, p_start, p_end,
                                 description=p_desc or None, status=p_status,
                                 manager_id=p_manager["id"] if p_manager else None,
                                 budget=p_budget or None, success="Project created.", rerun=False)
                if pid:
                    st.session_state["selected_project_id"] = pid


def _render_edit_project(actor, project: dict, manager_choices: list[dict]):
    pid = project["id"]
    with st.expander(f"Edit {project['name']}"):
        with st.form(f"edit_project_{pid}"):
            name = st.text_input("Name", value=project["name"])
            desc = st.text_area("Description", value=project["description"] or "")
            c1, c2, c3 = st.columns(3)
            status = c1.selectbox("Status", PROJECT_STATUSES, index=PROJECT_STATUSES.index(project["status"]))
            start = c2.date_input("Start", value=project["start_date"] or date.today())
            end = c3.date_input("End", value=project["end_date"] or date.today())
            ids = [None] + [u["id"] for u in manager_choices]
            idx = ids.index(project["manager_id"]) if project["manager_id"] in ids else 0
            manager = st.selectbox("Manager", ids, index=idx,
                                   format_func=lambda i: "—" if i is None else
                                   user_label(next(u for u in manager_choices if u["id"] == i)))
            save = st.form_submit_button("Save changes")
        if save:
            run_action(db.update_project, actor, pid, name=name, description=desc, status=status,
                       start_date=start, end_date=end, manager_id=manager, success="Project updated.")
        if can_delete_projects(actor):
            st.markdown("**Danger zone**")
            confirm = st.checkbox("I understand this deletes all tasks, phases and documents",
                                  key=f"confirm_del_{pid}")
            if st.button("Delete project (irreversible)", key=f"del_{pid}", disabled=not confirm):
                if st.session_state.get("selected_project_id") == pid:
                    st.session_state["selected_project_id"] = None
                run_action(db.delete_project, actor, pid, success="Project deleted.")


def render_projects_panel(actor, vis, projects_by_id: dict, users_by_id: dict):
    st.subheader("Projects")
    projects = [projects_by_id[pid] for pid in vis.visible_project_ids if pid in projects_by_id]

    f1, f2 = st.columns([2, 1])
    query = f1.text_input("Search projects", key="proj_search").strip().lower()
    status_filter = f2.selectbox("Status", ["all", *PROJECT_STATUSES], key="proj_status")
    if query:
        projects = [p for p in projects
                    if query in p["name"].lower() or query in (p["description"] or "").lower()]
    if status_filter != "all":
        projects = [p for p in projects if p["status"] == status_filter]

    if projects:
        st.dataframe(_projects_frame(projects, users_by_id), use_container_width=True, hide_index=True,
                     column_config={"Progress": st.column_config.ProgressColumn(
                         "Progress", min_value=0, max_value=100, format="%d%%")})
    else:
        st.info("No projects to show." if actor.role is Role.ADMIN else
                "You don't belong to any projects yet.")

    managers = [u for u in users_by_id.values() if u["role"] in (Role.PROJECT_MANAGER.value, Role.ADMIN.value)]
    if can_create_projects(actor):
        _render_new_project(actor, managers)
    for p in projects:
        if vis.can_manage_project(p["id"]):
            _render_edit_project(actor, p, managers)
