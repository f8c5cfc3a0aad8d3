# ui/phases_panel.py
import streamlit as st
from datetime import date
import pandas as pd

import db
from models.phase import PHASE_STATUSES
from ui.common import run_action
from ui.gantt_panel import render_gantt_panel
from utils.progress import compute_phase_progress


def _phase_form(actor, project_id: str, phase: dict | None = None):
    key = phase["id"] if phase else f"new_{project_id}"
    with st.form(f"phase_form_{key}", clear_on_submit=phase is None):
        name = st.text_input("Name", value=(phase or {}).get("name", ""))
        desc = st.text_area("Description", value=(phase or {}).get("description") or "")
        c1, c2, c3, c4 = st.columns(4)
        status = c1.selectbox("Status", PHASE_STATUSES,
                              index=PHASE_STATUSES.index(phase["status"]) if phase else 0)
        order = c2.number_input("Order", min_value=1, step=1,
                                value=int((phase or {}).get("sequence_order") or 1))
        start = c3.date_input("Start", value=(phase or {}).get("start_date") or date.today())
        end = c4.date_input("End", value=(phase or {}).get("end_date") or date.today())
        submitted = st.form_submit_button("Save phase" if phase else "Add phase")
    if submitted:
        if end < start:
            st.warning("End date must be after start date.")
            return
        run_action(db.add_or_update_phase, actor, project_id, name, status=status,
                   description=desc or None, sequence_order=int(order) if phase else None,
                   start=start, end=end, phase_id=phase["id"] if phase else None,
                   success="Phase saved." if phase else "Phase added.")


def render_phases_panel(actor, vis, project: dict | None):
    st.subheader("Phases")
    if project is None:
        st.info("Select a project in the sidebar to plan its phases.")
        return

    phases = db.get_phases_for_project(project["id"])
    tasks = db.get_tasks_for_projects([project["id"]])
    manage = vis.can_manage_project(project["id"])

    if phases:
        st.dataframe(pd.DataFrame([{
            "#": ph["sequence_order"],
            "Phase": ph["name"],
            "Status": ph["status"],
            "Start": ph["start_date"],
            "End": ph["end_date"],
            "Tasks": sum(1 for t in tasks if t["phase_id"] == ph["id"]),
            "Progress": compute_phase_progress(ph["id"], tasks),
        } for ph in phases]), use_container_width=True, hide_index=True)
        render_gantt_panel(phases)
    else:
        st.info("No phases yet.")

    if not manage:
        return
    with st.expander("New phase"):
        _phase_form(actor, project["id"])
    for ph in phases:
        with st.expander(f"{ph['sequence_order']}. {ph['name']}"):
            _phase_form(actor, project["id"], ph)
            if st.button("Delete phase", key=f"del_phase_{ph['id']}"):
                run_action(db.delete_phase, actor, ph["id"], success="Phase deleted.")
