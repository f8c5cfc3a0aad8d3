# ui/activity_panel.py
import streamlit as st
import pandas as pd

import db
from utils.permissions import can_view_analytics


def render_activity_panel(actor, project: dict | None):
    st.subheader("Activity")
    if project is None:
        return
    if not can_view_analytics(actor):
        st.info("Activity history is available to admins and project managers.")
        return
    rows = db.get_activity_for_project(project["id"])
    if not rows:
        st.caption("No activity recorded yet.")
        return
    st.dataframe(pd.DataFrame([{"When": r["created_at"], "Who": r["user"] or "—",
                                "Type": r["type"], "What": r["description"]} for r in rows]),
                 use_container_width=True, hide_index=True)
