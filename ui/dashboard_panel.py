# ui/dashboard_panel.py
import streamlit as st
import pandas as pd
import plotly.express as px

import db
from ui.tasks_panel import STATUS_LABELS
from utils.dashboard import dashboard_stats
from utils.permissions import can_view_analytics


def render_dashboard_panel(actor, vis, users_by_id: dict):
    st.subheader("Dashboard")
    tasks = db.get_tasks_for_projects(vis.visible_project_ids)
    stats = dashboard_stats(vis, users_by_id, tasks)

    u = stats["users"]
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Users", u["total"], help=f"{u['active']} active · {u['pending']} pending")
    c2.metric("Admins", u["admins"], help=f"{u['active_admins']} active")
    c3.metric("Project managers", u["project_managers"], help=f"{u['active_project_managers']} active")
    c4.metric("New in 24h", u["new_last_24h"])

    cols = st.columns(len(stats["tasks"]))
    for col, (status, n) in zip(cols, stats["tasks"].items()):
        col.metric(STATUS_LABELS[status], n)
    if stats["overdue"]:
        st.warning(f"{len(stats['overdue'])} open task(s) past their due date.")

    rows = stats["progress"]
    if rows:
        df = pd.DataFrame(rows)
        fig = px.bar(df, x="progress", y="name", orientation="h", range_x=[0, 100],
                     hover_data=["completed_tasks", "total_tasks", "status"])
        fig.update_yaxes(title=None, autorange="reversed")
        fig.update_xaxes(title="% complete")
        fig.update_layout(margin=dict(l=20, r=20, t=10, b=30), height=max(200, 40 * len(rows)))
        st.plotly_chart(fig, use_container_width=True, config={"displaylogo": False})
        counts = {k: v for k, v in stats["projects"].items() if v}
        st.caption(" · ".join(f"{k.replace('_', ' ')}: {v}" for k, v in counts.items()))
    else:
        st.info("No projects yet.")

    if can_view_analytics(actor):
        st.markdown("**Recent activity**")
        recent = db.get_recent_activity(vis.visible_project_ids)
        if recent:
            st.dataframe(pd.DataFrame([{"When": r["created_at"], "Project": r["project"], "Who": r["user"] or "—",
                                        "What": r["description"]} for r in recent]),
                         use_container_width=True, hide_index=True)
        else:
            st.caption("No activity recorded yet.")
