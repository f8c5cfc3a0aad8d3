# ui/gantt_panel.py
import streamlit as st
import plotly.express as px

from utils.timeline import phase_timeline_df

PHASE_COLORS = {
    "pending": "#9CA3AF",
    "in_progress": "#2563EB",
    "completed": "#16A34A",
    "cancelled": "#DC2626",
}


def render_gantt_panel(phases: list[dict]):
    st.markdown("**Phase timeline**")
    df = phase_timeline_df(phases)
    if df.empty:
        st.info("Add start/end dates to phases to see them on the timeline.")
        return
    fig = px.timeline(df, x_start="Start", x_end="Finish", y="Item",
                      color="Status", color_discrete_map=PHASE_COLORS)
    fig.update_yaxes(autorange="reversed", title=None, categoryorder="array", categoryarray=df["Item"].tolist())
    fig.update_xaxes(type="date", title=None)
    fig.update_layout(margin=dict(l=20, r=20, t=10, b=30), legend_title_text="Status", height=360)
    st.plotly_chart(fig, use_container_width=True, config={"displaylogo": False})
