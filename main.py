# main.py

#============================================================#
#                          Teamward                          #
#============================================================#
# Created     : 2026-10-18                                   #
# Version     : V1.0.0                                       #
#------------------------------------------------------------#
# Purpose     : Teamward is a project & workforce console    #
#               with role-based visibility, tasks, phases,   #
#               a knowledge base and AI suggestions          #
#               (SQLite/Postgres/Supabase powered)           #
#============================================================#

import logging

import streamlit as st
from sqlalchemy.exc import SQLAlchemyError

import config
import db
from ui.activity_panel import render_activity_panel
from ui.assistant_panel import render_assistant_panel
from ui.common import force_rerun, user_label
from ui.dashboard_panel import render_dashboard_panel
from ui.knowledge_panel import render_knowledge_panel
from ui.members_panel import render_members_panel
from ui.phases_panel import render_phases_panel
from ui.projects_panel import render_projects_panel
from ui.tasks_panel import render_tasks_panel
from ui.users_panel import render_users_panel
from utils.permissions import PermissionDenied
from utils.visibility import Actor, resolve_snapshot

st.set_page_config(
    page_title="Teamward",
    layout="wide",
    initial_sidebar_state="expanded",
)

# ======================  GLOBAL CSS  ======================
st.markdown("""
<style>
:root{ --tab-active:#2563eb; --tab-bg:#f6f7fb; --tab-text:#374151; }
.stTabs [role="tablist"]{gap:10px;padding:6px 2px 14px 2px;border-bottom:0;}
.stTabs [role="tab"]{
  background:var(--tab-bg); color:var(--tab-text);
  border:1px solid #e5e7eb; border-radius:999px; padding:10px 16px;
  font-weight:600; transition:all .18s;
}
.stTabs [role="tab"][aria-selected="true"]{
  background:var(--tab-active); color:#fff; border-color:transparent;
}
</style>
""", unsafe_allow_html=True)

logger = logging.getLogger("teamward")


@st.cache_resource
def _init_once():
    config.configure_logging()
    db.init_db()
    return True

_init_once()

# ======================  AUTH  ======================
def full_screen_login():
    _, col, _ = st.columns([1, 2.2, 1])
    with col:
        st.markdown("<h2 style='text-align:center;'>Teamward</h2>", unsafe_allow_html=True)
        with st.form("login_form", clear_on_submit=False):
            email = st.text_input("Your email", placeholder="you@example.com")
            name = st.text_input("Your name (optional)")
            submitted = st.form_submit_button("Sign in / Continue", use_container_width=True)
        if submitted:
            if not email:
                st.warning("Please enter your email.")
                return
            try:
                st.session_state["user"] = db.login(email, name)
            except PermissionDenied as e:
                st.error(str(e))
                return
            except SQLAlchemyError:
                logger.exception("sign-in failed")
                st.error("Sign-in failed, please try again.")
                return
            force_rerun()


def load_snapshot():
    """Fetch users and projects; on failure show the error and fall back to empty lists."""
    try:
        return db.list_users(), db.list_projects()
    except SQLAlchemyError as e:
        logger.exception("loading users/projects failed")
        st.error(f"Could not load data: {e.__class__.__name__}")
        return [], []


user = st.session_state.get("user")
if not user:
    full_screen_login()
    st.stop()

user_rows, project_rows = load_snapshot()
users_by_id = {u["id"]: u for u in user_rows}
projects_by_id = {p["id"]: p for p in project_rows}

# refresh role/status from the store so admin changes apply without re-login
fresh = users_by_id.get(user["id"])
if user_rows and (fresh is None or fresh["status"] == "inactive"):
    st.session_state.clear()
    force_rerun()
if fresh:
    user = st.session_state["user"] = {**user, **fresh}
actor = Actor.from_session(user)
vis = resolve_snapshot(actor, user_rows, project_rows)

# ======================  SIDEBAR  ======================
with st.sidebar:
    st.caption(f"Signed in as **{user_label(user)}**")
    st.caption(f"Role: **{actor.role.label}**")
    if st.button("Sign out", use_container_width=True):
        st.session_state.clear()
        force_rerun()
    st.markdown("---")
    st.subheader("Projects")
    visible = [projects_by_id[pid] for pid in vis.visible_project_ids]
    current_project = None
    if visible:
        ids = [p["id"] for p in visible]
        selected = st.session_state.get("selected_project_id")
        idx = ids.index(selected) if selected in ids else 0
        current_project = st.selectbox("Open project", options=visible, index=idx,
                                       format_func=lambda p: p["name"])
        st.session_state["selected_project_id"] = current_project["id"]
        st.progress(current_project["progress"] / 100, text=f"{current_project['progress']}% complete")
        st.caption(f"{current_project['start_date'] or '—'} -> {current_project['end_date'] or '—'}")
    else:
        st.caption("No projects yet.")

if current_project:
    st.title(current_project["name"])
    if current_project["description"]:
        st.caption(current_project["description"])
else:
    st.title("Teamward")

# ---------- Tabs ----------
tabs = st.tabs(["Dashboard", "Projects", "Tasks", "Phases", "Team", "Users", "Knowledge Base", "Assistant"])
with tabs[0]:
    render_dashboard_panel(actor, vis, users_by_id)
with tabs[1]:
    render_projects_panel(actor, vis, projects_by_id, users_by_id)
with tabs[2]:
    render_tasks_panel(actor, vis, current_project, users_by_id)
with tabs[3]:
    render_phases_panel(actor, vis, current_project)
with tabs[4]:
    render_members_panel(actor, vis, current_project, users_by_id)
    render_activity_panel(actor, current_project)
with tabs[5]:
    render_users_panel(actor, vis, users_by_id, projects_by_id)
with tabs[6]:
    render_knowledge_panel(actor, vis, current_project, projects_by_id)
with tabs[7]:
    render_assistant_panel(actor, vis, current_project, users_by_id)
