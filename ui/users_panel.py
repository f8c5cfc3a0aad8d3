# ui/users_panel.py
import streamlit as st
import pandas as pd

import db
from ui.common import run_action, user_label
from utils.permissions import (
    Role, UserStatus, assignable_roles, can_edit_notes, can_edit_user, can_manage_users,
    can_view_notes, can_view_user_details, is_admin, role_weight,
)

SORT_FIELDS = {"Name": "full_name", "Email": "email", "Role": "role", "Status": "status"}


def _sorted(users, field: str, descending: bool):
    if field == "role":
        # heaviest role first when ascending
        key = lambda u: -role_weight(u.role)
    else:
        key = lambda u: str(getattr(u, field) or "").lower()
    return sorted(users, key=key, reverse=descending)


def _users_frame(users, project_names: dict) -> pd.DataFrame:
    return pd.DataFrame([{
        "Name": u.full_name or "—",
        "Email": u.email,
        "Role": u.role.label,
        "Status": u.status,
        "Department": u.department,
        "Position": u.position,
        "Projects": ", ".join(project_names.get(u.id, [])),
    } for u in users], columns=["Name", "Email", "Role", "Status", "Department", "Position", "Projects"])


def _render_new_user(actor):
    with st.expander("New user"):
        with st.form("new_user", clear_on_submit=True):
            email = st.text_input("Email")
            full_name = st.text_input("Full name")
            c1, c2 = st.columns(2)
            role = c1.selectbox("Role", assignable_roles(actor.role), format_func=lambda r: r.label)
            status = c2.selectbox("Status", list(UserStatus), format_func=lambda s: s.value)
            c3, c4 = st.columns(2)
            department = c3.text_input("Department")
            position = c4.text_input("Position")
            submitted = st.form_submit_button("Create user")
        if submitted:
            if not email:
                st.warning("Please enter an email.")
            else:
                run_action(db.create_user, actor, email, full_name or None, role=role, status=status,
                           department=department or None, position=position or None,
                           success=f"Created {email}.")


def _render_notes(actor, user):
    st.markdown("**Notes**")
    notes = db.get_user_notes(actor, user.id)
    editable = can_edit_notes(actor)
    if not notes:
        st.caption("No notes yet.")
    for n in notes:
        st.markdown(n["note"])
        st.caption(f"{n['author'] or '—'} · {n['created_at']:%Y-%m-%d %H:%M}")
        if editable and st.button("Delete note", key=f"del_note_{n['id']}"):
            run_action(db.delete_user_note, actor, n["id"], success="Note deleted.")
    if editable:
        with st.form(f"note_{user.id}", clear_on_submit=True):
            text = st.text_area("Add a note")
            submitted = st.form_submit_button("Save note")
        if submitted:
            run_action(db.save_user_note, actor, user.id, text, success="Note saved.")


def _render_user_details(actor, user, users_by_id: dict, projects_by_id: dict):
    with st.expander(f"{user_label(users_by_id.get(user.id))} ({user.role.label})"):
        if not can_view_user_details(actor, user):
            st.error("You don't have permission to view this user's details.")
            return
        mine = [p for p in projects_by_id.values()
                if user.id in (p["owner_id"], p["manager_id"]) or any(m["user_id"] == user.id for m in p["members"])]
        st.markdown("**Projects:** " + (", ".join(p["name"] for p in mine) or "—"))

        if can_view_notes(actor, user.id):
            _render_notes(actor, user)
        if not can_edit_user(actor, user):
            return
        row = users_by_id[user.id]
        with st.form(f"edit_user_{user.id}"):
            full_name = st.text_input("Full name", value=row["full_name"] or "")
            c1, c2 = st.columns(2)
            department = c1.text_input("Department", value=row["department"] or "")
            position = c2.text_input("Position", value=row["position"] or "")
            fields = {}
            if is_admin(actor):
                c3, c4 = st.columns(2)
                fields["role"] = c3.selectbox("Role", list(Role), index=list(Role).index(user.role),
                                              format_func=lambda r: r.label)
                fields["status"] = c4.selectbox("Status", list(UserStatus),
                                                index=list(UserStatus).index(UserStatus.parse(user.status)),
                                                format_func=lambda s: s.value)
            save = st.form_submit_button("Save")
        if save:
            run_action(db.update_user, actor, user.id, full_name=full_name or None,
                       department=department or None, position=position or None, **fields,
                       success="User updated.")
        if is_admin(actor) and user.id != actor.id:
            if st.button("Delete user", key=f"del_user_{user.id}"):
                run_action(db.delete_user, actor, user.id, success="User deleted.")


def render_users_panel(actor, vis, users_by_id: dict, projects_by_id: dict):
    st.subheader("Users")

    project_names: dict = {}
    for pid in vis.visible_project_ids:
        p = projects_by_id[pid]
        ids = {m["user_id"] for m in p["members"]} | {i for i in (p["owner_id"], p["manager_id"]) if i}
        for uid in ids:
            project_names.setdefault(uid, []).append(p["name"])

    f1, f2, f3 = st.columns([2, 1, 1])
    query = f1.text_input("Search users", key="user_search").strip().lower()
    role_filter = f2.selectbox("Role", ["all", *list(Role)], key="user_role",
                               format_func=lambda r: "All" if r == "all" else r.label)
    status_filter = f3.selectbox("Status", ["all", *list(UserStatus)], key="user_status",
                                 format_func=lambda s: "All" if s == "all" else s.value)
    s1, s2 = st.columns([1, 1])
    sort_by = s1.selectbox("Sort by", list(SORT_FIELDS), key="user_sort")
    descending = s2.checkbox("Descending", key="user_desc")

    def _filter(users):
        out = []
        for u in users:
            if query and query not in (u.full_name or "").lower() and query not in (u.email or "").lower():
                continue
            if role_filter != "all" and u.role is not role_filter:
                continue
            if status_filter != "all" and u.status != status_filter.value:
                continue
            out.append(u)
        return _sorted(out, SORT_FIELDS[sort_by], descending)

    team = _filter(vis.visible_users)
    label = "All users" if is_admin(actor) else "My team"
    tabs = st.tabs([label, "Other users"]) if actor.role is Role.PROJECT_MANAGER else [st.container()]
    with tabs[0]:
        if team:
            st.dataframe(_users_frame(team, project_names), use_container_width=True, hide_index=True)
        else:
            st.info("No users to show.")
        for u in team:
            _render_user_details(actor, u, users_by_id, projects_by_id)
    if len(tabs) > 1:
        with tabs[1]:
            others = _filter(vis.other_users)
            st.caption("Users outside your projects. Add them to a project from the Team tab.")
            st.dataframe(_users_frame(others, project_names), use_container_width=True, hide_index=True)

    if can_manage_users(actor):
        _render_new_user(actor)
