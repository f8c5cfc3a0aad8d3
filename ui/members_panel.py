# ui/members_panel.py
import streamlit as st
import pandas as pd

import db
from models.project_member import MEMBER_ROLES
from ui.common import run_action, user_label


def render_members_panel(actor, vis, project: dict | None, users_by_id: dict):
    st.subheader("Team")
    if project is None:
        st.info("Select a project in the sidebar to see its team.")
        return

    members = db.get_project_members(project["id"])
    c1, c2 = st.columns(2)
    c1.markdown(f"**Owner:** {user_label(users_by_id.get(project['owner_id']))}")
    c2.markdown(f"**Manager:** {user_label(users_by_id.get(project['manager_id']))}")

    data = [{"Name": m["full_name"] or "—", "Email": m["email"], "Project role": m["role"],
             "Department": m["department"], "Position": m["position"]} for m in members]
    st.dataframe(pd.DataFrame(data, columns=["Name", "Email", "Project role", "Department", "Position"]),
                 use_container_width=True, hide_index=True)

    if not vis.can_manage_project(project["id"]):
        return

    member_ids = {m["user_id"] for m in members}
    candidates = [u for u in (*vis.visible_users, *vis.other_users)
                  if u.id not in member_ids and vis.can_manage_user(u)]
    with st.form(f"add_member_{project['id']}", clear_on_submit=True):
        a1, a2 = st.columns([3, 1])
        who = a1.selectbox("Add member", [None] + [u.id for u in candidates],
                           format_func=lambda i: "—" if i is None else user_label(users_by_id.get(i)))
        role = a2.selectbox("Role", MEMBER_ROLES)
        add = st.form_submit_button("Add")
    if add and who:
        run_action(db.set_member, actor, project["id"], who, role,
                   success=f"Added {user_label(users_by_id.get(who))} as {role}.")

    for m in members:
        r1, r2, r3 = st.columns([3, 1, 1])
        r1.write(user_label(m))
        new_role = r2.selectbox("Role", MEMBER_ROLES, index=MEMBER_ROLES.index(m["role"]),
                                key=f"mrole_{project['id']}_{m['user_id']}", label_visibility="collapsed")
        if new_role != m["role"]:
            run_action(db.set_member, actor, project["id"], m["user_id"], new_role, success="Role updated.")
        if r3.button("Remove", key=f"mrm_{project['id']}_{m['user_id']}"):
            run_action(db.remove_member, actor, project["id"], m["user_id"], success="Member removed.")
