# ui/knowledge_panel.py
import streamlit as st

import db
from ui.common import run_action


def render_knowledge_panel(actor, vis, project: dict | None, projects_by_id: dict):
    st.subheader("Knowledge Base")

    query = st.text_input("Search documents across your projects", key="kb_search")
    if query.strip():
        hits = db.search_documents(vis.visible_project_ids, query)
        st.caption(f"{len(hits)} match(es)")
        for d in hits:
            with st.expander(f"{d['title']} · {projects_by_id[d['project_id']]['name']}"):
                st.markdown(d["content"])

    if project is None:
        return
    st.markdown(f"**Documents in {project['name']}**")
    docs = db.get_documents_for_project(project["id"])
    manage = vis.can_manage_project(project["id"])
    if not docs:
        st.info("No documents yet.")
    for d in docs:
        with st.expander(f"{d['title']}" + (f" [{d['category']}]" if d["category"] else "")):
            st.markdown(d["content"])
            if manage and st.button("Delete", key=f"del_doc_{d['id']}"):
                run_action(db.delete_document, actor, d["id"], success="Document deleted.")

    if manage:
        with st.form(f"new_doc_{project['id']}", clear_on_submit=True):
            title = st.text_input("Title")
            category = st.text_input("Category (optional)")
            content = st.text_area("Content", height=180)
            submitted = st.form_submit_button("Add document")
        if submitted:
            run_action(db.add_document, actor, project["id"], title, content, category or None,
                       success="Document added.")
