# db.py

#============================================================#
#                          Teamward                          #
#============================================================#
# Created     : 2026-10-18                                   #
# Version     : V1.0.0                                       #
#------------------------------------------------------------#
# Purpose     : Data layer for users, projects, memberships, #
#               tasks, phases and the knowledge base         #
#               (SQLite/Postgres/Supabase via SQLModel)      #
#                                                            #
# Change Log  :                                              #
#  - V1.0.0 (2026-10-18): Initial release.                   #
#============================================================#


from __future__ import annotations

import logging
from datetime import date
from typing import Optional, List, Dict, Iterable

from sqlalchemy import create_engine, func, or_, update
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, select

import config
from models.user import utcnow
from models import User, Project, ProjectMember, Phase, Task, KnowledgeDocument, ProjectActivity, UserNote
from models.project import PROJECT_STATUSES
from models.project_member import MEMBER_ROLES
from models.task import TASK_STATUSES, TASK_PRIORITIES
from models.phase import PHASE_STATUSES
from utils.permissions import (
    PermissionDenied, Role, UserStatus,
    can_create_user_with_role, can_create_projects, can_delete_projects,
    can_edit_notes, can_edit_user, can_manage_phases, can_manage_projects, can_manage_tasks,
    can_view_notes,
    is_admin,
)
from utils.progress import compute_project_progress

logger = logging.getLogger(__name__)

# ---- Engine / Session ----
engine = None
SessionLocal = None


def configure(url: Optional[str] = None):
    """(Re)bind the engine; in-memory SQLite shares one connection across sessions."""
    global engine, SessionLocal
    url = url or config.database_url()
    kwargs = {"pool_pre_ping": True}
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    engine = create_engine(url, **kwargs)
    SessionLocal = sessionmaker(bind=engine, class_=Session, autoflush=False, expire_on_commit=False)
    logger.info("database configured: %s", engine.url.render_as_string(hide_password=True))
    return engine


configure()


def init_db():
    SQLModel.metadata.create_all(engine)


def get_session() -> Session:
    return SessionLocal()


# ---- serialisers (plain dicts avoid detached lazy loads) ----
def _user_dict(u: User) -> Dict:
    return {
        "id": u.id, "email": u.email, "full_name": u.full_name, "role": u.role,
        "status": u.status, "department": u.department, "position": u.position,
        "created_at": u.created_at, "last_login": u.last_login,
    }


def _member_dict(m: ProjectMember) -> Dict:
    return {"project_id": m.project_id, "user_id": m.user_id, "role": m.role, "joined_at": m.joined_at}


def _project_dict(p: Project, members: Iterable[ProjectMember] = ()) -> Dict:
    return {
        "id": p.id, "name": p.name, "description": p.description, "status": p.status,
        "start_date": p.start_date, "end_date": p.end_date,
        "owner_id": p.owner_id, "manager_id": p.manager_id,
        "budget": p.budget, "progress": p.progress, "created_at": p.created_at,
        "members": [_member_dict(m) for m in members],
    }


def _task_dict(t: Task) -> Dict:
    return {
        "id": t.id, "project_id": t.project_id, "phase_id": t.phase_id, "title": t.title,
        "description": t.description, "status": t.status, "priority": t.priority,
        "assigned_to": t.assigned_to, "created_by": t.created_by, "due_date": t.due_date,
        "estimated_hours": t.estimated_hours, "updated_at": t.updated_at,
    }


def _phase_dict(ph: Phase) -> Dict:
    return {
        "id": ph.id, "project_id": ph.project_id, "name": ph.name, "description": ph.description,
        "status": ph.status, "sequence_order": ph.sequence_order,
        "start_date": ph.start_date, "end_date": ph.end_date,
    }


def _doc_dict(d: KnowledgeDocument) -> Dict:
    return {
        "id": d.id, "project_id": d.project_id, "title": d.title, "content": d.content,
        "category": d.category, "created_by": d.created_by, "created_at": d.created_at,
    }


def _require(allowed: bool, what: str):
    if not allowed:
        raise PermissionDenied(f"Not allowed to {what}")


def _check_choice(value: str, choices, kind: str) -> str:
    if value not in choices:
        raise ValueError(f"Invalid {kind}: {value!r}")
    return value


def _log_activity(s: Session, project_id: str, actor, type_: str, description: str):
    s.add(ProjectActivity(project_id=project_id, user_id=getattr(actor, "id", None),
                          type=type_, description=description))


def _project_manageable(s: Session, actor, project_id: str) -> Project:
    """Load the project and make sure the actor may change it."""
    p = s.get(Project, project_id)
    if not p:
        raise ValueError("Project not found")
    if is_admin(actor):
        return p
    _require(can_manage_projects(actor), "manage projects")
    if actor.id in (p.owner_id, p.manager_id):
        return p
    m = s.exec(select(ProjectMember).where(ProjectMember.project_id == project_id,
                                           ProjectMember.user_id == actor.id)).first()
    _require(m is not None and m.role == "manager", "manage this project")
    return p


# ---- auth ----
def login(email: str, full_name: Optional[str] = None) -> Dict:
    """Get-or-create the account. The first account ever created becomes admin."""
    email = email.strip().lower()
    with get_session() as s:
        user = s.exec(select(User).where(User.email == email)).one_or_none()
        if not user:
            first = s.exec(select(func.count()).select_from(User)).one() == 0
            user = User(email=email, full_name=full_name or None,
                        role=Role.ADMIN.value if first else Role.EMPLOYEE.value)
            s.add(user)
            logger.info("created account %s (%s)", email, user.role)
        elif user.status == UserStatus.INACTIVE.value:
            raise PermissionDenied("This account is inactive.")
        user.last_login = utcnow()
        s.commit()
        return _user_dict(user)


def get_user(user_id: str) -> Optional[Dict]:
    with get_session() as s:
        u = s.get(User, user_id)
        return _user_dict(u) if u else None


# ---- snapshots for the visibility resolver ----
def list_users() -> List[Dict]:
    with get_session() as s:
        rows = s.exec(select(User).order_by(User.created_at.desc())).all()
        return [_user_dict(u) for u in rows]


def list_projects() -> List[Dict]:
    with get_session() as s:
        projects = s.exec(select(Project).order_by(Project.created_at.desc())).all()
        members = s.exec(select(ProjectMember)).all()
    by_project: Dict[str, List[ProjectMember]] = {}
    for m in members:
        by_project.setdefault(m.project_id, []).append(m)
    return [_project_dict(p, by_project.get(p.id, [])) for p in projects]


# ---- users ----
def create_user(actor, email: str, full_name: Optional[str] = None, role: str = "employee",
                status: str = "active", department: Optional[str] = None,
                position: Optional[str] = None) -> str:
    role = Role.parse(role)
    status = UserStatus.parse(status)
    _require(can_create_user_with_role(actor.role, role), f"create {role.value} users")
    email = email.strip().lower()
    with get_session() as s:
        if s.exec(select(User).where(User.email == email)).one_or_none():
            raise ValueError(f"A user with email {email} already exists")
        u = User(email=email, full_name=full_name, role=role.value, status=status.value,
                 department=department, position=position)
        s.add(u)
        s.commit()
        logger.info("user %s created %s as %s", actor.id, email, role.value)
        return u.id


def update_user(actor, user_id: str, **fields) -> Dict:
    with get_session() as s:
        u = s.get(User, user_id)
        if not u:
            raise ValueError("User not found")
        _require(can_edit_user(actor, u), "edit this user")
        if "role" in fields:
            _require(is_admin(actor), "change roles")
            fields["role"] = Role.parse(fields["role"]).value
        if "status" in fields:
            _require(is_admin(actor), "change account status")
            fields["status"] = UserStatus.parse(fields["status"]).value
        for key in ("full_name", "role", "status", "department", "position"):
            if key in fields:
                setattr(u, key, fields[key])
        s.commit()
        return _user_dict(u)


_USER_REFERENCES = (
    (Project, "owner_id"), (Project, "manager_id"), (Project, "created_by"),
    (Task, "assigned_to"), (Task, "created_by"), (Phase, "created_by"),
    (KnowledgeDocument, "created_by"), (ProjectActivity, "user_id"), (UserNote, "created_by"),
)


def delete_user(actor, user_id: str) -> None:
    _require(is_admin(actor), "delete users")
    if actor.id == user_id:
        raise ValueError("You cannot delete your own account")
    with get_session() as s:
        u = s.get(User, user_id)
        if u:
            for m in s.exec(select(ProjectMember).where(ProjectMember.user_id == user_id)).all():
                s.delete(m)
            for note in s.exec(select(UserNote).where(UserNote.user_id == user_id)).all():
                s.delete(note)
            # keep the history rows, drop the reference
            for model, name in _USER_REFERENCES:
                s.execute(update(model).where(getattr(model, name) == user_id).values({name: None}))
            s.delete(u)
            s.commit()
            logger.info("user %s deleted %s", actor.id, user_id)


# ---- projects ----
def create_project(actor, name: str, start: Optional[date] = None, end: Optional[date] = None,
                   description: Optional[str] = None, status: str = "planning",
                   manager_id: Optional[str] = None, budget: Optional[float] = None,
                   member_ids: Optional[List[str]] = None) -> str:
    _require(can_create_projects(actor), "create projects")
    if not name or not name.strip():
        raise ValueError("Project name is required")
    if start and end and end < start:
        raise ValueError("End date must be after start date")
    _check_choice(status, PROJECT_STATUSES, "project status")
    with get_session() as s:
        p = Project(name=name.strip(), description=description, status=status,
                    start_date=start, end_date=end, owner_id=actor.id, manager_id=manager_id,
                    budget=budget, created_by=actor.id)
        s.add(p)
        s.flush()
        if manager_id:
            s.add(ProjectMember(project_id=p.id, user_id=manager_id, role="manager"))
        for uid in dict.fromkeys(member_ids or []):
            if uid and uid != manager_id:
                s.add(ProjectMember(project_id=p.id, user_id=uid, role="member"))
        _log_activity(s, p.id, actor, "status_changed", f"Project created ({status})")
        s.commit()
        logger.info("project %s created by %s", p.id, actor.id)
        return p.id


def update_project(actor, project_id: str, **fields) -> Dict:
    with get_session() as s:
        p = _project_manageable(s, actor, project_id)
        if "status" in fields:
            _check_choice(fields["status"], PROJECT_STATUSES, "project status")
            if fields["status"] != p.status:
                _log_activity(s, p.id, actor, "status_changed",
                              f"Status changed from {p.status} to {fields['status']}")
        if "name" in fields and not (fields["name"] or "").strip():
            raise ValueError("Project name is required")
        start = fields.get("start_date", p.start_date)
        end = fields.get("end_date", p.end_date)
        if start and end and end < start:
            raise ValueError("End date must be after start date")
        for key in ("name", "description", "status", "start_date", "end_date", "manager_id", "budget"):
            if key in fields:
                setattr(p, key, fields[key].strip() if key == "name" else fields[key])
        s.commit()
        return _project_dict(p, s.exec(select(ProjectMember).where(ProjectMember.project_id == p.id)).all())


def delete_project(actor, project_id: str) -> None:
    _require(can_delete_projects(actor), "delete projects")
    with get_session() as s:
        p = s.get(Project, project_id)
        if not p:
            return
        for model in (Task, KnowledgeDocument, ProjectActivity):
            for row in s.exec(select(model).where(model.project_id == project_id)).all():
                s.delete(row)
        s.flush()
        s.delete(p)
        s.commit()
        logger.info("project %s deleted by %s", project_id, actor.id)


# ---- membership ----
def get_project_members(project_id: str) -> List[Dict]:
    """Members joined with their user rows, ordered by email."""
    with get_session() as s:
        rows = s.exec(
            select(ProjectMember, User)
            .join(User, User.id == ProjectMember.user_id)
            .where(ProjectMember.project_id == project_id)
            .order_by(User.email)
        ).all()
    return [{**_member_dict(m), "email": u.email, "full_name": u.full_name,
             "user_role": u.role, "department": u.department, "position": u.position}
            for (m, u) in rows]


def set_member(actor, project_id: str, user_id: str, role: str = "member") -> None:
    _check_choice(role, MEMBER_ROLES, "member role")
    with get_session() as s:
        _project_manageable(s, actor, project_id)
        if not s.get(User, user_id):
            raise ValueError("User not found")
        m = s.exec(select(ProjectMember).where(ProjectMember.project_id == project_id,
                                               ProjectMember.user_id == user_id)).one_or_none()
        if not m:
            s.add(ProjectMember(project_id=project_id, user_id=user_id, role=role))
            _log_activity(s, project_id, actor, "member_added", f"Added {user_id} as {role}")
        else:
            m.role = role
        s.commit()


def remove_member(actor, project_id: str, user_id: str) -> None:
    with get_session() as s:
        _project_manageable(s, actor, project_id)
        m = s.exec(select(ProjectMember).where(ProjectMember.project_id == project_id,
                                               ProjectMember.user_id == user_id)).one_or_none()
        if m:
            s.delete(m)
            _log_activity(s, project_id, actor, "member_removed", f"Removed {user_id}")
            s.commit()


# ---- tasks ----
def _refresh_progress(s: Session, project_id: str) -> int:
    s.flush()
    tasks = s.exec(select(Task).where(Task.project_id == project_id)).all()
    progress = compute_project_progress([{"status": t.status} for t in tasks])
    p = s.get(Project, project_id)
    if p and p.progress != progress:
        p.progress = progress
    return progress


def _check_phase(s: Session, project_id: str, phase_id: Optional[str]):
    if phase_id:
        ph = s.get(Phase, phase_id)
        if not ph or ph.project_id != project_id:
            raise ValueError("Phase not found in this project")


def get_tasks_for_projects(project_ids: Iterable[str]) -> List[Dict]:
    ids = list(project_ids)
    if not ids:
        return []
    with get_session() as s:
        rows = s.exec(select(Task).where(Task.project_id.in_(ids))
                      .order_by(Task.due_date.is_(None), Task.due_date, Task.created_at)).all()
        return [_task_dict(t) for t in rows]


def add_or_update_task(actor, project_id: str, title: str, status: str = "todo",
                       priority: str = "medium", description: Optional[str] = None,
                       assigned_to: Optional[str] = None, due_date: Optional[date] = None,
                       estimated_hours: Optional[float] = None, phase_id: Optional[str] = None,
                       task_id: Optional[str] = None) -> str:
    _require(can_manage_tasks(actor), "manage tasks")
    if not title or not title.strip():
        raise ValueError("Task title is required")
    _check_choice(status, TASK_STATUSES, "task status")
    _check_choice(priority, TASK_PRIORITIES, "task priority")
    with get_session() as s:
        if task_id:
            t = s.get(Task, task_id)
            if not t or t.project_id != project_id:
                raise ValueError("Task not found")
            _project_manageable(s, actor, t.project_id)
            _check_phase(s, project_id, phase_id)
            kind = "task_completed" if status == "completed" and t.status != "completed" else "task_updated"
            t.title, t.status, t.priority, t.description = title.strip(), status, priority, description
            t.assigned_to, t.due_date, t.estimated_hours, t.phase_id = assigned_to, due_date, estimated_hours, phase_id
            t.updated_at = utcnow()
        else:
            _project_manageable(s, actor, project_id)
            _check_phase(s, project_id, phase_id)
            t = Task(project_id=project_id, title=title.strip(), status=status, priority=priority,
                     description=description, assigned_to=assigned_to, due_date=due_date,
                     estimated_hours=estimated_hours, phase_id=phase_id, created_by=actor.id)
            s.add(t)
            kind = "task_created"
        _log_activity(s, t.project_id, actor, kind, t.title)
        _refresh_progress(s, t.project_id)
        s.commit()
        return t.id


def update_task_status(actor, task_id: str, status: str) -> None:
    _check_choice(status, TASK_STATUSES, "task status")
    with get_session() as s:
        t = s.get(Task, task_id)
        if not t:
            raise ValueError("Task not found")
        # assignees move their own tasks; anyone else needs to manage the project
        if not (is_admin(actor) or (t.assigned_to and t.assigned_to == actor.id)):
            _project_manageable(s, actor, t.project_id)
        if t.status != status:
            kind = "task_completed" if status == "completed" else "status_changed"
            _log_activity(s, t.project_id, actor, kind, f"{t.title}: {t.status} -> {status}")
            t.status = status
            t.updated_at = utcnow()
            _refresh_progress(s, t.project_id)
        s.commit()


def delete_task(actor, task_id: str) -> None:
    _require(can_manage_tasks(actor), "delete tasks")
    with get_session() as s:
        t = s.get(Task, task_id)
        if t:
            _project_manageable(s, actor, t.project_id)
            project_id = t.project_id
            s.delete(t)
            _log_activity(s, project_id, actor, "task_updated", f"Deleted task {t.title}")
            _refresh_progress(s, project_id)
            s.commit()


# ---- phases ----
def get_phases_for_project(project_id: str) -> List[Dict]:
    with get_session() as s:
        rows = s.exec(select(Phase).where(Phase.project_id == project_id)
                      .order_by(Phase.sequence_order)).all()
        return [_phase_dict(ph) for ph in rows]


def add_or_update_phase(actor, project_id: str, name: str, status: str = "pending",
                        description: Optional[str] = None, sequence_order: Optional[int] = None,
                        start: Optional[date] = None, end: Optional[date] = None,
                        phase_id: Optional[str] = None) -> str:
    _require(can_manage_phases(actor), "manage phases")
    if not name or not name.strip():
        raise ValueError("Phase name is required")
    _check_choice(status, PHASE_STATUSES, "phase status")
    if start and end and end < start:
        raise ValueError("End date must be after start date")
    with get_session() as s:
        _project_manageable(s, actor, project_id)
        if sequence_order is None:
            current = s.exec(select(func.max(Phase.sequence_order))
                             .where(Phase.project_id == project_id)).one()
            sequence_order = (current or 0) + 1
        if phase_id:
            ph = s.get(Phase, phase_id)
            if not ph or ph.project_id != project_id:
                raise ValueError("Phase not found")
            ph.name, ph.status, ph.description = name.strip(), status, description
            ph.sequence_order, ph.start_date, ph.end_date = sequence_order, start, end
        else:
            ph = Phase(project_id=project_id, name=name.strip(), status=status, description=description,
                       sequence_order=sequence_order, start_date=start, end_date=end, created_by=actor.id)
            s.add(ph)
        s.commit()
        return ph.id


def delete_phase(actor, phase_id: str) -> None:
    _require(can_manage_phases(actor), "delete phases")
    with get_session() as s:
        ph = s.get(Phase, phase_id)
        if ph:
            _project_manageable(s, actor, ph.project_id)
            for t in s.exec(select(Task).where(Task.phase_id == phase_id)).all():
                t.phase_id = None
            s.flush()
            s.delete(ph)
            s.commit()


# ---- knowledge base ----
def get_documents_for_project(project_id: str) -> List[Dict]:
    with get_session() as s:
        rows = s.exec(select(KnowledgeDocument).where(KnowledgeDocument.project_id == project_id)
                      .order_by(KnowledgeDocument.created_at.desc())).all()
        return [_doc_dict(d) for d in rows]


def search_documents(project_ids: Iterable[str], query: str) -> List[Dict]:
    ids = list(project_ids)
    if not ids:
        return []
    stmt = select(KnowledgeDocument).where(KnowledgeDocument.project_id.in_(ids))
    q = (query or "").strip()
    if q:
        like = f"%{q.lower()}%"
        stmt = stmt.where(or_(func.lower(KnowledgeDocument.title).like(like),
                              func.lower(KnowledgeDocument.content).like(like)))
    with get_session() as s:
        return [_doc_dict(d) for d in s.exec(stmt.order_by(KnowledgeDocument.title)).all()]


def add_document(actor, project_id: str, title: str, content: str, category: Optional[str] = None) -> str:
    if not title.strip() or not content.strip():
        raise ValueError("Title and content are required")
    with get_session() as s:
        _project_manageable(s, actor, project_id)
        d = KnowledgeDocument(project_id=project_id, title=title.strip(), content=content,
                              category=category or None, created_by=actor.id)
        s.add(d)
        s.commit()
        return d.id


def delete_document(actor, document_id: str) -> None:
    with get_session() as s:
        d = s.get(KnowledgeDocument, document_id)
        if d:
            _project_manageable(s, actor, d.project_id)
            s.delete(d)
            s.commit()


# ---- activity ----
def get_activity_for_project(project_id: str, limit: int = 50) -> List[Dict]:
    with get_session() as s:
        rows = s.exec(
            select(ProjectActivity, User.full_name, User.email)
            .outerjoin(User, User.id == ProjectActivity.user_id)
            .where(ProjectActivity.project_id == project_id)
            .order_by(ProjectActivity.created_at.desc())
            .limit(limit)
        ).all()
    return [{"type": a.type, "description": a.description, "created_at": a.created_at,
             "user": name or email}
            for (a, name, email) in rows]


def get_recent_activity(project_ids: Iterable[str], limit: int = 10) -> List[Dict]:
    """Latest activity across several projects, newest first."""
    ids = list(project_ids)
    if not ids:
        return []
    with get_session() as s:
        rows = s.exec(
            select(ProjectActivity, Project.name, User.full_name, User.email)
            .join(Project, Project.id == ProjectActivity.project_id)
            .outerjoin(User, User.id == ProjectActivity.user_id)
            .where(ProjectActivity.project_id.in_(ids))
            .order_by(ProjectActivity.created_at.desc())
            .limit(limit)
        ).all()
    return [{"type": a.type, "description": a.description, "created_at": a.created_at,
             "project": project_name, "user": name or email}
            for (a, project_name, name, email) in rows]


# ---- user notes ----
def get_user_notes(actor, user_id: str) -> List[Dict]:
    """Notes about a user, newest first, with the author's name."""
    _require(can_view_notes(actor, user_id), "view these notes")
    with get_session() as s:
        rows = s.exec(
            select(UserNote, User.full_name, User.email)
            .outerjoin(User, User.id == UserNote.created_by)
            .where(UserNote.user_id == user_id)
            .order_by(UserNote.created_at.desc())
        ).all()
    return [{"id": n.id, "user_id": n.user_id, "note": n.note, "created_by": n.created_by,
             "author": name or email, "created_at": n.created_at, "updated_at": n.updated_at}
            for (n, name, email) in rows]


def save_user_note(actor, user_id: str, note: str, note_id: Optional[str] = None) -> str:
    _require(can_edit_notes(actor), "edit notes")
    if not note or not note.strip():
        raise ValueError("Please enter a note")
    with get_session() as s:
        if note_id:
            n = s.get(UserNote, note_id)
            if not n or n.user_id != user_id:
                raise ValueError("Note not found")
            n.note, n.updated_at = note.strip(), utcnow()
        else:
            if not s.get(User, user_id):
                raise ValueError("User not found")
            n = UserNote(user_id=user_id, note=note.strip(), created_by=actor.id)
            s.add(n)
        s.commit()
        return n.id


def delete_user_note(actor, note_id: str) -> None:
    _require(can_edit_notes(actor), "delete notes")
    with get_session() as s:
        n = s.get(UserNote, note_id)
        if n:
            s.delete(n)
            s.commit()
