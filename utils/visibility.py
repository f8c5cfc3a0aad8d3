# utils/visibility.py
"""Role-based visibility of users and projects.

``resolve`` works on a snapshot the caller already fetched (see
``db.list_users`` / ``db.list_projects``) and never touches the database.
Output ordering follows the input ordering; callers sort on top.
"""
import logging
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional

from utils.permissions import Role

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Actor:
    id: Optional[str]
    role: Role
    status: str = "active"

    @property
    def is_resolved(self) -> bool:
        return bool(self.id)

    @classmethod
    def from_session(cls, user: Optional[Mapping]) -> "Actor":
        """Build from the signed-in user dict; missing user -> unresolved employee."""
        if not user:
            return cls(id=None, role=Role.EMPLOYEE)
        try:
            role = Role.parse(user.get("role") or Role.EMPLOYEE)
        except ValueError:
            logger.warning("user %s has unknown role %r; treating as employee", user.get("id"), user.get("role"))
            role = Role.EMPLOYEE
        return cls(id=user.get("id") or None, role=role, status=user.get("status") or "active")


@dataclass(frozen=True)
class UserRecord:
    id: str
    role: Role
    status: str = "active"
    department: Optional[str] = None
    position: Optional[str] = None
    email: Optional[str] = None
    full_name: Optional[str] = None

    @classmethod
    def from_mapping(cls, row: Mapping) -> "UserRecord":
        return cls(
            id=row["id"],
            role=Role.parse(row.get("role") or Role.EMPLOYEE),
            status=row.get("status") or "active",
            department=row.get("department"),
            position=row.get("position"),
            email=row.get("email"),
            full_name=row.get("full_name"),
        )


@dataclass(frozen=True)
class Membership:
    project_id: str
    user_id: str
    role: str = "member"

    @classmethod
    def from_mapping(cls, row: Mapping, project_id: Optional[str] = None) -> "Membership":
        return cls(
            project_id=row.get("project_id") or project_id,
            user_id=row["user_id"],
            role=row.get("role") or "member",
        )


@dataclass(frozen=True)
class ProjectRecord:
    id: str
    owner_id: Optional[str] = None
    manager_id: Optional[str] = None
    status: Optional[str] = None
    name: Optional[str] = None
    members: tuple = ()

    @classmethod
    def from_mapping(cls, row: Mapping) -> "ProjectRecord":
        raw_members = row.get("members") or row.get("team_members") or ()
        return cls(
            id=row["id"],
            owner_id=row.get("owner_id"),
            manager_id=row.get("manager_id"),
            status=row.get("status"),
            name=row.get("name"),
            members=tuple(Membership.from_mapping(m, row["id"]) for m in raw_members),
        )

    def member_ids(self) -> set:
        return {m.user_id for m in self.members}

    def associated_user_ids(self) -> set:
        """Members plus the (implicitly associated) owner and manager."""
        ids = self.member_ids()
        ids.update(i for i in (self.owner_id, self.manager_id) if i)
        return ids

    def involves(self, user_id: str) -> bool:
        return user_id in (self.owner_id, self.manager_id) or user_id in self.member_ids()

    def is_managed_by(self, user_id: str) -> bool:
        if user_id in (self.owner_id, self.manager_id):
            return True
        return any(m.user_id == user_id and m.role == "manager" for m in self.members)


@dataclass(frozen=True)
class Visibility:
    visible_users: tuple = ()
    other_users: tuple = ()
    visible_projects: tuple = ()
    can_manage: bool = False
    managed_project_ids: frozenset = field(default_factory=frozenset)
    actor_role: Optional[Role] = None

    @property
    def visible_user_ids(self) -> list:
        return [u.id for u in self.visible_users]

    @property
    def visible_project_ids(self) -> list:
        return [p.id for p in self.visible_projects]

    def can_manage_project(self, project_id: str) -> bool:
        return self.can_manage and project_id in self.managed_project_ids

    def can_manage_user(self, user: UserRecord) -> bool:
        if not self.can_manage:
            return False
        if self.actor_role is Role.ADMIN:
            return True
        return user.role is not Role.ADMIN


EMPTY = Visibility()


def _team_ids(projects: Iterable[ProjectRecord]) -> set:
    ids = set()
    for p in projects:
        ids |= p.associated_user_ids()
    return ids


def resolve(actor: Actor, all_users, all_projects) -> Visibility:
    if actor is None or not actor.is_resolved:
        return EMPTY

    users = tuple(all_users or ())
    projects = tuple(all_projects or ())

    if actor.role is Role.ADMIN:
        return Visibility(
            visible_users=users,
            visible_projects=projects,
            can_manage=True,
            managed_project_ids=frozenset(p.id for p in projects),
            actor_role=actor.role,
        )

    mine = tuple(p for p in projects if p.involves(actor.id))
    team = _team_ids(mine)

    if actor.role is Role.PROJECT_MANAGER:
        team.add(actor.id)
        return Visibility(
            visible_users=tuple(u for u in users if u.id in team),
            other_users=tuple(u for u in users if u.id not in team and u.role is not Role.ADMIN),
            visible_projects=mine,
            can_manage=True,
            managed_project_ids=frozenset(p.id for p in mine if p.is_managed_by(actor.id)),
            actor_role=actor.role,
        )

    return Visibility(
        visible_users=tuple(u for u in users if u.id in team),
        visible_projects=mine,
        actor_role=actor.role,
    )


def resolve_snapshot(actor: Actor, user_rows, project_rows) -> Visibility:
    """Same as ``resolve`` but takes the plain dicts returned by ``db``.

    Rows with a role outside ``Role`` are left out of the result.
    """
    users = []
    for row in user_rows or []:
        try:
            users.append(UserRecord.from_mapping(row))
        except ValueError:
            logger.warning("skipping user %s with unknown role %r", row.get("id"), row.get("role"))
    projects = [ProjectRecord.from_mapping(r) for r in (project_rows or [])]
    return resolve(actor, users, projects)
