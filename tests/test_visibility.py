# tests/test_visibility.py
import copy

from utils.permissions import Role
from utils.visibility import (
    Actor, Membership, ProjectRecord, UserRecord, Visibility, resolve, resolve_snapshot,
)


def _user(uid, role=Role.EMPLOYEE):
    return UserRecord(id=uid, role=role)


def _project(pid, members=(), owner_id=None, manager_id=None):
    return ProjectRecord(id=pid, owner_id=owner_id, manager_id=manager_id,
                         members=tuple(Membership(project_id=pid, user_id=m) for m in members))


USERS = [
    _user("adm", Role.ADMIN),
    _user("pm1", Role.PROJECT_MANAGER),
    _user("pm2", Role.PROJECT_MANAGER),
    _user("u1"),
    _user("u2"),
    _user("u3"),
]
PROJECTS = [
    _project("p1", members=["u1", "u2"], owner_id="adm", manager_id="pm1"),
    _project("p2", members=["u3"], owner_id="pm2"),
    _project("p3", members=["pm1", "u3"]),
    _project("p4"),
]


def test_admin_sees_everything():
    vis = resolve(Actor("adm", Role.ADMIN), USERS, PROJECTS)
    assert list(vis.visible_users) == USERS
    assert list(vis.visible_projects) == PROJECTS
    assert vis.other_users == ()
    assert vis.can_manage
    assert all(vis.can_manage_project(p.id) for p in PROJECTS)
    assert vis.can_manage_user(USERS[0])


def test_employee_only_sees_projects_it_is_part_of():
    for uid in ("u1", "u2", "u3"):
        vis = resolve(Actor(uid, Role.EMPLOYEE), USERS, PROJECTS)
        assert vis.visible_projects
        for p in vis.visible_projects:
            assert p.involves(uid)
        hidden = [p for p in PROJECTS if p not in vis.visible_projects]
        assert all(not p.involves(uid) for p in hidden)
        assert not vis.can_manage
        assert vis.other_users == ()


def test_employee_sees_teammates_including_owner_and_manager():
    vis = resolve(Actor("u1", Role.EMPLOYEE), USERS, PROJECTS)
    assert vis.visible_user_ids == ["adm", "pm1", "u1", "u2"]
    assert not vis.can_manage_project("p1")


def test_owner_counts_as_involved():
    vis = resolve(Actor("pm2", Role.PROJECT_MANAGER), USERS, PROJECTS)
    assert vis.visible_project_ids == ["p2"]
    assert vis.visible_user_ids == ["pm2", "u3"]


def test_project_manager_sees_managed_and_member_projects():
    vis = resolve(Actor("pm1", Role.PROJECT_MANAGER), USERS, PROJECTS)
    assert vis.visible_project_ids == ["p1", "p3"]
    assert vis.visible_user_ids == ["adm", "pm1", "u1", "u2", "u3"]
    assert vis.can_manage
    assert vis.can_manage_project("p1")
    # plain member of p3, not its manager
    assert not vis.can_manage_project("p3")


def test_project_manager_other_users_never_include_admins():
    users = USERS + [_user("adm2", Role.ADMIN), _user("u9")]
    vis = resolve(Actor("pm2", Role.PROJECT_MANAGER), users, PROJECTS)
    assert all(u.role is not Role.ADMIN for u in vis.other_users)
    assert [u.id for u in vis.other_users] == ["pm1", "u1", "u2", "u9"]
    assert not set(vis.visible_user_ids) & {u.id for u in vis.other_users}


def test_project_manager_cannot_manage_admin_users():
    vis = resolve(Actor("pm1", Role.PROJECT_MANAGER), USERS, PROJECTS)
    assert not vis.can_manage_user(_user("adm", Role.ADMIN))
    assert vis.can_manage_user(_user("u9"))


def test_membership_role_manager_grants_management():
    project = ProjectRecord(id="p9", members=(Membership("p9", "pm2", "manager"),))
    vis = resolve(Actor("pm2", Role.PROJECT_MANAGER), USERS, [project])
    assert vis.can_manage_project("p9")


def test_members_are_deduplicated():
    project = _project("p1", members=["u1", "u1", "pm1"], owner_id="u1", manager_id="pm1")
    vis = resolve(Actor("u1", Role.EMPLOYEE), USERS, [project])
    assert vis.visible_user_ids == ["pm1", "u1"]


def test_scenario_employee_member():
    projects = [_project("p1", members=["u1"]), _project("p2", members=["u2"])]
    vis = resolve(Actor("u1", Role.EMPLOYEE), [_user("u1"), _user("u2")], projects)
    assert vis.visible_project_ids == ["p1"]


def test_scenario_project_manager_team():
    users = [_user("u1"), _user("u2"), _user("u3", Role.ADMIN), _user("pm1", Role.PROJECT_MANAGER)]
    projects = [_project("p1", members=["u1", "u2"], manager_id="pm1")]
    vis = resolve(Actor("pm1", Role.PROJECT_MANAGER), users, projects)
    assert vis.visible_user_ids == ["u1", "u2", "pm1"]
    assert "u3" not in [u.id for u in vis.other_users]


def test_unresolved_actor_gets_empty_sets():
    vis = resolve(Actor("", Role.EMPLOYEE), USERS, PROJECTS)
    assert vis == Visibility()
    assert vis.visible_users == () and vis.other_users == () and vis.visible_projects == ()
    assert not vis.can_manage
    assert resolve(Actor.from_session(None), USERS, PROJECTS) == Visibility()


def test_output_keeps_input_order():
    users = list(reversed(USERS))
    vis = resolve(Actor("adm", Role.ADMIN), users, PROJECTS)
    assert list(vis.visible_users) == users


def test_resolve_is_idempotent_and_pure():
    users, projects = list(USERS), list(PROJECTS)
    before_users, before_projects = copy.deepcopy(users), copy.deepcopy(projects)
    for actor in (Actor("adm", Role.ADMIN), Actor("pm1", Role.PROJECT_MANAGER), Actor("u3", Role.EMPLOYEE)):
        assert resolve(actor, users, projects) == resolve(actor, users, projects)
    assert users == before_users
    assert projects == before_projects


def test_resolve_snapshot_accepts_db_rows():
    user_rows = [
        {"id": "u1", "role": "employee", "status": "active", "email": "a@x.com"},
        {"id": "pm1", "role": "project_manager", "status": "active"},
    ]
    project_rows = [
        {"id": "p1", "owner_id": None, "manager_id": "pm1", "members": [{"user_id": "u1", "role": "member"}]},
        {"id": "p2", "owner_id": None, "manager_id": None, "members": None},
    ]
    vis = resolve_snapshot(Actor.from_session({"id": "u1", "role": "employee"}), user_rows, project_rows)
    assert vis.visible_project_ids == ["p1"]
    assert vis.visible_user_ids == ["u1", "pm1"]
    assert vis.visible_projects[0].members[0].project_id == "p1"


def test_resolve_snapshot_skips_unknown_roles(caplog):
    user_rows = [
        {"id": "u1", "role": "employee"},
        {"id": "ghost", "role": "contractor"},
    ]
    project_rows = [{"id": "p1", "owner_id": "ghost", "members": [{"user_id": "u1"}]}]
    with caplog.at_level("WARNING", logger="utils.visibility"):
        vis = resolve_snapshot(Actor("adm", Role.ADMIN), user_rows, project_rows)
    assert vis.visible_user_ids == ["u1"]
    assert vis.visible_project_ids == ["p1"]
    assert "contractor" in caplog.text


def test_actor_with_unknown_role_is_treated_as_employee():
    actor = Actor.from_session({"id": "x", "role": "superuser"})
    assert actor.role is Role.EMPLOYEE
    assert actor.is_resolved
