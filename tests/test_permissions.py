# tests/test_permissions.py
import pytest

from utils.permissions import (
    Role, UserStatus, assignable_roles, can_create_user_with_role, can_delete_projects,
    can_edit_user, can_edit_notes, can_manage_tasks, can_manage_users, can_view_notes,
    can_view_user_details, role_weight,
)
from utils.visibility import Actor, UserRecord

ADMIN = Actor("a", Role.ADMIN)
PM = Actor("pm", Role.PROJECT_MANAGER)
EMP = Actor("e", Role.EMPLOYEE)


def test_role_parse():
    assert Role.parse("Project_Manager ") is Role.PROJECT_MANAGER
    assert Role.parse(Role.ADMIN) is Role.ADMIN
    assert UserStatus.parse("pending") is UserStatus.PENDING
    with pytest.raises(ValueError):
        Role.parse("owner")


def test_role_weight_orders_roles():
    assert role_weight("admin") > role_weight("project_manager") > role_weight("employee")
    assert role_weight("nobody") == 0


def test_user_creation_hierarchy():
    assert assignable_roles(Role.ADMIN) == [Role.EMPLOYEE, Role.PROJECT_MANAGER, Role.ADMIN]
    assert assignable_roles("project_manager") == [Role.EMPLOYEE]
    assert can_create_user_with_role("admin", "admin")
    assert can_create_user_with_role("project_manager", "employee")
    assert not can_create_user_with_role("project_manager", "admin")
    assert not can_create_user_with_role("employee", "employee")


def test_task_management():
    assert can_manage_tasks(ADMIN)
    assert can_manage_tasks(PM, "someone-else")
    assert can_manage_tasks(EMP, "e")
    assert not can_manage_tasks(EMP, "x")
    assert not can_manage_tasks(EMP)


def test_admin_only_capabilities():
    assert can_delete_projects(ADMIN)
    assert not can_delete_projects(PM)
    assert can_manage_users(PM)
    assert not can_manage_users(EMP)
    assert can_edit_notes(PM)
    assert not can_edit_notes(ADMIN)


def test_edit_user_admin_self_or_pm_over_employees():
    assert can_edit_user(ADMIN, UserRecord("pm2", Role.PROJECT_MANAGER))
    assert can_edit_user(EMP, UserRecord("e", Role.EMPLOYEE))
    assert not can_edit_user(EMP, UserRecord("e2", Role.EMPLOYEE))
    assert can_edit_user(PM, UserRecord("e", Role.EMPLOYEE))
    assert can_edit_user(PM, UserRecord("pm", Role.PROJECT_MANAGER))
    assert not can_edit_user(PM, UserRecord("pm2", Role.PROJECT_MANAGER))
    assert not can_edit_user(PM, UserRecord("a", Role.ADMIN))


def test_notes_are_read_by_staff_and_their_subject():
    assert can_view_notes(PM, "e")
    assert can_view_notes(ADMIN, "e")
    assert can_view_notes(EMP, "e")
    assert not can_view_notes(EMP, "e2")


def test_project_manager_cannot_view_admin_or_other_pm_details():
    assert not can_view_user_details(PM, UserRecord("a2", Role.ADMIN))
    assert not can_view_user_details(PM, UserRecord("pm2", Role.PROJECT_MANAGER))
    assert can_view_user_details(PM, UserRecord("pm", Role.PROJECT_MANAGER))
    assert can_view_user_details(PM, UserRecord("e", Role.EMPLOYEE))
    assert can_view_user_details(ADMIN, UserRecord("pm2", Role.PROJECT_MANAGER))
