# models/project_member.py
from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import UniqueConstraint
from typing import TYPE_CHECKING
from datetime import datetime

from models.user import new_id, utcnow

if TYPE_CHECKING:
    from models.project import Project
    from models.user import User

MEMBER_ROLES = ("member", "manager")


class ProjectMember(SQLModel, table=True):
    __tablename__ = "project_members"
    __table_args__ = (
        UniqueConstraint("project_id", "user_id", name="uq_project_user"),
        {"extend_existing": True},
    )

    id: str = Field(default_factory=new_id, primary_key=True)
    project_id: str = Field(foreign_key="projects.id", index=True)
    user_id: str = Field(foreign_key="users.id", index=True)
    role: str = Field(default="member")  # member | manager (scoped to this project)
    joined_at: datetime = Field(default_factory=utcnow)

    project: "Project" = Relationship(back_populates="members")
    user: "User" = Relationship(back_populates="memberships")
