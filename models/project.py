# models/project.py
from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, List, TYPE_CHECKING
from datetime import date, datetime

from models.user import new_id, utcnow

if TYPE_CHECKING:
    from models.project_member import ProjectMember
    from models.task import Task
    from models.phase import Phase

PROJECT_STATUSES = ("planning", "active", "in_progress", "on_hold", "completed", "cancelled", "archived")


class Project(SQLModel, table=True):
    __tablename__ = "projects"
    __table_args__ = {"extend_existing": True}

    id: str = Field(default_factory=new_id, primary_key=True)
    name: str = Field(index=True)
    description: Optional[str] = None
    status: str = Field(default="planning")
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    owner_id: Optional[str] = Field(default=None, foreign_key="users.id")
    manager_id: Optional[str] = Field(default=None, foreign_key="users.id")
    budget: Optional[float] = None
    progress: int = Field(default=0)  # 0..100
    created_by: Optional[str] = Field(default=None, foreign_key="users.id")
    created_at: datetime = Field(default_factory=utcnow)

    members: List["ProjectMember"] = Relationship(
        back_populates="project", sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )
    tasks: List["Task"] = Relationship(
        back_populates="project", sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )
    phases: List["Phase"] = Relationship(
        back_populates="project", sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )
