# models/task.py
from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, TYPE_CHECKING
from datetime import date, datetime

from models.user import new_id, utcnow

if TYPE_CHECKING:
    from models.project import Project

TASK_STATUSES = ("todo", "in_progress", "in_review", "completed")
TASK_PRIORITIES = ("low", "medium", "high", "urgent")


class Task(SQLModel, table=True):
    __tablename__ = "tasks"
    __table_args__ = {"extend_existing": True}

    id: str = Field(default_factory=new_id, primary_key=True)
    project_id: str = Field(foreign_key="projects.id", index=True)
    phase_id: Optional[str] = Field(default=None, foreign_key="project_phases.id")
    title: str
    description: Optional[str] = None
    status: str = Field(default="todo")
    priority: str = Field(default="medium")
    assigned_to: Optional[str] = Field(default=None, foreign_key="users.id")
    created_by: Optional[str] = Field(default=None, foreign_key="users.id")
    due_date: Optional[date] = None
    estimated_hours: Optional[float] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    project: "Project" = Relationship(back_populates="tasks")
