# models/phase.py
from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, TYPE_CHECKING
from datetime import date

from models.user import new_id

if TYPE_CHECKING:
    from models.project import Project

PHASE_STATUSES = ("pending", "in_progress", "completed", "cancelled")


class Phase(SQLModel, table=True):
    __tablename__ = "project_phases"
    __table_args__ = {"extend_existing": True}

    id: str = Field(default_factory=new_id, primary_key=True)
    project_id: str = Field(foreign_key="projects.id", index=True)
    name: str
    description: Optional[str] = None
    status: str = Field(default="pending")
    sequence_order: int = Field(default=1)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    created_by: Optional[str] = Field(default=None, foreign_key="users.id")

    project: "Project" = Relationship(back_populates="phases")
