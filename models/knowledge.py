# models/knowledge.py
from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

from models.user import new_id, utcnow


class KnowledgeDocument(SQLModel, table=True):
    __tablename__ = "project_documents"
    __table_args__ = {"extend_existing": True}

    id: str = Field(default_factory=new_id, primary_key=True)
    project_id: str = Field(foreign_key="projects.id", index=True)
    title: str
    content: str
    category: Optional[str] = None
    created_by: Optional[str] = Field(default=None, foreign_key="users.id")
    created_at: datetime = Field(default_factory=utcnow)


class ProjectActivity(SQLModel, table=True):
    __tablename__ = "project_activities"
    __table_args__ = {"extend_existing": True}

    id: str = Field(default_factory=new_id, primary_key=True)
    project_id: str = Field(foreign_key="projects.id", index=True)
    user_id: Optional[str] = Field(default=None, foreign_key="users.id")
    type: str  # task_created | task_updated | task_completed | member_added | member_removed | status_changed ...
    description: str
    created_at: datetime = Field(default_factory=utcnow)


class UserNote(SQLModel, table=True):
    __tablename__ = "user_notes"
    __table_args__ = {"extend_existing": True}

    id: str = Field(default_factory=new_id, primary_key=True)
    user_id: str = Field(foreign_key="users.id", index=True)
    note: str
    created_by: Optional[str] = Field(default=None, foreign_key="users.id")
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
