# models/user.py
from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, List, TYPE_CHECKING
from datetime import datetime, timezone
import uuid

if TYPE_CHECKING:
    from models.project_member import ProjectMember


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class User(SQLModel, table=True):
    __tablename__ = "users"
    __table_args__ = {"extend_existing": True}

    id: str = Field(default_factory=new_id, primary_key=True)
    email: str = Field(index=True, unique=True)
    full_name: Optional[str] = None
    role: str = Field(default="employee", index=True)  # admin | project_manager | employee
    status: str = Field(default="active")  # active | inactive | pending
    department: Optional[str] = None
    position: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    last_login: Optional[datetime] = None

    memberships: List["ProjectMember"] = Relationship(back_populates="user")
