# models/__init__.py
from .user import User
from .project import Project
from .project_member import ProjectMember
from .phase import Phase
from .task import Task
from .knowledge import KnowledgeDocument, ProjectActivity, UserNote
