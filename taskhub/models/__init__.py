from .enums import (
    MemberRole,
    Priority,
    ProjectStatus,
    ProjectType,
    TaskCategory,
    TaskStatus,
    UserRole,
)
from .user import User
from .project import Project, ProjectMember
from .task import Task, TaskAttachment, TaskComment, task_dependencies
