from .user import UserCreate, UserLogin, UserOut, UserBrief, ProfileUpdate, PasswordChange
from .tokens import Token
from .project import (
    ProjectCreate,
    ProjectUpdate,
    ProjectOut,
    ProjectBrief,
    TeamMemberAdd,
    TaskStats,
    DashboardStats,
)
from .task import TaskCreate, TaskUpdate, TaskOut, CommentCreate, AttachmentCreate
