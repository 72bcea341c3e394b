# taskhub/schemas/project.py
from typing import List, Optional

from pydantic import AliasChoices, Field, field_validator, model_validator

from taskhub.models.enums import MemberRole, Priority, ProjectStatus, ProjectType
from taskhub.schemas.common import (
    CamelModel,
    InputDateTime,
    UTCDateTime,
    clean_tags,
    reject_nulls,
)
from taskhub.schemas.user import UserBrief


class TeamMemberIn(CamelModel):
    user: int = Field(validation_alias=AliasChoices("user", "userId", "user_id"))
    role: MemberRole = MemberRole.MEMBER


class TeamMemberAdd(CamelModel):
    user_id: int
    role: MemberRole = MemberRole.MEMBER


class Budget(CamelModel):
    allocated: float = Field(default=0, ge=0)
    spent: float = Field(default=0, ge=0)
    currency: str = Field(default="USD", min_length=1, max_length=3)

    @field_validator("currency", mode="before")
    @classmethod
    def upper_currency(cls, v):
        return v.strip().upper() if isinstance(v, str) else v


class ProjectDetails(CamelModel):
    """Serialized as the project's ``metadata``"""

    client: Optional[str] = Field(default=None, max_length=50)
    department: Optional[str] = Field(default=None, max_length=30)
    project_type: ProjectType = ProjectType.INTERNAL


class _ProjectFields(CamelModel):
    @field_validator("title", mode="before", check_fields=False)
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("description", mode="before", check_fields=False)
    @classmethod
    def blank_description(cls, v):
        # null clears the description
        if v is None:
            return ""
        return v.strip() if isinstance(v, str) else v

    @field_validator("tags", check_fields=False)
    @classmethod
    def check_tags(cls, v):
        return clean_tags(v) if v is not None else v


class ProjectCreate(_ProjectFields):
    title: str = Field(min_length=3, max_length=100)
    description: str = Field(default="", max_length=500)
    status: ProjectStatus = ProjectStatus.PLANNING
    priority: Priority = Priority.MEDIUM
    start_date: Optional[InputDateTime] = None
    due_date: Optional[InputDateTime] = None
    progress: Optional[int] = Field(default=None, ge=0, le=100)
    tags: List[str] = Field(default_factory=list)
    budget: Optional[Budget] = None
    details: Optional[ProjectDetails] = Field(
        default=None, validation_alias=AliasChoices("metadata", "details")
    )
    team_members: List[TeamMemberIn] = Field(default_factory=list)


class ProjectUpdate(_ProjectFields):
    title: Optional[str] = Field(default=None, min_length=3, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    status: Optional[ProjectStatus] = None
    priority: Optional[Priority] = None
    due_date: Optional[InputDateTime] = None
    progress: Optional[int] = Field(default=None, ge=0, le=100)
    tags: Optional[List[str]] = None
    budget: Optional[Budget] = None
    details: Optional[ProjectDetails] = Field(
        default=None, validation_alias=AliasChoices("metadata", "details")
    )
    team_members: Optional[List[TeamMemberIn]] = None

    @model_validator(mode="after")
    def required_not_null(self):
        reject_nulls(self, ["title", "status", "priority", "progress", "tags", "team_members"])
        return self


class TeamMemberOut(CamelModel):
    user: UserBrief
    role: MemberRole
    joined_at: UTCDateTime


class ProjectBrief(CamelModel):
    id: int
    title: str
    status: ProjectStatus


class TaskStats(CamelModel):
    total: int = 0
    todo: int = 0
    in_progress: int = 0
    done: int = 0
    overall_progress: int = 0


class ProjectOut(CamelModel):
    id: int
    title: str
    description: str
    status: ProjectStatus
    priority: Priority
    owner: UserBrief
    team_members: List[TeamMemberOut]
    start_date: UTCDateTime
    due_date: Optional[UTCDateTime] = None
    progress: int
    tags: List[str]
    budget: Budget
    details: ProjectDetails = Field(serialization_alias="metadata")
    is_archived: bool
    archived_at: Optional[UTCDateTime] = None
    created_at: UTCDateTime
    updated_at: Optional[UTCDateTime] = None
    is_overdue: bool
    days_remaining: Optional[int] = None
    project_age: int
    task_stats: Optional[TaskStats] = None


class ProjectCounts(CamelModel):
    total: int = 0
    planning: int = 0
    in_progress: int = 0
    on_hold: int = 0
    completed: int = 0
    cancelled: int = 0


class TaskCounts(CamelModel):
    total: int = 0
    todo: int = 0
    in_progress: int = 0
    done: int = 0


class DashboardStats(CamelModel):
    projects: ProjectCounts
    tasks: TaskCounts
