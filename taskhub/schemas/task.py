# taskhub/schemas/task.py
from typing import List, Optional

from pydantic import AliasChoices, Field, field_validator, model_validator

from taskhub.models.enums import Priority, TaskCategory, TaskStatus
from taskhub.schemas.common import (
    CamelModel,
    InputDateTime,
    UTCDateTime,
    clean_tags,
    reject_nulls,
)
from taskhub.schemas.project import ProjectBrief
from taskhub.schemas.user import UserBrief


class _TaskFields(CamelModel):
    @field_validator("title", "blocked_reason", mode="before", check_fields=False)
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

    @field_validator("dependencies", check_fields=False)
    @classmethod
    def unique_dependencies(cls, v):
        if v is None:
            return v
        return list(dict.fromkeys(v))


class TaskCreate(_TaskFields):
    title: str = Field(min_length=3, max_length=100)
    description: str = Field(default="", max_length=1000)
    status: TaskStatus = TaskStatus.TODO
    priority: Priority = Priority.MEDIUM
    category: TaskCategory = TaskCategory.OTHER
    assigned_to: int = Field(validation_alias=AliasChoices("assignedTo", "assigned_to"))
    project: int = Field(validation_alias=AliasChoices("project", "projectId", "project_id"))
    due_date: InputDateTime
    start_date: Optional[InputDateTime] = None
    estimated_hours: float = Field(default=0, ge=0, le=1000)
    actual_hours: float = Field(default=0, ge=0)
    progress: Optional[int] = Field(default=None, ge=0, le=100)
    tags: List[str] = Field(default_factory=list)
    dependencies: List[int] = Field(default_factory=list)
    blocked_reason: Optional[str] = Field(default=None, max_length=200)


class TaskUpdate(_TaskFields):
    title: Optional[str] = Field(default=None, min_length=3, max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)
    status: Optional[TaskStatus] = None
    priority: Optional[Priority] = None
    category: Optional[TaskCategory] = None
    assigned_to: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("assignedTo", "assigned_to")
    )
    due_date: Optional[InputDateTime] = None
    estimated_hours: Optional[float] = Field(default=None, ge=0, le=1000)
    actual_hours: Optional[float] = Field(default=None, ge=0)
    progress: Optional[int] = Field(default=None, ge=0, le=100)
    tags: Optional[List[str]] = None
    dependencies: Optional[List[int]] = None
    blocked_reason: Optional[str] = Field(default=None, max_length=200)

    @model_validator(mode="after")
    def required_not_null(self):
        reject_nulls(
            self,
            [
                "title",
                "status",
                "priority",
                "category",
                "assigned_to",
                "due_date",
                "estimated_hours",
                "actual_hours",
                "progress",
                "tags",
                "dependencies",
            ],
        )
        return self


class CommentCreate(CamelModel):
    content: str = Field(min_length=1, max_length=500)

    @field_validator("content", mode="before")
    @classmethod
    def strip_content(cls, v):
        return v.strip() if isinstance(v, str) else v


class AttachmentCreate(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    url: str = Field(min_length=1, max_length=1000)
    size: int = Field(default=0, ge=0)


class AttachmentOut(CamelModel):
    id: int
    name: str
    url: str
    size: int
    uploaded_at: UTCDateTime


class CommentOut(CamelModel):
    id: int
    user: UserBrief
    content: str
    created_at: UTCDateTime


class TaskOut(CamelModel):
    id: int
    title: str
    description: str
    status: TaskStatus
    priority: Priority
    category: TaskCategory
    progress: int
    estimated_hours: float
    actual_hours: float
    tags: List[str]
    blocked_reason: Optional[str] = None
    is_archived: bool
    start_date: UTCDateTime
    due_date: UTCDateTime
    completed_at: Optional[UTCDateTime] = None
    created_at: UTCDateTime
    updated_at: Optional[UTCDateTime] = None
    project: ProjectBrief
    assigned_to: UserBrief
    created_by: UserBrief
    dependencies: List[int]
    attachments: List[AttachmentOut]
    comments: List[CommentOut]
    is_blocked: bool
    is_overdue: bool
    days_remaining: int
