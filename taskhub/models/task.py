# taskhub/models/task.py
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import relationship

from taskhub.database import Base
from taskhub.models.enums import Priority, TaskCategory, TaskStatus, enum_column_values
from taskhub.utils.dates import days_until, utcnow


def _enum(enum_cls):
    return Enum(enum_cls, values_callable=enum_column_values, native_enum=False, length=20)


# Association table for tasks that must be finished before another task
task_dependencies = Table(
    "task_dependencies",
    Base.metadata,
    Column("task_id", Integer, ForeignKey("tasks.id"), primary_key=True),
    Column("depends_on_id", Integer, ForeignKey("tasks.id"), primary_key=True),
)


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(100), nullable=False, index=True)
    description = Column(Text, nullable=False, default="")

    # Relationships
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    assigned_to_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    # Task properties
    status = Column(_enum(TaskStatus), default=TaskStatus.TODO, nullable=False, index=True)
    priority = Column(_enum(Priority), default=Priority.MEDIUM, nullable=False)
    category = Column(_enum(TaskCategory), default=TaskCategory.OTHER, nullable=False)
    progress = Column(Integer, default=0, nullable=False)
    estimated_hours = Column(Float, default=0, nullable=False)
    actual_hours = Column(Float, default=0, nullable=False)
    tags = Column(JSON, default=list, nullable=False)
    blocked_reason = Column(String(200), nullable=True)
    is_archived = Column(Boolean, default=False, nullable=False, index=True)

    # Dates
    start_date = Column(DateTime, default=utcnow, nullable=False)
    due_date = Column(DateTime, nullable=False, index=True)
    completed_at = Column(DateTime, nullable=True)

    # System dates
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    project = relationship("Project", back_populates="tasks")
    assigned_to = relationship("User", foreign_keys=[assigned_to_id], lazy="joined")
    created_by = relationship("User", foreign_keys=[created_by_id], lazy="joined")
    depends_on = relationship(
        "Task",
        secondary=task_dependencies,
        primaryjoin=id == task_dependencies.c.task_id,
        secondaryjoin=id == task_dependencies.c.depends_on_id,
    )
    attachments = relationship(
        "TaskAttachment",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="TaskAttachment.id",
    )
    comments = relationship(
        "TaskComment",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="TaskComment.id",
    )

    @property
    def dependencies(self) -> list:
        return [task.id for task in self.depends_on]

    @property
    def is_blocked(self) -> bool:
        return bool(self.blocked_reason and self.blocked_reason.strip())

    @property
    def is_overdue(self) -> bool:
        if self.status == TaskStatus.DONE:
            return False
        return self.due_date < utcnow()

    @property
    def days_remaining(self) -> int:
        if self.status == TaskStatus.DONE:
            return 0
        return days_until(self.due_date, utcnow())


class TaskAttachment(Base):
    __tablename__ = "task_attachments"

    id = Column(Integer, primary_key=True, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    url = Column(String(1000), nullable=False)
    size = Column(Integer, default=0, nullable=False)
    uploaded_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    task = relationship("Task", back_populates="attachments")


class TaskComment(Base):
    __tablename__ = "task_comments"

    id = Column(Integer, primary_key=True, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    content = Column(String(500), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    task = relationship("Task", back_populates="comments")
    user = relationship("User", lazy="joined")
