# taskhub/models/project.py
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
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from taskhub.database import Base
from taskhub.models.enums import (
    MemberRole,
    Priority,
    ProjectStatus,
    ProjectType,
    enum_column_values,
)
from taskhub.utils.dates import days_since, days_until, utcnow


def _enum(enum_cls):
    return Enum(enum_cls, values_callable=enum_column_values, native_enum=False, length=20)


class ProjectMember(Base):
    """A user on a project's team"""

    __tablename__ = "project_members"
    __table_args__ = (UniqueConstraint("project_id", "user_id", name="uq_project_member"),)

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    role = Column(_enum(MemberRole), default=MemberRole.MEMBER, nullable=False)
    joined_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    project = relationship("Project", back_populates="team_members")
    user = relationship("User", back_populates="memberships", lazy="joined")


class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(100), nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    status = Column(_enum(ProjectStatus), default=ProjectStatus.PLANNING, nullable=False)
    priority = Column(_enum(Priority), default=Priority.MEDIUM, nullable=False)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    start_date = Column(DateTime, default=utcnow, nullable=False)
    due_date = Column(DateTime, nullable=True)
    progress = Column(Integer, default=0, nullable=False)
    tags = Column(JSON, default=list, nullable=False)

    # Budget
    budget_allocated = Column(Float, default=0, nullable=False)
    budget_spent = Column(Float, default=0, nullable=False)
    budget_currency = Column(String(3), default="USD", nullable=False)

    # Metadata
    client = Column(String(50), nullable=True)
    department = Column(String(30), nullable=True)
    project_type = Column(_enum(ProjectType), default=ProjectType.INTERNAL, nullable=False)

    is_archived = Column(Boolean, default=False, nullable=False, index=True)
    archived_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    owner = relationship("User", back_populates="owned_projects", lazy="joined")
    team_members = relationship(
        "ProjectMember",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="ProjectMember.joined_at",
    )
    tasks = relationship("Task", back_populates="project")

    @property
    def budget(self) -> dict:
        return {
            "allocated": self.budget_allocated,
            "spent": self.budget_spent,
            "currency": self.budget_currency,
        }

    @property
    def details(self) -> dict:
        return {
            "client": self.client,
            "department": self.department,
            "project_type": self.project_type,
        }

    @property
    def member_ids(self) -> set:
        return {member.user_id for member in self.team_members}

    def has_member(self, user_id: int) -> bool:
        return user_id in self.member_ids

    def find_member(self, user_id: int):
        for member in self.team_members:
            if member.user_id == user_id:
                return member
        return None

    @property
    def is_overdue(self) -> bool:
        if self.due_date is None:
            return False
        return self.due_date < utcnow() and self.status != ProjectStatus.COMPLETED

    @property
    def days_remaining(self):
        if self.due_date is None:
            return None
        return days_until(self.due_date, utcnow())

    @property
    def project_age(self) -> int:
        return days_since(self.start_date or self.created_at, utcnow())
