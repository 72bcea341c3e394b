# taskhub/utils/access.py
import logging

from sqlalchemy import or_, select

from taskhub.models.project import Project, ProjectMember
from taskhub.models.task import Task
from taskhub.models.user import User
from taskhub.utils.errors import AccessDenied

logger = logging.getLogger(__name__)


class AccessPolicy:
    """Who may do what with a project or task, from the requesting user's side"""

    def __init__(self, user: User):
        self.user = user
        self.user_id = user.id

    # Relationship checks
    def is_owner(self, project: Project) -> bool:
        return project.owner_id == self.user_id

    def is_member(self, project: Project) -> bool:
        return project.has_member(self.user_id)

    # Project predicates
    def can_view_project(self, project: Project) -> bool:
        """Owner or team member"""
        return self.is_owner(project) or self.is_member(project)

    def can_manage_project(self, project: Project) -> bool:
        """Update, archive and team management are owner-only"""
        return self.is_owner(project)

    # Task predicates
    def can_create_task(self, project: Project) -> bool:
        return self.can_view_project(project)

    def can_view_task(self, task: Task) -> bool:
        return self.can_view_project(task.project)

    def can_update_task(self, task: Task) -> bool:
        return (
            self.is_owner(task.project)
            or task.created_by_id == self.user_id
            or task.assigned_to_id == self.user_id
        )

    def can_delete_task(self, task: Task) -> bool:
        return self.is_owner(task.project) or task.created_by_id == self.user_id

    def can_comment(self, task: Task) -> bool:
        return self.can_view_project(task.project)

    # Enforcement
    def _deny(self, message: str, subject) -> None:
        logger.info(f"Access denied for user {self.user_id} on {type(subject).__name__} {subject.id}")
        raise AccessDenied(message)

    def require_view_project(self, project: Project) -> None:
        if not self.can_view_project(project):
            self._deny("Access denied. You are not authorized to view this project.", project)

    def require_manage_project(self, project: Project) -> None:
        if not self.can_manage_project(project):
            self._deny("Access denied. Only the project owner can perform this action.", project)

    def require_create_task(self, project: Project) -> None:
        if not self.can_create_task(project):
            self._deny("Access denied. You are not a member of this project.", project)

    def require_view_task(self, task: Task) -> None:
        if not self.can_view_task(task):
            self._deny("Access denied. You are not authorized to view this task.", task)

    def require_update_task(self, task: Task) -> None:
        if not self.can_update_task(task):
            self._deny(
                "Access denied. You can only update tasks you created, are assigned to, or own the project.",
                task,
            )

    def require_delete_task(self, task: Task) -> None:
        if not self.can_delete_task(task):
            self._deny("Access denied. Only the project owner or task creator can delete this task.", task)

    def require_comment(self, task: Task) -> None:
        if not self.can_comment(task):
            self._deny("Access denied. You are not authorized to comment on this task.", task)

    # Query scoping
    def visible_projects_clause(self):
        """SQL condition matching projects the user owns or is a member of"""
        member_of = select(ProjectMember.project_id).where(ProjectMember.user_id == self.user_id)
        return or_(Project.owner_id == self.user_id, Project.id.in_(member_of))

    def visible_project_ids(self):
        """Subquery of the user's non-archived accessible project ids"""
        return select(Project.id).where(
            self.visible_projects_clause(),
            Project.is_archived.is_(False),
        )
