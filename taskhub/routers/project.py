# taskhub/routers/project.py
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session, joinedload

from taskhub.database import get_db
from taskhub.models.enums import Priority, ProjectStatus
from taskhub.models.project import Project, ProjectMember
from taskhub.models.task import Task
from taskhub.models.user import User
from taskhub.schemas.project import (
    ProjectCreate,
    ProjectOut,
    ProjectUpdate,
    TaskStats,
    TeamMemberAdd,
    TeamMemberIn,
)
from taskhub.schemas.task import TaskOut
from taskhub.services.project_stats import dashboard_stats, project_priority_rank, task_stats_for_projects
from taskhub.utils.access import AccessPolicy
from taskhub.utils.auth import get_access_policy
from taskhub.utils.dates import utcnow
from taskhub.utils.errors import DuplicateValue, NotFound, ValidationError
from taskhub.utils.query import parse_enum_filter, search_clause, sort_clause
from taskhub.utils.responses import envelope
from taskhub.utils.state import derive_project_state

logger = logging.getLogger(__name__)

router = APIRouter()

PROJECT_SORT_COLUMNS = {
    "title": Project.title,
    "status": Project.status,
    "priority": project_priority_rank,
    "progress": Project.progress,
    "startDate": Project.start_date,
    "dueDate": Project.due_date,
    "createdAt": Project.created_at,
    "updatedAt": Project.updated_at,
}


def project_out(project: Project, stats: Optional[TaskStats] = None) -> dict:
    out = ProjectOut.model_validate(project)
    out.task_stats = stats or TaskStats()
    return out.to_json()


def get_project_or_404(db: Session, project_id: int, include_archived: bool = False) -> Project:
    query = (
        db.query(Project)
        .options(joinedload(Project.team_members))
        .filter(Project.id == project_id)
    )
    if not include_archived:
        query = query.filter(Project.is_archived.is_(False))
    project = query.first()
    if not project:
        raise NotFound("Project not found", code="PROJECT_NOT_FOUND")
    return project


def validate_project_dates(start_date, due_date, now) -> None:
    if due_date is None:
        return
    if due_date <= now:
        raise ValidationError(
            "Due date must be in the future",
            code="INVALID_DUE_DATE",
            errors={"dueDate": "Due date must be in the future"},
        )
    if start_date is not None and due_date <= start_date:
        raise ValidationError(
            "Due date must be after start date",
            code="INVALID_DUE_DATE",
            errors={"dueDate": "Due date must be after start date"},
        )


def validate_team_members(db: Session, members: List[TeamMemberIn], owner_id: int) -> None:
    """Every listed member must be an active user other than the owner"""
    if not members:
        return
    member_ids = {member.user for member in members}
    if len(member_ids) != len(members):
        raise ValidationError(
            "A user can only appear once in the team",
            code="INVALID_TEAM_MEMBERS",
            errors={"teamMembers": "A user can only appear once in the team"},
        )
    if owner_id in member_ids:
        raise ValidationError(
            "The project owner cannot be listed as a team member",
            code="INVALID_TEAM_MEMBERS",
            errors={"teamMembers": "The project owner cannot be listed as a team member"},
        )
    active_count = (
        db.query(User)
        .filter(User.id.in_(member_ids), User.is_active.is_(True))
        .count()
    )
    if active_count != len(member_ids):
        raise ValidationError(
            "One or more team members are invalid or inactive",
            code="INVALID_TEAM_MEMBERS",
            errors={"teamMembers": "One or more team members are invalid or inactive"},
        )


def replace_team(project: Project, members: List[TeamMemberIn]) -> None:
    """Sync the team with the given list, keeping join dates of existing members"""
    wanted = {member.user: member.role for member in members}
    for existing in list(project.team_members):
        if existing.user_id not in wanted:
            project.team_members.remove(existing)
        else:
            existing.role = wanted.pop(existing.user_id)
    for user_id, role in wanted.items():
        project.team_members.append(ProjectMember(user_id=user_id, role=role))


def apply_project_changes(project: Project, changes: dict) -> None:
    # Nested objects may be partial on update; unspecified keys keep their value
    budget = changes.pop("budget", None)
    if budget is not None:
        project.budget_allocated = budget.get("allocated", project.budget_allocated)
        project.budget_spent = budget.get("spent", project.budget_spent)
        project.budget_currency = budget.get("currency", project.budget_currency)

    details = changes.pop("details", None)
    if details is not None:
        project.client = details.get("client", project.client)
        project.department = details.get("department", project.department)
        project.project_type = details.get("project_type", project.project_type)

    for field, value in changes.items():
        setattr(project, field, value)


@router.get("")
def get_projects(
    status_filter: Optional[str] = Query(None, alias="status"),
    priority: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    order: Optional[str] = None,
    db: Session = Depends(get_db),
    policy: AccessPolicy = Depends(get_access_policy),
):
    """Projects the current user owns or is a member of"""
    query = (
        db.query(Project)
        .options(joinedload(Project.team_members))
        .filter(policy.visible_projects_clause(), Project.is_archived.is_(False))
    )

    status_value = parse_enum_filter(status_filter, ProjectStatus, "status")
    if status_value:
        query = query.filter(Project.status == status_value)

    priority_value = parse_enum_filter(priority, Priority, "priority")
    if priority_value:
        query = query.filter(Project.priority == priority_value)

    matches = search_clause(
        search,
        [Project.title, Project.description],
        Project.tags,
        db.get_bind().dialect.name,
    )
    if matches is not None:
        query = query.filter(matches)

    query = query.order_by(sort_clause(sort_by, order, PROJECT_SORT_COLUMNS, "updatedAt", "desc"), Project.id)
    projects = query.all()

    stats = task_stats_for_projects(db, [project.id for project in projects])
    data = [project_out(project, stats.get(project.id)) for project in projects]
    return envelope("Projects retrieved successfully", {"projects": data, "count": len(data)})


@router.get("/stats")
def get_project_stats(
    db: Session = Depends(get_db),
    policy: AccessPolicy = Depends(get_access_policy),
):
    """Project and task counters for the dashboard"""
    stats = dashboard_stats(db, policy)
    return envelope("Statistics retrieved successfully", {"stats": stats.to_json()})


@router.get("/{project_id}")
def get_project(
    project_id: int,
    db: Session = Depends(get_db),
    policy: AccessPolicy = Depends(get_access_policy),
):
    """Get a specific project with its tasks"""
    project = get_project_or_404(db, project_id, include_archived=True)
    policy.require_view_project(project)

    tasks = (
        db.query(Task)
        .filter(Task.project_id == project.id, Task.is_archived.is_(False))
        .order_by(Task.due_date.asc(), Task.id)
        .all()
    )
    stats = task_stats_for_projects(db, [project.id]).get(project.id)
    return envelope(
        "Project retrieved successfully",
        {
            "project": project_out(project, stats),
            "tasks": [TaskOut.model_validate(task).to_json() for task in tasks],
        },
    )


@router.post("", status_code=status.HTTP_201_CREATED)
def create_project(
    project_data: ProjectCreate,
    db: Session = Depends(get_db),
    policy: AccessPolicy = Depends(get_access_policy),
):
    """Create a new project owned by the current user"""
    now = utcnow()
    start_date = project_data.start_date or now
    validate_project_dates(start_date, project_data.due_date, now)
    validate_team_members(db, project_data.team_members, policy.user_id)

    changes = project_data.model_dump(exclude={"team_members", "start_date"}, exclude_none=True)
    changes["start_date"] = start_date
    changes = derive_project_state(None, changes, now)

    new_project = Project(owner_id=policy.user_id, is_archived=False)
    apply_project_changes(new_project, changes)
    for member in project_data.team_members:
        new_project.team_members.append(ProjectMember(user_id=member.user, role=member.role))

    db.add(new_project)
    db.commit()
    db.refresh(new_project)

    logger.info(f"Project {new_project.id} created by user {policy.user_id}")
    return envelope("Project created successfully", {"project": project_out(new_project)})


@router.put("/{project_id}")
def update_project(
    project_id: int,
    project_update: ProjectUpdate,
    db: Session = Depends(get_db),
    policy: AccessPolicy = Depends(get_access_policy),
):
    """Update a project - owner only"""
    project = get_project_or_404(db, project_id)
    policy.require_manage_project(project)

    now = utcnow()
    update_data = project_update.model_dump(exclude_unset=True, exclude={"team_members"})
    if "due_date" in update_data:
        validate_project_dates(project.start_date, update_data["due_date"], now)
    if project_update.team_members is not None:
        validate_team_members(db, project_update.team_members, project.owner_id)

    changes = derive_project_state(project, update_data, now)
    apply_project_changes(project, changes)
    if project_update.team_members is not None:
        replace_team(project, project_update.team_members)

    db.commit()
    db.refresh(project)

    stats = task_stats_for_projects(db, [project.id]).get(project.id)
    return envelope("Project updated successfully", {"project": project_out(project, stats)})


@router.delete("/{project_id}")
def delete_project(
    project_id: int,
    db: Session = Depends(get_db),
    policy: AccessPolicy = Depends(get_access_policy),
):
    """Archive a project and every task in it"""
    project = get_project_or_404(db, project_id)
    policy.require_manage_project(project)

    changes = derive_project_state(project, {"is_archived": True}, utcnow())
    apply_project_changes(project, changes)

    # Same transaction as the project so both land or neither does
    archived_tasks = (
        db.query(Task)
        .filter(Task.project_id == project.id, Task.is_archived.is_(False))
        .update({Task.is_archived: True}, synchronize_session=False)
    )
    db.commit()

    logger.info(f"Project {project.id} archived with {archived_tasks} tasks")
    return envelope(
        "Project deleted successfully",
        {"projectId": project.id, "archivedTasks": archived_tasks},
    )


@router.post("/{project_id}/team-members")
def add_team_member(
    project_id: int,
    member: TeamMemberAdd,
    db: Session = Depends(get_db),
    policy: AccessPolicy = Depends(get_access_policy),
):
    """Add a user to the project team - owner only"""
    project = get_project_or_404(db, project_id)
    policy.require_manage_project(project)

    # Verify the user to be added exists and is active
    user = db.query(User).filter(User.id == member.user_id).first()
    if not user or not user.is_active:
        raise ValidationError(
            "User not found or inactive",
            code="INVALID_USER",
            errors={"userId": "User not found or inactive"},
        )

    if user.id == project.owner_id or project.has_member(user.id):
        raise DuplicateValue("User is already a team member", code="DUPLICATE_TEAM_MEMBER")

    project.team_members.append(ProjectMember(user_id=user.id, role=member.role))
    db.commit()
    db.refresh(project)

    logger.info(f"User {user.id} added to project {project.id}")
    return envelope("Team member added successfully", {"project": project_out(project)})


@router.delete("/{project_id}/team-members/{user_id}")
def remove_team_member(
    project_id: int,
    user_id: int,
    db: Session = Depends(get_db),
    policy: AccessPolicy = Depends(get_access_policy),
):
    """Remove a user from the project team - owner only"""
    project = get_project_or_404(db, project_id)
    policy.require_manage_project(project)

    existing = project.find_member(user_id)
    if existing is None:
        raise NotFound("User is not a team member", code="TEAM_MEMBER_NOT_FOUND")

    project.team_members.remove(existing)
    db.commit()
    db.refresh(project)

    logger.info(f"User {user_id} removed from project {project.id}")
    return envelope("Team member removed successfully", {"project": project_out(project)})
