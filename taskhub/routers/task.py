# taskhub/routers/task.py
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session, joinedload

from taskhub.database import get_db
from taskhub.models.enums import Priority, TaskCategory, TaskStatus
from taskhub.models.project import Project
from taskhub.models.task import Task, TaskAttachment, TaskComment
from taskhub.models.user import User
from taskhub.schemas.task import AttachmentCreate, CommentCreate, TaskCreate, TaskOut, TaskUpdate
from taskhub.services.project_stats import priority_rank
from taskhub.utils.access import AccessPolicy
from taskhub.utils.auth import get_access_policy
from taskhub.utils.dates import start_of_day, utcnow
from taskhub.utils.errors import NotFound, ValidationError
from taskhub.utils.query import ALL, parse_enum_filter, parse_flag, search_clause, sort_clause
from taskhub.utils.responses import envelope
from taskhub.utils.state import derive_task_state

logger = logging.getLogger(__name__)

router = APIRouter()

TASK_SORT_COLUMNS = {
    "title": Task.title,
    "status": Task.status,
    "priority": priority_rank,
    "category": Task.category,
    "progress": Task.progress,
    "estimatedHours": Task.estimated_hours,
    "dueDate": Task.due_date,
    "startDate": Task.start_date,
    "createdAt": Task.created_at,
    "updatedAt": Task.updated_at,
}


def task_out(task: Task) -> dict:
    return TaskOut.model_validate(task).to_json()


def task_list(tasks: List[Task], message: str) -> dict:
    data = [task_out(task) for task in tasks]
    return envelope(message, {"tasks": data, "count": len(data)})


def load_task(db: Session, task_id: int, include_archived: bool = False) -> Task:
    query = (
        db.query(Task)
        .options(joinedload(Task.project).joinedload(Project.team_members))
        .filter(Task.id == task_id)
    )
    if not include_archived:
        query = query.filter(Task.is_archived.is_(False))
    task = query.first()
    if not task:
        raise NotFound("Task not found", code="TASK_NOT_FOUND")
    return task


def _parse_id_filter(value: Optional[str], field: str) -> Optional[int]:
    if value is None or value == "" or value.lower() == ALL:
        return None
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f"Invalid {field} filter", errors={field: "Must be an id or 'all'"})


def validate_due_date(due_date, start_date, now) -> None:
    """Due dates may be today or later and not before the start day; whole days count"""
    if due_date < start_of_day(now):
        raise ValidationError(
            "Due date cannot be in the past",
            code="INVALID_DUE_DATE",
            errors={"dueDate": "Due date cannot be in the past"},
        )
    if start_date is not None and due_date < start_of_day(start_date):
        raise ValidationError(
            "Due date cannot be before start date",
            code="INVALID_DUE_DATE",
            errors={"dueDate": "Due date cannot be before start date"},
        )


def validate_assignee(db: Session, user_id: int) -> None:
    assignee = db.query(User).filter(User.id == user_id).first()
    if not assignee or not assignee.is_active:
        raise ValidationError(
            "Assigned user not found or inactive",
            code="INVALID_ASSIGNED_USER",
            errors={"assignedTo": "Assigned user not found or inactive"},
        )


def _invalid_dependencies(message: str) -> ValidationError:
    return ValidationError(message, code="INVALID_DEPENDENCIES", errors={"dependencies": message})


def resolve_dependencies(
    db: Session,
    dependency_ids: List[int],
    project_id: int,
    task_id: Optional[int] = None,
) -> List[Task]:
    """Load declared dependencies; they must be tasks of the same project without cycles"""
    if not dependency_ids:
        return []
    if task_id is not None and task_id in dependency_ids:
        raise _invalid_dependencies("A task cannot depend on itself")

    tasks = db.query(Task).filter(Task.id.in_(dependency_ids)).all()
    if len(tasks) != len(dependency_ids):
        raise _invalid_dependencies("One or more dependencies do not exist")
    if any(task.project_id != project_id for task in tasks):
        raise _invalid_dependencies("Dependencies must belong to the same project")

    if task_id is not None:
        # Walk the dependency graph from the new dependencies looking for this task
        seen = set()
        pending = list(tasks)
        while pending:
            current = pending.pop()
            if current.id == task_id:
                raise _invalid_dependencies("Dependencies cannot form a cycle")
            if current.id in seen:
                continue
            seen.add(current.id)
            pending.extend(current.depends_on)

    # Keep the caller's order
    by_id = {task.id: task for task in tasks}
    return [by_id[dependency_id] for dependency_id in dependency_ids]


@router.get("")
def get_tasks(
    status_filter: Optional[str] = Query(None, alias="status"),
    priority: Optional[str] = None,
    project: Optional[str] = None,
    assigned_to: Optional[str] = Query(None, alias="assignedTo"),
    category: Optional[str] = None,
    search: Optional[str] = None,
    overdue: Optional[str] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    order: Optional[str] = None,
    db: Session = Depends(get_db),
    policy: AccessPolicy = Depends(get_access_policy),
):
    """Tasks in projects the current user can access"""
    query = db.query(Task).filter(
        Task.project_id.in_(policy.visible_project_ids()),
        Task.is_archived.is_(False),
    )

    status_value = parse_enum_filter(status_filter, TaskStatus, "status")
    if status_value:
        query = query.filter(Task.status == status_value)

    priority_value = parse_enum_filter(priority, Priority, "priority")
    if priority_value:
        query = query.filter(Task.priority == priority_value)

    category_value = parse_enum_filter(category, TaskCategory, "category")
    if category_value:
        query = query.filter(Task.category == category_value)

    # Narrows within the accessible projects, never widens
    project_id = _parse_id_filter(project, "project")
    if project_id is not None:
        query = query.filter(Task.project_id == project_id)

    if assigned_to == "me":
        query = query.filter(Task.assigned_to_id == policy.user_id)
    else:
        assignee_id = _parse_id_filter(assigned_to, "assignedTo")
        if assignee_id is not None:
            query = query.filter(Task.assigned_to_id == assignee_id)

    if parse_flag(overdue):
        query = query.filter(Task.due_date < utcnow(), Task.status != TaskStatus.DONE)

    matches = search_clause(
        search,
        [Task.title, Task.description],
        Task.tags,
        db.get_bind().dialect.name,
    )
    if matches is not None:
        query = query.filter(matches)

    tasks = query.order_by(sort_clause(sort_by, order, TASK_SORT_COLUMNS, "dueDate", "asc"), Task.id).all()
    return task_list(tasks, "Tasks retrieved successfully")


@router.get("/my-tasks")
def get_my_tasks(
    status_filter: Optional[str] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    policy: AccessPolicy = Depends(get_access_policy),
):
    """Tasks assigned to the current user"""
    query = db.query(Task).filter(
        Task.assigned_to_id == policy.user_id,
        Task.project_id.in_(policy.visible_project_ids()),
        Task.is_archived.is_(False),
    )

    status_value = parse_enum_filter(status_filter, TaskStatus, "status")
    if status_value:
        query = query.filter(Task.status == status_value)

    tasks = query.order_by(Task.due_date.asc(), priority_rank.desc(), Task.id).all()
    return task_list(tasks, "My tasks retrieved successfully")


@router.get("/overdue")
def get_overdue_tasks(
    db: Session = Depends(get_db),
    policy: AccessPolicy = Depends(get_access_policy),
):
    """Unfinished tasks past their due date"""
    tasks = (
        db.query(Task)
        .filter(
            Task.project_id.in_(policy.visible_project_ids()),
            Task.is_archived.is_(False),
            Task.due_date < utcnow(),
            Task.status != TaskStatus.DONE,
        )
        .order_by(Task.due_date.asc(), Task.id)
        .all()
    )
    return task_list(tasks, "Overdue tasks retrieved successfully")


@router.get("/{task_id}")
def get_task(
    task_id: int,
    db: Session = Depends(get_db),
    policy: AccessPolicy = Depends(get_access_policy),
):
    """Get a specific task by ID"""
    task = load_task(db, task_id, include_archived=True)
    policy.require_view_task(task)
    return envelope("Task retrieved successfully", {"task": task_out(task)})


@router.post("", status_code=status.HTTP_201_CREATED)
def create_task(
    task_data: TaskCreate,
    db: Session = Depends(get_db),
    policy: AccessPolicy = Depends(get_access_policy),
):
    """Create a task in a project the current user belongs to"""
    project = (
        db.query(Project)
        .options(joinedload(Project.team_members))
        .filter(Project.id == task_data.project, Project.is_archived.is_(False))
        .first()
    )
    if not project:
        raise NotFound("Project not found", code="PROJECT_NOT_FOUND")
    policy.require_create_task(project)

    now = utcnow()
    start_date = task_data.start_date or now
    validate_due_date(task_data.due_date, task_data.start_date, now)
    validate_assignee(db, task_data.assigned_to)
    dependencies = resolve_dependencies(db, task_data.dependencies, project.id)

    changes = task_data.model_dump(
        exclude_unset=True,
        exclude_none=True,
        exclude={"project", "dependencies", "start_date", "assigned_to"},
    )
    changes["assigned_to_id"] = task_data.assigned_to
    changes["status"] = task_data.status
    changes = derive_task_state(None, changes, now)

    new_task = Task(
        project_id=project.id,
        created_by_id=policy.user_id,
        start_date=start_date,
        is_archived=False,
        **changes,
    )
    new_task.depends_on = dependencies

    db.add(new_task)
    db.commit()
    db.refresh(new_task)

    logger.info(f"Task {new_task.id} created in project {project.id} by user {policy.user_id}")
    return envelope("Task created successfully", {"task": task_out(new_task)})


@router.put("/{task_id}")
def update_task(
    task_id: int,
    task_update: TaskUpdate,
    db: Session = Depends(get_db),
    policy: AccessPolicy = Depends(get_access_policy),
):
    """Update a task - project owner, creator or assignee"""
    task = load_task(db, task_id)
    policy.require_update_task(task)

    now = utcnow()
    update_data = task_update.model_dump(exclude_unset=True, exclude={"dependencies"})
    if "due_date" in update_data:
        validate_due_date(update_data["due_date"], task.start_date, now)
    if "assigned_to" in update_data:
        validate_assignee(db, update_data["assigned_to"])
    dependencies = None
    if task_update.dependencies is not None:
        dependencies = resolve_dependencies(db, task_update.dependencies, task.project_id, task.id)

    if "assigned_to" in update_data:
        update_data["assigned_to_id"] = update_data.pop("assigned_to")

    changes = derive_task_state(task, update_data, now)
    for field, value in changes.items():
        setattr(task, field, value)
    if dependencies is not None:
        task.depends_on = dependencies

    db.commit()
    db.refresh(task)

    return envelope("Task updated successfully", {"task": task_out(task)})


@router.delete("/{task_id}")
def delete_task(
    task_id: int,
    db: Session = Depends(get_db),
    policy: AccessPolicy = Depends(get_access_policy),
):
    """Archive a task - project owner or creator"""
    task = load_task(db, task_id)
    policy.require_delete_task(task)

    task.is_archived = True
    db.commit()

    logger.info(f"Task {task.id} archived by user {policy.user_id}")
    return envelope("Task deleted successfully", {"taskId": task.id})


@router.post("/{task_id}/comments", status_code=status.HTTP_201_CREATED)
def add_comment(
    task_id: int,
    comment: CommentCreate,
    db: Session = Depends(get_db),
    policy: AccessPolicy = Depends(get_access_policy),
):
    """Append a comment to a task"""
    task = load_task(db, task_id)
    policy.require_comment(task)

    task.comments.append(TaskComment(user_id=policy.user_id, content=comment.content))
    db.commit()
    db.refresh(task)

    return envelope("Comment added successfully", {"task": task_out(task)})


@router.post("/{task_id}/attachments", status_code=status.HTTP_201_CREATED)
def add_attachment(
    task_id: int,
    attachment: AttachmentCreate,
    db: Session = Depends(get_db),
    policy: AccessPolicy = Depends(get_access_policy),
):
    """Record an attachment link on a task"""
    task = load_task(db, task_id)
    policy.require_update_task(task)

    task.attachments.append(TaskAttachment(name=attachment.name, url=attachment.url, size=attachment.size))
    db.commit()
    db.refresh(task)

    return envelope("Attachment added successfully", {"task": task_out(task)})
