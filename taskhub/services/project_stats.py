# taskhub/services/project_stats.py
import logging
from typing import Dict, Iterable

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from taskhub.models.enums import PRIORITY_RANK, ProjectStatus, TaskStatus
from taskhub.models.project import Project
from taskhub.models.task import Task
from taskhub.schemas.project import DashboardStats, ProjectCounts, TaskCounts, TaskStats
from taskhub.utils.access import AccessPolicy

logger = logging.getLogger(__name__)


def rank_priority(column):
    """ORDER BY expression ranking priorities Low < Medium < High < Urgent"""
    return case(
        {priority.value: rank for priority, rank in PRIORITY_RANK.items()},
        value=column,
        else_=0,
    )


priority_rank = rank_priority(Task.priority)
project_priority_rank = rank_priority(Project.priority)

_TASK_STATUS_KEYS = {
    TaskStatus.TODO: "todo",
    TaskStatus.IN_PROGRESS: "in_progress",
    TaskStatus.DONE: "done",
}

_PROJECT_STATUS_KEYS = {
    ProjectStatus.PLANNING: "planning",
    ProjectStatus.IN_PROGRESS: "in_progress",
    ProjectStatus.ON_HOLD: "on_hold",
    ProjectStatus.COMPLETED: "completed",
    ProjectStatus.CANCELLED: "cancelled",
}


def build_task_stats(counts: Dict[TaskStatus, int]) -> TaskStats:
    """Counters for one project; overall progress is the share of Done tasks"""
    stats = TaskStats()
    for status, count in counts.items():
        setattr(stats, _TASK_STATUS_KEYS[status], count)
    stats.total = stats.todo + stats.in_progress + stats.done
    if stats.total:
        stats.overall_progress = round(stats.done / stats.total * 100)
    return stats


def task_stats_for_projects(db: Session, project_ids: Iterable[int]) -> Dict[int, TaskStats]:
    """Non-archived task counters for each project id"""
    project_ids = list(project_ids)
    if not project_ids:
        return {}

    rows = (
        db.query(Task.project_id, Task.status, func.count(Task.id))
        .filter(Task.project_id.in_(project_ids), Task.is_archived.is_(False))
        .group_by(Task.project_id, Task.status)
        .all()
    )

    counts: Dict[int, Dict[TaskStatus, int]] = {project_id: {} for project_id in project_ids}
    for project_id, status, count in rows:
        counts[project_id][TaskStatus(status)] = count

    return {project_id: build_task_stats(by_status) for project_id, by_status in counts.items()}


def dashboard_stats(db: Session, policy: AccessPolicy) -> DashboardStats:
    """Projects and tasks grouped by status across the user's accessible projects"""
    project_counts = ProjectCounts()
    project_rows = (
        db.query(Project.status, func.count(Project.id))
        .filter(policy.visible_projects_clause(), Project.is_archived.is_(False))
        .group_by(Project.status)
        .all()
    )
    for status, count in project_rows:
        setattr(project_counts, _PROJECT_STATUS_KEYS[ProjectStatus(status)], count)
        project_counts.total += count

    task_counts = TaskCounts()
    task_rows = (
        db.query(Task.status, func.count(Task.id))
        .filter(Task.project_id.in_(policy.visible_project_ids()), Task.is_archived.is_(False))
        .group_by(Task.status)
        .all()
    )
    for status, count in task_rows:
        setattr(task_counts, _TASK_STATUS_KEYS[TaskStatus(status)], count)
        task_counts.total += count

    logger.debug(f"Dashboard stats for user {policy.user_id}: {project_counts.total} projects, {task_counts.total} tasks")
    return DashboardStats(projects=project_counts, tasks=task_counts)
