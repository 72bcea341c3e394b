import pytest

from taskhub.models import Project, ProjectMember, Task, User
from taskhub.utils.access import AccessPolicy
from taskhub.utils.errors import AccessDenied

OWNER, MEMBER, CREATOR, ASSIGNEE, OUTSIDER = 1, 2, 3, 4, 5


@pytest.fixture
def project():
    project = Project(id=10, owner_id=OWNER)
    project.team_members.append(ProjectMember(user_id=MEMBER))
    project.team_members.append(ProjectMember(user_id=CREATOR))
    return project


@pytest.fixture
def task(project):
    return Task(id=20, project=project, project_id=project.id, created_by_id=CREATOR, assigned_to_id=ASSIGNEE)


def policy_for(user_id):
    return AccessPolicy(User(id=user_id))


@pytest.mark.parametrize("user_id,allowed", [(OWNER, True), (MEMBER, True), (OUTSIDER, False)])
def test_view_project(project, user_id, allowed):
    assert policy_for(user_id).can_view_project(project) is allowed


@pytest.mark.parametrize("user_id,allowed", [(OWNER, True), (MEMBER, False), (OUTSIDER, False)])
def test_manage_project_is_owner_only(project, user_id, allowed):
    assert policy_for(user_id).can_manage_project(project) is allowed


@pytest.mark.parametrize(
    "user_id,allowed",
    [(OWNER, True), (CREATOR, True), (ASSIGNEE, True), (MEMBER, False), (OUTSIDER, False)],
)
def test_update_task(task, user_id, allowed):
    assert policy_for(user_id).can_update_task(task) is allowed


@pytest.mark.parametrize(
    "user_id,allowed",
    [(OWNER, True), (CREATOR, True), (ASSIGNEE, False), (MEMBER, False)],
)
def test_delete_task(task, user_id, allowed):
    assert policy_for(user_id).can_delete_task(task) is allowed


def test_assignee_outside_team_cannot_view_or_comment(task):
    # Assignment alone grants update rights, not project visibility
    policy = policy_for(ASSIGNEE)
    assert not policy.can_view_task(task)
    assert not policy.can_comment(task)


def test_members_can_create_and_comment(project, task):
    policy = policy_for(MEMBER)
    assert policy.can_create_task(project)
    assert policy.can_view_task(task)
    assert policy.can_comment(task)


def test_require_raises_access_denied(project, task):
    policy = policy_for(OUTSIDER)
    with pytest.raises(AccessDenied) as excinfo:
        policy.require_view_project(project)
    assert excinfo.value.status_code == 403
    assert excinfo.value.code == "ACCESS_DENIED"

    for check in (policy.require_manage_project, policy.require_create_task):
        with pytest.raises(AccessDenied):
            check(project)
    for check in (
        policy.require_view_task,
        policy.require_update_task,
        policy.require_delete_task,
        policy.require_comment,
    ):
        with pytest.raises(AccessDenied):
            check(task)


def test_require_passes_silently_when_allowed(project, task):
    policy = policy_for(OWNER)
    policy.require_manage_project(project)
    policy.require_delete_task(task)
