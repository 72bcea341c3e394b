from datetime import timedelta

from taskhub.models.user import User
from taskhub.utils.dates import utcnow


def test_owner_scenario_todo_done_archive(client, owner, today):
    """Create project and task, finish the task, then archive the project"""
    user, headers = owner
    project = client.post("/api/projects", json={"title": "Scenario project"}, headers=headers).json()["data"]["project"]

    response = client.post(
        "/api/tasks",
        json={
            "title": "Scenario task",
            "assignedTo": user["id"],
            "project": project["id"],
            "dueDate": today,
            "status": "Todo",
        },
        headers=headers,
    )
    assert response.status_code == 201
    task = response.json()["data"]["task"]
    assert task["progress"] == 0
    assert task["completedAt"] is None
    assert task["category"] == "Other"
    assert task["estimatedHours"] == 0

    response = client.put(f"/api/tasks/{task['id']}", json={"status": "Done"}, headers=headers)
    assert response.status_code == 200
    updated = response.json()["data"]["task"]
    assert updated["progress"] == 100
    assert updated["completedAt"] is not None
    assert updated["isOverdue"] is False
    assert updated["daysRemaining"] == 0

    assert client.delete(f"/api/projects/{project['id']}", headers=headers).status_code == 200
    archived = client.get(f"/api/tasks/{task['id']}", headers=headers).json()["data"]["task"]
    assert archived["isArchived"] is True


def test_create_task_due_today_allowed_yesterday_rejected(client, owner, project):
    user, headers = owner
    yesterday = (utcnow() - timedelta(days=1)).date().isoformat()
    response = client.post(
        "/api/tasks",
        json={"title": "Too late", "assignedTo": user["id"], "project": project["id"], "dueDate": yesterday},
        headers=headers,
    )
    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "INVALID_DUE_DATE"
    assert "dueDate" in body["errors"]


def test_create_task_requires_fields(client, owner):
    _, headers = owner
    response = client.post("/api/tasks", json={"description": "nothing else"}, headers=headers)
    assert response.status_code == 400
    errors = response.json()["errors"]
    assert {"title", "assignedTo", "project", "dueDate"} <= set(errors)


def test_create_task_unknown_project(client, owner, today):
    user, headers = owner
    response = client.post(
        "/api/tasks",
        json={"title": "Orphan", "assignedTo": user["id"], "project": 999, "dueDate": today},
        headers=headers,
    )
    assert response.status_code == 404
    assert response.json()["code"] == "PROJECT_NOT_FOUND"


def test_create_task_outsider_denied(client, project, outsider, today):
    user, headers = outsider
    response = client.post(
        "/api/tasks",
        json={"title": "Sneaky", "assignedTo": user["id"], "project": project["id"], "dueDate": today},
        headers=headers,
    )
    assert response.status_code == 403
    assert response.json()["code"] == "ACCESS_DENIED"


def test_create_task_inactive_assignee(client, app, owner, project, outsider, today):
    inactive, _ = outsider
    db = app.state.session_factory()
    try:
        db.query(User).filter(User.id == inactive["id"]).update({User.is_active: False})
        db.commit()
    finally:
        db.close()

    response = client.post(
        "/api/tasks",
        json={"title": "Assign away", "assignedTo": inactive["id"], "project": project["id"], "dueDate": today},
        headers=owner[1],
    )
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_ASSIGNED_USER"


def test_member_can_create_task(client, member, create_task):
    member_user, headers = member
    task = create_task(headers=headers, assignedTo=member_user["id"])
    assert task["createdBy"]["id"] == member_user["id"]


def test_in_progress_defaults_and_back_to_todo(client, owner, create_task):
    _, headers = owner
    task = create_task(status="In Progress")
    assert task["progress"] == 25

    url = f"/api/tasks/{task['id']}"
    done = client.put(url, json={"status": "Done"}, headers=headers).json()["data"]["task"]
    assert done["progress"] == 100

    todo = client.put(url, json={"status": "Todo"}, headers=headers).json()["data"]["task"]
    assert todo["progress"] == 0
    assert todo["completedAt"] is None


def test_explicit_progress_wins_with_status(client, owner, create_task):
    _, headers = owner
    task = create_task()
    response = client.put(
        f"/api/tasks/{task['id']}",
        json={"status": "In Progress", "progress": 60},
        headers=headers,
    )
    assert response.json()["data"]["task"]["progress"] == 60


def test_update_permissions(client, owner, member, outsider, create_task):
    member_user, member_headers = member
    task = create_task()
    url = f"/api/tasks/{task['id']}"

    # Member who neither created nor is assigned the task
    assert client.put(url, json={"title": "Member edit"}, headers=member_headers).status_code == 403

    # Reassigning to the member grants them update rights
    client.put(url, json={"assignedTo": member_user["id"]}, headers=owner[1])
    response = client.put(url, json={"title": "Member edit"}, headers=member_headers)
    assert response.status_code == 200
    assert response.json()["data"]["task"]["title"] == "Member edit"

    assert client.put(url, json={"title": "Outsider"}, headers=outsider[1]).status_code == 403


def test_delete_permissions(client, owner, member, create_task):
    member_user, member_headers = member
    task = create_task(assignedTo=member_user["id"])
    url = f"/api/tasks/{task['id']}"

    # Assignee may update but not delete
    response = client.delete(url, headers=member_headers)
    assert response.status_code == 403
    assert response.json()["code"] == "ACCESS_DENIED"

    assert client.delete(url, headers=owner[1]).status_code == 200
    assert client.get(url, headers=owner[1]).json()["data"]["task"]["isArchived"] is True
    assert client.put(url, json={"title": "Ghost"}, headers=owner[1]).status_code == 404


def test_creator_can_delete_own_task(client, member, create_task):
    member_user, headers = member
    task = create_task(headers=headers, assignedTo=member_user["id"])
    assert client.delete(f"/api/tasks/{task['id']}", headers=headers).status_code == 200


def test_outsider_denied_task_read(client, outsider, create_task):
    task = create_task()
    response = client.get(f"/api/tasks/{task['id']}", headers=outsider[1])
    assert response.status_code == 403
    assert response.json()["code"] == "ACCESS_DENIED"


def test_missing_task(client, owner):
    response = client.get("/api/tasks/777", headers=owner[1])
    assert response.status_code == 404
    assert response.json()["code"] == "TASK_NOT_FOUND"


def test_listing_never_leaks_inaccessible_projects(client, owner, outsider, project, create_task, today):
    create_task(title="Visible to team")
    outsider_user, outsider_headers = outsider

    # Even naming the project explicitly does not widen the scope
    response = client.get("/api/tasks", params={"project": project["id"]}, headers=outsider_headers)
    assert response.status_code == 200
    assert response.json()["data"]["count"] == 0

    own = client.post("/api/projects", json={"title": "Carol's project"}, headers=outsider_headers).json()["data"]["project"]
    client.post(
        "/api/tasks",
        json={"title": "Carol's task", "assignedTo": outsider_user["id"], "project": own["id"], "dueDate": today},
        headers=outsider_headers,
    )
    titles = [t["title"] for t in client.get("/api/tasks", headers=outsider_headers).json()["data"]["tasks"]]
    assert titles == ["Carol's task"]
    titles = [t["title"] for t in client.get("/api/tasks", headers=owner[1]).json()["data"]["tasks"]]
    assert titles == ["Visible to team"]


def test_list_filters(client, owner, member, create_task):
    member_user, _ = member
    in_two_days = (utcnow() + timedelta(days=2)).isoformat()
    create_task(title="Design mockups", category="Design", priority="High", tags=["ui"])
    create_task(title="Fix login bug", category="Development", assignedTo=member_user["id"], dueDate=in_two_days)
    create_task(title="Write tests", category="Testing", status="Done")

    def titles(**params):
        response = client.get("/api/tasks", params=params, headers=owner[1])
        assert response.status_code == 200, response.text
        return sorted(t["title"] for t in response.json()["data"]["tasks"])

    assert titles(status="Done") == ["Write tests"]
    assert titles(priority="High") == ["Design mockups"]
    assert titles(category="Development") == ["Fix login bug"]
    assert titles(assignedTo="me") == ["Design mockups", "Write tests"]
    assert titles(assignedTo=str(member_user["id"])) == ["Fix login bug"]
    assert titles(search="LOGIN") == ["Fix login bug"]
    assert titles(search="ui") == ["Design mockups"]
    assert titles(status="all", priority="all") == ["Design mockups", "Fix login bug", "Write tests"]


def test_search_matches_tag_elements(client, owner, create_task):
    create_task(title="Untagged task")
    create_task(title="Plain title", tags=["café"])

    def titles(search):
        response = client.get("/api/tasks", params={"search": search}, headers=owner[1])
        assert response.status_code == 200, response.text
        return [t["title"] for t in response.json()["data"]["tasks"]]

    assert titles("café") == ["Plain title"]
    assert titles("CAF") == ["Plain title"]
    assert titles("]") == []
    assert titles('"') == []


def test_update_description_null_clears_it(client, owner, create_task):
    task = create_task(description="Some words")
    response = client.put(f"/api/tasks/{task['id']}", json={"description": None}, headers=owner[1])
    assert response.status_code == 200
    assert response.json()["data"]["task"]["description"] == ""


def test_update_due_date_not_before_start_date(client, owner, create_task):
    start = (utcnow() + timedelta(days=10)).isoformat()
    task = create_task(startDate=start, dueDate=(utcnow() + timedelta(days=20)).isoformat())
    url = f"/api/tasks/{task['id']}"

    response = client.put(url, json={"dueDate": (utcnow() + timedelta(days=2)).isoformat()}, headers=owner[1])
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_DUE_DATE"

    response = client.put(url, json={"dueDate": (utcnow() + timedelta(days=12)).isoformat()}, headers=owner[1])
    assert response.status_code == 200


def test_update_due_today_on_task_started_today(client, owner, create_task, today):
    task = create_task(dueDate=(utcnow() + timedelta(days=3)).isoformat())
    response = client.put(f"/api/tasks/{task['id']}", json={"dueDate": today}, headers=owner[1])
    assert response.status_code == 200


def test_list_default_sort_by_due_date(client, owner, create_task):
    later = (utcnow() + timedelta(days=5)).isoformat()
    sooner = (utcnow() + timedelta(days=1)).isoformat()
    create_task(title="Later task", dueDate=later)
    create_task(title="Sooner task", dueDate=sooner)

    tasks = client.get("/api/tasks", headers=owner[1]).json()["data"]["tasks"]
    assert [t["title"] for t in tasks] == ["Sooner task", "Later task"]

    tasks = client.get("/api/tasks", params={"sortBy": "dueDate", "order": "desc"}, headers=owner[1]).json()["data"]["tasks"]
    assert [t["title"] for t in tasks] == ["Later task", "Sooner task"]


def test_invalid_filters_rejected(client, owner):
    response = client.get("/api/tasks", params={"status": "Someday"}, headers=owner[1])
    assert response.status_code == 400
    assert "status" in response.json()["errors"]

    response = client.get("/api/tasks", params={"order": "sideways"}, headers=owner[1])
    assert response.status_code == 400


def test_overdue_tasks(client, app, owner, create_task):
    from taskhub.models.task import Task

    stale = create_task(title="Stale task")
    finished = create_task(title="Finished task", status="Done")
    create_task(title="Fresh task", dueDate=(utcnow() + timedelta(days=3)).isoformat())

    # Push two tasks into the past behind the API's back
    db = app.state.session_factory()
    try:
        past = utcnow() - timedelta(days=2)
        db.query(Task).filter(Task.id.in_([stale["id"], finished["id"]])).update(
            {Task.due_date: past}, synchronize_session=False
        )
        db.commit()
    finally:
        db.close()

    response = client.get("/api/tasks/overdue", headers=owner[1])
    assert [t["title"] for t in response.json()["data"]["tasks"]] == ["Stale task"]
    assert response.json()["data"]["tasks"][0]["isOverdue"] is True

    response = client.get("/api/tasks", params={"overdue": "true"}, headers=owner[1])
    assert [t["title"] for t in response.json()["data"]["tasks"]] == ["Stale task"]


def test_my_tasks_sorted_by_due_date_then_priority(client, owner, member, create_task):
    member_user, _ = member
    due = (utcnow() + timedelta(days=3)).isoformat()
    create_task(title="Low one", priority="Low", dueDate=due)
    create_task(title="Urgent one", priority="Urgent", dueDate=due)
    create_task(title="Someone else's", assignedTo=member_user["id"], dueDate=due)
    create_task(title="Soonest", priority="Low")

    response = client.get("/api/tasks/my-tasks", headers=owner[1])
    assert response.status_code == 200
    assert [t["title"] for t in response.json()["data"]["tasks"]] == ["Soonest", "Urgent one", "Low one"]

    response = client.get("/api/tasks/my-tasks", params={"status": "Done"}, headers=owner[1])
    assert response.json()["data"]["count"] == 0


def test_comments(client, owner, member, outsider, create_task):
    task = create_task()
    url = f"/api/tasks/{task['id']}/comments"

    response = client.post(url, json={"content": "  Looks good  "}, headers=member[1])
    assert response.status_code == 201
    comments = response.json()["data"]["task"]["comments"]
    assert len(comments) == 1
    assert comments[0]["content"] == "Looks good"
    assert comments[0]["user"]["id"] == member[0]["id"]

    response = client.post(url, json={"content": "Second"}, headers=owner[1])
    assert [c["content"] for c in response.json()["data"]["task"]["comments"]] == ["Looks good", "Second"]

    response = client.post(url, json={"content": "   "}, headers=owner[1])
    assert response.status_code == 400
    assert "content" in response.json()["errors"]

    response = client.post(url, json={"content": "Let me in"}, headers=outsider[1])
    assert response.status_code == 403


def test_attachments(client, owner, member, create_task):
    task = create_task()
    url = f"/api/tasks/{task['id']}/attachments"

    response = client.post(
        url,
        json={"name": "brief.pdf", "url": "https://files.example.com/brief.pdf", "size": 2048},
        headers=owner[1],
    )
    assert response.status_code == 201
    attachments = response.json()["data"]["task"]["attachments"]
    assert attachments[0]["name"] == "brief.pdf"
    assert attachments[0]["size"] == 2048

    # Plain members without update rights cannot attach files
    response = client.post(url, json={"name": "x.txt", "url": "https://files.example.com/x.txt"}, headers=member[1])
    assert response.status_code == 403


def test_dependencies(client, owner, create_task):
    first = create_task(title="Foundation")
    second = create_task(title="Walls", dependencies=[first["id"]])
    assert second["dependencies"] == [first["id"]]

    # A cycle back to the second task is refused
    response = client.put(f"/api/tasks/{first['id']}", json={"dependencies": [second["id"]]}, headers=owner[1])
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_DEPENDENCIES"

    response = client.put(f"/api/tasks/{first['id']}", json={"dependencies": [first["id"]]}, headers=owner[1])
    assert response.status_code == 400

    response = client.put(f"/api/tasks/{first['id']}", json={"dependencies": [4242]}, headers=owner[1])
    assert response.status_code == 400


def test_blocked_reason_marks_task_blocked(client, owner, create_task):
    task = create_task()
    response = client.put(
        f"/api/tasks/{task['id']}",
        json={"blockedReason": "Waiting on legal review"},
        headers=owner[1],
    )
    assert response.json()["data"]["task"]["isBlocked"] is True

    response = client.put(f"/api/tasks/{task['id']}", json={"blockedReason": None}, headers=owner[1])
    assert response.json()["data"]["task"]["isBlocked"] is False
