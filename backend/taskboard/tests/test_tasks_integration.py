from datetime import datetime, timedelta, timezone

import pytest

from conftest import create_user
from taskboard.core.errors import AuthorizationError, NotFoundError, ValidationError
from taskboard.models.assignment import Assignment
from taskboard.models.task import Task
from taskboard.routes.tasks import (
    create_task,
    delete_task,
    get_dashboard_data,
    get_user_dashboard_data,
    read_task,
    read_tasks,
    update_task,
    update_task_checklist,
    update_task_status,
)
from taskboard.schemas.task import TaskChecklistUpdate, TaskCreate, TaskStatusUpdate, TaskUpdate


def new_task(db, admin, title="Task", assignees=(), checklist=(), **fields):
    payload = TaskCreate(
        title=title,
        assigned_to=[user.id for user in assignees],
        checklist=list(checklist),
        **fields,
    )
    return create_task(payload, db=db, current_user=admin).task


def test_create_task_assigns_users(db_session, admin_user, member_user, other_member):
    result = create_task(
        TaskCreate(
            title="Prepare release",
            description="Cut the branch",
            priority="High",
            assigned_to=[member_user.id, other_member.id],
            checklist=[{"text": "tag"}, {"text": "notes"}],
        ),
        db=db_session,
        current_user=admin_user,
    )

    assert result.message == "Task created successfully"
    assert result.task.status == "Pending"
    assert result.task.progress == 0
    assert result.task.created_by == admin_user.id
    assert [user.id for user in result.task.assigned_to] == sorted([member_user.id, other_member.id])
    assert db_session.query(Assignment).count() == 2


def test_create_task_rejects_duplicate_assignees(db_session, admin_user, member_user):
    with pytest.raises(ValidationError):
        new_task(db_session, admin_user, assignees=[member_user, member_user])
    assert db_session.query(Task).count() == 0


def test_create_task_rejects_unknown_assignee(db_session, admin_user):
    payload = TaskCreate(title="Ghost", assigned_to=[9999])
    with pytest.raises(NotFoundError):
        create_task(payload, db=db_session, current_user=admin_user)


def test_assignee_checklist_update_persists_progress(db_session, admin_user, member_user):
    task = new_task(db_session, admin_user, assignees=[member_user], checklist=[{"text": "a"}, {"text": "b"}])

    result = update_task_checklist(
        task.id,
        TaskChecklistUpdate(checklist=[{"text": "a", "completed": True}, {"text": "b", "completed": False}]),
        db=db_session,
        current_user=member_user,
    )

    assert result.task.progress == 50
    assert result.task.status == "In Progress"
    assert result.task.completed_todo_count == 1
    db_session.expire_all()
    stored = db_session.query(Task).filter(Task.id == task.id).one()
    assert stored.progress == 50
    assert stored.status == "In Progress"


def test_outsider_checklist_update_is_rejected(db_session, admin_user, member_user, other_member):
    task = new_task(db_session, admin_user, assignees=[member_user], checklist=[{"text": "a"}])

    with pytest.raises(AuthorizationError):
        update_task_checklist(
            task.id,
            TaskChecklistUpdate(checklist=[{"text": "a", "completed": True}]),
            db=db_session,
            current_user=other_member,
        )

    db_session.rollback()
    db_session.expire_all()
    stored = db_session.query(Task).filter(Task.id == task.id).one()
    assert stored.progress == 0
    assert stored.checklist == [{"text": "a", "completed": False}]


def test_admin_completes_task_directly(db_session, admin_user):
    task = new_task(db_session, admin_user, checklist=[{"text": "a"}, {"text": "b"}])

    result = update_task_status(
        task.id, TaskStatusUpdate(status="Completed"), db=db_session, current_user=admin_user
    )

    assert result.task.status == "Completed"
    assert result.task.progress == 100
    assert all(item.completed for item in result.task.checklist)


def test_outsider_status_change_leaves_record_unchanged(db_session, admin_user, member_user, other_member):
    task = new_task(db_session, admin_user, assignees=[member_user], checklist=[{"text": "a"}])

    with pytest.raises(AuthorizationError):
        update_task_status(task.id, TaskStatusUpdate(status="Completed"), db=db_session, current_user=other_member)

    db_session.rollback()
    db_session.expire_all()
    stored = db_session.query(Task).filter(Task.id == task.id).one()
    assert stored.status == "Pending"
    assert stored.progress == 0
    assert stored.checklist == [{"text": "a", "completed": False}]


def test_status_change_on_missing_task(db_session, admin_user):
    with pytest.raises(NotFoundError):
        update_task_status(404, TaskStatusUpdate(status="Completed"), db=db_session, current_user=admin_user)


def test_update_keeps_omitted_fields(db_session, admin_user, member_user, other_member):
    due = datetime(2030, 5, 1, tzinfo=timezone.utc)
    task = new_task(
        db_session,
        admin_user,
        title="Original",
        description="Keep me",
        assignees=[member_user],
        due_date=due,
    )

    result = update_task(
        task.id,
        TaskUpdate(title="Renamed", assigned_to=[other_member.id]),
        db=db_session,
        current_user=admin_user,
    )

    assert result.task.title == "Renamed"
    assert result.task.description == "Keep me"
    assert result.task.priority == "Medium"
    assert result.task.due_date.replace(tzinfo=None) == due.replace(tzinfo=None)
    assert [user.id for user in result.task.assigned_to] == [other_member.id]


def test_update_with_checklist_recomputes_progress(db_session, admin_user):
    task = new_task(db_session, admin_user, checklist=[{"text": "a"}])

    result = update_task(
        task.id,
        TaskUpdate(checklist=[{"text": "a", "completed": True}, {"text": "b", "completed": True}]),
        db=db_session,
        current_user=admin_user,
    )

    assert result.task.progress == 100
    assert result.task.status == "Completed"


def test_update_rejects_malformed_assignees(db_session, admin_user):
    task = new_task(db_session, admin_user)
    with pytest.raises(ValidationError):
        update_task(task.id, TaskUpdate(assigned_to="1,2"), db=db_session, current_user=admin_user)


def test_delete_task_removes_record_and_assignments(db_session, admin_user, member_user):
    task = new_task(db_session, admin_user, assignees=[member_user])

    response = delete_task(task.id, db=db_session, current_user=admin_user)

    assert response == {"message": "Task deleted successfully"}
    assert db_session.query(Assignment).count() == 0
    with pytest.raises(NotFoundError):
        read_task(task.id, db=db_session, current_user=admin_user)


def test_read_task_requires_assignment_or_admin(db_session, admin_user, member_user, other_member):
    task = new_task(db_session, admin_user, assignees=[member_user])

    assert read_task(task.id, db=db_session, current_user=member_user).id == task.id
    assert read_task(task.id, db=db_session, current_user=admin_user).id == task.id
    with pytest.raises(AuthorizationError):
        read_task(task.id, db=db_session, current_user=other_member)


def test_task_list_is_scoped_by_role(db_session, admin_user, member_user, other_member):
    mine = new_task(db_session, admin_user, title="Mine", assignees=[member_user], checklist=[{"text": "a", "completed": True}])
    new_task(db_session, admin_user, title="Theirs", assignees=[other_member])
    new_task(db_session, admin_user, title="Nobody")

    member_view = read_tasks(status=None, db=db_session, current_user=member_user)
    admin_view = read_tasks(status=None, db=db_session, current_user=admin_user)

    assert [task.id for task in member_view.tasks] == [mine.id]
    assert member_view.status_summary.model_dump() == {
        "all": 1,
        "pending_tasks": 0,
        "in_progress_tasks": 0,
        "completed_tasks": 1,
    }
    assert len(admin_view.tasks) == 3
    assert admin_view.status_summary.all == 3
    assert admin_view.status_summary.pending_tasks == 2


def test_task_list_filters_by_status(db_session, admin_user):
    new_task(db_session, admin_user, title="Done", checklist=[{"text": "a", "completed": True}])
    new_task(db_session, admin_user, title="Todo")

    result = read_tasks(status="Completed", db=db_session, current_user=admin_user)

    assert [task.title for task in result.tasks] == ["Done"]
    assert result.status_summary.all == 2


def test_system_dashboard_counts(db_session, admin_user, member_user):
    past = datetime.now(timezone.utc) - timedelta(days=3)
    new_task(db_session, admin_user, title="Late", priority="High", due_date=past)
    new_task(db_session, admin_user, title="Late but done", due_date=past, checklist=[{"text": "a", "completed": True}])
    new_task(
        db_session,
        admin_user,
        title="Halfway",
        priority="Low",
        assignees=[member_user],
        checklist=[{"text": "a", "completed": True}, {"text": "b"}],
    )

    data = get_dashboard_data(db=db_session, current_user=admin_user)

    assert data["statistics"] == {
        "total_tasks": 3,
        "pending_tasks": 1,
        "in_progress_tasks": 1,
        "completed_tasks": 1,
        "overdue_tasks": 1,
    }
    assert data["charts"]["task_distribution"] == {"Pending": 1, "InProgress": 1, "Completed": 1, "All": 3}
    assert data["charts"]["task_priority_levels"] == {"Low": 1, "Medium": 1, "High": 1}
    assert [task["title"] for task in data["recent_tasks"]] == ["Halfway", "Late but done", "Late"]


def test_user_dashboard_is_scoped_and_zero_filled(db_session, admin_user, member_user, other_member):
    new_task(db_session, admin_user, title="Mine", priority="High", assignees=[member_user])
    new_task(db_session, admin_user, title="Theirs", assignees=[other_member])

    data = get_user_dashboard_data(db=db_session, current_user=member_user)

    assert data["statistics"]["total_tasks"] == 1
    assert data["charts"]["task_distribution"] == {"Pending": 1, "InProgress": 0, "Completed": 0, "All": 1}
    assert data["charts"]["task_priority_levels"] == {"Low": 0, "Medium": 0, "High": 1}
    assert [task["title"] for task in data["recent_tasks"]] == ["Mine"]


def test_empty_dashboard_has_every_bucket(db_session):
    lonely = create_user(db_session, "Lonely")

    data = get_user_dashboard_data(db=db_session, current_user=lonely)

    assert data["statistics"]["total_tasks"] == 0
    assert data["charts"]["task_distribution"] == {"Pending": 0, "InProgress": 0, "Completed": 0, "All": 0}
    assert data["charts"]["task_priority_levels"] == {"Low": 0, "Medium": 0, "High": 0}
    assert data["recent_tasks"] == []


def test_recent_tasks_are_capped_at_fifteen(db_session, admin_user):
    for index in range(17):
        new_task(db_session, admin_user, title=f"Task {index}")

    data = get_dashboard_data(db=db_session, current_user=admin_user)

    assert data["statistics"]["total_tasks"] == 17
    assert len(data["recent_tasks"]) == 15
    assert data["recent_tasks"][0]["title"] == "Task 16"
    assert data["recent_tasks"][-1]["title"] == "Task 2"


def test_overdue_uses_the_due_date_offset(db_session, admin_user):
    plus_five = timezone(timedelta(hours=5))
    # an hour ago in UTC, but later today on a +05:00 wall clock
    past_due = (datetime.now(timezone.utc) - timedelta(hours=1)).astimezone(plus_five)
    new_task(db_session, admin_user, title="Missed", due_date=past_due)

    data = get_dashboard_data(db=db_session, current_user=admin_user)

    assert data["statistics"]["overdue_tasks"] == 1


def test_status_change_must_match_progress(db_session, admin_user):
    task = new_task(db_session, admin_user, checklist=[{"text": "a", "completed": True}])

    with pytest.raises(ValidationError):
        update_task_status(task.id, TaskStatusUpdate(status="Pending"), db=db_session, current_user=admin_user)

    db_session.rollback()
    db_session.expire_all()
    stored = db_session.query(Task).filter(Task.id == task.id).one()
    assert (stored.status, stored.progress) == ("Completed", 100)
