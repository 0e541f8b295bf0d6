"""Pytest fixtures for the timesheet app"""
import os
import uuid
from datetime import timedelta

import django
import pytest


def pytest_configure():
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'timesheet_application.settings')
    django.setup()


@pytest.fixture(scope='session')
def django_test_databases():
    from django.test.utils import (
        setup_databases,
        setup_test_environment,
        teardown_databases,
        teardown_test_environment,
    )

    setup_test_environment()
    old_config = setup_databases(verbosity=0, interactive=False)
    try:
        yield
    finally:
        teardown_databases(old_config, verbosity=0)
        teardown_test_environment()


@pytest.fixture()
def db(django_test_databases):
    """Run the test inside a transaction which is rolled back afterwards"""
    from django.db import transaction

    with transaction.atomic():
        yield
        transaction.set_rollback(True)


@pytest.fixture()
def today():
    from django.utils import timezone
    return timezone.now().date()


@pytest.fixture()
def manager_id():
    return uuid.uuid4()


@pytest.fixture()
def user_id():
    return uuid.uuid4()


# --- Factories -------------------------------------------------------------

@pytest.fixture()
def make_project(db, today):
    from timesheet.models import Project

    def _make(created_by=None, start_date=None, end_date=None, **kwargs):
        kwargs.setdefault('title', 'Project')
        kwargs.setdefault('billable_hours', 100)
        kwargs.setdefault('non_billable_hours', 20)
        return Project.objects.create(
            created_by=created_by or uuid.uuid4(),
            start_date=start_date or today - timedelta(days=40),
            end_date=end_date or today + timedelta(days=40),
            **kwargs,
        )
    return _make


@pytest.fixture()
def make_member(db):
    from timesheet.models import Member

    def _make(project, user_id=None, **kwargs):
        return Member.objects.create(project=project, user_id=user_id or uuid.uuid4(), **kwargs)
    return _make


@pytest.fixture()
def make_task(db):
    from timesheet.models import Task

    def _make(project, title='Development', **kwargs):
        return Task.objects.create(project=project, title=title, **kwargs)
    return _make


@pytest.fixture()
def make_timesheet(db, today):
    from timesheet.models import Timesheet, TimesheetStatus

    def _make(task, user_id, timesheet_date=None, hours=4, status=TimesheetStatus.SAVED, **kwargs):
        return Timesheet.objects.create(
            task=task,
            task_title=task.title,
            user_id=user_id,
            timesheet_date=timesheet_date or today,
            hours=hours,
            status=status,
            **kwargs,
        )
    return _make


@pytest.fixture()
def make_conversation(db):
    from timesheet.models import Conversation

    def _make(user_id=None, slack_user_id=None, conversation_id=None):
        return Conversation.objects.create(
            user_id=user_id or uuid.uuid4(),
            slack_user_id=slack_user_id or f"U{uuid.uuid4().hex[:10].upper()}",
            conversation_id=conversation_id or f"D{uuid.uuid4().hex[:10].upper()}",
        )
    return _make
