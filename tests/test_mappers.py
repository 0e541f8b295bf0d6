import uuid
from datetime import date
from types import SimpleNamespace

import pytest

from timesheet.dtos import TimesheetDetails
from timesheet.mappers import ManagerDashboardMapper, MemberMapper, ProjectMapper, TaskMapper, TimesheetMapper
from timesheet.models import TimesheetStatus


def _row(timesheet_date, hours=4, user_id=None, status=TimesheetStatus.SUBMITTED, project_title='Apollo'):
    return SimpleNamespace(
        id=uuid.uuid4(),
        user_id=user_id or uuid.uuid4(),
        timesheet_date=timesheet_date,
        hours=hours,
        status=status,
        task_title='Build',
        task=SimpleNamespace(project=SimpleNamespace(title=project_title)),
    )


@pytest.fixture()
def dashboard_mapper():
    return ManagerDashboardMapper()


@pytest.fixture()
def timesheet_mapper():
    return TimesheetMapper()


# --- Date grouping ---------------------------------------------------------

def test_dates_a_week_apart_form_two_groups(dashboard_mapper):
    rows = [_row(date(2024, 1, 8)), _row(date(2024, 1, 1))]

    assert dashboard_mapper.get_distinct_dates(rows) == (
        (date(2024, 1, 1),),
        (date(2024, 1, 8),),
    )


def test_gaps_inside_a_week_split_the_dates(dashboard_mapper):
    rows = [_row(date(2024, 1, 3)), _row(date(2024, 1, 1)), _row(date(2024, 1, 3)), _row(date(2024, 1, 5))]

    assert dashboard_mapper.get_distinct_dates(rows) == (
        (date(2024, 1, 1),),
        (date(2024, 1, 3),),
        (date(2024, 1, 5),),
    )


def test_consecutive_days_across_a_week_boundary_stay_together(dashboard_mapper):
    # Sunday and the following Monday
    rows = [_row(date(2024, 1, 8)), _row(date(2024, 1, 7))]

    assert dashboard_mapper.get_distinct_dates(rows) == ((date(2024, 1, 7), date(2024, 1, 8)),)


def test_run_spanning_year_end_stays_together(dashboard_mapper):
    rows = [_row(date(2025, 1, 1)), _row(date(2024, 12, 31)), _row(date(2024, 12, 30)), _row(date(2024, 12, 31))]

    assert dashboard_mapper.get_distinct_dates(rows) == (
        (date(2024, 12, 30), date(2024, 12, 31), date(2025, 1, 1)),
    )


def test_grouping_leaves_input_untouched(dashboard_mapper):
    rows = [_row(date(2024, 1, 5)), _row(date(2024, 1, 4))]
    original = list(rows)

    dashboard_mapper.get_distinct_dates(rows)

    assert rows == original


def test_distinct_dates_of_nothing(dashboard_mapper):
    assert dashboard_mapper.get_distinct_dates([]) == ()


# --- Dashboard -------------------------------------------------------------

def test_dashboard_project_utilization(dashboard_mapper):
    project = SimpleNamespace(id=uuid.uuid4(), title='Apollo', billable_hours=80, non_billable_hours=20)

    dto = dashboard_mapper.map_for_dashboard_project(project, [_row(date(2024, 1, 1), 3), _row(date(2024, 1, 2), 5)])

    assert dto.total_hours == 100
    assert dto.utilized_hours == 8


def test_dashboard_project_requires_project(dashboard_mapper):
    with pytest.raises(ValueError):
        dashboard_mapper.map_for_dashboard_project(None, [])


def test_dashboard_requests_one_per_group(dashboard_mapper):
    user_id = uuid.uuid4()
    group = [_row(date(2024, 1, 1), 4, user_id), _row(date(2024, 1, 1), 2, user_id), _row(date(2024, 1, 9), 3, user_id)]

    (request,) = dashboard_mapper.map_for_view_model([group, []])

    assert request.user_id == user_id
    assert request.number_of_days == 2
    assert request.total_hours == 9
    assert request.status == TimesheetStatus.SUBMITTED
    assert len(request.submitted_timesheet_request_ids) == 3
    assert request.requested_for_dates == ((date(2024, 1, 1),), (date(2024, 1, 9),))


# --- Timesheets ------------------------------------------------------------

def test_create_model_stamps_submission(timesheet_mapper, user_id):
    details = TimesheetDetails(task_id=uuid.uuid4(), task_title='Build', hours=6, status=TimesheetStatus.SUBMITTED)

    timesheet = timesheet_mapper.map_for_create_model(date(2024, 1, 1), details, user_id)

    assert timesheet.user_id == user_id
    assert timesheet.hours == 6
    assert timesheet.submitted_on is not None


def test_create_model_for_saved_is_not_submitted(timesheet_mapper, user_id):
    details = TimesheetDetails(task_id=uuid.uuid4(), hours=2, status=TimesheetStatus.SAVED)

    assert timesheet_mapper.map_for_create_model(date(2024, 1, 1), details, user_id).submitted_on is None


def test_update_model(timesheet_mapper, user_id):
    timesheet = _row(date(2024, 1, 1), 2, user_id, TimesheetStatus.SAVED)
    details = TimesheetDetails(task_id=uuid.uuid4(), hours=0, status=TimesheetStatus.NONE)

    timesheet_mapper.map_for_update_model(details, timesheet)

    assert timesheet.hours == 0
    assert timesheet.status == TimesheetStatus.NONE
    assert timesheet.last_modified_on is not None


def test_submitted_requests_grouped_by_date(timesheet_mapper, user_id):
    rows = [
        _row(date(2024, 1, 1), 4, user_id, project_title=' Apollo '),
        _row(date(2024, 1, 1), 2, user_id, project_title='Apollo'),
        _row(date(2024, 1, 1), 1, user_id, project_title='Gemini'),
        _row(date(2024, 1, 2), 8, user_id),
    ]

    first, second = timesheet_mapper.map_to_view_model(rows)

    assert first.timesheet_date == date(2024, 1, 1)
    assert first.total_hours == 7
    assert first.project_titles == ('Apollo', 'Gemini')
    assert second.total_hours == 8


def test_view_model_requires_timesheet(timesheet_mapper):
    with pytest.raises(ValueError):
        timesheet_mapper.map_for_view_model(None)


# --- Projects --------------------------------------------------------------

def test_project_utilization_splits_by_member_billing():
    billable, non_billable, outsider = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
    project = SimpleNamespace(
        id=uuid.uuid4(), title='Apollo', billable_hours=50, non_billable_hours=10, total_hours=60,
        start_date=date(2024, 1, 1), end_date=date(2024, 3, 31),
    )
    members = [
        SimpleNamespace(user_id=billable, is_billable=True),
        SimpleNamespace(user_id=non_billable, is_billable=False),
    ]
    rows = [
        _row(date(2024, 1, 2), 8, billable),
        _row(date(2024, 1, 3), 6, billable),
        _row(date(2024, 1, 2), 3, non_billable),
        _row(date(2024, 1, 2), 5, outsider),
    ]

    dto = ProjectMapper().map_for_project_utilization_view_model(project, rows, members)

    assert dto.billable_utilized_hours == 14
    assert dto.non_billable_utilized_hours == 3
    assert dto.underutilized_billable_hours == 36
    assert dto.underutilized_non_billable_hours == 7
    assert dto.total_hours == 60


def test_existing_members_are_reactivated_with_new_billing():
    user_id = uuid.uuid4()
    existing = [SimpleNamespace(user_id=user_id, is_billable=True, is_removed=True)]
    requested = [SimpleNamespace(user_id=user_id, is_billable=False)]

    (member,) = MemberMapper().map_for_existing_members(requested, existing)

    assert member.is_removed is False
    assert member.is_billable is False


def test_members_overview_sums_hours_per_user():
    user_id = uuid.uuid4()
    member = SimpleNamespace(id=uuid.uuid4(), project_id=uuid.uuid4(), user_id=user_id, is_billable=True)

    (overview,) = MemberMapper().map_for_project_members_view_model(
        [member], [_row(date(2024, 1, 1), 4, user_id), _row(date(2024, 1, 2), 3, user_id), _row(date(2024, 1, 2), 9)]
    )

    assert overview.user_id == user_id
    assert overview.total_hours == 7
    assert overview.user_name == ''


def test_tasks_overview_sums_hours_per_task():
    task = SimpleNamespace(
        id=uuid.uuid4(), project_id=uuid.uuid4(), title='Design', is_removed=True, start_date=None, end_date=None
    )
    rows = [SimpleNamespace(task_id=task.id, hours=2), SimpleNamespace(task_id=task.id, hours=5),
            SimpleNamespace(task_id=uuid.uuid4(), hours=8)]

    (overview,) = TaskMapper().map_for_project_tasks_view_model([task], rows)

    assert overview.total_hours == 7
    assert overview.is_removed is True
