from datetime import date, datetime, timedelta
from http import HTTPStatus
from django.conf import settings
from django.db import DatabaseError
from django.utils import timezone
from .dtos import ProjectDetails, ResultResponse, TimesheetDetails, UserTimesheet
from .mappers import TimesheetMapper
from .models import TimesheetStatus
import calendar
import logging

logger = logging.getLogger(__name__)


def _as_date(value):
    return value.date() if isinstance(value, datetime) else value


def is_task_visible(task, member, day):
    """Whether the member may log time against the task on the given day"""
    if task.is_removed:
        return False
    if task.is_added_by_member and task.member_mapping_id != member.id:
        return False
    if task.start_date and day < task.start_date:
        return False
    if task.end_date and day > task.end_date:
        return False
    return True


class TimesheetHelper:
    """Fill, submit and review workflow of member timesheets"""

    def __init__(self, repository_accessors, mapper=None, freeze_day_of_month=None,
                 daily_efforts_limit=None, weekly_efforts_limit=None):
        self.repository_accessors = repository_accessors
        self.mapper = mapper or TimesheetMapper()
        if freeze_day_of_month is None:
            freeze_day_of_month = settings.TIMESHEET_FREEZE_DAY_OF_MONTH
        if daily_efforts_limit is None:
            daily_efforts_limit = settings.DAILY_EFFORTS_LIMIT
        if weekly_efforts_limit is None:
            weekly_efforts_limit = settings.WEEKLY_EFFORTS_LIMIT
        self.freeze_day_of_month = freeze_day_of_month
        self.daily_efforts_limit = daily_efforts_limit
        self.weekly_efforts_limit = weekly_efforts_limit

    @property
    def timesheet_repository(self):
        return self.repository_accessors.timesheet_repository

    # -------------------------
    # Calendar
    # -------------------------
    def get_timesheets(self, calendar_start_date, calendar_end_date, user_object_id):
        """Per-day project and task grid of the user for the calendar window"""
        calendar_start_date = _as_date(calendar_start_date)
        calendar_end_date = _as_date(calendar_end_date)

        projects = self.repository_accessors.project_repository.get_projects(
            calendar_start_date, calendar_end_date, user_object_id
        )
        filled_timesheets = {
            (timesheet.task_id, timesheet.timesheet_date): timesheet
            for timesheet in self.timesheet_repository.get_timesheets_of_user(
                calendar_start_date, calendar_end_date, user_object_id
            )
        }

        user_timesheets = []
        day = calendar_start_date
        while day <= calendar_end_date:
            day_projects = [project for project in projects if project.start_date <= day <= project.end_date]
            if day_projects:
                project_details = []
                for project in day_projects:
                    member = next((m for m in project.members.all() if m.user_id == user_object_id), None)
                    if member is None:
                        continue

                    timesheet_details = []
                    for task in project.tasks.all():
                        if not is_task_visible(task, member, day):
                            continue
                        filled = filled_timesheets.get((task.id, day))
                        timesheet_details.append(TimesheetDetails(
                            task_id=task.id,
                            task_title=task.title,
                            is_added_by_member=task.is_added_by_member,
                            start_date=task.start_date,
                            end_date=task.end_date,
                            hours=filled.hours if filled else 0,
                            manager_comments=filled.manager_comments if filled else '',
                            status=int(filled.status) if filled else int(TimesheetStatus.NONE),
                        ))

                    project_details.append(ProjectDetails(
                        id=project.id,
                        title=project.title,
                        start_date=project.start_date,
                        end_date=project.end_date,
                        timesheet_details=tuple(timesheet_details),
                    ))
                user_timesheets.append(UserTimesheet(timesheet_date=day, project_details=tuple(project_details)))
            day += timedelta(days=1)

        return user_timesheets

    # -------------------------
    # Date rules
    # -------------------------
    def get_not_yet_frozen_timesheet_dates(self, timesheet_dates, client_local_current_date):
        """
        Dates which may still be filled or submitted.

        Before the freeze day of the month the previous and the current month
        are open; from the freeze day on only the current month is. A freeze
        day beyond the month length falls back to the last day of the month.
        """
        current = _as_date(client_local_current_date)
        days_in_month = calendar.monthrange(current.year, current.month)[1]
        month_start = date(current.year, current.month, 1)
        month_end = date(current.year, current.month, days_in_month)
        freeze_day = min(self.freeze_day_of_month, days_in_month)

        if current.day >= freeze_day:
            window_start = month_start
        else:
            window_start = (month_start - timedelta(days=1)).replace(day=1)

        return [
            timesheet_date for timesheet_date in timesheet_dates
            if window_start <= _as_date(timesheet_date) <= month_end
        ]

    def is_client_current_date_valid(self, client_current_date, utc_now):
        """The client date must exist somewhere on earth right now (UTC-12 to UTC+14)"""
        earliest = (utc_now - timedelta(hours=12)).date()
        latest = (utc_now + timedelta(hours=14)).date()
        return earliest <= _as_date(client_current_date) <= latest

    def will_weekly_efforts_limit_exceed(self, timesheet_date, efforts_to_save, user_object_id):
        # Weeks run Sunday to Saturday
        start_of_week = timesheet_date - timedelta(days=(timesheet_date.weekday() + 1) % 7)
        end_of_week = start_of_week + timedelta(days=6)

        timesheets_of_week = self.timesheet_repository.get_timesheets_of_user(
            start_of_week, end_of_week, user_object_id
        )
        filled_efforts = sum(
            timesheet.hours for timesheet in timesheets_of_week
            if timesheet.timesheet_date != timesheet_date
        )
        return filled_efforts + efforts_to_save > self.weekly_efforts_limit

    # -------------------------
    # Save and submit
    # -------------------------
    def save_timesheets(self, user_timesheets, client_local_current_date, user_object_id):
        if not self.is_client_current_date_valid(client_local_current_date, timezone.now()):
            return ResultResponse(HTTPStatus.BAD_REQUEST, "The provided current date is invalid.")

        to_save = [
            user_timesheet for user_timesheet in user_timesheets
            if any(project.timesheet_details for project in user_timesheet.project_details)
        ]
        not_frozen_dates = set(self.get_not_yet_frozen_timesheet_dates(
            [user_timesheet.timesheet_date for user_timesheet in to_save], timezone.now()
        ))
        to_save = [user_timesheet for user_timesheet in to_save if user_timesheet.timesheet_date in not_frozen_dates]

        if not to_save:
            logger.info("The timesheet can not be filled for frozen timesheet dates.")
            return ResultResponse(HTTPStatus.BAD_REQUEST, "The timesheet can not be filled for frozen timesheet dates.")

        user_projects = self.repository_accessors.project_repository.get_projects(
            min(user_timesheet.timesheet_date for user_timesheet in to_save),
            max(user_timesheet.timesheet_date for user_timesheet in to_save),
            user_object_id,
        )
        if not user_projects:
            logger.info("There are no active projects assigned.")
            return ResultResponse(HTTPStatus.BAD_REQUEST, "There are no active projects assigned.")

        user_project_ids = {project.id for project in user_projects}
        saved_timesheets = []

        for user_timesheet in to_save:
            efforts_to_save = user_timesheet.total_hours
            if efforts_to_save > self.daily_efforts_limit:
                logger.info(f"Daily efforts limit exceeded for {user_timesheet.timesheet_date}")
                continue
            if self.will_weekly_efforts_limit_exceed(user_timesheet.timesheet_date, efforts_to_save, user_object_id):
                logger.info(f"Weekly efforts limit exceeded for {user_timesheet.timesheet_date}")
                continue

            for project in user_timesheet.project_details:
                if not project.timesheet_details:
                    continue

                if project.id not in user_project_ids:
                    self.repository_accessors.context.discard_changes()
                    logger.info("Unable to save timesheets as some of the projects are not assigned.")
                    return ResultResponse(
                        HTTPStatus.BAD_REQUEST, "Unable to save timesheets as some of the projects are not assigned."
                    )

                filled = {
                    timesheet.task_id: timesheet
                    for timesheet in self.timesheet_repository.get_timesheets(
                        user_timesheet.timesheet_date,
                        [detail.task_id for detail in project.timesheet_details],
                        user_object_id,
                    )
                }

                for detail in project.timesheet_details:
                    timesheet = filled.get(detail.task_id)
                    if timesheet is None:
                        if detail.hours <= 0:
                            continue
                        timesheet = self.mapper.map_for_create_model(
                            user_timesheet.timesheet_date,
                            detail.model_copy(update={'status': TimesheetStatus.SAVED}),
                            user_object_id,
                        )
                        self.timesheet_repository.add(timesheet)
                    else:
                        # Zero hours marks the task as unfilled again
                        status = TimesheetStatus.NONE if detail.hours <= 0 else TimesheetStatus.SAVED
                        self.mapper.map_for_update_model(detail.model_copy(update={'status': status}), timesheet)
                        self.timesheet_repository.update(timesheet)

                    saved_timesheets.append(self.mapper.map_for_view_model(timesheet))

        try:
            is_saved = self.repository_accessors.save_changes() > 0
        except DatabaseError as e:
            self.repository_accessors.context.discard_changes()
            logger.error(f"Failed to save timesheets: {e}")
            is_saved = False

        if not is_saved:
            logger.info("Failed to save timesheets.")
            return ResultResponse(HTTPStatus.INTERNAL_SERVER_ERROR, "Failed to save timesheets.")

        return ResultResponse(HTTPStatus.OK, response=tuple(saved_timesheets))

    def submit_timesheets(self, client_local_current_date, user_timesheets, user_object_id):
        """Save the given timesheets, then submit every saved timesheet of the user"""
        user_timesheets = list(user_timesheets or [])
        if user_timesheets:
            result = self.save_timesheets(user_timesheets, client_local_current_date, user_object_id)
            if result.status_code != HTTPStatus.OK:
                return result

        saved_timesheets = self.timesheet_repository.get_saved_timesheets(user_object_id)
        if not saved_timesheets:
            logger.info("Unable to submit timesheets as there are no saved timesheets found.")
            return ResultResponse(
                HTTPStatus.BAD_REQUEST, "Unable to submit timesheets as there are no saved timesheets found."
            )

        not_frozen_dates = set(self.get_not_yet_frozen_timesheet_dates(
            [timesheet.timesheet_date for timesheet in saved_timesheets], timezone.now()
        ))
        saved_timesheets = [
            timesheet for timesheet in saved_timesheets if timesheet.timesheet_date in not_frozen_dates
        ]
        if not saved_timesheets:
            logger.info("The timesheet can not be filled for frozen timesheet dates.")
            return ResultResponse(HTTPStatus.BAD_REQUEST, "The timesheet can not be filled for frozen timesheet dates.")

        submitted_on = timezone.now()
        for timesheet in saved_timesheets:
            timesheet.status = TimesheetStatus.SUBMITTED
            timesheet.submitted_on = submitted_on
        self.timesheet_repository.update_timesheets(saved_timesheets)

        try:
            is_submitted = self.repository_accessors.save_changes() > 0
        except DatabaseError as e:
            self.repository_accessors.context.discard_changes()
            logger.error(f"Failed to submit timesheets: {e}")
            is_submitted = False

        if not is_submitted:
            return ResultResponse(HTTPStatus.INTERNAL_SERVER_ERROR, "Failed to submit timesheets.")

        return ResultResponse(
            HTTPStatus.OK,
            response=tuple(self.mapper.map_for_view_model(timesheet) for timesheet in saved_timesheets),
        )

    # -------------------------
    # Review
    # -------------------------
    def approve_or_reject_timesheet_requests(self, timesheets, request_approvals, status):
        """Apply the manager decision. True only if every timesheet was written."""
        timesheets = list(timesheets)
        approvals = {approval.timesheet_id: approval for approval in request_approvals}

        modified_on = timezone.now()
        for timesheet in timesheets:
            approval = approvals[timesheet.id]
            timesheet.status = status
            timesheet.manager_comments = approval.manager_comments if status == TimesheetStatus.REJECTED else ''
            timesheet.last_modified_on = modified_on

        self.timesheet_repository.update_timesheets(timesheets)
        try:
            affected = self.repository_accessors.save_changes()
        except DatabaseError as e:
            self.repository_accessors.context.discard_changes()
            logger.error(f"Failed to update timesheet requests: {e}")
            return False

        return affected == len(timesheets)

    def get_timesheet_requests_by_status(self, reportee_object_id, status):
        grouped = self.timesheet_repository.get_timesheet_requests_of_users_by_status([reportee_object_id], status)
        requests = self.mapper.map_to_view_model(grouped.get(reportee_object_id, []))
        return sorted(requests, key=lambda request: request.timesheet_date)

    def get_submitted_timesheets_by_ids(self, manager_object_id, timesheet_request_ids):
        """Submitted timesheets of the manager's projects, or None if any id does not qualify"""
        requested_ids = set(timesheet_request_ids)
        valid_timesheets = self.timesheet_repository.get_submitted_timesheets_by_ids(manager_object_id, requested_ids)
        valid_ids = {timesheet.id for timesheet in valid_timesheets}

        if requested_ids <= valid_ids:
            return valid_timesheets
        return None
