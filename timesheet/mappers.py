from datetime import timedelta
from django.utils import timezone
from .dtos import (
    DashboardProjectDTO,
    DashboardRequestDTO,
    MemberDTO,
    ProjectDTO,
    ProjectMemberOverviewDTO,
    ProjectTaskOverviewDTO,
    ProjectUtilizationDTO,
    SubmittedRequestDTO,
    TaskDTO,
    TimesheetDTO,
)
from .models import Member, Project, Task, Timesheet, TimesheetStatus


class ManagerDashboardMapper:
    """Shapes timesheet rows into manager dashboard transfer objects"""

    def map_for_dashboard_project(self, project, timesheets):
        if project is None:
            raise ValueError("Project cannot be None")
        if timesheets is None:
            raise ValueError("Timesheets cannot be None")

        return DashboardProjectDTO(
            id=project.id,
            title=project.title,
            total_hours=project.billable_hours + project.non_billable_hours,
            utilized_hours=sum(timesheet.hours for timesheet in timesheets),
        )

    def map_for_view_model(self, timesheet_request_groups):
        """One dashboard request per user group of timesheets"""
        if timesheet_request_groups is None:
            raise ValueError("Timesheet requests cannot be None")

        dashboard_requests = []
        for timesheet_requests in timesheet_request_groups:
            timesheet_requests = list(timesheet_requests)
            if not timesheet_requests:
                continue
            first = timesheet_requests[0]
            dashboard_requests.append(DashboardRequestDTO(
                user_id=first.user_id,
                user_name='',
                number_of_days=len({timesheet.timesheet_date for timesheet in timesheet_requests}),
                total_hours=sum(timesheet.hours for timesheet in timesheet_requests),
                status=int(first.status),
                submitted_timesheet_request_ids=tuple(timesheet.id for timesheet in timesheet_requests),
                requested_for_dates=self.get_distinct_dates(timesheet_requests),
            ))
        return dashboard_requests

    def get_distinct_dates(self, timesheets):
        """
        Distinct timesheet dates grouped into runs of consecutive days.

        A new group starts whenever a date is not the day after the previous
        one. Groups come out in chronological order and so do the dates inside
        each group. The input sequence is left untouched.
        """
        ordered_dates = sorted({timesheet.timesheet_date for timesheet in timesheets})

        buckets = []
        previous_day = None
        for day in ordered_dates:
            if previous_day is None or day != previous_day + timedelta(days=1):
                buckets.append([])
            buckets[-1].append(day)
            previous_day = day

        return tuple(tuple(bucket) for bucket in buckets)


class TimesheetMapper:
    """Maps between timesheet rows, client timesheet details and transfer objects"""

    def map_for_create_model(self, timesheet_date, timesheet_details, user_object_id):
        if timesheet_details is None:
            raise ValueError("Timesheet details cannot be None")

        return Timesheet(
            task_id=timesheet_details.task_id,
            task_title=timesheet_details.task_title,
            timesheet_date=timesheet_date,
            hours=timesheet_details.hours,
            status=timesheet_details.status,
            user_id=user_object_id,
            submitted_on=timezone.now() if timesheet_details.status == TimesheetStatus.SUBMITTED else None,
        )

    def map_for_update_model(self, timesheet_details, timesheet):
        if timesheet_details is None or timesheet is None:
            raise ValueError("Timesheet details cannot be None")

        timesheet.status = timesheet_details.status
        timesheet.hours = timesheet_details.hours
        timesheet.last_modified_on = timezone.now()

    def map_for_view_model(self, timesheet):
        if timesheet is None:
            raise ValueError("Timesheet details should not be None")

        return TimesheetDTO(
            id=timesheet.id,
            task_title=timesheet.task_title,
            timesheet_date=timesheet.timesheet_date,
            hours=timesheet.hours,
            status=int(timesheet.status),
        )

    def map_to_view_model(self, timesheet_requests):
        """Submitted requests of one user grouped per timesheet date"""
        if timesheet_requests is None:
            raise ValueError("Timesheet requests cannot be None")

        grouped = {}
        for timesheet in timesheet_requests:
            grouped.setdefault(timesheet.timesheet_date, []).append(timesheet)

        submitted_requests = []
        for timesheet_date, timesheets in grouped.items():
            project_titles = []
            for timesheet in timesheets:
                title = timesheet.task.project.title.strip()
                if title not in project_titles:
                    project_titles.append(title)

            submitted_requests.append(SubmittedRequestDTO(
                user_id=timesheets[0].user_id,
                timesheet_date=timesheet_date,
                total_hours=sum(timesheet.hours for timesheet in timesheets),
                status=int(timesheets[0].status),
                submitted_timesheet_ids=tuple(timesheet.id for timesheet in timesheets),
                project_titles=tuple(project_titles),
            ))
        return submitted_requests


class ProjectMapper:
    """Maps project rows to and from the project management transfer objects"""

    def map_for_create_model(self, project_dto, user_object_id):
        """Unsaved project with its members and tasks, created by the user"""
        if project_dto is None:
            raise ValueError("Project details cannot be None")

        project = Project(
            title=project_dto.title,
            client_name=project_dto.client_name,
            billable_hours=project_dto.billable_hours,
            non_billable_hours=project_dto.non_billable_hours,
            start_date=project_dto.start_date,
            end_date=project_dto.end_date,
            created_by=user_object_id,
            created_on=timezone.now(),
        )
        members = [
            Member(project=project, user_id=member.user_id, is_billable=member.is_billable, is_removed=False)
            for member in project_dto.members
        ]
        tasks = [
            Task(
                project=project,
                title=task.title,
                is_removed=False,
                start_date=task.start_date,
                end_date=task.end_date,
            )
            for task in project_dto.tasks
        ]
        return project, members, tasks

    def map_for_update_model(self, project_dto, project):
        if project_dto is None or project is None:
            raise ValueError("Project details cannot be None")

        project.title = project_dto.title
        project.client_name = project_dto.client_name
        project.billable_hours = project_dto.billable_hours
        project.non_billable_hours = project_dto.non_billable_hours
        project.start_date = project_dto.start_date
        project.end_date = project_dto.end_date
        return project

    def map_for_view_model(self, project, members=None, tasks=None):
        if project is None:
            raise ValueError("Project cannot be None")

        if members is None:
            members = getattr(project, 'active_members', None)
        if tasks is None:
            tasks = getattr(project, 'active_tasks', None)

        return ProjectDTO(
            id=project.id,
            title=project.title,
            client_name=project.client_name,
            billable_hours=project.billable_hours,
            non_billable_hours=project.non_billable_hours,
            start_date=project.start_date,
            end_date=project.end_date,
            members=tuple(
                MemberDTO(id=member.id, project_id=member.project_id, user_id=member.user_id,
                          is_billable=member.is_billable)
                for member in members or []
            ),
            tasks=tuple(
                TaskDTO(id=task.id, project_id=task.project_id, title=task.title,
                        is_added_by_member=task.is_added_by_member,
                        start_date=task.start_date, end_date=task.end_date)
                for task in tasks or []
            ),
        )

    def map_for_project_utilization_view_model(self, project, timesheets, members):
        """Approved hours split by the billing type of the member who logged them"""
        if project is None:
            raise ValueError("Project cannot be None")

        billing_by_user = {member.user_id: member.is_billable for member in members}
        billable_utilized_hours = 0
        non_billable_utilized_hours = 0
        for timesheet in timesheets:
            if timesheet.user_id not in billing_by_user:
                continue
            if billing_by_user[timesheet.user_id]:
                billable_utilized_hours += timesheet.hours
            else:
                non_billable_utilized_hours += timesheet.hours

        return ProjectUtilizationDTO(
            id=project.id,
            title=project.title,
            billable_utilized_hours=billable_utilized_hours,
            non_billable_utilized_hours=non_billable_utilized_hours,
            underutilized_billable_hours=project.billable_hours - billable_utilized_hours,
            underutilized_non_billable_hours=project.non_billable_hours - non_billable_utilized_hours,
            total_hours=project.total_hours,
            project_start_date=project.start_date,
            project_end_date=project.end_date,
        )


class MemberMapper:
    def map_for_create_model(self, project_id, member_dtos):
        if member_dtos is None:
            raise ValueError("Members cannot be None")

        return [
            Member(project_id=project_id, user_id=member.user_id, is_billable=member.is_billable, is_removed=False)
            for member in member_dtos
        ]

    def map_for_existing_members(self, member_dtos, existing_members):
        """Re-activate existing members and apply the requested billing type"""
        if member_dtos is None or existing_members is None:
            raise ValueError("Members cannot be None")

        requested = {member.user_id: member for member in member_dtos}
        for member in existing_members:
            if member.user_id in requested:
                member.is_billable = requested[member.user_id].is_billable
                member.is_removed = False
        return existing_members

    def map_for_project_members_view_model(self, members, timesheets):
        if members is None or timesheets is None:
            raise ValueError("Members and timesheets cannot be None")

        hours_by_user = {}
        for timesheet in timesheets:
            hours_by_user[timesheet.user_id] = hours_by_user.get(timesheet.user_id, 0) + timesheet.hours

        return [
            ProjectMemberOverviewDTO(
                id=member.id,
                project_id=member.project_id,
                user_id=member.user_id,
                user_name='',
                is_billable=member.is_billable,
                total_hours=hours_by_user.get(member.user_id, 0),
            )
            for member in members
        ]


class TaskMapper:
    def map_for_create_model(self, project_id, task_dtos):
        if task_dtos is None:
            raise ValueError("Tasks cannot be None")

        return [
            Task(
                project_id=project_id,
                title=task.title,
                is_removed=False,
                is_added_by_member=False,
                start_date=task.start_date,
                end_date=task.end_date,
            )
            for task in task_dtos
        ]

    def map_for_project_tasks_view_model(self, tasks, timesheets):
        if tasks is None or timesheets is None:
            raise ValueError("Tasks and timesheets cannot be None")

        hours_by_task = {}
        for timesheet in timesheets:
            hours_by_task[timesheet.task_id] = hours_by_task.get(timesheet.task_id, 0) + timesheet.hours

        return [
            ProjectTaskOverviewDTO(
                id=task.id,
                project_id=task.project_id,
                title=task.title,
                total_hours=hours_by_task.get(task.id, 0),
                is_removed=task.is_removed,
                start_date=task.start_date,
                end_date=task.end_date,
            )
            for task in tasks
        ]
