from django.db import DatabaseError
from .mappers import MemberMapper, ProjectMapper, TaskMapper
from .models import TimesheetStatus
import logging

logger = logging.getLogger(__name__)


class ProjectHelper:
    """
    Project management for the manager who created the project.

    Members and tasks are never physically deleted: removing one sets its
    is_removed flag so that logged efforts keep pointing at it.
    """

    def __init__(self, repository_accessors, users_service=None, project_mapper=None,
                 member_mapper=None, task_mapper=None):
        self.repository_accessors = repository_accessors
        self.users_service = users_service
        self.project_mapper = project_mapper or ProjectMapper()
        self.member_mapper = member_mapper or MemberMapper()
        self.task_mapper = task_mapper or TaskMapper()

    def _save(self, action):
        try:
            return self.repository_accessors.save_changes()
        except DatabaseError as e:
            self.repository_accessors.context.discard_changes()
            logger.error(f"Failed to {action}: {e}")
            return 0

    # -------------------------
    # Projects
    # -------------------------
    def create_project(self, project_dto, user_object_id):
        """Create the project with its members and tasks. Returns the created project or None."""
        if project_dto is None:
            raise ValueError("Project details cannot be None")

        project, members, tasks = self.project_mapper.map_for_create_model(project_dto, user_object_id)
        self.repository_accessors.project_repository.add(project)
        self.repository_accessors.member_repository.add_users(members)
        self.repository_accessors.task_repository.add_range(tasks)

        if self._save("create project") > 0:
            logger.info(f"Project {project.id} created by {user_object_id}")
            return self.project_mapper.map_for_view_model(project, members, tasks)
        return None

    def update_project(self, project, project_dto):
        if project is None or project_dto is None:
            raise ValueError("The project details must be provided")

        self.project_mapper.map_for_update_model(project_dto, project)
        self.repository_accessors.project_repository.update(project)
        return self._save("update project") > 0

    def get_project_by_id(self, project_id, user_object_id):
        project = self.repository_accessors.project_repository.get_project_by_id(project_id, user_object_id)
        if project is None:
            return None
        return self.project_mapper.map_for_view_model(project)

    def get_project_utilization(self, project_id, manager_object_id, start_date, end_date):
        """Approved hours of the project in the window split into billable and non-billable"""
        project = self.repository_accessors.project_repository.get_project_by_id(project_id, manager_object_id)
        if project is None:
            return None

        timesheets = self.repository_accessors.timesheet_repository.get_timesheet_requests_by_project_ids(
            [project_id], TimesheetStatus.APPROVED, start_date, end_date
        )
        members = self.repository_accessors.member_repository.get_members(project_id)
        return self.project_mapper.map_for_project_utilization_view_model(project, timesheets, members)

    # -------------------------
    # Members
    # -------------------------
    def add_project_members(self, project_id, member_dtos):
        """
        Add members to the project. Users who were members before are
        re-activated instead of added twice. True only if every requested
        member was written.
        """
        member_dtos = list(member_dtos)
        requested_user_ids = {member.user_id for member in member_dtos}

        existing_members = [
            member for member in self.repository_accessors.member_repository.get_all_members(project_id)
            if member.user_id in requested_user_ids
        ]
        if existing_members:
            self.member_mapper.map_for_existing_members(member_dtos, existing_members)
            self.repository_accessors.member_repository.update_members(existing_members)

        existing_user_ids = {member.user_id for member in existing_members}
        new_members = [member for member in member_dtos if member.user_id not in existing_user_ids]
        if new_members:
            self.repository_accessors.member_repository.add_users(
                self.member_mapper.map_for_create_model(project_id, new_members)
            )

        return self._save("add project members") == len(member_dtos)

    def delete_project_members(self, members):
        members = list(members)
        for member in members:
            member.is_removed = True

        self.repository_accessors.member_repository.update_members(members)
        return self._save("remove project members") == len(members)

    def get_project_members(self, project_id, member_ids):
        """Members with the given ids, or None unless every id is a member of the project"""
        member_ids = set(member_ids)
        members = self.repository_accessors.member_repository.find(id__in=member_ids, project_id=project_id)
        if len(members) != len(member_ids):
            return None
        return members

    def get_project_members_overview(self, project_id, start_date, end_date):
        """Active members with their approved hours in the window, named from the directory"""
        members = self.repository_accessors.member_repository.get_members(project_id)
        if not members:
            return []

        timesheets = self.repository_accessors.timesheet_repository.get_timesheet_requests_by_project_ids(
            [project_id], TimesheetStatus.APPROVED, start_date, end_date
        )
        overview = self.member_mapper.map_for_project_members_view_model(members, timesheets)
        if self.users_service is None:
            return overview

        users = self.users_service.get_users([member.user_id for member in overview])
        names = {user.id: user.display_name for user in users}
        return [
            member.model_copy(update={'user_name': names[member.user_id]}) if member.user_id in names else member
            for member in overview
        ]

    # -------------------------
    # Tasks
    # -------------------------
    def add_project_tasks(self, project_id, task_dtos):
        task_dtos = list(task_dtos or [])
        if not task_dtos:
            raise ValueError("Task list is either null or empty")

        tasks = self.task_mapper.map_for_create_model(project_id, task_dtos)
        try:
            return self.repository_accessors.task_repository.create_tasks(tasks)
        except DatabaseError as e:
            self.repository_accessors.context.discard_changes()
            logger.error(f"Failed to add project tasks: {e}")
            return False

    def delete_project_tasks(self, tasks):
        tasks = list(tasks)
        for task in tasks:
            task.is_removed = True

        try:
            return self.repository_accessors.task_repository.update_tasks(tasks)
        except DatabaseError as e:
            self.repository_accessors.context.discard_changes()
            logger.error(f"Failed to remove project tasks: {e}")
            return False

    def get_project_tasks(self, project_id, task_ids):
        """Tasks with the given ids, or None unless every id is a task of the project"""
        task_ids = set(task_ids)
        tasks = [
            task for task in self.repository_accessors.task_repository.get_tasks_by_ids(task_ids)
            if task.project_id == project_id
        ]
        if len(tasks) != len(task_ids):
            return None
        return tasks

    def get_project_tasks_overview(self, project_id, start_date, end_date):
        """
        Active tasks of the project with their approved hours in the window.

        Removed tasks are listed too when efforts were logged against them in
        the window, flagged as removed.
        """
        task_repository = self.repository_accessors.task_repository
        tasks = [task for task in task_repository.get_tasks_by_project_id(project_id) if not task.is_removed]
        tasks += [
            task for task in task_repository.get_project_tasks(project_id, start_date, end_date, filter_by_project=True)
            if task.is_removed
        ]
        if not tasks:
            return []

        timesheets = self.repository_accessors.timesheet_repository.get_timesheet_requests_by_project_ids(
            [project_id], TimesheetStatus.APPROVED, start_date, end_date
        )
        return self.task_mapper.map_for_project_tasks_view_model(tasks, timesheets)
