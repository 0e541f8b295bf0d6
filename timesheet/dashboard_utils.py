from .mappers import ManagerDashboardMapper
from .models import TimesheetStatus
import logging

logger = logging.getLogger(__name__)


class ManagerDashboardHelper:
    def __init__(self, repository_accessors, users_service, mapper=None):
        self.repository_accessors = repository_accessors
        self.users_service = users_service
        self.mapper = mapper or ManagerDashboardMapper()

    def get_dashboard_projects(self, manager_object_id, start_date, end_date):
        """Utilization of the manager's running projects from approved timesheets in the window"""
        projects = self.repository_accessors.project_repository.get_active_projects(manager_object_id)
        if not projects:
            return []

        timesheets = self.repository_accessors.timesheet_repository.get_timesheet_requests_by_project_ids(
            [project.id for project in projects], TimesheetStatus.APPROVED, start_date, end_date
        )

        return [
            self.mapper.map_for_dashboard_project(
                project,
                [timesheet for timesheet in timesheets if timesheet.task.project_id == project.id],
            )
            for project in projects
        ]

    def get_dashboard_requests(self, manager_object_id, timesheet_status):
        """Requests pending with the manager, one per reportee, named from the directory"""
        response = self.repository_accessors.timesheet_repository.get_timesheet_requests_by_manager(
            manager_object_id, timesheet_status
        )
        if not response:
            return []

        dashboard_requests = self.mapper.map_for_view_model(response.values())

        users = self.users_service.get_users([request.user_id for request in dashboard_requests])
        names = {user.id: user.display_name for user in users}
        logger.info(f"Resolved {len(names)} of {len(dashboard_requests)} requester name(s)")

        return [
            request.model_copy(update={'user_name': names[request.user_id]}) if request.user_id in names else request
            for request in dashboard_requests
        ]
