from http import HTTPStatus
from django.db import DatabaseError
from .dtos import ResultResponse, TaskDTO
from .models import Task
import logging

logger = logging.getLogger(__name__)


class TaskHelper:
    """Tasks which project members add for themselves"""

    def __init__(self, repository_accessors):
        self.repository_accessors = repository_accessors

    def _save(self, action):
        try:
            return self.repository_accessors.save_changes()
        except DatabaseError as e:
            self.repository_accessors.context.discard_changes()
            logger.error(f"Failed to {action}: {e}")
            return 0

    def add_member_task(self, task_details, project_id, user_object_id):
        """Add a task visible only to the member who created it, within the project dates"""
        if task_details is None:
            raise ValueError("The task details should not be None")
        if not task_details.task_title.strip():
            return ResultResponse(HTTPStatus.BAD_REQUEST, "Task title cannot be empty")

        project = self.repository_accessors.project_repository.get(project_id)
        if project is None:
            logger.info("Project details not found")
            return ResultResponse(HTTPStatus.BAD_REQUEST, "Invalid project")

        members = self.repository_accessors.member_repository.get_members(project_id)
        if not members:
            logger.info("Project does not contain any member")
            return ResultResponse(HTTPStatus.BAD_REQUEST, "Invalid project")

        member = next((member for member in members if member.user_id == user_object_id), None)
        if member is None:
            logger.info("User is not member of project")
            return ResultResponse(HTTPStatus.UNAUTHORIZED, "User is not member of project")

        start_date = task_details.start_date or project.start_date
        end_date = task_details.end_date or project.end_date
        if start_date > end_date or start_date < project.start_date or end_date > project.end_date:
            logger.info("Task start and end date is not within project start and end date")
            return ResultResponse(HTTPStatus.BAD_REQUEST, "Invalid start and end date for task")

        task = Task(
            project_id=project_id,
            title=task_details.task_title,
            is_added_by_member=True,
            member_mapping=member,
            start_date=start_date,
            end_date=end_date,
        )
        self.repository_accessors.task_repository.add(task)

        if self._save("add member task") > 0:
            logger.info(f"Task {task.id} added by {user_object_id}")
            return ResultResponse(HTTPStatus.OK, response=TaskDTO(
                id=task.id,
                project_id=task.project_id,
                title=task.title,
                is_added_by_member=True,
                start_date=task.start_date,
                end_date=task.end_date,
            ))

        return ResultResponse(HTTPStatus.INTERNAL_SERVER_ERROR, "Unable to create task")

    def delete_member_task(self, task_id, user_object_id, project_id):
        """Remove a task the member added. Tasks of other members or of the manager are not found."""
        task = self.repository_accessors.task_repository.get_task(task_id)
        if (
            task is None
            or not task.is_added_by_member
            or task.member_mapping is None
            or task.member_mapping.user_id != user_object_id
            or task.project_id != project_id
        ):
            logger.info("Task not found")
            return ResultResponse(HTTPStatus.NOT_FOUND, "Task not found")

        task.is_removed = True
        self.repository_accessors.task_repository.update(task)
        if self._save("delete member task") > 0:
            return ResultResponse(HTTPStatus.NO_CONTENT)

        logger.info("Error occurred while deleting task")
        return ResultResponse(HTTPStatus.INTERNAL_SERVER_ERROR, "Error occurred while deleting task.")
