from datetime import timedelta
from django.db import DEFAULT_DB_ALIAS, transaction
from django.db.models import Prefetch, Q
from django.utils import timezone
from .models import Conversation, Member, Project, Task, Timesheet, TimesheetStatus
import logging

logger = logging.getLogger(__name__)


class TimesheetContext:
    """
    Unit of work shared by every repository serving one request.

    Inserts and updates are staged in memory and only written when
    save_changes() is called. A flush writes all staged changes inside one
    transaction: either every change is persisted or none is.
    """

    ADD = 'add'
    UPDATE = 'update'

    def __init__(self, using=DEFAULT_DB_ALIAS):
        self.using = using
        self._staged = {}

    @staticmethod
    def _key(instance):
        pk = instance.pk if instance.pk is not None else id(instance)
        return (instance._meta.label, pk)

    def stage_add(self, instance):
        self._staged[self._key(instance)] = (self.ADD, instance)

    def stage_update(self, instance):
        key = self._key(instance)
        # Updating a pending insert keeps it an insert
        operation = self._staged[key][0] if key in self._staged else self.UPDATE
        self._staged[key] = (operation, instance)

    @property
    def pending_changes(self):
        return len(self._staged)

    def discard_changes(self):
        """Drop every staged change without touching the database"""
        self._staged.clear()

    def save_changes(self):
        """Persist all staged changes and return the number of affected rows"""
        if not self._staged:
            return 0

        staged = list(self._staged.values())
        with transaction.atomic(using=self.using):
            for operation, instance in staged:
                if operation == self.ADD:
                    instance.save(force_insert=True, using=self.using)
                else:
                    instance.save(force_update=True, using=self.using)

        self._staged.clear()
        logger.debug(f"Persisted {len(staged)} staged change(s)")
        return len(staged)


class BaseRepository:
    """Generic add/update/query primitives over one model, staged on the shared context"""

    model = None

    def __init__(self, context):
        self.context = context

    @property
    def objects(self):
        return self.model.objects.using(self.context.using)

    def add(self, entity):
        self.context.stage_add(entity)
        return entity

    def add_range(self, entities):
        for entity in entities:
            self.context.stage_add(entity)

    def update(self, entity):
        self.context.stage_update(entity)
        return entity

    def update_range(self, entities):
        for entity in entities:
            self.context.stage_update(entity)

    def find(self, *args, **kwargs):
        return list(self.objects.filter(*args, **kwargs))

    def get(self, pk):
        return self.objects.filter(pk=pk).first()


class TaskRepository(BaseRepository):
    model = Task

    def get_project_tasks(self, project_id, start_date, end_date, filter_by_project=False):
        """
        Tasks having at least one timesheet dated within [start_date, end_date].

        The project id is not applied unless filter_by_project is set: existing
        callers receive tasks of every project that were in use in the window.
        """
        tasks = self.objects.filter(
            timesheets__timesheet_date__gte=start_date,
            timesheets__timesheet_date__lte=end_date,
        )
        if filter_by_project:
            tasks = tasks.filter(project_id=project_id)
        return list(tasks.distinct())

    def get_tasks_by_project_id(self, project_id):
        return list(self.objects.filter(project_id=project_id))

    def create_tasks(self, tasks):
        """Stage the inserts and flush immediately. True if at least one row was written."""
        tasks = list(tasks)
        if not tasks:
            return False
        self.add_range(tasks)
        return self.context.save_changes() > 0

    def update_tasks(self, tasks):
        """Stage the updates and flush immediately. True if at least one row was written."""
        tasks = list(tasks)
        if not tasks:
            return False
        self.update_range(tasks)
        return self.context.save_changes() > 0

    def get_tasks_by_ids(self, task_ids):
        return list(self.objects.filter(id__in=set(task_ids)))

    def get_task(self, task_id):
        return self.objects.filter(id=task_id).select_related('member_mapping').first()


class MemberRepository(BaseRepository):
    model = Member

    def add_users(self, members):
        """Stage the inserts only. The caller flushes."""
        self.add_range(members)

    def get_members(self, project_id):
        """Active members of the project"""
        return list(self.objects.filter(project_id=project_id, is_removed=False))

    def get_all_members(self, project_id):
        """Every member of the project, removed ones included"""
        return list(self.objects.filter(project_id=project_id))

    def update_members(self, members):
        """Stage the updates only. The caller flushes."""
        self.update_range(members)


class ConversationRepository(BaseRepository):
    model = Conversation

    def get_conversation(self, user_id):
        return self.objects.filter(user_id=user_id).first()

    def get_by_slack_user_id(self, slack_user_id):
        return self.objects.filter(slack_user_id=slack_user_id).first()

    def get_conversations(self, user_ids):
        return list(self.objects.filter(user_id__in=set(user_ids)))


class ProjectRepository(BaseRepository):
    model = Project

    def get_active_projects(self, manager_id, today=None):
        """Projects created by the manager which are running today"""
        today = today or timezone.localdate()
        return list(
            self.objects.filter(created_by=manager_id, start_date__lte=today, end_date__gte=today)
            .order_by('created_on')
        )

    def get_all_managers_user_ids(self):
        return list(self.objects.order_by().values_list('created_by', flat=True).distinct())

    def get_projects(self, start_date, end_date, user_id):
        """Projects overlapping the window in which the user is a member"""
        overlapping = (
            Q(start_date__gte=start_date, start_date__lte=end_date)
            | Q(start_date__lt=start_date, end_date__gte=start_date)
        )
        return list(
            self.objects.filter(overlapping, members__user_id=user_id)
            .distinct()
            .prefetch_related('tasks', 'members')
        )

    def get_project_by_id(self, project_id, user_id):
        return (
            self.objects.filter(id=project_id, created_by=user_id)
            .prefetch_related(
                Prefetch('tasks', queryset=Task.objects.filter(is_removed=False), to_attr='active_tasks'),
                Prefetch('members', queryset=Member.objects.filter(is_removed=False), to_attr='active_members'),
            )
            .first()
        )

    def get_running_projects(self, on_date):
        """Projects starting on the date or the day after, or already running on it"""
        return list(
            self.objects.filter(
                Q(start_date__gte=on_date, start_date__lte=on_date + timedelta(days=1))
                | Q(start_date__lt=on_date, end_date__gte=on_date)
            )
        )


class TimesheetRepository(BaseRepository):
    model = Timesheet

    @staticmethod
    def _group_by_user(timesheets):
        grouped = {}
        for timesheet in timesheets:
            grouped.setdefault(timesheet.user_id, []).append(timesheet)
        return grouped

    def get_timesheet_requests_by_manager(self, manager_id, status):
        """Timesheets with the status on projects created by the manager, keyed by user id"""
        timesheets = (
            self.objects.filter(status=status, task__project__created_by=manager_id)
            .select_related('task__project')
            .order_by('timesheet_date')
        )
        return self._group_by_user(timesheets)

    def get_timesheet_requests_of_users_by_status(self, user_ids, status):
        timesheets = (
            self.objects.filter(user_id__in=set(user_ids), status=status)
            .select_related('task__project')
            .order_by('timesheet_date')
        )
        return self._group_by_user(timesheets)

    def get_timesheet_requests_by_project_ids(self, project_ids, status, start_date, end_date):
        return list(
            self.objects.filter(
                task__project_id__in=set(project_ids),
                status=status,
                timesheet_date__gte=start_date,
                timesheet_date__lte=end_date,
            ).select_related('task')
        )

    def get_submitted_timesheets_by_ids(self, manager_id, timesheet_ids):
        """Submitted timesheets among the ids which belong to projects created by the manager"""
        return list(
            self.objects.filter(
                id__in=set(timesheet_ids),
                status=TimesheetStatus.SUBMITTED,
                task__project__created_by=manager_id,
            )
        )

    def get_timesheets_of_user(self, start_date, end_date, user_id):
        return list(
            self.objects.filter(
                user_id=user_id,
                timesheet_date__gte=start_date,
                timesheet_date__lte=end_date,
            )
        )

    def get_timesheets(self, timesheet_date, task_ids, user_id):
        return list(
            self.objects.filter(
                user_id=user_id,
                timesheet_date=timesheet_date,
                task_id__in=set(task_ids),
            )
        )

    def get_saved_timesheets(self, user_id):
        return list(self.objects.filter(user_id=user_id, status=TimesheetStatus.SAVED))

    def update_timesheets(self, timesheets):
        """Stage the updates only. The caller flushes."""
        self.update_range(timesheets)


class RepositoryAccessors:
    """All repositories of one request scope, sharing a single context"""

    def __init__(self, context=None):
        self.context = context or TimesheetContext()
        self.task_repository = TaskRepository(self.context)
        self.member_repository = MemberRepository(self.context)
        self.conversation_repository = ConversationRepository(self.context)
        self.project_repository = ProjectRepository(self.context)
        self.timesheet_repository = TimesheetRepository(self.context)

    def save_changes(self):
        return self.context.save_changes()
