import uuid

from django.db import models
from django.utils import timezone


class TimesheetStatus(models.IntegerChoices):
    NONE = 0, 'None'
    SAVED = 1, 'Saved'
    SUBMITTED = 2, 'Submitted'
    APPROVED = 3, 'Approved'
    REJECTED = 4, 'Rejected'


class Project(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=50)
    client_name = models.CharField(max_length=50, blank=True)
    billable_hours = models.IntegerField(default=0)
    non_billable_hours = models.IntegerField(default=0)
    start_date = models.DateField()
    end_date = models.DateField()
    created_by = models.UUIDField()
    created_on = models.DateTimeField(default=timezone.now)

    def __str__(self):
        return self.title

    @property
    def total_hours(self):
        return self.billable_hours + self.non_billable_hours


class Member(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='members')
    user_id = models.UUIDField()
    is_billable = models.BooleanField(default=True)
    # Soft-delete flag, members are never physically removed
    is_removed = models.BooleanField(default=False)

    def __str__(self):
        return f"{self.user_id} on {self.project_id}"


class Task(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='tasks')
    title = models.CharField(max_length=300)
    is_removed = models.BooleanField(default=False)
    is_added_by_member = models.BooleanField(default=False)
    member_mapping = models.ForeignKey(
        Member, on_delete=models.SET_NULL, null=True, blank=True, related_name='tasks'
    )
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)

    def __str__(self):
        return self.title


class Timesheet(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    task = models.ForeignKey(Task, on_delete=models.CASCADE, related_name='timesheets')
    task_title = models.CharField(max_length=300, blank=True)
    user_id = models.UUIDField()
    timesheet_date = models.DateField()
    hours = models.IntegerField(default=0)
    status = models.SmallIntegerField(choices=TimesheetStatus.choices, default=TimesheetStatus.NONE)
    manager_comments = models.CharField(max_length=100, blank=True, default='')
    submitted_on = models.DateTimeField(null=True, blank=True)
    last_modified_on = models.DateTimeField(null=True, blank=True)
    created_on = models.DateTimeField(default=timezone.now)

    def __str__(self):
        return f"{self.user_id} - {self.task_title} ({self.timesheet_date})"


class Conversation(models.Model):
    # Directory object id of the user the bot talks to
    user_id = models.UUIDField(primary_key=True)
    slack_user_id = models.CharField(max_length=20, unique=True)
    conversation_id = models.CharField(max_length=50)
    bot_installed_on = models.DateTimeField(default=timezone.now)

    def __str__(self):
        return f"{self.slack_user_id} ({self.conversation_id})"
