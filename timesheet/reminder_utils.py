from django.utils import timezone
from .models import TimesheetStatus
from .repositories import RepositoryAccessors
from .slack_utils import get_fill_timesheet_reminder_blocks, get_manager_reminder_blocks, send_message, slack_client
import logging

logger = logging.getLogger(__name__)


def send_pending_requests_reminders(repository_accessors=None, client=None):
    """Nudge every manager who has submitted requests waiting. Returns the number of messages sent."""
    repository_accessors = repository_accessors or RepositoryAccessors()
    client = client or slack_client
    sent = 0

    for manager_id in repository_accessors.project_repository.get_all_managers_user_ids():
        conversation = repository_accessors.conversation_repository.get_conversation(manager_id)
        if conversation is None:
            continue

        pending_requests = repository_accessors.timesheet_repository.get_timesheet_requests_by_manager(
            manager_id, TimesheetStatus.SUBMITTED
        )
        if not pending_requests:
            continue

        if send_message(
            conversation.conversation_id,
            get_manager_reminder_blocks(len(pending_requests)),
            f"You have {len(pending_requests)} timesheet request(s) pending",
            client=client,
        ):
            sent += 1

    logger.info(f"Sent {sent} pending request reminder(s)")
    return sent


def send_fill_timesheet_reminders(repository_accessors=None, client=None, today=None):
    """Remind each member of a running project to fill the timesheet, once per user"""
    repository_accessors = repository_accessors or RepositoryAccessors()
    client = client or slack_client
    today = today or timezone.localdate()

    eligible_conversations = {}
    for project in repository_accessors.project_repository.get_running_projects(today):
        members = repository_accessors.member_repository.get_members(project.id)
        conversations = repository_accessors.conversation_repository.get_conversations(
            [member.user_id for member in members]
        )
        for conversation in conversations:
            eligible_conversations.setdefault(conversation.user_id, conversation)

    blocks = get_fill_timesheet_reminder_blocks()
    sent = 0
    for conversation in eligible_conversations.values():
        if send_message(conversation.conversation_id, blocks, "Reminder: fill your timesheet", client=client):
            sent += 1

    logger.info(f"Sent {sent} fill timesheet reminder(s)")
    return sent


def send_reminders(repository_accessors=None, client=None):
    repository_accessors = repository_accessors or RepositoryAccessors()
    pending = send_pending_requests_reminders(repository_accessors, client)
    fill = send_fill_timesheet_reminders(repository_accessors, client)
    return pending, fill
