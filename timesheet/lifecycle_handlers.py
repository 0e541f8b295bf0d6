from django.utils import timezone
from .models import Conversation
from .repositories import RepositoryAccessors
from .slack_utils import get_user_email, get_welcome_blocks, send_message, slack_client
import logging

logger = logging.getLogger(__name__)


class AppLifecycleHandler:
    """
    Reacts to the bot being installed for a user.

    The first time a user opens the bot DM is treated as the personal
    install: the welcome message is sent and the conversation is recorded
    for later reminders.
    """

    def __init__(self, users_service, repository_accessors=None, client=None):
        self.users_service = users_service
        self.repository_accessors = repository_accessors or RepositoryAccessors()
        self.client = client or slack_client

    def on_app_home_opened(self, event):
        if event is None:
            raise ValueError("Event cannot be None")
        if event.get('tab') != 'messages':
            return False

        conversation_repository = self.repository_accessors.conversation_repository
        if conversation_repository.get_by_slack_user_id(event['user']) is not None:
            return False

        self.on_bot_installed_in_personal(event)
        return True

    def on_bot_installed_in_personal(self, event):
        if event is None:
            raise ValueError("Event cannot be None")

        slack_user_id = event['user']
        channel_id = event['channel']
        logger.info(f"Bot added in personal scope for user {slack_user_id}")

        send_message(channel_id, get_welcome_blocks(), "Welcome to Timesheet", client=self.client)

        email = get_user_email(slack_user_id, client=self.client)
        user_object_id = self.users_service.get_user(email).id

        conversation_repository = self.repository_accessors.conversation_repository
        existing = conversation_repository.get_conversation(user_object_id)
        if existing is not None:
            existing.slack_user_id = slack_user_id
            existing.conversation_id = channel_id
            existing.bot_installed_on = timezone.now()
            conversation_repository.update(existing)
        else:
            conversation_repository.add(Conversation(
                user_id=user_object_id,
                slack_user_id=slack_user_id,
                conversation_id=channel_id,
                bot_installed_on=timezone.now(),
            ))

        self.repository_accessors.save_changes()
        logger.info(f"Successfully installed app for user {slack_user_id}.")
