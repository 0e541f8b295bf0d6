from slack_sdk.web.client import WebClient
from slack_sdk.errors import SlackApiError
from django.conf import settings
import logging

logger = logging.getLogger(__name__)

slack_client = WebClient(
    token=settings.SLACK_BOT_TOKEN,
    timeout=30
)


def get_welcome_blocks():
    """Welcome message shown once the bot is installed for a user"""
    return [
        {
            "type": "header",
            "text": {"type": "plain_text", "text": "👋 Welcome to Timesheet", "emoji": True}
        },
        {
            "type": "section",
            "text": {
                "type": "mrkdwn",
                "text": (
                    "I'll help you keep track of the time you spend on your projects.\n\n"
                    "• *Fill timesheet:* log daily efforts against your project tasks\n"
                    "• *Submit:* send your saved efforts to your manager for approval\n"
                    "• *Reminders:* get a nudge when your timesheet is due"
                )
            }
        },
        {
            "type": "actions",
            "elements": [
                {
                    "type": "button",
                    "text": {"type": "plain_text", "text": "Fill timesheet"},
                    "style": "primary",
                    "url": f"{settings.APP_BASE_URL}/fill-timesheet",
                    "action_id": "open_fill_timesheet"
                }
            ]
        }
    ]


def get_manager_reminder_blocks(pending_requests_count):
    return [
        {
            "type": "section",
            "text": {
                "type": "mrkdwn",
                "text": (
                    f"⏳ *Timesheet approvals pending*\n\n"
                    f"You have *{pending_requests_count}* timesheet request(s) waiting for your review."
                )
            }
        },
        {
            "type": "actions",
            "elements": [
                {
                    "type": "button",
                    "text": {"type": "plain_text", "text": "Review requests"},
                    "style": "primary",
                    "url": f"{settings.APP_BASE_URL}/manager-dashboard",
                    "action_id": "open_manager_dashboard"
                }
            ]
        }
    ]


def get_fill_timesheet_reminder_blocks():
    return [
        {
            "type": "section",
            "text": {
                "type": "mrkdwn",
                "text": "📝 *Reminder:* don't forget to fill and submit your timesheet for today."
            }
        },
        {
            "type": "actions",
            "elements": [
                {
                    "type": "button",
                    "text": {"type": "plain_text", "text": "Fill timesheet"},
                    "style": "primary",
                    "url": f"{settings.APP_BASE_URL}/fill-timesheet",
                    "action_id": "open_fill_timesheet"
                }
            ]
        }
    ]


def send_message(channel, blocks, text, client=None):
    """Post blocks to a channel or DM. Returns False when Slack rejects the message."""
    client = client or slack_client
    try:
        client.chat_postMessage(channel=channel, blocks=blocks, text=text)
        return True
    except SlackApiError as e:
        logger.error(f"Error sending message to {channel}: {e}")
        return False


def get_user_email(slack_user_id, client=None):
    """Email on the Slack profile, used to find the user in the directory"""
    client = client or slack_client
    user_info = client.users_info(user=slack_user_id)
    return user_info['user']['profile'].get('email')
