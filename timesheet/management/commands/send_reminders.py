from django.core.management.base import BaseCommand
from timesheet.reminder_utils import send_reminders


class Command(BaseCommand):
    help = "Send pending approval reminders to managers and fill timesheet reminders to members"

    def handle(self, *args, **options):
        pending, fill = send_reminders()
        self.stdout.write(self.style.SUCCESS(
            f"Sent {pending} manager reminder(s) and {fill} fill timesheet reminder(s)"
        ))
