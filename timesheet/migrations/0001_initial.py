# Generated migration for the timesheet schema

import uuid

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Conversation',
            fields=[
                ('user_id', models.UUIDField(primary_key=True, serialize=False)),
                ('slack_user_id', models.CharField(max_length=20, unique=True)),
                ('conversation_id', models.CharField(max_length=50)),
                ('bot_installed_on', models.DateTimeField(default=django.utils.timezone.now)),
            ],
        ),
        migrations.CreateModel(
            name='Project',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('title', models.CharField(max_length=50)),
                ('client_name', models.CharField(blank=True, max_length=50)),
                ('billable_hours', models.IntegerField(default=0)),
                ('non_billable_hours', models.IntegerField(default=0)),
                ('start_date', models.DateField()),
                ('end_date', models.DateField()),
                ('created_by', models.UUIDField()),
                ('created_on', models.DateTimeField(default=django.utils.timezone.now)),
            ],
        ),
        migrations.CreateModel(
            name='Member',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('user_id', models.UUIDField()),
                ('is_billable', models.BooleanField(default=True)),
                ('is_removed', models.BooleanField(default=False)),
                ('project', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='members', to='timesheet.project')),
            ],
        ),
        migrations.CreateModel(
            name='Task',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('title', models.CharField(max_length=300)),
                ('is_removed', models.BooleanField(default=False)),
                ('is_added_by_member', models.BooleanField(default=False)),
                ('start_date', models.DateField(blank=True, null=True)),
                ('end_date', models.DateField(blank=True, null=True)),
                ('member_mapping', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='tasks', to='timesheet.member')),
                ('project', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='tasks', to='timesheet.project')),
            ],
        ),
        migrations.CreateModel(
            name='Timesheet',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('task_title', models.CharField(blank=True, max_length=300)),
                ('user_id', models.UUIDField()),
                ('timesheet_date', models.DateField()),
                ('hours', models.IntegerField(default=0)),
                ('status', models.SmallIntegerField(choices=[(0, 'None'), (1, 'Saved'), (2, 'Submitted'), (3, 'Approved'), (4, 'Rejected')], default=0)),
                ('manager_comments', models.CharField(blank=True, default='', max_length=100)),
                ('submitted_on', models.DateTimeField(blank=True, null=True)),
                ('last_modified_on', models.DateTimeField(blank=True, null=True)),
                ('created_on', models.DateTimeField(default=django.utils.timezone.now)),
                ('task', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='timesheets', to='timesheet.task')),
            ],
        ),
    ]
