from django.contrib import admin
from .models import Conversation, Member, Project, Task, Timesheet

@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ['title', 'client_name', 'start_date', 'end_date', 'created_by', 'created_on']
    search_fields = ['title', 'client_name']
    readonly_fields = ['created_on']

@admin.register(Member)
class MemberAdmin(admin.ModelAdmin):
    list_display = ['user_id', 'project', 'is_billable', 'is_removed']
    list_filter = ['is_billable', 'is_removed']
    search_fields = ['project__title']

@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    list_display = ['title', 'project', 'start_date', 'end_date', 'is_added_by_member', 'is_removed']
    list_filter = ['is_removed', 'is_added_by_member']
    search_fields = ['title', 'project__title']

@admin.register(Timesheet)
class TimesheetAdmin(admin.ModelAdmin):
    list_display = ['user_id', 'task_title', 'timesheet_date', 'hours', 'status', 'submitted_on']
    list_filter = ['status']
    search_fields = ['task_title', 'manager_comments']
    readonly_fields = ['created_on', 'last_modified_on']

@admin.register(Conversation)
class ConversationAdmin(admin.ModelAdmin):
    list_display = ['user_id', 'slack_user_id', 'conversation_id', 'bot_installed_on']
    search_fields = ['slack_user_id']
