from django.urls import path
from . import views

urlpatterns = [
    path('api/managerdashboard/', views.manager_dashboard_requests, name='manager_dashboard_requests'),
    path('api/managerdashboard/projects/', views.manager_dashboard_projects, name='manager_dashboard_projects'),
    path('api/timesheets/', views.get_timesheets, name='get_timesheets'),
    # Review routes come before the dated save route which would otherwise swallow them
    path('api/timesheets/approve/', views.approve_timesheets, name='approve_timesheets'),
    path('api/timesheets/reject/', views.reject_timesheets, name='reject_timesheets'),
    path('api/timesheets/submit/<str:client_local_current_date>/', views.submit_timesheets, name='submit_timesheets'),
    path('api/timesheets/<str:client_local_current_date>/', views.save_timesheets, name='save_timesheets'),
    path('api/projects/', views.create_project, name='create_project'),
    path('api/projects/<uuid:project_id>/', views.project_detail, name='project_detail'),
    path('api/projects/<uuid:project_id>/utilization/', views.project_utilization, name='project_utilization'),
    path('api/projects/<uuid:project_id>/members/', views.add_project_members, name='add_project_members'),
    path(
        'api/projects/<uuid:project_id>/deleteMembers/',
        views.delete_project_members,
        name='delete_project_members',
    ),
    path(
        'api/projects/<uuid:project_id>/membersOverview/',
        views.project_members_overview,
        name='project_members_overview',
    ),
    path('api/projects/<uuid:project_id>/tasks/', views.add_project_tasks, name='add_project_tasks'),
    path('api/projects/<uuid:project_id>/deleteTasks/', views.delete_project_tasks, name='delete_project_tasks'),
    path('api/projects/<uuid:project_id>/tasksOverview/', views.project_tasks_overview, name='project_tasks_overview'),
    path('api/projects/<uuid:project_id>/member/tasks/', views.add_member_task, name='add_member_task'),
    path(
        'api/projects/<uuid:project_id>/member/tasks/<uuid:task_id>/',
        views.delete_member_task,
        name='delete_member_task',
    ),
    path('api/me/reportees/', views.get_reportees, name='get_reportees'),
    path('api/me/manager/', views.get_manager, name='get_manager'),
    path('api/users/', views.get_users_profile, name='get_users_profile'),
    path(
        'api/users/<uuid:reportee_id>/timesheets/<int:status>/',
        views.get_timesheet_requests_by_status,
        name='get_timesheet_requests_by_status',
    ),
    path('slack/events/', views.slack_events, name='slack_events'),
]
