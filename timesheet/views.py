from functools import wraps
from http import HTTPStatus
from django.conf import settings
from django.db import close_old_connections
from django.http import HttpResponse, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST
from pydantic import ValidationError
from slack_sdk.signature import SignatureVerifier
from .dashboard_utils import ManagerDashboardHelper
from .dtos import (
    MemberDTO,
    ProjectDTO,
    ProjectMemberOverviewDTO,
    RequestApprovalDTO,
    TaskDTO,
    TimesheetDetails,
    UserTimesheet,
    calendar_date_adapter,
    uuid_adapter,
)
from .graph_utils import build_users_service
from .lifecycle_handlers import AppLifecycleHandler
from .models import TimesheetStatus
from .project_utils import ProjectHelper
from .repositories import RepositoryAccessors
from .task_utils import TaskHelper
from .timesheet_utils import TimesheetHelper
from .user_helper import UserHelper
import json
import logging
import threading

logger = logging.getLogger(__name__)

# Set by the authentication layer in front of the API
USER_OBJECT_ID_HEADER = 'X-User-Object-Id'


def get_access_token(request):
    authorization = request.headers.get('Authorization', '')
    return authorization[len('Bearer '):] if authorization.startswith('Bearer ') else authorization


def error_response(message, status):
    return JsonResponse({'message': message}, status=status)


def authenticated(view):
    """Resolve the caller's directory object id, answering 401 when it is missing"""
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        try:
            request.user_object_id = uuid_adapter.validate_python(request.headers[USER_OBJECT_ID_HEADER])
        except (KeyError, ValidationError):
            return error_response('Missing or invalid user identity.', HTTPStatus.UNAUTHORIZED)
        return view(request, *args, **kwargs)
    return wrapper


def read_json_body(request):
    return json.loads(request.body.decode('utf-8') or 'null')


def _date_window(request):
    start_date = calendar_date_adapter.validate_python(request.GET['startDate'])
    end_date = calendar_date_adapter.validate_python(request.GET['endDate'])
    return start_date, end_date


def _parse_list(request, model):
    body = read_json_body(request)
    if not isinstance(body, list):
        raise ValueError('Request body must be a list.')
    return [model.model_validate(item) for item in body]


# -------------------------
# Manager dashboard
# -------------------------
@require_GET
@authenticated
def manager_dashboard_requests(request):
    logger.info("Get dashboard requests - the HTTP call to GET dashboard requests has been initiated.")
    with build_users_service(get_access_token(request)) as users_service:
        helper = ManagerDashboardHelper(RepositoryAccessors(), users_service)
        try:
            dashboard_requests = helper.get_dashboard_requests(request.user_object_id, TimesheetStatus.SUBMITTED)
        except Exception as e:
            logger.error(f"Error occurred while fetching dashboard requests: {e}")
            raise

    if not dashboard_requests:
        return error_response('Timesheets not found.', HTTPStatus.NOT_FOUND)
    return JsonResponse([item.to_dict() for item in dashboard_requests], safe=False)


@require_GET
@authenticated
def manager_dashboard_projects(request):
    try:
        start_date, end_date = _date_window(request)
    except (KeyError, ValidationError):
        return error_response('Start date and end date are required.', HTTPStatus.BAD_REQUEST)
    if start_date > end_date:
        return error_response('The start date must be less than or equal to end date.', HTTPStatus.BAD_REQUEST)

    with build_users_service(get_access_token(request)) as users_service:
        helper = ManagerDashboardHelper(RepositoryAccessors(), users_service)
        projects = helper.get_dashboard_projects(request.user_object_id, start_date, end_date)
    return JsonResponse([project.to_dict() for project in projects], safe=False)


# -------------------------
# Timesheets
# -------------------------
@require_GET
@authenticated
def get_timesheets(request):
    try:
        start_date, end_date = _date_window(request)
    except (KeyError, ValidationError):
        return error_response('Start date and end date are required.', HTTPStatus.BAD_REQUEST)
    if start_date > end_date:
        return error_response('The start date must be less than or equal to end date.', HTTPStatus.BAD_REQUEST)

    timesheets = TimesheetHelper(RepositoryAccessors()).get_timesheets(start_date, end_date, request.user_object_id)
    return JsonResponse([timesheet.to_dict() for timesheet in timesheets], safe=False)


def _result_to_response(result):
    if result.status_code == HTTPStatus.OK:
        return JsonResponse([item.to_dict() for item in result.response], safe=False)
    return error_response(result.error_message, result.status_code)


@csrf_exempt
@require_POST
@authenticated
def save_timesheets(request, client_local_current_date):
    try:
        client_date = calendar_date_adapter.validate_python(client_local_current_date)
        user_timesheets = _parse_list(request, UserTimesheet)
    except (ValidationError, ValueError) as e:
        logger.info(f"Invalid save timesheets request: {e}")
        return error_response('Invalid timesheet details.', HTTPStatus.BAD_REQUEST)

    if not user_timesheets:
        return error_response('Timesheet details cannot be empty.', HTTPStatus.BAD_REQUEST)

    result = TimesheetHelper(RepositoryAccessors()).save_timesheets(user_timesheets, client_date, request.user_object_id)
    return _result_to_response(result)


@csrf_exempt
@require_POST
@authenticated
def submit_timesheets(request, client_local_current_date):
    try:
        client_date = calendar_date_adapter.validate_python(client_local_current_date)
        user_timesheets = _parse_list(request, UserTimesheet) if request.body else []
    except (ValidationError, ValueError) as e:
        logger.info(f"Invalid submit timesheets request: {e}")
        return error_response('Invalid timesheet details.', HTTPStatus.BAD_REQUEST)

    result = TimesheetHelper(RepositoryAccessors()).submit_timesheets(client_date, user_timesheets, request.user_object_id)
    return _result_to_response(result)


def _review_timesheets(request, status):
    try:
        request_approvals = _parse_list(request, RequestApprovalDTO) if request.body else []
    except (ValidationError, ValueError) as e:
        logger.info(f"Invalid timesheet review request: {e}")
        return error_response('Invalid timesheet requests.', HTTPStatus.BAD_REQUEST)

    if not request_approvals:
        return error_response('Timesheet request list is either null or empty.', HTTPStatus.BAD_REQUEST)

    manager_object_id = request.user_object_id
    with build_users_service(get_access_token(request)) as users_service:
        user_helper = UserHelper(users_service)
        are_reportees = user_helper.are_valid_reportees(
            manager_object_id, [approval.user_id for approval in request_approvals]
        )
    if not are_reportees:
        return error_response('Timesheet requests must belong to your reportees.', HTTPStatus.FORBIDDEN)

    repository_accessors = RepositoryAccessors()
    helper = TimesheetHelper(repository_accessors)
    submitted_timesheets = helper.get_submitted_timesheets_by_ids(
        manager_object_id, [approval.timesheet_id for approval in request_approvals]
    )
    if not submitted_timesheets:
        return error_response('Timesheets not found.', HTTPStatus.NOT_FOUND)

    if helper.approve_or_reject_timesheet_requests(submitted_timesheets, request_approvals, status):
        logger.info(f"Updated {len(submitted_timesheets)} timesheet request(s) to {TimesheetStatus(status).label}")
        return HttpResponse(status=HTTPStatus.NO_CONTENT)

    return error_response('Unable to update timesheets.', HTTPStatus.INTERNAL_SERVER_ERROR)


@csrf_exempt
@require_POST
@authenticated
def approve_timesheets(request):
    return _review_timesheets(request, TimesheetStatus.APPROVED)


@csrf_exempt
@require_POST
@authenticated
def reject_timesheets(request):
    return _review_timesheets(request, TimesheetStatus.REJECTED)


# -------------------------
# Projects
# -------------------------
def _get_owned_project(request, project_id, repository_accessors):
    """The project if the caller created it, otherwise None"""
    return repository_accessors.project_repository.get_project_by_id(project_id, request.user_object_id)


def _project_not_found():
    return error_response('Project not found or you are not its owner.', HTTPStatus.FORBIDDEN)


@csrf_exempt
@require_POST
@authenticated
def create_project(request):
    try:
        project_dto = ProjectDTO.model_validate(read_json_body(request))
    except (ValidationError, ValueError) as e:
        logger.info(f"Invalid project details: {e}")
        return error_response('Invalid project details.', HTTPStatus.BAD_REQUEST)

    if project_dto.members:
        with build_users_service(get_access_token(request)) as users_service:
            are_reportees = UserHelper(users_service).are_project_members_direct_reportee(
                [member.user_id for member in project_dto.members]
            )
        if not are_reportees:
            return error_response('Project members must be your direct reportees.', HTTPStatus.UNAUTHORIZED)

    project = ProjectHelper(RepositoryAccessors()).create_project(project_dto, request.user_object_id)
    if project is None:
        return error_response('Unable to create project.', HTTPStatus.INTERNAL_SERVER_ERROR)
    return JsonResponse(project.to_dict(), status=HTTPStatus.CREATED)


@csrf_exempt
@require_http_methods(['GET', 'PUT'])
@authenticated
def project_detail(request, project_id):
    repository_accessors = RepositoryAccessors()
    helper = ProjectHelper(repository_accessors)

    if request.method == 'GET':
        project = helper.get_project_by_id(project_id, request.user_object_id)
        if project is None:
            return _project_not_found()
        return JsonResponse(project.to_dict())

    try:
        project_dto = ProjectDTO.model_validate(read_json_body(request))
    except (ValidationError, ValueError) as e:
        logger.info(f"Invalid project details: {e}")
        return error_response('Invalid project details.', HTTPStatus.BAD_REQUEST)

    project = _get_owned_project(request, project_id, repository_accessors)
    if project is None:
        return _project_not_found()

    if helper.update_project(project, project_dto):
        return HttpResponse(status=HTTPStatus.NO_CONTENT)
    return error_response('Unable to update project.', HTTPStatus.INTERNAL_SERVER_ERROR)


@require_GET
@authenticated
def project_utilization(request, project_id):
    try:
        start_date, end_date = _date_window(request)
    except (KeyError, ValidationError):
        return error_response('Start date and end date are required.', HTTPStatus.BAD_REQUEST)
    if start_date > end_date:
        return error_response('The start date must be less than or equal to end date.', HTTPStatus.BAD_REQUEST)

    utilization = ProjectHelper(RepositoryAccessors()).get_project_utilization(
        project_id, request.user_object_id, start_date, end_date
    )
    if utilization is None:
        return error_response('Project not found.', HTTPStatus.NOT_FOUND)
    return JsonResponse(utilization.to_dict())


@csrf_exempt
@require_POST
@authenticated
def add_project_members(request, project_id):
    try:
        members = _parse_list(request, MemberDTO) if request.body else []
    except (ValidationError, ValueError) as e:
        logger.info(f"Invalid project members: {e}")
        return error_response('Invalid member details.', HTTPStatus.BAD_REQUEST)
    if not members:
        return error_response('Member list is either null or empty.', HTTPStatus.BAD_REQUEST)

    repository_accessors = RepositoryAccessors()
    if _get_owned_project(request, project_id, repository_accessors) is None:
        return _project_not_found()

    with build_users_service(get_access_token(request)) as users_service:
        are_reportees = UserHelper(users_service).are_project_members_direct_reportee(
            [member.user_id for member in members]
        )
    if not are_reportees:
        return error_response('Project members must be your direct reportees.', HTTPStatus.UNAUTHORIZED)

    if ProjectHelper(repository_accessors).add_project_members(project_id, members):
        return JsonResponse({'status': 'ok'})
    return error_response('Unable to add members.', HTTPStatus.INTERNAL_SERVER_ERROR)


@csrf_exempt
@require_POST
@authenticated
def delete_project_members(request, project_id):
    try:
        members = _parse_list(request, ProjectMemberOverviewDTO) if request.body else []
    except (ValidationError, ValueError) as e:
        logger.info(f"Invalid project members: {e}")
        return error_response('Invalid member details.', HTTPStatus.BAD_REQUEST)
    if not members:
        return error_response('Member list is either null or empty.', HTTPStatus.BAD_REQUEST)

    repository_accessors = RepositoryAccessors()
    if _get_owned_project(request, project_id, repository_accessors) is None:
        return _project_not_found()

    with build_users_service(get_access_token(request)) as users_service:
        are_reportees = UserHelper(users_service).are_project_members_direct_reportee(
            [member.user_id for member in members]
        )
    if not are_reportees:
        return error_response('Project members must be your direct reportees.', HTTPStatus.UNAUTHORIZED)

    helper = ProjectHelper(repository_accessors)
    project_members = helper.get_project_members(project_id, [member.id for member in members])
    if project_members is None:
        return error_response('Members are not part of the project.', HTTPStatus.NOT_FOUND)

    if helper.delete_project_members(project_members):
        return HttpResponse(status=HTTPStatus.NO_CONTENT)
    return error_response('Unable to remove members.', HTTPStatus.INTERNAL_SERVER_ERROR)


@require_GET
@authenticated
def project_members_overview(request, project_id):
    try:
        start_date, end_date = _date_window(request)
    except (KeyError, ValidationError):
        return error_response('Start date and end date are required.', HTTPStatus.BAD_REQUEST)
    if start_date > end_date:
        return error_response('The start date must be less than or equal to end date.', HTTPStatus.BAD_REQUEST)

    repository_accessors = RepositoryAccessors()
    if _get_owned_project(request, project_id, repository_accessors) is None:
        return _project_not_found()

    with build_users_service(get_access_token(request)) as users_service:
        overview = ProjectHelper(repository_accessors, users_service).get_project_members_overview(
            project_id, start_date, end_date
        )
    return JsonResponse([member.to_dict() for member in overview], safe=False)


@csrf_exempt
@require_POST
@authenticated
def add_project_tasks(request, project_id):
    try:
        tasks = _parse_list(request, TaskDTO) if request.body else []
    except (ValidationError, ValueError) as e:
        logger.info(f"Invalid project tasks: {e}")
        return error_response('Invalid task details.', HTTPStatus.BAD_REQUEST)
    if not tasks:
        return error_response('Task list is either null or empty.', HTTPStatus.BAD_REQUEST)

    repository_accessors = RepositoryAccessors()
    if _get_owned_project(request, project_id, repository_accessors) is None:
        return _project_not_found()

    if ProjectHelper(repository_accessors).add_project_tasks(project_id, tasks):
        return JsonResponse({'status': 'ok'}, status=HTTPStatus.CREATED)
    return error_response('Unable to add tasks.', HTTPStatus.INTERNAL_SERVER_ERROR)


@csrf_exempt
@require_POST
@authenticated
def delete_project_tasks(request, project_id):
    try:
        task_ids = [uuid_adapter.validate_python(task_id) for task_id in read_json_body(request) or []]
    except (TypeError, ValidationError, ValueError) as e:
        logger.info(f"Invalid task ids: {e}")
        return error_response('Invalid task ids.', HTTPStatus.BAD_REQUEST)
    if not task_ids:
        return error_response('Task list is either null or empty.', HTTPStatus.BAD_REQUEST)

    repository_accessors = RepositoryAccessors()
    if _get_owned_project(request, project_id, repository_accessors) is None:
        return _project_not_found()

    helper = ProjectHelper(repository_accessors)
    tasks = helper.get_project_tasks(project_id, task_ids)
    if tasks is None:
        return error_response('Tasks are not part of the project.', HTTPStatus.NOT_FOUND)

    if helper.delete_project_tasks(tasks):
        return HttpResponse(status=HTTPStatus.NO_CONTENT)
    return error_response('Unable to remove tasks.', HTTPStatus.INTERNAL_SERVER_ERROR)


@require_GET
@authenticated
def project_tasks_overview(request, project_id):
    try:
        start_date, end_date = _date_window(request)
    except (KeyError, ValidationError):
        return error_response('Start date and end date are required.', HTTPStatus.BAD_REQUEST)
    if start_date > end_date:
        return error_response('The start date must be less than or equal to end date.', HTTPStatus.BAD_REQUEST)

    repository_accessors = RepositoryAccessors()
    if _get_owned_project(request, project_id, repository_accessors) is None:
        return _project_not_found()

    overview = ProjectHelper(repository_accessors).get_project_tasks_overview(project_id, start_date, end_date)
    return JsonResponse([task.to_dict() for task in overview], safe=False)


@csrf_exempt
@require_POST
@authenticated
def add_member_task(request, project_id):
    try:
        task_details = TimesheetDetails.model_validate(read_json_body(request))
    except (ValidationError, ValueError) as e:
        logger.info(f"Invalid member task: {e}")
        return error_response('Invalid task details.', HTTPStatus.BAD_REQUEST)

    result = TaskHelper(RepositoryAccessors()).add_member_task(task_details, project_id, request.user_object_id)
    if result.status_code == HTTPStatus.OK:
        return JsonResponse(result.response.to_dict())
    return error_response(result.error_message, result.status_code)


@csrf_exempt
@require_http_methods(['DELETE'])
@authenticated
def delete_member_task(request, project_id, task_id):
    result = TaskHelper(RepositoryAccessors()).delete_member_task(task_id, request.user_object_id, project_id)
    if result.status_code == HTTPStatus.NO_CONTENT:
        return HttpResponse(status=HTTPStatus.NO_CONTENT)
    return error_response(result.error_message, result.status_code)


# -------------------------
# Users
# -------------------------
@require_GET
@authenticated
def get_reportees(request):
    with build_users_service(get_access_token(request)) as users_service:
        reportees = users_service.get_reportees(request.GET.get('search', ''))
    return JsonResponse([reportee.to_dict() for reportee in reportees], safe=False)


@require_GET
@authenticated
def get_manager(request):
    with build_users_service(get_access_token(request)) as users_service:
        manager = users_service.get_manager()
    return JsonResponse(manager.to_dict())


@csrf_exempt
@require_POST
@authenticated
def get_users_profile(request):
    try:
        user_ids = read_json_body(request)
    except ValueError:
        user_ids = None
    if not user_ids or not isinstance(user_ids, list):
        return error_response('User Id list cannot be null or empty.', HTTPStatus.BAD_REQUEST)

    with build_users_service(get_access_token(request)) as users_service:
        users = users_service.get_users(user_ids)
    return JsonResponse([user.to_dict() for user in users], safe=False)


@require_GET
@authenticated
def get_timesheet_requests_by_status(request, reportee_id, status):
    if status not in TimesheetStatus.values:
        return error_response('Invalid timesheet status.', HTTPStatus.BAD_REQUEST)

    with build_users_service(get_access_token(request)) as users_service:
        is_reportee = UserHelper(users_service).is_valid_reportee(request.user_object_id, reportee_id)
    if not is_reportee:
        return error_response('The user is not your reportee.', HTTPStatus.FORBIDDEN)

    requests = TimesheetHelper(RepositoryAccessors()).get_timesheet_requests_by_status(reportee_id, status)
    return JsonResponse([item.to_dict() for item in requests], safe=False)


# -------------------------
# Slack bot
# -------------------------
def _is_valid_slack_request(request):
    if not settings.SLACK_SIGNING_SECRET:
        return True
    verifier = SignatureVerifier(settings.SLACK_SIGNING_SECRET)
    return verifier.is_valid_request(request.body, dict(request.headers))


@csrf_exempt
def slack_events(request):
    logger.info(f"Received request method: {request.method}")

    if request.method != "POST":
        return JsonResponse({'error': 'Invalid request method'}, status=405)

    if not _is_valid_slack_request(request):
        logger.warning("Rejected Slack request with an invalid signature")
        return JsonResponse({'error': 'Invalid signature'}, status=403)

    try:
        body = read_json_body(request)
    except ValueError as e:
        logger.error(f"Error decoding Slack payload: {e}")
        return JsonResponse({'error': 'Invalid payload'}, status=400)
    if not isinstance(body, dict):
        return JsonResponse({'error': 'Invalid payload'}, status=400)

    if body.get('type') == 'url_verification':
        return JsonResponse({'challenge': body['challenge']})

    if body.get('type') == 'event_callback':
        event = body.get('event') or {}
        if event.get('type') == 'app_home_opened':
            # Slack expects the ack within 3 seconds
            run_in_background(process_app_home_opened, event)

    return JsonResponse({'status': 'ok'})


def process_app_home_opened(event):
    try:
        with build_users_service(settings.GRAPH_APP_ACCESS_TOKEN) as users_service:
            AppLifecycleHandler(users_service).on_app_home_opened(event)
    except Exception as e:
        logger.error(f"Error handling app_home_opened for {event.get('user')}: {e}")
    finally:
        close_old_connections()


def run_in_background(target, *args):
    thread = threading.Thread(target=target, args=args)
    thread.daemon = True
    thread.start()
    return thread
