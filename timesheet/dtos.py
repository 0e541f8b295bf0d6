"""
Transfer objects returned by the API and exchanged with the client app.

All of them are immutable pydantic models. Field names are snake_case in
Python and camelCase on the wire: build them from client payloads with
model_validate() and render them with to_dict().
"""
from datetime import date, datetime
from http import HTTPStatus
from typing import Annotated, Any, Optional, Tuple
from uuid import UUID

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, TypeAdapter, model_validator
from pydantic.alias_generators import to_camel
from pydantic.dataclasses import dataclass

MANAGER_COMMENTS_MAX_LENGTH = 100
TASK_TITLE_MAX_LENGTH = 300
PROJECT_TITLE_MAX_LENGTH = 50
CLIENT_NAME_MAX_LENGTH = 50


def _to_calendar_date(value):
    # Client sends either plain dates or ISO timestamps of the local midnight
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str):
        return value[:10]
    return value


def _none_to_empty(value):
    return '' if value is None else value


CalendarDate = Annotated[date, BeforeValidator(_to_calendar_date)]
Text = Annotated[str, BeforeValidator(_none_to_empty)]

calendar_date_adapter = TypeAdapter(CalendarDate)
uuid_adapter = TypeAdapter(UUID)


class TransferModel(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    def to_dict(self):
        return self.model_dump(mode='json', by_alias=True)


class ReporteeDTO(TransferModel):
    id: UUID
    display_name: Text = ''
    user_principal_name: Text = ''
    mail: Text = ''

    @classmethod
    def from_graph(cls, user):
        return cls.model_validate(user)


class DashboardRequestDTO(TransferModel):
    user_id: UUID
    user_name: Text = ''
    number_of_days: int
    total_hours: int
    status: int
    submitted_timesheet_request_ids: Tuple[UUID, ...]
    requested_for_dates: Tuple[Tuple[date, ...], ...]


class SubmittedRequestDTO(TransferModel):
    user_id: UUID
    timesheet_date: date
    total_hours: int
    status: int
    submitted_timesheet_ids: Tuple[UUID, ...]
    project_titles: Tuple[str, ...]


class RequestApprovalDTO(TransferModel):
    user_id: UUID
    timesheet_id: UUID
    manager_comments: Text = Field('', max_length=MANAGER_COMMENTS_MAX_LENGTH)
    timesheet_date: Tuple[CalendarDate, ...] = ()


class DashboardProjectDTO(TransferModel):
    id: UUID
    title: str
    total_hours: int
    utilized_hours: int


class TimesheetDTO(TransferModel):
    id: UUID
    task_title: str
    timesheet_date: date
    hours: int
    status: int


class TimesheetDetails(TransferModel):
    task_id: Optional[UUID] = None
    task_title: Text = Field('', max_length=TASK_TITLE_MAX_LENGTH)
    hours: int = 0
    status: int = 0
    manager_comments: Text = ''
    is_added_by_member: bool = False
    start_date: Optional[CalendarDate] = None
    end_date: Optional[CalendarDate] = None


class ProjectDetails(TransferModel):
    id: UUID
    title: Text = ''
    start_date: Optional[CalendarDate] = None
    end_date: Optional[CalendarDate] = None
    timesheet_details: Tuple[TimesheetDetails, ...] = ()


class UserTimesheet(TransferModel):
    timesheet_date: CalendarDate
    project_details: Tuple[ProjectDetails, ...] = ()

    @property
    def total_hours(self):
        return sum(
            detail.hours
            for project in self.project_details
            for detail in project.timesheet_details
        )


# -------------------------
# Project management
# -------------------------
class MemberDTO(TransferModel):
    id: Optional[UUID] = None
    project_id: Optional[UUID] = None
    user_id: UUID
    is_billable: bool = True


class TaskDTO(TransferModel):
    id: Optional[UUID] = None
    project_id: Optional[UUID] = None
    title: str = Field(min_length=1, max_length=TASK_TITLE_MAX_LENGTH)
    is_added_by_member: bool = False
    start_date: Optional[CalendarDate] = None
    end_date: Optional[CalendarDate] = None


class ProjectDTO(TransferModel):
    id: Optional[UUID] = None
    title: str = Field(min_length=1, max_length=PROJECT_TITLE_MAX_LENGTH)
    client_name: Text = Field('', max_length=CLIENT_NAME_MAX_LENGTH)
    billable_hours: int = Field(0, ge=0)
    non_billable_hours: int = Field(0, ge=0)
    start_date: CalendarDate
    end_date: CalendarDate
    members: Tuple[MemberDTO, ...] = ()
    tasks: Tuple[TaskDTO, ...] = ()

    @model_validator(mode='after')
    def check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("The project end date must not precede its start date")
        return self


class ProjectUtilizationDTO(TransferModel):
    id: UUID
    title: str
    billable_utilized_hours: int
    non_billable_utilized_hours: int
    underutilized_billable_hours: int
    underutilized_non_billable_hours: int
    total_hours: int
    project_start_date: date
    project_end_date: date


class ProjectMemberOverviewDTO(TransferModel):
    id: UUID
    project_id: Optional[UUID] = None
    user_id: UUID
    user_name: Text = ''
    is_billable: bool = True
    total_hours: int = 0


class ProjectTaskOverviewDTO(TransferModel):
    id: UUID
    project_id: UUID
    title: str
    total_hours: int = 0
    is_removed: bool = False
    start_date: Optional[date] = None
    end_date: Optional[date] = None


@dataclass(frozen=True)
class ResultResponse:
    """Outcome of a workflow operation, translated into an HTTP response by the views"""
    status_code: HTTPStatus
    error_message: str = ''
    response: Any = ()
