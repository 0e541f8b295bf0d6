import uuid
from unittest.mock import MagicMock

import pytest

from timesheet.dtos import ReporteeDTO
from timesheet.lifecycle_handlers import AppLifecycleHandler
from timesheet.models import Conversation
from timesheet.repositories import RepositoryAccessors


@pytest.fixture()
def directory_user():
    return ReporteeDTO(id=uuid.uuid4(), display_name='Ada Lovelace', mail='ada@example.test')


@pytest.fixture()
def users_service(directory_user):
    service = MagicMock()
    service.get_user.return_value = directory_user
    return service


@pytest.fixture()
def slack_client():
    client = MagicMock()
    client.users_info.return_value = {'user': {'profile': {'email': 'ada@example.test'}}}
    return client


@pytest.fixture()
def handler(db, users_service, slack_client):
    return AppLifecycleHandler(users_service, RepositoryAccessors(), client=slack_client)


def _event(tab='messages', user='U0ADA', channel='D0ADA'):
    return {'type': 'app_home_opened', 'tab': tab, 'user': user, 'channel': channel}


def test_none_event_is_rejected(handler):
    with pytest.raises(ValueError):
        handler.on_app_home_opened(None)
    with pytest.raises(ValueError):
        handler.on_bot_installed_in_personal(None)


def test_first_open_installs_and_welcomes(handler, users_service, slack_client, directory_user):
    assert handler.on_app_home_opened(_event()) is True

    slack_client.chat_postMessage.assert_called_once()
    assert slack_client.chat_postMessage.call_args.kwargs['channel'] == 'D0ADA'
    users_service.get_user.assert_called_once_with('ada@example.test')

    conversation = Conversation.objects.get(user_id=directory_user.id)
    assert conversation.slack_user_id == 'U0ADA'
    assert conversation.conversation_id == 'D0ADA'


def test_reopening_does_not_reinstall(handler, slack_client):
    handler.on_app_home_opened(_event())
    slack_client.chat_postMessage.reset_mock()

    assert handler.on_app_home_opened(_event()) is False
    slack_client.chat_postMessage.assert_not_called()
    assert Conversation.objects.count() == 1


def test_home_tab_is_ignored(handler, slack_client):
    assert handler.on_app_home_opened(_event(tab='home')) is False
    slack_client.chat_postMessage.assert_not_called()


def test_reinstall_from_new_slack_account_updates_conversation(
        handler, make_conversation, directory_user):
    make_conversation(user_id=directory_user.id, slack_user_id='U0OLD', conversation_id='D0OLD')

    handler.on_bot_installed_in_personal(_event(user='U0NEW', channel='D0NEW'))

    conversation = Conversation.objects.get(user_id=directory_user.id)
    assert conversation.slack_user_id == 'U0NEW'
    assert conversation.conversation_id == 'D0NEW'
