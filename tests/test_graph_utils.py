import json
import uuid

import httpx
import pytest

from timesheet.graph_utils import BATCH_SPLIT_COUNT, UsersService, split_list

BASE_URL = 'https://graph.example.test/v1.0'


def _user(display_name='Ada Lovelace', mail='ada@example.test', user_id=None):
    return {
        'id': str(user_id or uuid.uuid4()),
        'displayName': display_name,
        'userPrincipalName': mail,
        'mail': mail,
    }


def _service(handler):
    client = httpx.Client(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    return UsersService('token', client=client)


def test_split_list():
    assert split_list([1, 2, 3, 4, 5], 2) == [[1, 2], [3, 4], [5]]
    assert split_list([], 20) == []


def test_get_reportees_follows_pages_and_filters():
    first_page = {
        'value': [_user('Ada Lovelace'), _user('Grace Hopper', 'grace@example.test')],
        '@odata.nextLink': f'{BASE_URL}/me/directReports?$skiptoken=abc',
    }
    second_page = {'value': [_user('Alan Turing', 'alan@example.test')]}

    def handler(request):
        if 'skiptoken' in str(request.url):
            return httpx.Response(200, json=second_page)
        return httpx.Response(200, json=first_page)

    service = _service(handler)

    assert len(service.get_reportees('')) == 3
    assert [r.display_name for r in service.get_reportees('GRACE')] == ['Grace Hopper']
    assert [r.display_name for r in service.get_reportees('alan@')] == ['Alan Turing']


def test_get_manager():
    manager = _user('Boss', 'boss@example.test')

    def handler(request):
        assert request.url.path.endswith('/me/manager')
        return httpx.Response(200, json=manager)

    dto = _service(handler).get_manager()

    assert str(dto.id) == manager['id']
    assert dto.mail == 'boss@example.test'


def test_failures_surface_as_http_errors():
    service = _service(lambda request: httpx.Response(403, json={'error': {'code': 'Forbidden'}}))

    with pytest.raises(httpx.HTTPStatusError):
        service.get_user('someone@example.test')


def test_get_users_batches_and_skips_failures():
    ids = [uuid.uuid4() for _ in range(BATCH_SPLIT_COUNT + 1)]
    batches = []

    def handler(request):
        payload = json.loads(request.content)
        batches.append(payload['requests'])
        responses = []
        for item in reversed(payload['requests']):
            user_id = item['url'].split('/')[2].split('?')[0]
            if user_id == str(ids[1]):
                responses.append({'id': item['id'], 'status': 404, 'body': {}})
            else:
                responses.append({'id': item['id'], 'status': 200, 'body': _user(user_id=user_id)})
        return httpx.Response(200, json={'responses': responses})

    users = _service(handler).get_users(ids)

    assert [len(batch) for batch in batches] == [BATCH_SPLIT_COUNT, 1]
    assert [user.id for user in users] == [user_id for user_id in ids if user_id != ids[1]]


def test_get_users_requires_ids():
    with pytest.raises(ValueError):
        _service(lambda request: httpx.Response(200)).get_users(None)


def test_client_is_closed_when_leaving_the_block():
    manager = _user('Boss', 'boss@example.test')
    service = _service(lambda request: httpx.Response(200, json=manager))

    with service as users_service:
        assert users_service.get_manager().display_name == 'Boss'
        assert service.client.is_closed is False

    assert service.client.is_closed is True


def test_client_is_closed_when_the_block_fails():
    service = _service(lambda request: httpx.Response(500))

    with pytest.raises(httpx.HTTPStatusError):
        with service:
            service.get_manager()

    assert service.client.is_closed is True
