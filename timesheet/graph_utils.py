from django.conf import settings
from .dtos import ReporteeDTO
import httpx
import logging

logger = logging.getLogger(__name__)

BATCH_SPLIT_COUNT = 20
USER_SELECT_FIELDS = 'id,displayName,userPrincipalName,mail'


def split_list(items, size):
    """Split a list into consecutive chunks of at most size items"""
    return [items[index:index + size] for index in range(0, len(items), size)]


class UsersService:
    """
    Microsoft Graph user directory calls made on behalf of the signed-in user.

    Failures are not retried here: any non-success response surfaces as
    httpx.HTTPStatusError to the caller.
    """

    def __init__(self, access_token, client=None, base_url=None):
        self.client = client or httpx.Client(
            base_url=base_url or settings.GRAPH_BASE_URL,
            headers={'Authorization': f'Bearer {access_token}'},
            timeout=30,
        )

    def close(self):
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def _get(self, url, params=None):
        response = self.client.get(url, params=params)
        response.raise_for_status()
        return response.json()

    def get_reportees(self, search=''):
        """Direct reports of the signed-in user, optionally filtered by display name or mail"""
        search = (search or '').lower()
        reportees = []

        page = self._get('/me/directReports', params={'$select': USER_SELECT_FIELDS})
        while True:
            for user in page.get('value', []):
                if search and search not in (user.get('displayName') or '').lower() \
                        and search not in (user.get('mail') or '').lower():
                    continue
                reportees.append(ReporteeDTO.from_graph(user))

            next_link = page.get('@odata.nextLink')
            if not next_link:
                break
            page = self._get(next_link)

        logger.info(f"Fetched {len(reportees)} reportee(s) from Graph")
        return reportees

    def get_manager(self):
        return ReporteeDTO.from_graph(self._get('/me/manager', params={'$select': USER_SELECT_FIELDS}))

    def get_user(self, user_id_or_principal_name):
        return ReporteeDTO.from_graph(
            self._get(f'/users/{user_id_or_principal_name}', params={'$select': USER_SELECT_FIELDS})
        )

    def get_users(self, user_object_ids):
        """Profiles of the given users, requested through $batch in chunks of 20"""
        if user_object_ids is None:
            raise ValueError("User object ids cannot be None")

        users = []
        for batch in split_list([str(user_id) for user_id in user_object_ids], BATCH_SPLIT_COUNT):
            payload = {
                'requests': [
                    {
                        'id': str(index),
                        'method': 'GET',
                        'url': f'/users/{user_id}?$select={USER_SELECT_FIELDS}',
                    }
                    for index, user_id in enumerate(batch)
                ]
            }
            response = self.client.post('/$batch', json=payload)
            response.raise_for_status()

            responses = sorted(response.json().get('responses', []), key=lambda item: int(item['id']))
            for item in responses:
                if item.get('status') != 200:
                    logger.warning(f"Graph batch lookup failed for {batch[int(item['id'])]}: {item.get('status')}")
                    continue
                users.append(ReporteeDTO.from_graph(item['body']))

        return users


def build_users_service(access_token):
    return UsersService(access_token)
