from datetime import timedelta
from django.conf import settings
from django.core.cache import cache as default_cache
import logging

logger = logging.getLogger(__name__)

REPORTEES_CACHE_KEY_PREFIX = 'reportees'


class UserHelper:
    """
    Reportee lookups backed by a process-wide cache.

    Each manager's reportee list is cached with an absolute expiry of
    MANAGER_REPORTEES_CACHE_DURATION_IN_HOURS. Population is not locked, so
    concurrent first lookups for one manager may each call the directory.
    """

    def __init__(self, users_service, cache=None, cache_duration_in_hours=None):
        self.users_service = users_service
        self.cache = cache if cache is not None else default_cache
        if cache_duration_in_hours is None:
            cache_duration_in_hours = settings.MANAGER_REPORTEES_CACHE_DURATION_IN_HOURS
        self.cache_duration = timedelta(hours=cache_duration_in_hours)

    @staticmethod
    def cache_key(manager_object_id):
        return f"{REPORTEES_CACHE_KEY_PREFIX}:{manager_object_id}"

    def get_all_reportees(self, manager_object_id):
        """
        Reportees of the manager, served from cache while the entry is fresh.

        The directory call always resolves the reportees of the token owner;
        manager_object_id only selects the cache entry.
        """
        key = self.cache_key(manager_object_id)
        reportees = self.cache.get(key)
        if not reportees:
            logger.info(f"Reportee cache miss for manager {manager_object_id}")
            reportees = self.users_service.get_reportees('')
            self.cache.set(key, reportees, timeout=self.cache_duration.total_seconds())

        return reportees

    def are_project_members_direct_reportee(self, member_ids):
        """True when every member id is a direct reportee of the caller"""
        reportees = self.users_service.get_reportees('')
        reportee_ids = {reportee.id for reportee in reportees}
        return all(member_id in reportee_ids for member_id in member_ids)

    def is_valid_reportee(self, manager_object_id, reportee_id):
        reportees = self.get_all_reportees(manager_object_id)
        return any(reportee.id == reportee_id for reportee in reportees)

    def are_valid_reportees(self, manager_object_id, user_ids):
        """True when every distinct user id is among the manager's cached reportees"""
        requested_ids = set(user_ids)
        if not requested_ids:
            return False
        reportee_ids = {reportee.id for reportee in self.get_all_reportees(manager_object_id)}
        return requested_ids <= reportee_ids
