"""
Persistence boundary for the hierarchy module.

Thin wrapper over the Django ORM exposing the small contract the service
layer and the hierarchy checker depend on:

    get(id)        -> Designation | None
    list(...)      -> list[Designation]
    insert(...)    -> Designation
    update(id,...) -> Designation
    count()        -> int

Stateless: nothing is cached, every call hits the database. Database
failures are re-raised as DesignationStoreError; retries are left to the
caller.
"""
import logging

from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction

from .exceptions import DesignationNotFound, DesignationStoreError
from .models import Designation

logger = logging.getLogger(__name__)

DEFAULT_ORDERING = ('level', 'sort_order')


class DesignationStore:

    def __init__(self, model=Designation):
        self.model = model

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get(self, designation_id):
        """Fetch one row by id, active or not. Returns None when missing."""
        if not designation_id:
            return None
        try:
            return self.model.objects.get(pk=designation_id)
        except (self.model.DoesNotExist, ValidationError, ValueError):
            return None
        except DatabaseError as exc:
            logger.error("Error fetching designation %s: %s", designation_id, exc)
            raise DesignationStoreError(str(exc)) from exc

    def list(self, *conditions, include_inactive=False, ordering=DEFAULT_ORDERING, **filters):
        """Return rows matching the given Q objects and field filters, ordered."""
        queryset = self.model.objects.all()
        if not include_inactive:
            queryset = queryset.filter(is_active=True)
        if conditions or filters:
            queryset = queryset.filter(*conditions, **filters)
        try:
            return list(queryset.order_by(*ordering))
        except DatabaseError as exc:
            logger.error("Error listing designations (%s): %s", filters, exc)
            raise DesignationStoreError(str(exc)) from exc

    def count(self, include_inactive=True):
        queryset = self.model.objects.all()
        if not include_inactive:
            queryset = queryset.filter(is_active=True)
        try:
            return queryset.count()
        except DatabaseError as exc:
            raise DesignationStoreError(str(exc)) from exc

    def code_exists(self, code, exclude_id=None):
        queryset = self.model.objects.filter(code=code)
        if exclude_id is not None:
            queryset = queryset.exclude(pk=exclude_id)
        return queryset.exists()

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def insert(self, **fields):
        try:
            with transaction.atomic():
                return self.model.objects.create(**fields)
        except DatabaseError as exc:
            logger.error("Error creating designation: %s", exc)
            logger.debug("Insert data: %s", fields)
            raise DesignationStoreError(str(exc)) from exc

    def update(self, designation_id, **patch):
        """Apply a patch to one row in a single write and return the fresh row."""
        try:
            with transaction.atomic():
                instance = self.model.objects.select_for_update().get(pk=designation_id)
                for field, value in patch.items():
                    setattr(instance, field, value)
                instance.save()
                return instance
        except (self.model.DoesNotExist, ValidationError, ValueError):
            raise DesignationNotFound(designation_id)
        except DatabaseError as exc:
            logger.error("Error updating designation %s: %s", designation_id, exc)
            logger.debug("Update data: %s", patch)
            raise DesignationStoreError(str(exc)) from exc
