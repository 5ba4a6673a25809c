"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.  Status
transitions lock the order row with ``select_for_update()``; there is no
version column, so the lock is what serializes concurrent writers.

``save`` is the single persistence point for the aggregate root: it
invalidates the order cache and hands collected domain events to the
in-process event bus once the surrounding transaction commits.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import QuerySet

from modules.orders.cache import OrderCache, order_cache
from modules.orders.models import (
    CakeRevision,
    DeliveryAssignment,
    Order,
    OrderLog,
    PrintEvent,
)
from modules.orders.repositories.interfaces import IOrderRepository
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)

_RELATIONS = ("logs", "print_history", "revisions")


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    def __init__(self, cache: Optional[OrderCache] = None) -> None:
        self._cache = cache or order_cache

    def _base_queryset(self) -> QuerySet:
        return Order.objects.select_related("delivery_assignment").prefetch_related(
            *_RELATIONS
        )

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        order = Order(**data)
        order.full_clean(exclude=["order_number"])
        order.save()
        logger.info("order.created", order_id=str(order.id), status=order.status)
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Return ``None`` for non-existent or malformed IDs."""
        try:
            return self._base_queryset().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Order]:
        """Lock the order row (SELECT FOR UPDATE) before a mutation.

        The assignment is fetched separately because ``select_for_update``
        cannot lock the nullable side of an outer join.
        """
        try:
            return Order.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        """List orders with optional ORM lookups (``status__in``, ``delivery_date``...)."""
        queryset = self._base_queryset()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def list_by_ids(self, ids: List[str]) -> List[Order]:
        if not ids:
            return []
        return list(self._base_queryset().filter(id__in=ids))

    # ------------------------------------------------------------------
    # Save / Delete (IRepository contract)
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        """Persist an order, invalidate its cache entry and queue its events."""
        entity.full_clean(exclude=["order_number"])
        entity.save()

        events = entity.pop_domain_events()
        order_id = entity.id

        self._cache.invalidate(order_id)

        def _after_commit() -> None:
            self._cache.invalidate(order_id)
            for event in events:
                event_bus.publish(event)

        transaction.on_commit(_after_commit)

        logger.info("order.saved", order_id=str(order_id), event_count=len(events))
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        order = self.get_by_id(id)
        if not order:
            return False
        order.delete()
        self._cache.invalidate(id)
        logger.info("order.deleted", order_id=str(id))
        return True

    # ------------------------------------------------------------------
    # Order-specific writes
    # ------------------------------------------------------------------

    def add_log(
        self,
        order_id: UUID,
        type: str,
        *,
        previous_status: Optional[str] = None,
        new_status: Optional[str] = None,
        note: str = "",
        user: str = "",
        metadata: Optional[Dict[str, Any]] = None,
    ) -> OrderLog:
        entry = OrderLog(
            order_id=order_id,
            type=type,
            previous_status=previous_status,
            new_status=new_status,
            note=note,
            user=user,
            metadata=metadata or {},
        )
        entry.save()
        self._cache.invalidate(order_id)
        logger.info(
            "order.log_added",
            order_id=str(order_id),
            log_type=type,
            previous_status=previous_status,
            new_status=new_status,
        )
        return entry

    def save_assignment(self, order: Order, data: Dict[str, Any]) -> DeliveryAssignment:
        assignment, created = DeliveryAssignment.objects.update_or_create(
            order=order, defaults=data
        )
        self._cache.invalidate(order.id)
        logger.info(
            "order.assignment_saved",
            order_id=str(order.id),
            driver_type=assignment.driver_type,
            is_preliminary=assignment.is_preliminary,
            created=created,
        )
        return assignment

    def add_print_event(self, order_id: UUID, type: str, user: str = "") -> PrintEvent:
        event = PrintEvent.objects.create(order_id=order_id, type=type, user=user)
        self._cache.invalidate(order_id)
        return event

    def add_revision(
        self,
        order_id: UUID,
        notes: str,
        photos: Optional[List[str]] = None,
        requested_by: str = "",
    ) -> CakeRevision:
        revision = CakeRevision.objects.create(
            order_id=order_id,
            notes=notes,
            photos=photos or [],
            requested_by=requested_by,
        )
        self._cache.invalidate(order_id)
        return revision
