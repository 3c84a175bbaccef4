"""
Unit of Work Pattern

Manages database transactions and ensures that domain events
are published only after successful transaction commit.
"""

from abc import ABC, abstractmethod
from typing import Callable, List, Optional
import logging

from django.db import transaction

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)


class AbstractUnitOfWork(ABC):
    """Abstract Unit of Work pattern"""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.commit()
        else:
            self.rollback()

    @abstractmethod
    def commit(self):
        """Commit the transaction"""

    @abstractmethod
    def rollback(self):
        """Rollback the transaction"""

    @abstractmethod
    def collect_events(self, aggregate):
        """Collect events from aggregate root"""


class DjangoUnitOfWork(AbstractUnitOfWork):
    """
    Django implementation of Unit of Work

    Wraps the block in ``transaction.atomic`` and hands collected domain
    events to the message bus through ``transaction.on_commit``, so that
    notification side effects never run for a rolled back booking change.

    Usage:
        with DjangoUnitOfWork() as uow:
            booking = booking_repo.get(booking_id, lock=True)
            booking.approve(approver_id, now)
            booking_repo.save(booking)
            uow.collect_events(booking)
        # Events are published after commit
    """

    def __init__(self, publish: Optional[Callable[[List[DomainEvent]], None]] = None):
        self._events: List[DomainEvent] = []
        self._transaction = None
        self._publish = publish

    def __enter__(self):
        """Start database transaction"""
        self._transaction = transaction.atomic()
        self._transaction.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Complete or rollback transaction"""
        try:
            if exc_type is None:
                self.commit()
            else:
                self.rollback()
        finally:
            if self._transaction:
                self._transaction.__exit__(exc_type, exc_val, exc_tb)

    def commit(self):
        """Schedule publishing of the collected events for after commit"""
        logger.debug(f"Committing transaction with {len(self._events)} events")

        events = self._events.copy()
        self._events.clear()

        if events:
            transaction.on_commit(lambda: self._publish_events(events))

    def rollback(self):
        """Rollback changes and discard events"""
        if self._events:
            logger.warning(f"Rolling back transaction, discarding {len(self._events)} events")
        self._events.clear()

    def collect_events(self, aggregate):
        """Move pending events from the aggregate into this unit of work"""
        new_events = getattr(aggregate, 'events', None)
        if new_events:
            self._events.extend(new_events)
            aggregate.clear_events()
            logger.debug(
                f"Collected {len(new_events)} events from "
                f"{aggregate.__class__.__name__} (ID: {aggregate.id})"
            )

    def _publish_events(self, events: List[DomainEvent]):
        publish = self._publish
        if publish is None:
            from shared.application.message_bus import message_bus
            publish = message_bus.publish_events

        logger.info(f"Publishing {len(events)} domain events after commit")

        try:
            publish(events)
        except Exception as e:
            # The booking change is already committed; delivery is best effort.
            logger.error(f"Error publishing events: {e}", exc_info=True)
