"""
Base Domain Classes

This module provides the building blocks shared by the domain apps:
- ValueObject: Immutable objects compared by value
- AggregateRoot: Mixin that lets a persisted model record domain events
- DomainEvent: Events that represent something that happened
"""

from abc import ABC
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List
from uuid import UUID, uuid4


@dataclass(frozen=True)
class ValueObject(ABC):
    """
    Base class for value objects

    Value objects are immutable and have no identity.
    Two value objects are equal if all their attributes are equal.
    """
    pass


class AggregateRoot:
    """
    Mixin for aggregate roots

    Aggregates are the consistency boundaries in DDD. State changes record
    domain events on the instance; the unit of work collects them and
    publishes them only after the surrounding transaction commits.

    The event list lives outside ``__init__`` so the mixin can sit on
    Django models, which construct instances through their own
    machinery.
    """

    def _event_buffer(self) -> List['DomainEvent']:
        buffer = self.__dict__.get('_domain_events')
        if buffer is None:
            buffer = []
            self.__dict__['_domain_events'] = buffer
        return buffer

    def add_event(self, event: 'DomainEvent'):
        """Add a domain event to be published"""
        self._event_buffer().append(event)

    def clear_events(self):
        """Clear all collected events (called after publishing)"""
        self._event_buffer().clear()

    @property
    def events(self) -> List['DomainEvent']:
        """Get copy of collected events"""
        return list(self._event_buffer())


@dataclass(kw_only=True)
class DomainEvent:
    """
    Base class for domain events

    Domain events represent something that happened in the domain.
    They are used to communicate between bounded contexts.
    """
    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    aggregate_id: int | None = None

