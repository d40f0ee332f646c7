"""Structured notifications for external observers.

Events are a side channel: they are recorded only after an operation has
fully succeeded and never feed back into ledger state.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, List, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Event:
    """Base notification record."""

    @property
    def name(self) -> str:
        return type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["event"] = self.name
        return data


@dataclass(frozen=True)
class GroupConfigured(Event):
    group_id: int
    cliff_duration: int
    tge_fraction_per_million: int
    installment_count: int


@dataclass(frozen=True)
class BeneficiariesAdded(Event):
    group_id: int
    principals: Tuple[str, ...]
    stakes: Tuple[int, ...]
    pledged: int  # Amount added to total_pledged by this batch


@dataclass(frozen=True)
class Activated(Event):
    token: str
    activation_time: int
    period_length: int


@dataclass(frozen=True)
class Deposited(Event):
    amount: int
    total_deposited: int


@dataclass(frozen=True)
class TgePaid(Event):
    principal: str
    amount: int


@dataclass(frozen=True)
class InstallmentPaid(Event):
    principal: str
    installments: int
    amount: int
    installments_released: int


@dataclass(frozen=True)
class RemainderSwept(Event):
    recipient: str
    amount: int


class EventLog:
    """Append-only event sink with optional subscribers."""

    def __init__(self):
        self.events: List[Event] = []
        self._subscribers: List[Callable[[Event], None]] = []

    def subscribe(self, callback: Callable[[Event], None]) -> None:
        self._subscribers.append(callback)

    def emit(self, event: Event) -> None:
        self.events.append(event)
        logger.info("event=%s %s", event.name, event.to_dict())
        for callback in self._subscribers:
            callback(event)

    def of_type(self, event_type: type) -> List[Event]:
        return [e for e in self.events if isinstance(e, event_type)]

    def __len__(self) -> int:
        return len(self.events)
