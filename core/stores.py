"""Storage contracts used by the order core.

Concrete SQLite implementations live in storage/. The core only depends on
these interfaces, so tests can substitute fakes.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from typing import Generic, List, Optional, TypeVar

from core.integration.models import IntegrationAttempt, TargetSystem
from core.orders.order import Order
from core.orders.status import OrderStatus


T = TypeVar("T")

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


@dataclass
class OrderQuery:
    """Filters and paging for order listing."""
    status: Optional[OrderStatus] = None
    customer_code: Optional[str] = None
    order_number: Optional[str] = None      # substring match
    from_date: Optional[date] = None        # inclusive
    to_date: Optional[date] = None          # inclusive, whole day
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    def normalized(self) -> "OrderQuery":
        """Copy with page >= 1 and page_size within 1..MAX_PAGE_SIZE."""
        return OrderQuery(
            status=self.status,
            customer_code=self.customer_code,
            order_number=self.order_number,
            from_date=self.from_date,
            to_date=self.to_date,
            page=max(1, self.page),
            page_size=min(max(1, self.page_size), MAX_PAGE_SIZE),
        )


@dataclass
class Page(Generic[T]):
    """One page of results plus totals."""
    items: List[T] = field(default_factory=list)
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    total_count: int = 0

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.page_size) if self.page_size else 0

    @property
    def has_previous_page(self) -> bool:
        return self.page > 1

    @property
    def has_next_page(self) -> bool:
        return self.page < self.total_pages


class OrderStore(ABC):
    """Persistence for Order aggregates (with their items)."""

    @abstractmethod
    def exists_by_order_number(self, order_number: str) -> bool:
        pass

    @abstractmethod
    def get_by_id(self, order_id: int) -> Optional[Order]:
        pass

    @abstractmethod
    def get_by_order_number(self, order_number: str) -> Optional[Order]:
        pass

    @abstractmethod
    def save(self, order: Order) -> Order:
        """Insert or update; assigns ids on insert."""
        pass

    @abstractmethod
    def query(self, query: OrderQuery) -> Page[Order]:
        pass


class IntegrationAttemptStore(ABC):
    """Persistence for integration attempts."""

    @abstractmethod
    def save(self, attempt: IntegrationAttempt) -> IntegrationAttempt:
        """Insert or update; assigns the id on insert."""
        pass

    @abstractmethod
    def find_open_attempts_for_order(
        self,
        order_id: int,
        target_system: TargetSystem = TargetSystem.ERP,
    ) -> List[IntegrationAttempt]:
        """Pending or Sent attempts, most recently attempted first."""
        pass
