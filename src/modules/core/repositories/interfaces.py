"""Generic repository interface (Dependency Inversion Principle).

Service code is async and depends on these abstractions only; the
Django adapters bridge to the synchronous ORM with ``sync_to_async``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar
from uuid import UUID

T = TypeVar("T")


class IRepository(ABC, Generic[T]):
    """Base generic repository contract.

    ``T`` is the record type handed to services (a plain dataclass or
    a detached model instance, never a lazily-loading queryset).
    """

    @abstractmethod
    async def get_by_id(self, id: UUID | str) -> Optional[T]:
        """Retrieve an entity by its primary key, ``None`` if missing."""
