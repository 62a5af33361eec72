"""Contract shared by the catalog, shipping and order repositories.

Services receive these abstractions through their constructors; tests can
hand them in-memory fakes.  Identifiers arrive as strings straight from
the URL, so implementations answer ``None`` for malformed ids as well as
for missing rows.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, Iterable, Optional, TypeVar

T = TypeVar("T")


class IRepository(ABC, Generic[T]):
    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]: ...

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> Iterable[T]:
        """Rows matching ``filters`` (ORM lookups); soft-deleted catalog rows never appear."""

    @abstractmethod
    def save(self, entity: T) -> T: ...
