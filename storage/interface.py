"""
Entity Store contract consumed by the access-control core.

Any persistent keyed storage can back the core as long as it offers:
  - get(kind, id)
  - query(kind, filters, order_by, limit, offset)
  - save(kind, entity)            upsert keyed by entity["id"]
  - delete(kind, id)
  - batch_save(kind, entities), batch_delete(kind, ids)

Entities cross this boundary as plain dicts keyed by field name.
Implementations: InMemoryEntityStore (dev/test), SqlAlchemyEntityStore.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import operator


class Kind:
    """Entity kinds known to the core"""
    USER = "User"
    LIBRARY = "Library"
    LIBRARY_ASSIGNMENT = "LibraryAssignment"
    AUDIT_ENTRY = "AuditEntry"


# Filter operator -> comparison
OPERATORS = {
    "=": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


@dataclass(frozen=True)
class QueryFilter:
    """Single field comparison, e.g. QueryFilter("role", "=", "ADMIN")"""
    field: str
    op: str
    value: Any

    def __post_init__(self):
        if self.op not in OPERATORS:
            raise ValueError(f"Unsupported filter operator: {self.op}")


@dataclass(frozen=True)
class QueryOrder:
    """Sort key, direction is 'asc' or 'desc'"""
    field: str
    direction: str = "asc"

    def __post_init__(self):
        if self.direction not in ("asc", "desc"):
            raise ValueError(f"Unsupported order direction: {self.direction}")


class EntityStore(ABC):
    """Abstract base class for entity storage backends."""

    @abstractmethod
    def get(self, kind: str, entity_id: str) -> Optional[Dict[str, Any]]:
        """Get entity by id, None if absent."""
        pass

    @abstractmethod
    def query(
        self,
        kind: str,
        filters: Optional[List[QueryFilter]] = None,
        order_by: Optional[List[QueryOrder]] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """Query entities. Filters are ANDed; ordering applies before offset/limit."""
        pass

    @abstractmethod
    def save(self, kind: str, entity: Dict[str, Any]) -> None:
        """Create or replace entity keyed by entity['id']."""
        pass

    @abstractmethod
    def delete(self, kind: str, entity_id: str) -> None:
        """Delete entity by id. Absent ids are ignored."""
        pass

    @abstractmethod
    def batch_save(self, kind: str, entities: List[Dict[str, Any]]) -> None:
        """Save many entities."""
        pass

    @abstractmethod
    def batch_delete(self, kind: str, entity_ids: List[str]) -> None:
        """Delete many entities."""
        pass
