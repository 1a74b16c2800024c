"""
In-memory entity store (development/testing).
Replaces a database with Python dictionaries.
WARNING: This is single-process only and data is lost on restart.
"""

import copy
import threading
from typing import Any, Dict, List, Optional

from loguru import logger

from storage.interface import EntityStore, OPERATORS, QueryFilter, QueryOrder


class InMemoryEntityStore(EntityStore):
    """Entity store using Python dicts: kind -> {id -> record}"""

    def __init__(self):
        self._data: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.lock = threading.Lock()
        logger.debug("[STORE] In-memory entity store initialized")

    def _kind_map(self, kind: str) -> Dict[str, Dict[str, Any]]:
        return self._data.setdefault(kind, {})

    @staticmethod
    def _matches(record: Dict[str, Any], filters: List[QueryFilter]) -> bool:
        for f in filters:
            # Records without the field never match
            if f.field not in record:
                return False
            if not OPERATORS[f.op](record[f.field], f.value):
                return False
        return True

    def get(self, kind: str, entity_id: str) -> Optional[Dict[str, Any]]:
        with self.lock:
            record = self._kind_map(kind).get(entity_id)
            return copy.deepcopy(record) if record is not None else None

    def query(
        self,
        kind: str,
        filters: Optional[List[QueryFilter]] = None,
        order_by: Optional[List[QueryOrder]] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        with self.lock:
            results = [
                copy.deepcopy(record)
                for record in self._kind_map(kind).values()
                if self._matches(record, filters or [])
            ]

        # Stable sorts applied lowest priority first; None sorts last
        for order in reversed(order_by or []):
            present = [r for r in results if r.get(order.field) is not None]
            missing = [r for r in results if r.get(order.field) is None]
            present.sort(
                key=lambda r: r[order.field],
                reverse=order.direction == "desc"
            )
            results = present + missing

        if offset:
            results = results[offset:]
        if limit is not None:
            results = results[:limit]
        return results

    def save(self, kind: str, entity: Dict[str, Any]) -> None:
        if not entity.get("id"):
            raise ValueError(f"Cannot save {kind} without an id")
        with self.lock:
            self._kind_map(kind)[entity["id"]] = copy.deepcopy(entity)

    def delete(self, kind: str, entity_id: str) -> None:
        with self.lock:
            self._kind_map(kind).pop(entity_id, None)

    def batch_save(self, kind: str, entities: List[Dict[str, Any]]) -> None:
        for entity in entities:
            if not entity.get("id"):
                raise ValueError(f"Cannot save {kind} without an id")
        with self.lock:
            kind_map = self._kind_map(kind)
            for entity in entities:
                kind_map[entity["id"]] = copy.deepcopy(entity)

    def batch_delete(self, kind: str, entity_ids: List[str]) -> None:
        with self.lock:
            kind_map = self._kind_map(kind)
            for entity_id in entity_ids:
                kind_map.pop(entity_id, None)

    def clear(self) -> None:
        """Clear all data (useful for testing)"""
        with self.lock:
            self._data.clear()
