"""Optimistic entity collections.

Every collection follows the same protocol: apply the change locally, let the
caller see it, then persist in the background and reconcile with what the
backend returns. Backend calls are blocking ``requests`` calls, so they run
in the event loop's default executor; everything else runs on the loop.
"""

import asyncio
import functools
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel, TypeAdapter

from planbox.errors import NotFound

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

_PAYLOAD = TypeAdapter(Dict[str, Any])


def to_payload(data: Dict[str, Any]) -> Dict[str, Any]:
    """Make a patch JSON-ready (dates to ISO strings, enums to values)."""
    return _PAYLOAD.dump_python(data, mode="json")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class OptimisticCollection(Generic[M]):
    """In-memory source of truth for one entity kind.

    Readers get copies of the list; only the collection's own methods mutate it.
    ``error`` keeps the message of the last failed backend call.
    """

    kind = "entity"

    def __init__(self, resource: Any, model: Type[M], sort_key: Optional[Callable[[M], Any]] = None):
        self.resource = resource
        self.model = model
        self.sort_key = sort_key
        self._items: List[M] = []
        self.loading = False
        self.error: Optional[str] = None

    @property
    def items(self) -> List[M]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(list(self._items))

    def get(self, entity_id: str) -> Optional[M]:
        for item in self._items:
            if item.id == entity_id:
                return item
        return None

    def require(self, entity_id: str) -> M:
        item = self.get(entity_id)
        if item is None:
            raise NotFound(self.kind, entity_id)
        return item

    async def _call(self, fn: Callable[..., Any], *args: Any) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(fn, *args))

    def _parse(self, data: Any) -> M:
        return self.model.model_validate(data)

    def _set_items(self, items: List[M]) -> None:
        if self.sort_key is not None:
            items = sorted(items, key=self.sort_key)
        self._items = items

    def _replace(self, entity_id: str, entity: M) -> None:
        self._items = [entity if item.id == entity_id else item for item in self._items]

    def _merge(self, current: M, patch: Dict[str, Any]) -> M:
        """Optimistic value: current fields, overlaid with the patch, stamped now."""
        return self.model.model_validate({**current.model_dump(), **patch, "updated_at": utc_now()})

    async def refresh(self) -> List[M]:
        """Replace the collection with the backend's copy (full resync)."""
        self.loading = True
        self.error = None
        try:
            data = await self._call(self.resource.get_all)
        except Exception as e:
            self.error = str(e)
            logger.error(f"Failed to fetch {self.kind}s: {type(e).__name__}: {str(e)}")
            raise
        finally:
            self.loading = False
        self._set_items([self._parse(row) for row in data])
        logger.debug(f"Loaded {len(self._items)} {self.kind}s")
        return self.items

    async def resync(self) -> None:
        """Full refresh that never raises and keeps the current ``error``."""
        error = self.error
        try:
            await self.refresh()
        except Exception as e:
            logger.warning(f"Resync of {self.kind}s failed: {type(e).__name__}: {str(e)}")
        self.error = error

    def _record_failure(self, action: str, entity_id: Optional[str], error: Exception) -> None:
        self.error = str(error)
        target = f" {entity_id}" if entity_id else ""
        logger.error(f"Failed to {action} {self.kind}{target}: {type(error).__name__}: {str(error)}")

    async def create(self, payload: Dict[str, Any]) -> M:
        """Create on the backend, then append the returned entity.

        There is no pending placeholder: nothing is shown until the backend answers.
        """
        try:
            data = await self._call(self.resource.create, to_payload(payload))
        except Exception as e:
            self._record_failure("create", None, e)
            raise
        entity = self._parse(data)
        self._items = self._items + [entity]
        logger.debug(f"Created {self.kind} {entity.id}")
        return entity

    async def update(self, entity_id: str, patch: Dict[str, Any]) -> M:
        """Optimistically update an entity, then reconcile with the backend.

        Raises:
            NotFound: If the entity is not in the collection
            PlanboxError: If the backend call fails (after a full resync)
        """
        current = self.require(entity_id)
        self._replace(entity_id, self._merge(current, patch))
        try:
            data = await self._call(self.resource.update, entity_id, to_payload(patch))
        except Exception as e:
            self._record_failure("update", entity_id, e)
            await self.resync()
            raise
        confirmed = self._parse(data)
        self._replace(entity_id, confirmed)
        logger.debug(f"Updated {self.kind} {entity_id}")
        return confirmed

    async def delete(self, entity_id: str) -> None:
        """Optimistically remove an entity; resync if the backend refuses.

        Raises:
            NotFound: If the entity is not in the collection
            PlanboxError: If the backend call fails (after a full resync)
        """
        self.require(entity_id)
        self._items = [item for item in self._items if item.id != entity_id]
        try:
            await self._call(self.resource.delete, entity_id)
        except Exception as e:
            self._record_failure("delete", entity_id, e)
            await self.resync()
            raise
        logger.debug(f"Deleted {self.kind} {entity_id}")
