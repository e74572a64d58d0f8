"""In-memory resource store."""

from typing import Dict, List, Optional

from rightsizing_kernel.models.resources import ManagedResource, ResourceKey, ResourceKind
from rightsizing_kernel.store.base import AlreadyExistsError, NotFoundError


class InMemoryResourceStore:
    """
    Dict-backed resource store. Used by tests and single-process deployments.
    Returned records are copies; mutate them and call update() to persist.
    """

    def __init__(self):
        self._records: Dict[ResourceKey, ManagedResource] = {}

    def get(self, key: ResourceKey) -> ManagedResource:
        record = self._records.get(key)
        if record is None:
            raise NotFoundError(key)
        return record.model_copy(deep=True)

    def create(self, resource: ManagedResource) -> ManagedResource:
        key = resource.key
        if key in self._records:
            raise AlreadyExistsError(key)
        stored = resource.model_copy(deep=True, update={"namespace": key.namespace, "resource_version": 1})
        self._records[key] = stored
        return stored.model_copy(deep=True)

    def update(self, resource: ManagedResource) -> ManagedResource:
        key = resource.key
        current = self._records.get(key)
        if current is None:
            raise NotFoundError(key)
        stored = resource.model_copy(
            deep=True,
            update={"namespace": key.namespace, "resource_version": current.resource_version + 1},
        )
        self._records[key] = stored
        return stored.model_copy(deep=True)

    def delete(self, key: ResourceKey) -> None:
        if key not in self._records:
            raise NotFoundError(key)
        del self._records[key]

    def list(self, kind: Optional[ResourceKind] = None) -> List[ManagedResource]:
        return [
            r.model_copy(deep=True)
            for k, r in sorted(self._records.items())
            if kind is None or k.kind == kind
        ]

    def count(self) -> int:
        return len(self._records)
