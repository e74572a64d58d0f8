"""
Resource Store: the persistent object store holding every managed record.

Behavioral Contract:
- Records are addressed by (kind, namespace, name)
- get/update/delete on a missing record raise NotFoundError
- create on an existing record raises AlreadyExistsError
- Every write bumps the record's resource_version
- Single-record operations are atomic; there are no multi-record transactions
"""

from typing import List, Optional, Protocol

from rightsizing_kernel.models.resources import ManagedResource, ResourceKey, ResourceKind


class ResourceStoreError(Exception):
    """Raised when a store operation fails."""
    pass


class NotFoundError(ResourceStoreError):
    """Raised when the addressed record does not exist."""

    def __init__(self, key: ResourceKey):
        super().__init__(f"{key} not found")
        self.key = key


class AlreadyExistsError(ResourceStoreError):
    """Raised when creating a record whose key is taken."""

    def __init__(self, key: ResourceKey):
        super().__init__(f"{key} already exists")
        self.key = key


class ResourceStore(Protocol):
    def get(self, key: ResourceKey) -> ManagedResource:
        ...

    def create(self, resource: ManagedResource) -> ManagedResource:
        ...

    def update(self, resource: ManagedResource) -> ManagedResource:
        ...

    def delete(self, key: ResourceKey) -> None:
        ...

    def list(self, kind: Optional[ResourceKind] = None) -> List[ManagedResource]:
        ...
