"""
SQLite resource store: durable records across process restarts.

Each record is stored as its JSON serialisation keyed by (kind, namespace, name).
Optimistic versioning: update() bumps resource_version in the same statement
that matches the key, so a concurrent delete surfaces as NotFoundError.
"""

import json
import sqlite3
from typing import List, Optional

from rightsizing_kernel.models.resources import ManagedResource, ResourceKey, ResourceKind
from rightsizing_kernel.store.base import (
    AlreadyExistsError,
    NotFoundError,
    ResourceStoreError,
)


class SQLiteResourceStore:
    """Resource store backed by a single SQLite table."""

    def __init__(self, db_path: str = ":memory:"):
        self.db_path = db_path
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._init_schema()

    def _init_schema(self) -> None:
        """Create the resources table if it doesn't exist."""
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS resources (
                kind TEXT NOT NULL,
                namespace TEXT NOT NULL,
                name TEXT NOT NULL,
                resource_version INTEGER NOT NULL,
                record_json TEXT NOT NULL,
                updated_at TEXT NOT NULL DEFAULT (datetime('now')),
                PRIMARY KEY (kind, namespace, name)
            )
        """)
        self._conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_resources_kind ON resources(kind)
        """)
        self._conn.commit()

    def _deserialize(self, row: sqlite3.Row) -> ManagedResource:
        record = ManagedResource.model_validate_json(row["record_json"])
        record.resource_version = row["resource_version"]
        return record

    def _serialize(self, resource: ManagedResource, key: ResourceKey) -> str:
        payload = resource.model_dump(mode="json")
        payload["namespace"] = key.namespace
        return json.dumps(payload, sort_keys=True)

    def get(self, key: ResourceKey) -> ManagedResource:
        try:
            row = self._conn.execute(
                "SELECT record_json, resource_version FROM resources "
                "WHERE kind = ? AND namespace = ? AND name = ?",
                (key.kind.value, key.namespace, key.name),
            ).fetchone()
        except sqlite3.Error as e:
            raise ResourceStoreError(f"failed to get {key}: {e}") from e
        if row is None:
            raise NotFoundError(key)
        return self._deserialize(row)

    def create(self, resource: ManagedResource) -> ManagedResource:
        key = resource.key
        try:
            self._conn.execute(
                "INSERT INTO resources (kind, namespace, name, resource_version, record_json) "
                "VALUES (?, ?, ?, 1, ?)",
                (key.kind.value, key.namespace, key.name, self._serialize(resource, key)),
            )
            self._conn.commit()
        except sqlite3.IntegrityError as e:
            self._conn.rollback()
            raise AlreadyExistsError(key) from e
        except sqlite3.Error as e:
            raise ResourceStoreError(f"failed to create {key}: {e}") from e
        return self.get(key)

    def update(self, resource: ManagedResource) -> ManagedResource:
        key = resource.key
        try:
            cursor = self._conn.execute(
                "UPDATE resources SET record_json = ?, "
                "resource_version = resource_version + 1, updated_at = datetime('now') "
                "WHERE kind = ? AND namespace = ? AND name = ?",
                (self._serialize(resource, key), key.kind.value, key.namespace, key.name),
            )
            self._conn.commit()
        except sqlite3.Error as e:
            raise ResourceStoreError(f"failed to update {key}: {e}") from e
        if cursor.rowcount == 0:
            raise NotFoundError(key)
        return self.get(key)

    def delete(self, key: ResourceKey) -> None:
        try:
            cursor = self._conn.execute(
                "DELETE FROM resources WHERE kind = ? AND namespace = ? AND name = ?",
                (key.kind.value, key.namespace, key.name),
            )
            self._conn.commit()
        except sqlite3.Error as e:
            raise ResourceStoreError(f"failed to delete {key}: {e}") from e
        if cursor.rowcount == 0:
            raise NotFoundError(key)

    def list(self, kind: Optional[ResourceKind] = None) -> List[ManagedResource]:
        try:
            if kind is not None:
                rows = self._conn.execute(
                    "SELECT record_json, resource_version FROM resources WHERE kind = ? "
                    "ORDER BY kind, namespace, name",
                    (kind.value,),
                ).fetchall()
            else:
                rows = self._conn.execute(
                    "SELECT record_json, resource_version FROM resources "
                    "ORDER BY kind, namespace, name"
                ).fetchall()
        except sqlite3.Error as e:
            raise ResourceStoreError(f"failed to list resources: {e}") from e
        return [self._deserialize(r) for r in rows]

    def count(self) -> int:
        try:
            row = self._conn.execute("SELECT COUNT(*) as cnt FROM resources").fetchone()
        except sqlite3.Error as e:
            raise ResourceStoreError(f"failed to count resources: {e}") from e
        return row["cnt"]

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()
