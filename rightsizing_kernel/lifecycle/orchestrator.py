"""
Resource Lifecycle Orchestrator: idempotent upserts and best-effort cleanup
of a component's dependent records.

Behavioral Contract:
- upsert creates a missing record, otherwise overwrites only its mutable
  fields (spec, data, labels, annotations); identity is never changed
- Upsert failures are wrapped with the record they concern and raised
- Deletes never fail: not-found is expected, any other error is logged
- The AddOnTemplate carries a SHA-256 of the embedded rule manifest so the
  distribution side can tell "nothing changed" without a deep compare
- Cleanup order: ClusterManagementAddOn, AddOnTemplate, Placement, then the
  configuration record unless the cleanup is for a rebind
"""

import hashlib
import json
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict

from rightsizing_kernel.lifecycle.config_record import decode_config_record
from rightsizing_kernel.models.component import ComponentConfig
from rightsizing_kernel.models.config import ConfigRecord
from rightsizing_kernel.models.resources import ManagedResource, ResourceKey, ResourceKind
from rightsizing_kernel.models.rules import RuleDocument
from rightsizing_kernel.store.base import NotFoundError, ResourceStore, ResourceStoreError

logger = logging.getLogger(__name__)

SPEC_HASH_ANNOTATION = "observability.open-cluster-management.io/spec-hash"
ADDON_LIFECYCLE_ANNOTATION = "addon.open-cluster-management.io/lifecycle"
ADDON_LIFECYCLE_ADDON_MANAGER = "addon-manager"
COMPONENT_LABEL = "observability.open-cluster-management.io/rightsizing-component"


class LifecycleError(Exception):
    """Raised when a dependent record cannot be read or written."""
    pass


@dataclass
class AddonBundle:
    """Everything needed to distribute one component's rule document."""

    addon_name: str
    template_name: str
    placement_name: str
    placement_namespace: str
    rule_document: RuleDocument
    placement_spec: dict = field(default_factory=dict)
    labels: Dict[str, str] = field(default_factory=dict)


def serialize_manifest(manifest: dict) -> bytes:
    """Canonical JSON: identical manifests always produce identical bytes."""
    return json.dumps(manifest, sort_keys=True, separators=(",", ":")).encode()


def calculate_spec_hash(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


class ResourceOrchestrator:
    """Drives dependent-record operations against a resource store."""

    def __init__(self, store: ResourceStore):
        self.store = store

    # --- Primitives ---

    def upsert(self, resource: ManagedResource) -> ManagedResource:
        """Create `resource`, or overwrite the mutable fields of the existing record."""
        key = resource.key
        try:
            existing = self.store.get(key)
        except NotFoundError:
            existing = None
        except ResourceStoreError as e:
            raise LifecycleError(f"failed to get {key}: {e}") from e

        try:
            if existing is None:
                stored = self.store.create(resource)
                logger.info("rs - created %s", key)
                return stored

            existing.spec = resource.spec
            existing.data = resource.data
            existing.labels = resource.labels
            existing.annotations = {**existing.annotations, **resource.annotations}
            stored = self.store.update(existing)
            logger.info("rs - updated %s", key)
            return stored
        except ResourceStoreError as e:
            raise LifecycleError(f"failed to create/update {key}: {e}") from e

    def delete_if_present(self, key: ResourceKey) -> bool:
        """Delete a record. Returns True when something was deleted; never raises."""
        try:
            self.store.delete(key)
        except NotFoundError:
            logger.debug("rs - %s not found, skipping delete", key)
            return False
        except ResourceStoreError:
            logger.error("rs - failed to delete %s", key, exc_info=True)
            return False
        logger.info("rs - deleted %s", key)
        return True

    # --- Configuration record ---

    def ensure_config_record(
        self,
        name: str,
        namespace: str,
        default_supplier: Callable[[], Dict[str, str]],
    ) -> bool:
        """
        Seed the configuration record with defaults if it is absent.
        An existing record is authoritative and is never touched.
        Returns True when the record was created.
        """
        key = ResourceKey.of(ResourceKind.CONFIG_MAP, name, namespace)
        try:
            self.store.get(key)
            return False
        except NotFoundError:
            pass
        except ResourceStoreError as e:
            raise LifecycleError(f"failed to get {key}: {e}") from e

        record = ManagedResource(
            kind=ResourceKind.CONFIG_MAP,
            name=name,
            namespace=namespace,
            data=default_supplier(),
        )
        try:
            self.store.create(record)
        except ResourceStoreError as e:
            raise LifecycleError(f"failed to create {key}: {e}") from e
        logger.info("rs - created configuration record %s with default values", key)
        return True

    def read_config_data(self, name: str, namespace: str) -> Dict[str, str]:
        """Raw payload of a configuration record."""
        key = ResourceKey.of(ResourceKind.CONFIG_MAP, name, namespace)
        try:
            return self.store.get(key).data
        except ResourceStoreError as e:
            raise LifecycleError(f"failed to get {key}: {e}") from e

    def get_config_record(self, name: str, namespace: str) -> ConfigRecord:
        """Read and decode a configuration record. Decode errors propagate as-is."""
        return decode_config_record(self.read_config_data(name, namespace))

    def put_config_record(self, name: str, namespace: str, data: Dict[str, str]) -> ManagedResource:
        """Replace the payload of a configuration record, creating it if absent."""
        return self.upsert(ManagedResource(
            kind=ResourceKind.CONFIG_MAP,
            name=name,
            namespace=namespace,
            data=dict(data),
        ))

    # --- Addon bundle ---

    def create_or_update_addon(self, bundle: AddonBundle) -> str:
        """
        Upsert the AddOnTemplate, Placement and ClusterManagementAddOn for a
        component. Returns the spec hash stored on the template.
        """
        manifest = bundle.rule_document.to_manifest()
        spec_hash = calculate_spec_hash(serialize_manifest(manifest))

        self.upsert(ManagedResource(
            kind=ResourceKind.ADDON_TEMPLATE,
            name=bundle.template_name,
            labels=dict(bundle.labels),
            annotations={SPEC_HASH_ANNOTATION: spec_hash},
            spec={
                "addonName": bundle.addon_name,
                "agentSpec": {"workload": {"manifests": [manifest]}},
            },
        ))
        logger.info("rs - AddOnTemplate %s spec hash %s", bundle.template_name, spec_hash)

        self.upsert(ManagedResource(
            kind=ResourceKind.PLACEMENT,
            name=bundle.placement_name,
            namespace=bundle.placement_namespace,
            labels=dict(bundle.labels),
            spec=dict(bundle.placement_spec),
        ))

        self.upsert(ManagedResource(
            kind=ResourceKind.CLUSTER_MANAGEMENT_ADDON,
            name=bundle.addon_name,
            labels=dict(bundle.labels),
            annotations={ADDON_LIFECYCLE_ANNOTATION: ADDON_LIFECYCLE_ADDON_MANAGER},
            spec={
                "addOnMeta": {
                    "displayName": f"Observability Right-Sizing ({bundle.addon_name})",
                    "description": "Deploys PrometheusRule resources for right-sizing metrics collection",
                },
                "supportedConfigs": [
                    {
                        "group": "addon.open-cluster-management.io",
                        "resource": "addontemplates",
                        "defaultConfig": {"name": bundle.template_name},
                    }
                ],
                "installStrategy": {
                    "type": "Placements",
                    "placements": [
                        {
                            "name": bundle.placement_name,
                            "namespace": bundle.placement_namespace,
                            "rolloutStrategy": {"type": "All"},
                        }
                    ],
                },
            },
        ))

        logger.info("rs - addon resources created/updated for %s", bundle.addon_name)
        return spec_hash

    # --- Cleanup ---

    def cleanup_addon(
        self,
        addon_name: str,
        template_name: str,
        placement_name: str,
        placement_namespace: str,
    ) -> None:
        self.delete_if_present(ResourceKey.of(ResourceKind.CLUSTER_MANAGEMENT_ADDON, addon_name))
        self.delete_if_present(ResourceKey.of(ResourceKind.ADDON_TEMPLATE, template_name))
        self.delete_if_present(
            ResourceKey.of(ResourceKind.PLACEMENT, placement_name, placement_namespace)
        )

    def cleanup_component_resources(
        self,
        config: ComponentConfig,
        namespace: str,
        config_namespace: str,
        binding_updated: bool,
    ) -> None:
        """
        Tear down a component's dependent records bound to `namespace`.
        With binding_updated the configuration record is kept (rebind cleanup).
        """
        logger.info(
            "rs - cleaning up %s resources (placement namespace=%s, config namespace=%s, binding updated=%s)",
            config.component_type.value, namespace, config_namespace, binding_updated,
        )
        self.cleanup_addon(
            config.addon_name, config.template_name, config.placement_name, namespace
        )

        if binding_updated:
            logger.debug("rs - binding updated, keeping configuration record %s", config.config_name)
        else:
            self.delete_if_present(
                ResourceKey.of(ResourceKind.CONFIG_MAP, config.config_name, config_namespace)
            )

        logger.info("rs - cleanup completed for %s", config.component_type.value)
