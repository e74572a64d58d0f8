"""
Right-Sizing Reconciler: owns both components and their runtime state.

Each component's ComponentState is created once, disabled and bound to its
default namespace, and lives as long as the reconciler. Every trigger (a
watch event, an API call or the periodic sync in run_async) runs one
reconciliation attempt per component; the next attempt's transition depends
on what the previous one recorded.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from croniter import croniter

from rightsizing_kernel.components import namespace, virtualization
from rightsizing_kernel.lifecycle.config_record import decode_config_record
from rightsizing_kernel.lifecycle.orchestrator import ResourceOrchestrator
from rightsizing_kernel.models.component import (
    ComponentConfig,
    ComponentState,
    ComponentType,
    RightSizingOptions,
)
from rightsizing_kernel.models.reconciler import ReconcilerConfig
from rightsizing_kernel.models.rules import RuleDocument
from rightsizing_kernel.reconciler.component import (
    ReconcileError,
    UnknownComponentError,
    reconcile_component,
)
from rightsizing_kernel.rules.generator import VARIANTS, generate_rules
from rightsizing_kernel.store.base import ResourceStore

logger = logging.getLogger(__name__)


def is_right_sizing_enabled(options: RightSizingOptions) -> bool:
    """True when at least one component is enabled."""
    return options.namespace_enabled or options.virtualization_enabled


class RightSizingReconciler:
    """
    Reconciles the namespace and virtualization components, in that order.

    States:
      DISABLED(namespace) <-> ENABLED(namespace)
    """

    def __init__(
        self,
        store: ResourceStore,
        config: Optional[ReconcilerConfig] = None,
        components: Optional[Dict[ComponentType, ComponentConfig]] = None,
    ):
        self.store = store
        self.orchestrator = ResourceOrchestrator(store)
        self.config = config or ReconcilerConfig()
        self.components = components or {
            ComponentType.NAMESPACE: namespace.build_component_config(self.orchestrator),
            ComponentType.VIRTUALIZATION: virtualization.build_component_config(self.orchestrator),
        }
        self._states: Dict[ComponentType, ComponentState] = {
            component_type: ComponentState(namespace=component.default_namespace, enabled=False)
            for component_type, component in self.components.items()
        }
        self._running = False
        self._last_error: Optional[str] = None

    @property
    def status(self) -> str:
        """Current periodic sync status."""
        return "running" if self._running else "stopped"

    @property
    def last_error(self) -> Optional[str]:
        """Error of the most recent failed periodic sync, cleared on success."""
        return self._last_error

    def get_component(self, component_type: ComponentType) -> ComponentConfig:
        component = self.components.get(component_type)
        if component is None:
            raise UnknownComponentError(f"unknown component type: {component_type}")
        return component

    def get_state(self, component_type: ComponentType) -> ComponentState:
        """The live state instance of a component."""
        self.get_component(component_type)
        return self._states[component_type]

    def get_states(self) -> Dict[ComponentType, ComponentState]:
        return dict(self._states)

    def reconcile(self, component_type: ComponentType, options: RightSizingOptions) -> None:
        """Run one reconciliation attempt for a single component."""
        component = self.get_component(component_type)
        reconcile_component(options, component, self._states[component_type], self.orchestrator)

    def handle_right_sizing(self, options: RightSizingOptions) -> None:
        """Reconcile every component. The first failure aborts the remaining ones."""
        logger.debug("rs - handling right-sizing")
        for component_type in self.components:
            self.reconcile(component_type, options)
        logger.info("rs - right-sizing handling completed")

    def cleanup_all(self, config_namespace: str) -> None:
        """Tear down every component, configuration records included."""
        logger.debug("rs - cleaning up all right-sizing resources")
        for component_type, component in self.components.items():
            self.orchestrator.cleanup_component_resources(
                component,
                self._states[component_type].namespace,
                config_namespace,
                binding_updated=False,
            )
        logger.info("rs - all right-sizing resources cleaned up")

    def apply_config_change(self, component_type: ComponentType, config_namespace: str) -> bool:
        """
        Re-apply a component after its configuration record was edited.

        Runs at the component's current binding without any state transition.
        A disabled component is left alone. Returns True when applied.
        """
        component = self.get_component(component_type)
        state = self._states[component_type]
        name = component_type.value
        if not state.enabled:
            logger.debug("rs - %s disabled, ignoring configuration change", name)
            return False

        try:
            data = self.orchestrator.read_config_data(component.config_name, config_namespace)
        except Exception as e:
            raise ReconcileError(name, "read configuration record", e) from e

        try:
            record = decode_config_record(data)
        except Exception as e:
            raise ReconcileError(name, "decode configuration record", e) from e

        try:
            component.applier.apply(record, state.namespace)
        except Exception as e:
            raise ReconcileError(name, "apply configuration changes", e) from e

        logger.info("rs - %s configuration change applied in %s", name, state.namespace)
        return True

    def preview_rules(self, component_type: ComponentType, config_namespace: str) -> RuleDocument:
        """Generate the rule document from the stored configuration without applying it."""
        component = self.get_component(component_type)
        record = self.orchestrator.get_config_record(component.config_name, config_namespace)
        return generate_rules(record, VARIANTS[component_type])

    def _seconds_until_next_sync(self, now: datetime) -> float:
        if self.config.sync_schedule:
            next_fire = croniter(self.config.sync_schedule, now).get_next(datetime)
            return max(0.0, (next_fire - now).total_seconds())
        return float(self.config.heartbeat_interval_seconds)

    async def run_async(
        self,
        options_provider: Callable[[], RightSizingOptions],
        stop_event: Optional[asyncio.Event] = None,
    ) -> None:
        """Re-sync periodically until `stop_event` is set. Failed attempts are retried next tick."""
        self._running = True
        if stop_event is None:
            stop_event = asyncio.Event()

        try:
            while not stop_event.is_set():
                try:
                    self.handle_right_sizing(options_provider())
                    self._last_error = None
                except ReconcileError as e:
                    self._last_error = str(e)
                    logger.error("rs - periodic sync failed: %s", e)
                except Exception as e:
                    self._last_error = f"rs - periodic sync failed: {e}"
                    logger.exception("rs - unexpected error during periodic sync")

                timeout = self._seconds_until_next_sync(datetime.now(timezone.utc))
                try:
                    await asyncio.wait_for(stop_event.wait(), timeout=timeout)
                except asyncio.TimeoutError:
                    continue
        finally:
            self._running = False
