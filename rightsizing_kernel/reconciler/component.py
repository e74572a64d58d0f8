"""
Component reconciliation: one attempt, driven by desired options and the
component's last recorded state.

Transitions (keyed off state.enabled, desired enabled, binding change):
  * -> disabled       full cleanup at the current binding, record new binding
  disabled -> enabled  ensure config record, apply
  enabled -> enabled   same binding: ensure + apply (content-stable refresh)
                       new binding: soft cleanup of the old binding first

The caller serialises attempts per component; there is no locking here.
Failures abort the attempt and are raised; retrying is the caller's job.
"""

import logging
from typing import Tuple

from rightsizing_kernel.lifecycle.config_record import decode_config_record
from rightsizing_kernel.lifecycle.orchestrator import ResourceOrchestrator
from rightsizing_kernel.models.component import (
    ComponentConfig,
    ComponentState,
    ComponentType,
    RightSizingOptions,
)

logger = logging.getLogger(__name__)


class ReconcileError(Exception):
    """Raised when a reconciliation attempt fails. The cause is chained."""

    def __init__(self, component: str, step: str, cause: Exception):
        super().__init__(f"rs - {component}: failed to {step}: {cause}")
        self.component = component
        self.step = step


class UnknownComponentError(ValueError):
    """Raised for a component type the reconciler has no options for."""
    pass


def resolve_desired(
    options: RightSizingOptions, config: ComponentConfig
) -> Tuple[bool, str]:
    """Return (enabled, binding namespace) the options ask of this component."""
    if config.component_type == ComponentType.NAMESPACE:
        enabled, binding = options.namespace_enabled, options.namespace_binding
    elif config.component_type == ComponentType.VIRTUALIZATION:
        enabled, binding = options.virtualization_enabled, options.virtualization_binding
    else:
        raise UnknownComponentError(f"unknown component type: {config.component_type}")
    return enabled, binding or config.default_namespace


def reconcile_component(
    options: RightSizingOptions,
    config: ComponentConfig,
    state: ComponentState,
    orchestrator: ResourceOrchestrator,
) -> None:
    """Run one reconciliation attempt for a component, mutating `state`."""
    component = config.component_type.value
    enabled, binding = resolve_desired(options, config)
    logger.debug("rs - handling right-sizing for %s", component)

    if not enabled:
        logger.info(
            "rs - %s disabled, cleaning up (state namespace=%s, config namespace=%s)",
            component, state.namespace, options.config_namespace,
        )
        orchestrator.cleanup_component_resources(
            config, state.namespace, options.config_namespace, binding_updated=False
        )
        state.namespace = binding
        state.enabled = False
        return

    first_enable = not state.enabled
    rebind = state.enabled and state.namespace != binding
    previous_namespace = state.namespace

    # State is committed before any store call.
    state.enabled = True
    state.namespace = binding

    if rebind:
        logger.info(
            "rs - %s binding changed %s -> %s, cleaning up old binding",
            component, previous_namespace, binding,
        )
        orchestrator.cleanup_component_resources(
            config, previous_namespace, options.config_namespace, binding_updated=True
        )

    try:
        orchestrator.ensure_config_record(
            config.config_name, options.config_namespace, config.default_config
        )
    except Exception as e:
        raise ReconcileError(component, "ensure configuration record", e) from e

    try:
        data = orchestrator.read_config_data(config.config_name, options.config_namespace)
    except Exception as e:
        raise ReconcileError(component, "read configuration record", e) from e

    try:
        record = decode_config_record(data)
    except Exception as e:
        raise ReconcileError(component, "decode configuration record", e) from e

    try:
        config.applier.apply(record, binding)
    except Exception as e:
        raise ReconcileError(component, "apply configuration changes", e) from e

    if first_enable:
        logger.info("rs - %s first enable, applied initial configuration", component)
    elif rebind:
        logger.info("rs - %s namespace binding updated, re-applied configuration", component)
    logger.info("rs - %s reconcile completed", component)
