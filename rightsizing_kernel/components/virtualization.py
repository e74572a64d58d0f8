"""Virtualization (KubeVirt VM) right-sizing component wiring."""

from typing import Dict

from rightsizing_kernel.components.common import AddonApplier
from rightsizing_kernel.lifecycle.config_record import default_config_data
from rightsizing_kernel.lifecycle.orchestrator import ResourceOrchestrator
from rightsizing_kernel.models.component import ComponentConfig, ComponentType
from rightsizing_kernel.models.config import DEFAULT_BINDING_NAMESPACE
from rightsizing_kernel.rules.generator import VIRTUALIZATION_VARIANT

CONFIG_NAME = "rs-virt-config"
PLACEMENT_NAME = "rs-virt-placement"
TEMPLATE_NAME = "rs-virt-template"
ADDON_NAME = "observability-rightsizing-virtualization"


def default_config() -> Dict[str, str]:
    return default_config_data(PLACEMENT_NAME)


def build_component_config(orchestrator: ResourceOrchestrator) -> ComponentConfig:
    return ComponentConfig(
        component_type=ComponentType.VIRTUALIZATION,
        config_name=CONFIG_NAME,
        placement_name=PLACEMENT_NAME,
        template_name=TEMPLATE_NAME,
        addon_name=ADDON_NAME,
        default_namespace=DEFAULT_BINDING_NAMESPACE,
        default_config=default_config,
        applier=AddonApplier(
            orchestrator, VIRTUALIZATION_VARIANT, ADDON_NAME, TEMPLATE_NAME, PLACEMENT_NAME
        ),
    )
