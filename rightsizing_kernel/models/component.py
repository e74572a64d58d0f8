"""Component wiring, runtime state and desired-state options."""

from enum import Enum
from typing import Callable, Dict, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict

from rightsizing_kernel.models.config import (
    DEFAULT_BINDING_NAMESPACE,
    DEFAULT_CONFIG_NAMESPACE,
    ConfigRecord,
)


class ComponentType(str, Enum):
    NAMESPACE = "namespace"
    VIRTUALIZATION = "virtualization"


@runtime_checkable
class ConfigApplier(Protocol):
    """Turns a decoded configuration record into dependent resources."""

    def apply(self, record: ConfigRecord, namespace: str) -> None:
        ...


class ComponentConfig(BaseModel):
    """
    Static wiring for one right-sizing component.

    Names identify the records the component owns; `default_config` seeds a
    missing configuration record and `applier` turns a decoded record into
    dependent resources. Immutable for the process lifetime.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    component_type: ComponentType
    config_name: str                        # Configuration record (ConfigMap) name
    placement_name: str
    template_name: str                      # AddOnTemplate carrying the rule document
    addon_name: str                         # ClusterManagementAddOn name
    default_namespace: str = DEFAULT_BINDING_NAMESPACE
    default_config: Callable[[], Dict[str, str]]
    applier: ConfigApplier


class ComponentState(BaseModel):
    """Runtime state of a component. Owned and mutated by the reconciler only."""

    namespace: str = DEFAULT_BINDING_NAMESPACE   # Namespace dependent resources are bound to
    enabled: bool = False


class RightSizingOptions(BaseModel):
    """Desired state for both components."""

    namespace_enabled: bool = False
    namespace_binding: str = ""
    virtualization_enabled: bool = False
    virtualization_binding: str = ""
    config_namespace: str = DEFAULT_CONFIG_NAMESPACE
