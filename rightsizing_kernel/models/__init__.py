"""Right-sizing kernel data models."""

from rightsizing_kernel.models.component import (
    ComponentConfig,
    ComponentState,
    ComponentType,
    ConfigApplier,
    RightSizingOptions,
)
from rightsizing_kernel.models.config import (
    DEFAULT_BINDING_NAMESPACE,
    DEFAULT_CONFIG_NAMESPACE,
    DEFAULT_RECOMMENDATION_PERCENTAGE,
    MONITORING_NAMESPACE,
    RECOGNIZED_LABEL_NAME,
    ConfigRecord,
    LabelFilter,
    NamespaceFilterCriteria,
    RuleConfig,
)
from rightsizing_kernel.models.reconciler import ReconcilerConfig
from rightsizing_kernel.models.resources import ManagedResource, ResourceKey, ResourceKind
from rightsizing_kernel.models.rules import Rule, RuleDocument, RuleGroup

__all__ = [
    "ComponentConfig",
    "ComponentState",
    "ComponentType",
    "ConfigApplier",
    "ConfigRecord",
    "DEFAULT_BINDING_NAMESPACE",
    "DEFAULT_CONFIG_NAMESPACE",
    "DEFAULT_RECOMMENDATION_PERCENTAGE",
    "LabelFilter",
    "MONITORING_NAMESPACE",
    "ManagedResource",
    "NamespaceFilterCriteria",
    "RECOGNIZED_LABEL_NAME",
    "ReconcilerConfig",
    "ResourceKey",
    "ResourceKind",
    "RightSizingOptions",
    "Rule",
    "RuleConfig",
    "RuleDocument",
    "RuleGroup",
]
