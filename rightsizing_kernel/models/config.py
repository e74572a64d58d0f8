"""Right-sizing configuration record: filter criteria, rule settings, placement."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_RECOMMENDATION_PERCENTAGE = 110
MONITORING_NAMESPACE = "openshift-monitoring"
DEFAULT_BINDING_NAMESPACE = "open-cluster-management-global-set"
DEFAULT_CONFIG_NAMESPACE = "open-cluster-management-observability"

# Only label filters with this name take part in rule generation.
RECOGNIZED_LABEL_NAME = "label_env"


class LabelFilter(BaseModel):
    """Namespace label criteria. At most one criteria list may be non-empty."""

    model_config = ConfigDict(populate_by_name=True)

    label_name: str = Field(default="", alias="labelName")
    inclusion_criteria: List[str] = Field(default=[], alias="inclusionCriteria")
    exclusion_criteria: List[str] = Field(default=[], alias="exclusionCriteria")

    @field_validator("inclusion_criteria", "exclusion_criteria", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return [] if value is None else value


class NamespaceFilterCriteria(BaseModel):
    """Namespace name criteria (regex fragments). At most one list may be non-empty."""

    model_config = ConfigDict(populate_by_name=True)

    inclusion_criteria: List[str] = Field(default=[], alias="inclusionCriteria")
    exclusion_criteria: List[str] = Field(default=[], alias="exclusionCriteria")

    @field_validator("inclusion_criteria", "exclusion_criteria", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return [] if value is None else value


class RuleConfig(BaseModel):
    """Settings that drive rule generation for one component."""

    model_config = ConfigDict(populate_by_name=True)

    namespace_filter: NamespaceFilterCriteria = Field(
        default_factory=NamespaceFilterCriteria, alias="namespaceFilterCriteria"
    )
    label_filters: List[LabelFilter] = Field(default=[], alias="labelFilterCriteria")
    recommendation_percentage: int = Field(
        default=DEFAULT_RECOMMENDATION_PERCENTAGE, alias="recommendationPercentage"
    )

    @field_validator("namespace_filter", mode="before")
    @classmethod
    def _default_namespace_filter(cls, value):
        return {} if value is None else value

    @field_validator("label_filters", mode="before")
    @classmethod
    def _default_label_filters(cls, value):
        return [] if value is None else value

    @field_validator("recommendation_percentage", mode="before")
    @classmethod
    def _default_percentage(cls, value):
        return DEFAULT_RECOMMENDATION_PERCENTAGE if value is None else value


class ConfigRecord(BaseModel):
    """The decoded payload of a component's configuration record."""

    rule_config: RuleConfig = Field(default_factory=RuleConfig)
    placement: Dict[str, Any] = {}         # Opaque Placement object, owned by the placement subsystem

    @property
    def placement_spec(self) -> Dict[str, Any]:
        """The Placement spec to apply; bare specs are accepted as-is."""
        if "spec" in self.placement:
            return self.placement.get("spec") or {}
        return dict(self.placement)


def default_rule_config() -> RuleConfig:
    """Default rule settings: skip openshift namespaces, 110% headroom."""
    return RuleConfig(
        namespace_filter=NamespaceFilterCriteria(exclusion_criteria=["openshift.*"]),
        recommendation_percentage=DEFAULT_RECOMMENDATION_PERCENTAGE,
    )


def default_placement(name: Optional[str] = None) -> Dict[str, Any]:
    """Default Placement: every cluster, tolerating unreachable/unavailable taints."""
    placement: Dict[str, Any] = {
        "apiVersion": "cluster.open-cluster-management.io/v1beta1",
        "kind": "Placement",
        "spec": {
            "predicates": [
                {
                    "requiredClusterSelector": {
                        "labelSelector": {"matchExpressions": []},
                    }
                }
            ],
            "tolerations": [
                {"key": "cluster.open-cluster-management.io/unreachable", "operator": "Exists"},
                {"key": "cluster.open-cluster-management.io/unavailable", "operator": "Exists"},
            ],
        },
    }
    if name:
        placement["metadata"] = {"name": name}
    return placement
