"""
Rule Generator: turns a configuration record into a PrometheusRule document.

Both right-sizing components share one generation routine. A RuleVariant
supplies the data that differs (record/group prefixes, grouping labels and
the metric template for each sampled resource dimension); filter building
and validation are common, so the variants cannot drift apart.

Document shape (four groups, in order):
  <group>-namespace-5m.rule   sampled records, carry the namespace selector
  <group>-namespace-1d.rules  1d rollups + recommendations, labelled
  <group>-cluster-5m.rule
  <group>-cluster-1d.rule

Record names are a contract with dashboards and downstream consumers:
  <prefix>:<scope>:<resource>_<dimension>:5m   sampled
  <prefix>:<scope>:<resource>_<dimension>      max over 1d of the sampled record
  <prefix>:<scope>:<resource>_recommendation   usage rollup * (<pct>/100)
"""

from dataclasses import dataclass
from typing import Dict, List, Tuple

from rightsizing_kernel.models.component import ComponentType
from rightsizing_kernel.models.config import MONITORING_NAMESPACE, ConfigRecord
from rightsizing_kernel.models.rules import Rule, RuleDocument, RuleGroup
from rightsizing_kernel.rules.filters import build_label_join, build_namespace_filter

SCOPES = ("namespace", "cluster")

SAMPLING_INTERVAL = "5m"
AGGREGATION_INTERVAL = "15m"

AGGREGATION_LABELS = {
    "profile": "Max OverAll",
    "aggregation": "1d",
}

_SAMPLING_GROUP_SUFFIX = {"namespace": "5m.rule", "cluster": "5m.rule"}
_AGGREGATION_GROUP_SUFFIX = {"namespace": "1d.rules", "cluster": "1d.rule"}


@dataclass(frozen=True)
class SampledMetric:
    """One sampled dimension of a resource. Template fields: {selector}, {by}."""

    dimension: str                          # "request", "request_hard", "usage"
    template: str


@dataclass(frozen=True)
class RuleVariant:
    name: str
    record_prefix: str
    group_prefix: str
    document_name: str
    grouping: Dict[str, str]                # scope -> `by (...)` label list
    resources: Tuple[Tuple[str, Tuple[SampledMetric, ...]], ...]

    def sampled_record(self, scope: str, resource: str, dimension: str) -> str:
        return f"{self.record_prefix}:{scope}:{resource}_{dimension}:5m"

    def rollup_record(self, scope: str, resource: str, dimension: str) -> str:
        return f"{self.record_prefix}:{scope}:{resource}_{dimension}"

    def recommendation_record(self, scope: str, resource: str) -> str:
        return f"{self.record_prefix}:{scope}:{resource}_recommendation"

    def sampling_group(self, scope: str) -> str:
        return f"{self.group_prefix}-{scope}-{_SAMPLING_GROUP_SUFFIX[scope]}"

    def aggregation_group(self, scope: str) -> str:
        return f"{self.group_prefix}-{scope}-{_AGGREGATION_GROUP_SUFFIX[scope]}"


NAMESPACE_VARIANT = RuleVariant(
    name=ComponentType.NAMESPACE.value,
    record_prefix="acm_rs",
    group_prefix="acm-right-sizing",
    document_name="acm-rs-namespace-prometheus-rules",
    grouping={"namespace": "namespace", "cluster": "cluster"},
    resources=(
        ("cpu", (
            SampledMetric(
                "request_hard",
                'max_over_time(sum(kube_resourcequota{{{selector}, type="hard", '
                'resource="requests.cpu"}}) by ({by})[5m:])',
            ),
            SampledMetric(
                "request",
                'max_over_time(sum(kube_pod_container_resource_requests{{{selector}, '
                'container!="", resource="cpu"}}) by ({by})[5m:])',
            ),
            SampledMetric(
                "usage",
                'max_over_time(sum(node_namespace_pod_container:container_cpu_usage_seconds_total:sum_irate'
                '{{{selector}, container!=""}}) by ({by})[5m:])',
            ),
        )),
        ("memory", (
            SampledMetric(
                "request_hard",
                'max_over_time(sum(kube_resourcequota{{{selector}, type="hard", '
                'resource="requests.memory"}}) by ({by})[5m:])',
            ),
            SampledMetric(
                "request",
                'max_over_time(sum(kube_pod_container_resource_requests{{{selector}, '
                'container!="", resource="memory"}}) by ({by})[5m:])',
            ),
            SampledMetric(
                "usage",
                'max_over_time(sum(container_memory_working_set_bytes{{{selector}, '
                'container!=""}}) by ({by})[5m:])',
            ),
        )),
    ),
)

# VM CPU is cores x sockets x threads; VM memory usage is available - usable bytes.
VIRTUALIZATION_VARIANT = RuleVariant(
    name=ComponentType.VIRTUALIZATION.value,
    record_prefix="acm_rs_vm",
    group_prefix="acm-vm-right-sizing",
    document_name="acm-rs-virt-prometheus-rules",
    grouping={"namespace": "name, namespace", "cluster": "cluster"},
    resources=(
        ("cpu", (
            SampledMetric(
                "request",
                'max_over_time(sum((kubevirt_vm_resource_requests{{{selector}, unit="cores", resource="cpu"}} '
                '* on(name,namespace,resource) '
                'kubevirt_vm_resource_requests{{{selector}, unit="sockets", resource="cpu"}} '
                '* on(name,namespace,resource) '
                'kubevirt_vm_resource_requests{{{selector}, unit="threads", resource="cpu"}})) '
                'by ({by})[5m:])',
            ),
            SampledMetric(
                "usage",
                'max_over_time(sum(rate(kubevirt_vmi_cpu_usage_seconds_total{{{selector}}}[5m:])) '
                'by ({by})[5m:])',
            ),
        )),
        ("memory", (
            SampledMetric(
                "request",
                'max_over_time(sum(kubevirt_vm_resource_requests{{{selector}, resource="memory"}}) '
                'by ({by})[5m:])',
            ),
            SampledMetric(
                "usage",
                'max_over_time(sum(kubevirt_vmi_memory_available_bytes{{{selector}}} '
                '- kubevirt_vmi_memory_usable_bytes{{{selector}}}) by ({by})[5m:])',
            ),
        )),
    ),
)

VARIANTS: Dict[ComponentType, RuleVariant] = {
    ComponentType.NAMESPACE: NAMESPACE_VARIANT,
    ComponentType.VIRTUALIZATION: VIRTUALIZATION_VARIANT,
}


def generate_rules(config: ConfigRecord, variant: RuleVariant) -> RuleDocument:
    """
    Validate the filters in `config` and build the variant's rule document.

    Raises RuleValidationError before anything is built when a filter carries
    both inclusion and exclusion criteria.
    """
    rule_config = config.rule_config
    selector = build_namespace_filter(rule_config.namespace_filter)
    label_join = build_label_join(rule_config.label_filters)
    percentage = rule_config.recommendation_percentage

    groups: List[RuleGroup] = []
    for scope in SCOPES:
        groups.append(RuleGroup(
            name=variant.sampling_group(scope),
            interval=SAMPLING_INTERVAL,
            rules=_sampling_rules(variant, scope, selector, label_join),
        ))
        groups.append(RuleGroup(
            name=variant.aggregation_group(scope),
            interval=AGGREGATION_INTERVAL,
            rules=_aggregation_rules(variant, scope, percentage),
        ))

    return RuleDocument(
        name=variant.document_name,
        namespace=MONITORING_NAMESPACE,
        groups=groups,
    )


def _sampling_rules(
    variant: RuleVariant, scope: str, selector: str, label_join: str
) -> List[Rule]:
    rules = []
    for resource, metrics in variant.resources:
        for metric in metrics:
            expr = metric.template.format(selector=selector, by=variant.grouping[scope])
            if label_join:
                expr = f"{expr} {label_join}"
            rules.append(Rule(
                record=variant.sampled_record(scope, resource, metric.dimension),
                expr=expr,
            ))
    return rules


def _aggregation_rules(variant: RuleVariant, scope: str, percentage: int) -> List[Rule]:
    rules = []
    for resource, metrics in variant.resources:
        for metric in metrics:
            sampled = variant.sampled_record(scope, resource, metric.dimension)
            rules.append(Rule(
                record=variant.rollup_record(scope, resource, metric.dimension),
                expr=f"max_over_time({sampled}[1d])",
                labels=dict(AGGREGATION_LABELS),
            ))
        # Percentage stays in the expression text; Prometheus does the division.
        usage_rollup = variant.rollup_record(scope, resource, "usage")
        rules.append(Rule(
            record=variant.recommendation_record(scope, resource),
            expr=f"{usage_rollup} * ({percentage}/100)",
            labels=dict(AGGREGATION_LABELS),
        ))
    return rules
