"""
Query filters shared by every rule variant.

Criteria entries are partial regex fragments supplied by the operator; they are
joined with `|` verbatim (no escaping, no de-duplication).
"""

from typing import List

from rightsizing_kernel.models.config import (
    RECOGNIZED_LABEL_NAME,
    LabelFilter,
    NamespaceFilterCriteria,
)


class RuleValidationError(ValueError):
    """Raised when filter criteria are contradictory."""
    pass


def build_namespace_filter(criteria: NamespaceFilterCriteria) -> str:
    """Build the namespace selector clause used inside every sampled metric."""
    if criteria.inclusion_criteria and criteria.exclusion_criteria:
        raise RuleValidationError(
            "only one of inclusion or exclusion criteria allowed for namespaceFilterCriteria"
        )
    if criteria.inclusion_criteria:
        return f'namespace=~"{"|".join(criteria.inclusion_criteria)}"'
    if criteria.exclusion_criteria:
        return f'namespace!~"{"|".join(criteria.exclusion_criteria)}"'
    return 'namespace!=""'


def build_label_join(label_filters: List[LabelFilter]) -> str:
    """
    Build the namespace-label join appended to sampled metrics.

    Only the recognised label takes part; namespaces without the label still
    match through the empty-value alternative. Returns "" when no join applies.
    """
    for label_filter in label_filters:
        if label_filter.label_name != RECOGNIZED_LABEL_NAME:
            continue
        if label_filter.inclusion_criteria and label_filter.exclusion_criteria:
            raise RuleValidationError(
                f"only one of inclusion or exclusion allowed for {RECOGNIZED_LABEL_NAME}"
            )
        if label_filter.inclusion_criteria:
            op, values = "=~", label_filter.inclusion_criteria
        elif label_filter.exclusion_criteria:
            op, values = "!~", label_filter.exclusion_criteria
        else:
            continue

        selector = f'kube_namespace_labels{{{RECOGNIZED_LABEL_NAME}{op}"{"|".join(values)}"}}'
        fallback = f'kube_namespace_labels{{{RECOGNIZED_LABEL_NAME}=""}}'
        return f"* on (namespace) group_left() ({selector} or {fallback})"
    return ""
