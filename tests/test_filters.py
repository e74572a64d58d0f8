"""Tests for namespace and label filter building."""

import pytest

from rightsizing_kernel.models.config import LabelFilter, NamespaceFilterCriteria
from rightsizing_kernel.rules.filters import (
    RuleValidationError,
    build_label_join,
    build_namespace_filter,
)


class TestNamespaceFilter:
    def test_inclusion(self):
        criteria = NamespaceFilterCriteria(inclusion_criteria=["prod", "staging.*"])
        assert build_namespace_filter(criteria) == 'namespace=~"prod|staging.*"'

    def test_exclusion(self):
        criteria = NamespaceFilterCriteria(exclusion_criteria=["openshift.*"])
        assert build_namespace_filter(criteria) == 'namespace!~"openshift.*"'

    def test_no_criteria_matches_any_namespace(self):
        assert build_namespace_filter(NamespaceFilterCriteria()) == 'namespace!=""'

    def test_both_criteria_rejected(self):
        criteria = NamespaceFilterCriteria(inclusion_criteria=["a"], exclusion_criteria=["b"])
        with pytest.raises(RuleValidationError):
            build_namespace_filter(criteria)

    def test_values_are_joined_verbatim(self):
        criteria = NamespaceFilterCriteria(inclusion_criteria=["a", "a", "b.c"])
        assert build_namespace_filter(criteria) == 'namespace=~"a|a|b.c"'


class TestLabelJoin:
    def test_inclusion(self):
        join = build_label_join([
            LabelFilter(label_name="label_env", inclusion_criteria=["prod", "staging"]),
        ])
        assert join == (
            '* on (namespace) group_left() '
            '(kube_namespace_labels{label_env=~"prod|staging"} '
            'or kube_namespace_labels{label_env=""})'
        )

    def test_exclusion(self):
        join = build_label_join([
            LabelFilter(label_name="label_env", exclusion_criteria=["dev"]),
        ])
        assert 'kube_namespace_labels{label_env!~"dev"}' in join
        assert 'kube_namespace_labels{label_env=""}' in join

    def test_unrecognised_labels_ignored(self):
        join = build_label_join([
            LabelFilter(label_name="label_team", inclusion_criteria=["a"]),
        ])
        assert join == ""

    def test_empty_filter_list(self):
        assert build_label_join([]) == ""

    def test_recognised_label_without_criteria(self):
        assert build_label_join([LabelFilter(label_name="label_env")]) == ""

    def test_both_criteria_rejected(self):
        with pytest.raises(RuleValidationError):
            build_label_join([
                LabelFilter(
                    label_name="label_env",
                    inclusion_criteria=["prod"],
                    exclusion_criteria=["dev"],
                ),
            ])
