"""Tests for the configuration record codec."""

import pytest
import yaml

from rightsizing_kernel.lifecycle.config_record import (
    PLACEMENT_CONFIG_KEY,
    RULE_CONFIG_KEY,
    ConfigDecodeError,
    decode_config_record,
    default_config_data,
    encode_config_record,
)
from rightsizing_kernel.models.config import ConfigRecord, NamespaceFilterCriteria, RuleConfig
from rightsizing_kernel.rules.generator import NAMESPACE_VARIANT, generate_rules


class TestDefaultConfigData:
    def test_sections_present(self):
        data = default_config_data("rs-placement")
        assert set(data) == {RULE_CONFIG_KEY, PLACEMENT_CONFIG_KEY}

    def test_rule_section_uses_wire_keys(self):
        section = yaml.safe_load(default_config_data()[RULE_CONFIG_KEY])
        assert section["namespaceFilterCriteria"]["exclusionCriteria"] == ["openshift.*"]
        assert section["recommendationPercentage"] == 110

    def test_placement_section_named(self):
        section = yaml.safe_load(default_config_data("rs-placement")[PLACEMENT_CONFIG_KEY])
        assert section["kind"] == "Placement"
        assert section["metadata"]["name"] == "rs-placement"


class TestDecodeConfigRecord:
    def test_decode_defaults(self):
        record = decode_config_record(default_config_data("rs-placement"))
        assert record.rule_config.recommendation_percentage == 110
        assert record.rule_config.namespace_filter.exclusion_criteria == ["openshift.*"]
        assert "tolerations" in record.placement_spec

    def test_operator_edit(self):
        data = {
            RULE_CONFIG_KEY: (
                "namespaceFilterCriteria:\n"
                "  inclusionCriteria: [\"team-.*\"]\n"
                "labelFilterCriteria:\n"
                "  - labelName: label_env\n"
                "    inclusionCriteria: [prod]\n"
                "recommendationPercentage: 130\n"
            ),
        }
        record = decode_config_record(data)
        assert record.rule_config.namespace_filter.inclusion_criteria == ["team-.*"]
        assert record.rule_config.label_filters[0].inclusion_criteria == ["prod"]
        assert record.rule_config.recommendation_percentage == 130

    def test_missing_sections_fall_back(self):
        record = decode_config_record({})
        assert record.rule_config.namespace_filter.exclusion_criteria == ["openshift.*"]
        assert record.placement["kind"] == "Placement"

    def test_blank_section_falls_back(self):
        record = decode_config_record({RULE_CONFIG_KEY: "   \n"})
        assert record.rule_config.recommendation_percentage == 110

    def test_malformed_yaml(self):
        with pytest.raises(ConfigDecodeError):
            decode_config_record({RULE_CONFIG_KEY: "namespaceFilterCriteria: [unclosed"})

    def test_wrong_shape(self):
        with pytest.raises(ConfigDecodeError):
            decode_config_record({RULE_CONFIG_KEY: "recommendationPercentage: lots"})

    def test_placement_must_be_mapping(self):
        with pytest.raises(ConfigDecodeError):
            decode_config_record({PLACEMENT_CONFIG_KEY: "- a\n- b\n"})

    def test_encode_then_decode_keeps_edits(self):
        record = ConfigRecord(
            rule_config=RuleConfig(
                namespace_filter=NamespaceFilterCriteria(inclusion_criteria=["a"]),
                recommendation_percentage=90,
            ),
            placement={"spec": {"numberOfClusters": 1}},
        )
        decoded = decode_config_record(encode_config_record(record))
        assert decoded == record

    def test_label_filter_without_name_is_inert(self):
        record = decode_config_record({
            RULE_CONFIG_KEY: "labelFilterCriteria:\n  - inclusionCriteria: [a]\n",
        })
        assert record.rule_config.label_filters[0].label_name == ""
        document = generate_rules(record, NAMESPACE_VARIANT)
        for rule in document.groups[0].rules:
            assert "kube_namespace_labels" not in rule.expr
