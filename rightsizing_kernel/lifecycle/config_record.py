"""Configuration record codec: YAML sections stored in a ConfigMap's data."""

from typing import Any, Dict, Mapping

import yaml
from pydantic import ValidationError

from rightsizing_kernel.models.config import (
    ConfigRecord,
    RuleConfig,
    default_placement,
    default_rule_config,
)

RULE_CONFIG_KEY = "prometheusRuleConfig"
PLACEMENT_CONFIG_KEY = "placementConfiguration"


class ConfigDecodeError(ValueError):
    """Raised when a configuration record cannot be decoded."""
    pass


def format_yaml(data: Any) -> str:
    """Serialise a section the way operators edit it: block style, stable key order."""
    return yaml.safe_dump(data, default_flow_style=False, sort_keys=False)


def encode_rule_config(rule_config: RuleConfig) -> str:
    return format_yaml(rule_config.model_dump(by_alias=True))


def default_config_data(placement_name: str = "") -> Dict[str, str]:
    """Default payload used to seed a missing configuration record."""
    return {
        RULE_CONFIG_KEY: encode_rule_config(default_rule_config()),
        PLACEMENT_CONFIG_KEY: format_yaml(default_placement(placement_name or None)),
    }


def encode_config_record(record: ConfigRecord) -> Dict[str, str]:
    return {
        RULE_CONFIG_KEY: encode_rule_config(record.rule_config),
        PLACEMENT_CONFIG_KEY: format_yaml(record.placement),
    }


def decode_config_record(data: Mapping[str, str]) -> ConfigRecord:
    """
    Decode the two YAML sections of a configuration record.

    A missing section falls back to its default; malformed YAML or a section
    that does not match the expected shape raises ConfigDecodeError.
    """
    rule_section = _load_section(data, RULE_CONFIG_KEY)
    placement_section = _load_section(data, PLACEMENT_CONFIG_KEY)

    try:
        rule_config = (
            RuleConfig.model_validate(rule_section)
            if rule_section is not None
            else default_rule_config()
        )
    except ValidationError as e:
        raise ConfigDecodeError(f"invalid {RULE_CONFIG_KEY}: {e}") from e

    if placement_section is None:
        placement_section = default_placement()
    elif not isinstance(placement_section, dict):
        raise ConfigDecodeError(f"invalid {PLACEMENT_CONFIG_KEY}: expected a mapping")

    return ConfigRecord(rule_config=rule_config, placement=placement_section)


def _load_section(data: Mapping[str, str], key: str) -> Any:
    raw = data.get(key)
    if raw is None or not raw.strip():
        return None
    try:
        return yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigDecodeError(f"failed to parse {key}: {e}") from e
