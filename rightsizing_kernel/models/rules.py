"""Rule document: the generated PrometheusRule shipped to managed clusters."""

from typing import Dict, List, Optional

from pydantic import BaseModel


class Rule(BaseModel):
    """A single recording rule."""

    record: str
    expr: str
    labels: Optional[Dict[str, str]] = None


class RuleGroup(BaseModel):
    name: str
    interval: Optional[str] = None          # e.g. "5m"
    rules: List[Rule] = []


class RuleDocument(BaseModel):
    """A named, versioned, grouped list of recording rules."""

    name: str
    namespace: str
    kind: str = "PrometheusRule"
    api_version: str = "monitoring.coreos.com/v1"
    groups: List[RuleGroup] = []

    def get_group(self, name: str) -> Optional[RuleGroup]:
        return next((g for g in self.groups if g.name == name), None)

    def record_names(self) -> List[str]:
        return [r.record for g in self.groups for r in g.rules]

    def to_manifest(self) -> dict:
        """Render as the Kubernetes object the addon agent applies."""
        groups = []
        for group in self.groups:
            rules = []
            for rule in group.rules:
                entry = {"record": rule.record, "expr": rule.expr}
                if rule.labels:
                    entry["labels"] = dict(rule.labels)
                rules.append(entry)
            rendered = {"name": group.name, "rules": rules}
            if group.interval:
                rendered["interval"] = group.interval
            groups.append(rendered)

        return {
            "apiVersion": self.api_version,
            "kind": self.kind,
            "metadata": {"name": self.name, "namespace": self.namespace},
            "spec": {"groups": groups},
        }
