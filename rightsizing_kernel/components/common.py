"""Shared applier: configuration record -> rule document -> addon bundle."""

import logging
from typing import Optional

from rightsizing_kernel.lifecycle.orchestrator import (
    COMPONENT_LABEL,
    AddonBundle,
    ResourceOrchestrator,
)
from rightsizing_kernel.models.config import ConfigRecord
from rightsizing_kernel.rules.generator import RuleVariant, generate_rules

logger = logging.getLogger(__name__)


class AddonApplier:
    """
    ConfigApplier that generates the variant's rules and distributes them as
    an addon placed by the record's Placement spec in the binding namespace.
    """

    def __init__(
        self,
        orchestrator: ResourceOrchestrator,
        variant: RuleVariant,
        addon_name: str,
        template_name: str,
        placement_name: str,
    ):
        self.orchestrator = orchestrator
        self.variant = variant
        self.addon_name = addon_name
        self.template_name = template_name
        self.placement_name = placement_name
        self.last_spec_hash: Optional[str] = None

    def apply(self, record: ConfigRecord, namespace: str) -> None:
        document = generate_rules(record, self.variant)
        self.last_spec_hash = self.orchestrator.create_or_update_addon(AddonBundle(
            addon_name=self.addon_name,
            template_name=self.template_name,
            placement_name=self.placement_name,
            placement_namespace=namespace,
            rule_document=document,
            placement_spec=record.placement_spec,
            labels={COMPONENT_LABEL: self.variant.name},
        ))
        logger.info("rs - %s configuration changes applied", self.variant.name)
