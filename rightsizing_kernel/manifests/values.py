"""Helm chart values for the right-sizing templates."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from rightsizing_kernel.models.component import RightSizingOptions


class RightSizingValues(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    namespace_enabled: bool = Field(alias="namespaceEnabled")
    namespace_binding: str = Field(default="", alias="namespaceBinding")
    virtualization_enabled: bool = Field(alias="virtualizationEnabled")
    virtualization_binding: str = Field(default="", alias="virtualizationBinding")

    def to_values(self) -> dict:
        """Render with chart keys; empty bindings are omitted."""
        values = self.model_dump(by_alias=True)
        for key in ("namespaceBinding", "virtualizationBinding"):
            if not values[key]:
                del values[key]
        return values


def enable_right_sizing(options: RightSizingOptions) -> Optional[RightSizingValues]:
    """Chart values for the enabled components, or None when both are disabled."""
    if not options.namespace_enabled and not options.virtualization_enabled:
        return None
    return RightSizingValues(
        namespace_enabled=options.namespace_enabled,
        namespace_binding=options.namespace_binding,
        virtualization_enabled=options.virtualization_enabled,
        virtualization_binding=options.virtualization_binding,
    )
