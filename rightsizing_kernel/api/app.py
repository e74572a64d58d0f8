"""
Right-Sizing Kernel API: FastAPI endpoints.

Exposes the reconciler for operators and for the external trigger mechanism:
- Desired options inspection/update
- Reconciliation triggers (all components or one)
- Component state inspection
- Configuration record inspection/edit, re-applied to enabled components
- Rule document preview from the stored configuration
- Managed resource listing
- Full cleanup
"""

from typing import Dict, Optional

from fastapi import FastAPI, HTTPException

from rightsizing_kernel.lifecycle.config_record import ConfigDecodeError
from rightsizing_kernel.lifecycle.orchestrator import LifecycleError
from rightsizing_kernel.manifests.values import enable_right_sizing
from rightsizing_kernel.models.component import ComponentType, RightSizingOptions
from rightsizing_kernel.models.reconciler import ReconcilerConfig
from rightsizing_kernel.models.resources import ResourceKind
from rightsizing_kernel.reconciler.component import ReconcileError, UnknownComponentError
from rightsizing_kernel.reconciler.loop import RightSizingReconciler, is_right_sizing_enabled
from rightsizing_kernel.rules.filters import RuleValidationError
from rightsizing_kernel.store.base import NotFoundError, ResourceStore
from rightsizing_kernel.store.memory import InMemoryResourceStore


def _raise_for_reconcile_error(e: ReconcileError) -> None:
    if isinstance(e.__cause__, (RuleValidationError, ConfigDecodeError)):
        raise HTTPException(422, str(e)) from e
    raise HTTPException(500, str(e)) from e


# --- Application Factory ---

def create_app(
    store: Optional[ResourceStore] = None,
    options: Optional[RightSizingOptions] = None,
    reconciler_config: Optional[ReconcilerConfig] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="Right-Sizing Kernel API",
        description="Namespace and virtualization right-sizing reconciler",
        version="0.1.0",
    )

    rs_store = store or InMemoryResourceStore()
    reconciler = RightSizingReconciler(store=rs_store, config=reconciler_config)

    app.state.store = rs_store
    app.state.reconciler = reconciler
    app.state.options = options or RightSizingOptions()

    def _component(name: str) -> ComponentType:
        try:
            component_type = ComponentType(name)
            reconciler.get_component(component_type)
        except (ValueError, UnknownComponentError):
            raise HTTPException(404, f"Unknown component: {name}")
        return component_type

    # === OPTIONS ===

    @app.get("/rightsizing/options")
    def get_options():
        """Current desired state."""
        return app.state.options.model_dump()

    @app.put("/rightsizing/options")
    def update_options(new_options: RightSizingOptions):
        """Replace the desired state. Takes effect on the next reconcile."""
        app.state.options = new_options
        return new_options.model_dump()

    @app.get("/rightsizing/values")
    def get_values():
        """Helm values derived from the desired state."""
        values = enable_right_sizing(app.state.options)
        return values.to_values() if values else None

    # === RECONCILER ===

    @app.get("/rightsizing/status")
    def status():
        """Component states and sync status."""
        return {
            "enabled": is_right_sizing_enabled(app.state.options),
            "sync": reconciler.status,
            "last_error": reconciler.last_error,
            "components": {
                component_type.value: state.model_dump()
                for component_type, state in reconciler.get_states().items()
            },
        }

    @app.post("/rightsizing/reconcile")
    def reconcile_all():
        """Run one reconciliation attempt for every component."""
        try:
            reconciler.handle_right_sizing(app.state.options)
        except ReconcileError as e:
            _raise_for_reconcile_error(e)
        return status()

    @app.post("/rightsizing/reconcile/{component}")
    def reconcile_one(component: str):
        """Run one reconciliation attempt for a single component."""
        component_type = _component(component)
        try:
            reconciler.reconcile(component_type, app.state.options)
        except ReconcileError as e:
            _raise_for_reconcile_error(e)
        return reconciler.get_state(component_type).model_dump()

    @app.post("/rightsizing/cleanup")
    def cleanup():
        """Delete every right-sizing resource, configuration records included."""
        reconciler.cleanup_all(app.state.options.config_namespace)
        return {"status": "cleaned_up"}

    # === CONFIGURATION RECORDS ===

    @app.get("/rightsizing/config/{component}")
    def get_config(component: str):
        """Raw payload of a component's configuration record."""
        component_type = _component(component)
        config = reconciler.get_component(component_type)
        try:
            return reconciler.orchestrator.read_config_data(
                config.config_name, app.state.options.config_namespace
            )
        except LifecycleError as e:
            if isinstance(e.__cause__, NotFoundError):
                raise HTTPException(404, "Configuration record not found")
            raise HTTPException(500, str(e))

    @app.put("/rightsizing/config/{component}")
    def update_config(component: str, data: Dict[str, str]):
        """Store an edited configuration record and re-apply an enabled component."""
        component_type = _component(component)
        config = reconciler.get_component(component_type)
        try:
            reconciler.orchestrator.put_config_record(
                config.config_name, app.state.options.config_namespace, data
            )
        except LifecycleError as e:
            raise HTTPException(500, str(e))

        try:
            applied = reconciler.apply_config_change(
                component_type, app.state.options.config_namespace
            )
        except ReconcileError as e:
            _raise_for_reconcile_error(e)
        return {
            "applied": applied,
            "state": reconciler.get_state(component_type).model_dump(),
        }

    # === RULES ===

    @app.get("/rightsizing/rules/{component}")
    def preview_rules(component: str):
        """Rule document generated from the stored configuration record."""
        component_type = _component(component)
        try:
            document = reconciler.preview_rules(
                component_type, app.state.options.config_namespace
            )
        except LifecycleError as e:
            if isinstance(e.__cause__, NotFoundError):
                raise HTTPException(404, "Configuration record not found")
            raise HTTPException(500, str(e))
        except (RuleValidationError, ConfigDecodeError) as e:
            raise HTTPException(422, str(e))
        return document.to_manifest()

    # === RESOURCES ===

    @app.get("/resources")
    def list_resources(kind: Optional[ResourceKind] = None):
        """All managed records, optionally filtered by kind."""
        return [r.model_dump(mode="json") for r in rs_store.list(kind)]

    return app


# Default application instance
app = create_app()
