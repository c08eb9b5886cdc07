from scopeflow.inventory import InventorySnapshot, load_inventory
from scopeflow.pipeline import FilterPipeline, FilterResult, apply_filters
from scopeflow.settings import ScopeFlowSettings

__all__ = [
    "FilterPipeline",
    "FilterResult",
    "InventorySnapshot",
    "ScopeFlowSettings",
    "apply_filters",
    "load_inventory",
]
