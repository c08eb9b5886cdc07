from scopeflow.models.base import FrozenScopeFlowModel, ScopeFlowBaseModel
from scopeflow.models.entities import Alert, ComputeNode, FilterableEntity
from scopeflow.models.criteria import (
    AlertFilterConfiguration,
    ComputeNodeFilterConfiguration,
    DimensionCriteria,
    FilterConfiguration,
)
from scopeflow.models.tally import Tally

__all__ = [
    "Alert",
    "AlertFilterConfiguration",
    "ComputeNode",
    "ComputeNodeFilterConfiguration",
    "DimensionCriteria",
    "FilterConfiguration",
    "FilterableEntity",
    "FrozenScopeFlowModel",
    "ScopeFlowBaseModel",
    "Tally",
]
