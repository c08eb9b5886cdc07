"""Immutable filter configuration handed to the filter pipeline."""

from abc import ABC, abstractmethod

from pydantic import Field, field_validator

from scopeflow.constants import EntityKind
from scopeflow.models.base import FrozenScopeFlowModel


class DimensionCriteria(FrozenScopeFlowModel):
    """
    Inclusion and exclusion match values for one filter dimension.

    Both lists keep the operator supplied order. The same literal may appear
    in both; exclusion wins when it does.
    """

    included: tuple[str, ...] = ()
    excluded: tuple[str, ...] = ()

    @field_validator("included", "excluded", mode="before")
    @classmethod
    def validate_values(cls, v: object) -> object:
        """Accept None and plain lists."""
        if v is None:
            return ()
        if isinstance(v, str):
            return (v,)
        return tuple(v)

    @property
    def is_active(self) -> bool:
        """Whether this dimension constrains anything at all."""
        return bool(self.included or self.excluded)

    @property
    def has_inclusion_constraint(self) -> bool:
        return bool(self.included)


class FilterConfiguration(FrozenScopeFlowModel, ABC):
    """Common base for the per entity kind filter configurations."""

    @property
    @abstractmethod
    def entity_kind(self) -> EntityKind:
        """The entity kind this configuration filters."""


class AlertFilterConfiguration(FilterConfiguration):
    """
    Filters applied to triggered alarms.

    Attributes:
        entity_types: Exact match on the affected entity type (e.g. Datastore).
        entity_names: Substring match on the affected entity name.
        entity_resource_pools: Exact match on any resource pool of the affected entity.
        names: Substring match on the alarm name.
        descriptions: Substring match on the alarm description.
        statuses: Exact match on the alarm status keyword (red, yellow, gray).
        evaluate_acknowledged: Whether previously acknowledged alarms stay in scope.
    """

    entity_types: DimensionCriteria = Field(default_factory=DimensionCriteria)
    entity_names: DimensionCriteria = Field(default_factory=DimensionCriteria)
    entity_resource_pools: DimensionCriteria = Field(default_factory=DimensionCriteria)
    names: DimensionCriteria = Field(default_factory=DimensionCriteria)
    descriptions: DimensionCriteria = Field(default_factory=DimensionCriteria)
    statuses: DimensionCriteria = Field(default_factory=DimensionCriteria)
    evaluate_acknowledged: bool = False

    @property
    def entity_kind(self) -> EntityKind:
        return EntityKind.ALERT


class ComputeNodeFilterConfiguration(FilterConfiguration):
    """
    Filters applied to compute nodes.

    Attributes:
        names: Exact match on the node name.
        resource_pools: Exact match on the node resource pool. Inclusion and
            exclusion are mutually exclusive and act as an absolute scope.
        folders: Exact match on the node folder, scoped the same way as resource pools.
        evaluate_powered_off: Whether powered off (or suspended) nodes stay in scope.
    """

    names: DimensionCriteria = Field(default_factory=DimensionCriteria)
    resource_pools: DimensionCriteria = Field(default_factory=DimensionCriteria)
    folders: DimensionCriteria = Field(default_factory=DimensionCriteria)
    evaluate_powered_off: bool = False

    @property
    def entity_kind(self) -> EntityKind:
        return EntityKind.COMPUTE_NODE
