"""
Policy combinators.

A policy combinator owns the DimensionFilters for one entity kind, merges
their verdicts into a single decision and applies the absolute policies of
that kind on top. The decision is returned as the set of reasons that apply;
an empty set means the entity stays in scope.

The precedence rule shared by every entity kind:

    excluded = ANY dimension explicitly excluded
            OR (ANY dimension has an inclusion constraint
                AND NO dimension explicitly included)
            OR ANY absolute policy exclusion

Dimensions with an active inclusion list form a single OR-combined admission
gate. Matching any of them is enough to pass the gate.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable

from scopeflow.constants import Dimension, EntityKind, ExclusionReason
from scopeflow.dimensions import DimensionFilter, DimensionVerdict
from scopeflow.exceptions import FilterError
from scopeflow.matchers import exact_match, substring_match
from scopeflow.models import (
    Alert,
    AlertFilterConfiguration,
    ComputeNode,
    ComputeNodeFilterConfiguration,
    FilterableEntity,
    FilterConfiguration,
)


def combine(verdicts: Iterable[DimensionVerdict]) -> set[ExclusionReason]:
    """
    Merge dimension verdicts following the precedence rule.

    Args:
        verdicts: One verdict per active dimension.

    Returns:
        set[ExclusionReason]: Reasons the entity is excluded (empty if admitted).
    """
    verdicts = list(verdicts)
    reasons = {ExclusionReason(v.dimension.value) for v in verdicts if v.explicitly_excluded}

    gated = any(v.has_inclusion_constraint for v in verdicts)
    if gated and not any(v.explicitly_included for v in verdicts):
        reasons.add(ExclusionReason.NOT_INCLUDED)

    return reasons


class PolicyCombinator(ABC):
    """
    Base class for per entity kind policies.

    Subclasses declare which DimensionFilters take part in the admission
    decision and which absolute policies apply afterwards.
    """

    entity_kind: EntityKind
    entity_class: type[FilterableEntity]

    def __init__(self, config: FilterConfiguration):
        self.config = config
        self.filters = [f for f in self.build_filters() if f.criteria.is_active]

    @abstractmethod
    def build_filters(self) -> list[DimensionFilter]:
        """Return the named-dimension filters for this entity kind."""

    def absolute_exclusions(self, entity: FilterableEntity) -> set[ExclusionReason]:
        """Reasons produced by policies independent of named-dimension matching."""
        return set()

    def verdict(self, entity: FilterableEntity) -> set[ExclusionReason]:
        """
        Decide whether an entity stays in scope.

        Args:
            entity: The entity to decide on.

        Returns:
            set[ExclusionReason]: All reasons that apply (empty if the entity stays).

        Raises:
            FilterError: If the entity is not of the kind this policy handles.
        """
        if not isinstance(entity, self.entity_class):
            raise FilterError(
                f"cannot evaluate {type(entity).__name__} with a {self.entity_kind} policy",
                filter_name=self.__class__.__name__,
            )

        reasons = combine(f.evaluate(entity) for f in self.filters)
        reasons |= self.absolute_exclusions(entity)
        return reasons


class AlertPolicy(PolicyCombinator):
    """Named dimensions for alarms plus the acknowledgement policy."""

    entity_kind = EntityKind.ALERT
    entity_class = Alert
    config: AlertFilterConfiguration

    def build_filters(self) -> list[DimensionFilter]:
        c = self.config
        return [
            DimensionFilter(Dimension.ENTITY_TYPE, c.entity_types, exact_match, lambda a: a.entity_type),
            DimensionFilter(Dimension.ENTITY_NAME, c.entity_names, substring_match, lambda a: a.entity_name),
            DimensionFilter(
                Dimension.ENTITY_RESOURCE_POOL,
                c.entity_resource_pools,
                exact_match,
                lambda a: a.entity_resource_pools,
            ),
            DimensionFilter(Dimension.ALARM_NAME, c.names, substring_match, lambda a: a.name),
            DimensionFilter(Dimension.ALARM_DESCRIPTION, c.descriptions, substring_match, lambda a: a.description),
            DimensionFilter(Dimension.ALARM_STATUS, c.statuses, exact_match, lambda a: a.status.value),
        ]

    def absolute_exclusions(self, entity: Alert) -> set[ExclusionReason]:
        if entity.acknowledged and not self.config.evaluate_acknowledged:
            return {ExclusionReason.ACKNOWLEDGED}
        return set()


class ComputeNodePolicy(PolicyCombinator):
    """
    Named dimensions for compute nodes plus power state and container scope.

    Resource pools and folders do not take part in the admission gate. An
    inclusion list scopes the run to the listed containers (nodes outside all
    of them, or in none, fall outside), an exclusion list only removes nodes
    inside the listed containers.
    """

    entity_kind = EntityKind.COMPUTE_NODE
    entity_class = ComputeNode
    config: ComputeNodeFilterConfiguration

    def __init__(self, config: ComputeNodeFilterConfiguration):
        super().__init__(config)
        # (filter, reason when inside an excluded container, reason when outside all included ones)
        self.container_scopes = [
            (
                DimensionFilter(
                    Dimension.ENTITY_RESOURCE_POOL, config.resource_pools, exact_match, lambda n: n.resource_pool
                ),
                ExclusionReason.ENTITY_RESOURCE_POOL,
                ExclusionReason.OUTSIDE_RESOURCE_POOLS,
            ),
            (
                DimensionFilter(Dimension.FOLDER, config.folders, exact_match, lambda n: n.folder),
                ExclusionReason.FOLDER,
                ExclusionReason.OUTSIDE_FOLDERS,
            ),
        ]

    def build_filters(self) -> list[DimensionFilter]:
        return [DimensionFilter(Dimension.ENTITY_NAME, self.config.names, exact_match, lambda n: n.name)]

    def absolute_exclusions(self, entity: ComputeNode) -> set[ExclusionReason]:
        reasons: set[ExclusionReason] = set()

        if not entity.powered_on and not self.config.evaluate_powered_off:
            reasons.add(ExclusionReason.POWERED_OFF)

        for container_filter, inside_excluded, outside_included in self.container_scopes:
            if container_filter.is_explicitly_excluded(entity):
                reasons.add(inside_excluded)
            elif container_filter.has_inclusion_constraint and not container_filter.is_explicitly_included(entity):
                reasons.add(outside_included)

        return reasons


POLICIES: dict[EntityKind, type[PolicyCombinator]] = {
    EntityKind.ALERT: AlertPolicy,
    EntityKind.COMPUTE_NODE: ComputeNodePolicy,
}


def build_policy(config: FilterConfiguration) -> PolicyCombinator:
    """
    Instantiate the policy matching a filter configuration.

    Raises:
        FilterError: If no policy exists for the configuration's entity kind.
    """
    try:
        policy_class = POLICIES[config.entity_kind]
    except KeyError as e:
        raise FilterError(f"no policy registered for {type(config).__name__}") from e
    return policy_class(config)
