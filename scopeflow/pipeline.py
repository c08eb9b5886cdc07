"""
Filter pipeline.

Applies a policy combinator to every entity of a collection, sets the
exclusion marker on the entities that fail and derives a Tally from the
markers. Entities are never removed or reordered: report sinks rely on the
full collection to list both what was considered and what was reported.
"""

from collections.abc import Sequence
from typing import NamedTuple

from scopeflow.logger import logger
from scopeflow.models import FilterableEntity, FilterConfiguration, Tally
from scopeflow.policies import PolicyCombinator, build_policy


class FilterResult(NamedTuple):
    """The annotated collection along with the counts derived from it."""

    entities: list[FilterableEntity]
    tally: Tally

    @property
    def included(self) -> list[FilterableEntity]:
        return [entity for entity in self.entities if not entity.excluded]

    @property
    def excluded(self) -> list[FilterableEntity]:
        return [entity for entity in self.entities if entity.excluded]


class FilterPipeline:
    """
    Annotates inventory collections with exclusion markers.

    The pipeline is configured once and may be applied any number of times.
    Applying it twice to the same collection yields the same markers since
    the marker is one-way and the reasons only accumulate.

    Args:
        config: Immutable filter configuration for a single entity kind.
    """

    def __init__(self, config: FilterConfiguration):
        self.config = config
        self.policy: PolicyCombinator = build_policy(config)

    def apply(self, entities: Sequence[FilterableEntity]) -> FilterResult:
        """
        Evaluate every entity and mark the ones out of scope.

        Args:
            entities: The raw collection. It is annotated in place.

        Returns:
            FilterResult: The same entities, in the same order, plus the Tally.

        Raises:
            FilterError: If an entity is not of the kind the configuration targets.
        """
        entities = list(entities)

        for entity in entities:
            reasons = self.policy.verdict(entity)
            if not reasons:
                continue
            entity.mark_excluded(reasons)
            logger.debug(
                f"Excluded {entity.describe()}: {', '.join(sorted(r.value for r in reasons))}"
            )

        tally = Tally.from_entities(entities)
        logger.info(
            f"Filtered {tally.total} {self.config.entity_kind} entities: "
            f"{tally.excluded} excluded, {tally.remaining} remaining"
        )
        return FilterResult(entities=entities, tally=tally)


def apply_filters(entities: Sequence[FilterableEntity], config: FilterConfiguration) -> FilterResult:
    """Shortcut for FilterPipeline(config).apply(entities)."""
    return FilterPipeline(config).apply(entities)
