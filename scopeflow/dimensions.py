"""
Per-dimension verdicts.

A DimensionFilter looks at a single attribute of an entity and answers three
independent questions about it. None of the answers is a final decision on
its own; the policy combinator merges the verdicts of every dimension.
"""

from collections.abc import Callable, Iterable
from typing import NamedTuple

from scopeflow.constants import Dimension
from scopeflow.matchers import Matcher
from scopeflow.models import DimensionCriteria, FilterableEntity

AttributeValue = str | Iterable[str] | None
AttributeGetter = Callable[[FilterableEntity], AttributeValue]


class DimensionVerdict(NamedTuple):
    """Answers of one dimension for one entity."""

    dimension: Dimension
    explicitly_excluded: bool
    has_inclusion_constraint: bool
    explicitly_included: bool


def _as_values(value: AttributeValue) -> list[str | None]:
    """Normalize single and multi-valued attributes into a list."""
    if value is None or isinstance(value, str):
        return [value]
    values = list(value)
    # An entity outside every group still gets a value to compare against.
    return values or [None]


class DimensionFilter:
    """
    Inclusion/exclusion filter for one entity attribute.

    Multi-valued attributes (e.g. the resource pools of an alarm entity)
    match when any of their values match.

    Args:
        dimension: Which attribute this filter looks at.
        criteria: Operator supplied inclusion and exclusion values.
        matcher: Predicate used to compare values (exact or substring).
        attribute: Callable returning the attribute value(s) for an entity.
    """

    def __init__(
        self,
        dimension: Dimension,
        criteria: DimensionCriteria,
        matcher: Matcher,
        attribute: AttributeGetter,
    ):
        self.dimension = dimension
        self.criteria = criteria
        self.matcher = matcher
        self.attribute = attribute

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}({self.dimension}, included={list(self.criteria.included)}, "
            f"excluded={list(self.criteria.excluded)}, matcher={self.matcher.__name__})"
        )

    def _matches(self, entity: FilterableEntity, candidates: tuple[str, ...]) -> bool:
        if not candidates:
            return False
        return any(self.matcher(value, candidates) for value in _as_values(self.attribute(entity)))

    @property
    def has_inclusion_constraint(self) -> bool:
        """Whether an inclusion list is active for this dimension."""
        return self.criteria.has_inclusion_constraint

    def is_explicitly_excluded(self, entity: FilterableEntity) -> bool:
        """Whether the entity matches the exclusion list."""
        return self._matches(entity, self.criteria.excluded)

    def is_explicitly_included(self, entity: FilterableEntity) -> bool:
        """Whether an inclusion list is active and the entity matches it."""
        return self.has_inclusion_constraint and self._matches(entity, self.criteria.included)

    def evaluate(self, entity: FilterableEntity) -> DimensionVerdict:
        """
        Compute all three answers for an entity.

        Args:
            entity: The entity to evaluate.

        Returns:
            DimensionVerdict: The per-dimension answers.
        """
        return DimensionVerdict(
            dimension=self.dimension,
            explicitly_excluded=self.is_explicitly_excluded(entity),
            has_inclusion_constraint=self.has_inclusion_constraint,
            explicitly_included=self.is_explicitly_included(entity),
        )
