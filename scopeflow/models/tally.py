from collections import Counter
from collections.abc import Iterable, Sequence

from pydantic import Field

from scopeflow.constants import (
    CONTAINER_EXCLUSION_REASONS,
    FOLDER_EXCLUSION_REASONS,
    KIND_EXCLUSION_REASONS,
    NAME_EXCLUSION_REASONS,
    ExclusionReason,
)
from scopeflow.models.base import FrozenScopeFlowModel
from scopeflow.models.entities import FilterableEntity


class Tally(FrozenScopeFlowModel):
    """
    Aggregate counts over an annotated collection.

    `total`, `excluded` and `remaining` partition the collection. The per
    reason counts do not: an entity excluded for two reasons is counted in
    both buckets, so those numbers are diagnostics and may add up to more
    than `excluded`.
    """

    total: int = 0
    excluded: int = 0
    remaining: int = 0
    by_reason: dict[ExclusionReason, int] = Field(default_factory=dict)
    excluded_reason_sets: tuple[frozenset[ExclusionReason], ...] = ()

    @classmethod
    def from_entities(cls, entities: Sequence[FilterableEntity]) -> "Tally":
        """
        Build a Tally by scanning exclusion markers.

        Args:
            entities: The annotated collection.

        Returns:
            Tally: Counts derived from the current markers.
        """
        reason_sets = tuple(frozenset(entity.exclusion_reasons) for entity in entities if entity.excluded)
        reasons: Counter[ExclusionReason] = Counter()
        for reason_set in reason_sets:
            reasons.update(reason_set)

        return cls(
            total=len(entities),
            excluded=len(reason_sets),
            remaining=len(entities) - len(reason_sets),
            by_reason=dict(reasons),
            excluded_reason_sets=reason_sets,
        )

    def count(self, *reasons: ExclusionReason) -> int:
        """
        Number of excluded entities carrying at least one of the given reasons.

        Each entity counts once even if it matches several of the reasons.
        """
        wanted = set(reasons)
        return sum(1 for reason_set in self.excluded_reason_sets if reason_set & wanted)

    @property
    def excluded_by_name(self) -> int:
        return self.count(*NAME_EXCLUSION_REASONS)

    @property
    def excluded_by_kind(self) -> int:
        return self.count(*KIND_EXCLUSION_REASONS)

    @property
    def excluded_by_container(self) -> int:
        return self.count(*CONTAINER_EXCLUSION_REASONS)

    @property
    def excluded_by_folder(self) -> int:
        return self.count(*FOLDER_EXCLUSION_REASONS)

    @property
    def excluded_by_power_state(self) -> int:
        return self.count(ExclusionReason.POWERED_OFF)

    @property
    def excluded_by_acknowledgement(self) -> int:
        return self.count(ExclusionReason.ACKNOWLEDGED)

    def reasons(self) -> Iterable[tuple[ExclusionReason, int]]:
        """Per reason counts in a stable order, for report output."""
        return [(reason, self.by_reason[reason]) for reason in ExclusionReason if reason in self.by_reason]
