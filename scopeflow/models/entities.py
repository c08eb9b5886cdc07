"""Inventory entity models annotated in place by the filter pipeline."""

from collections.abc import Iterable
from datetime import datetime
from typing import ClassVar

from pydantic import ConfigDict, Field, PrivateAttr, field_validator

from scopeflow.constants import AlarmStatus, EntityKind, ExclusionReason, PowerState
from scopeflow.models.base import ScopeFlowBaseModel


class FilterableEntity(ScopeFlowBaseModel):
    """
    An inventory object subject to scope filtering.

    Every entity starts included. The pipeline flips `excluded` to True and
    records why; nothing ever flips it back within a run. Both are private
    state, so a data source cannot hand over an entity already excluded.
    """

    kind: ClassVar[EntityKind]

    name: str

    _excluded: bool = PrivateAttr(default=False)
    _exclusion_reasons: set[ExclusionReason] = PrivateAttr(default_factory=set)

    @property
    def excluded(self) -> bool:
        return self._excluded

    @property
    def exclusion_reasons(self) -> frozenset[ExclusionReason]:
        return frozenset(self._exclusion_reasons)

    @property
    def key(self) -> str:
        """Unique identifier used for ordering and reporting."""
        return self.name

    @property
    def included(self) -> bool:
        return not self.excluded

    def mark_excluded(self, reasons: Iterable[ExclusionReason]) -> None:
        """
        Mark the entity as excluded for the given reasons.

        The transition is one-way. Reasons accumulate across calls so
        re-applying the same filters leaves the annotation unchanged.

        Args:
            reasons: One or more reasons. An empty iterable is a no-op.
        """
        reasons = set(reasons)
        if not reasons:
            return
        self._exclusion_reasons |= reasons
        self._excluded = True

    def describe(self) -> str:
        """Short human readable label used in log lines."""
        return f"{self.kind} {self.name!r}"


class Alert(FilterableEntity):
    """
    A triggered alarm along with the affected resource it was raised for.

    `name` is the name of the defined alarm (e.g. "Datastore usage on disk")
    while `entity_name` / `entity_type` identify the affected resource.
    """

    kind: ClassVar[EntityKind] = EntityKind.ALERT

    alert_key: str = Field(alias="key")
    description: str = ""
    entity_name: str
    entity_type: str
    entity_resource_pools: list[str] = Field(default_factory=list)
    status: AlarmStatus
    acknowledged: bool = False
    acknowledged_by: str = ""
    acknowledged_at: datetime | None = None
    triggered_at: datetime | None = None
    datacenter: str = ""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    @field_validator("entity_resource_pools", mode="before")
    @classmethod
    def validate_entity_resource_pools(cls, v: object) -> object:
        """Datastores and other pool-less entities may report null pools."""
        return [] if v is None else v

    @property
    def key(self) -> str:
        return self.alert_key

    def describe(self) -> str:
        return (
            f"Alarm ({self.status}) for {self.entity_name!r} of type {self.entity_type!r} "
            f"with name {self.name!r}"
        )


class ComputeNode(FilterableEntity):
    """A virtual machine as seen by the inventory."""

    kind: ClassVar[EntityKind] = EntityKind.COMPUTE_NODE

    power_state: PowerState = PowerState.POWERED_ON
    resource_pool: str | None = None
    folder: str | None = None
    host: str | None = None
    hardware_version: int | None = None

    @property
    def powered_on(self) -> bool:
        return self.power_state == PowerState.POWERED_ON

    def describe(self) -> str:
        pool = f" in pool {self.resource_pool!r}" if self.resource_pool else ""
        return f"VM {self.name!r} ({self.power_state}){pool}"
