"""
Plain-text check reports.

Each report consumes the annotated collection produced by the filter
pipeline and renders it the way monitoring systems expect a service check:
a one-line summary prefixed with the check state, a long output section and
an exit code derived from the state.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from scopeflow.constants import ALARM_STATUS_CHECK_STATES, CheckState
from scopeflow.models import (
    Alert,
    AlertFilterConfiguration,
    ComputeNode,
    ComputeNodeFilterConfiguration,
    DimensionCriteria,
    Tally,
)

EOL = "\n"
PRECEDENCE_NOTE = "**NOTE: Explicit exclusions have precedence over inclusions**"

# worst first
STATE_SEVERITY = (CheckState.CRITICAL, CheckState.WARNING, CheckState.UNKNOWN, CheckState.OK)


def _criteria_lines(label: str, criteria: DimensionCriteria) -> list[str]:
    return [
        f"* Specified {label} to explicitly include ({len(criteria.included)}): [{', '.join(criteria.included)}]",
        f"* Specified {label} to explicitly exclude ({len(criteria.excluded)}): [{', '.join(criteria.excluded)}]",
    ]


class CheckReport(ABC):
    """Common rendering for check reports."""

    included_title: str
    excluded_title: str

    def __init__(self, entities: Sequence, tally: Tally):
        self.entities = list(entities)
        self.tally = tally

    @property
    def included(self) -> list:
        return [entity for entity in self.entities if not entity.excluded]

    @property
    def excluded(self) -> list:
        return [entity for entity in self.entities if entity.excluded]

    @property
    @abstractmethod
    def state(self) -> CheckState:
        """State the check reports to the monitoring system."""

    @property
    def exit_code(self) -> int:
        return self.state.exit_code

    @abstractmethod
    def summary(self) -> str:
        """One-line summary, prefixed with the state."""

    def describe_entity(self, entity) -> str:
        return entity.name

    def filter_lines(self) -> list[str]:
        return []

    def _listing(self, title: str, entities: list) -> list[str]:
        lines = [title, ""]
        if not entities:
            lines.extend(["* None", ""])
            return lines
        lines.extend(f"* ({i:02d}) {self.describe_entity(e)}" for i, e in enumerate(entities, start=1))
        lines.append("")
        return lines

    def tally_lines(self) -> list[str]:
        # reasons overlap, these do not add up to the excluded count
        return [f"* Excluded for reason '{reason}': {count}" for reason, count in self.tally.reasons()]

    def long_output(self) -> str:
        lines: list[str] = []
        lines.extend(self._listing(self.included_title, self.included))
        lines.extend(self._listing(self.excluded_title, self.excluded))
        lines.extend(["---", "", PRECEDENCE_NOTE, ""])
        lines.extend(self.filter_lines())
        lines.extend(self.tally_lines())
        return EOL.join(lines)

    def render(self, verbose: bool = True) -> str:
        """Summary line, followed by the long output when verbose."""
        if not verbose:
            return self.summary()
        return f"{self.summary()}{EOL}{EOL}{self.long_output()}"


class AlertReport(CheckReport):
    """
    Report for the triggered alarms check.

    The state follows the worst status among the alarms left in scope; with
    nothing left in scope the check is OK.
    """

    included_title = "Non-excluded Triggered Alarms detected:"
    excluded_title = "Excluded Triggered Alarms (as requested):"

    def __init__(self, entities: Sequence[Alert], tally: Tally, config: AlertFilterConfiguration):
        super().__init__(entities, tally)
        self.config = config

    @property
    def state(self) -> CheckState:
        states = {ALARM_STATUS_CHECK_STATES[alert.status] for alert in self.included}
        for state in STATE_SEVERITY:
            if state in states:
                return state
        return CheckState.OK

    @property
    def datacenters(self) -> list[str]:
        return sorted({alert.datacenter for alert in self.entities if alert.datacenter})

    def summary(self) -> str:
        evaluated = f"(evaluated {len(self.datacenters)} Datacenters, {self.tally.total} Triggered Alarms)"
        # in-scope green alarms still read as "No non-excluded"
        if self.state != CheckState.OK:
            return f"{self.state}: {self.tally.remaining} non-excluded Triggered Alarms detected {evaluated}"
        return f"{self.state}: No non-excluded Triggered Alarms detected {evaluated}"

    def describe_entity(self, entity: Alert) -> str:
        return f"{entity.entity_name} (type {entity.entity_type}): {entity.name}"

    def filter_lines(self) -> list[str]:
        c = self.config
        lines = [
            f"* Triggered Alarms (evaluated: {self.tally.remaining}, ignored: {self.tally.excluded}, "
            f"total: {self.tally.total})",
            f"* Acknowledged Alarms evaluated: {c.evaluate_acknowledged}",
        ]
        lines.extend(_criteria_lines("Triggered Alarm entity types", c.entity_types))
        lines.extend(_criteria_lines("Triggered Alarm entity names", c.entity_names))
        lines.extend(_criteria_lines("Triggered Alarm entity resource pools", c.entity_resource_pools))
        lines.extend(_criteria_lines("Triggered Alarm names", c.names))
        lines.extend(_criteria_lines("Triggered Alarm descriptions", c.descriptions))
        lines.extend(_criteria_lines("Triggered Alarm statuses", c.statuses))
        return lines


class ComputeNodeReport(CheckReport):
    """
    Report for the VM inventory listing.

    Listing VMs never fails; per-threshold checks are not part of this report.
    """

    included_title = "VMs evaluated:"
    excluded_title = "VMs excluded (as requested):"

    def __init__(self, entities: Sequence[ComputeNode], tally: Tally, config: ComputeNodeFilterConfiguration):
        super().__init__(entities, tally)
        self.config = config

    @property
    def state(self) -> CheckState:
        return CheckState.OK

    def summary(self) -> str:
        powered_on = sum(1 for node in self.included if node.powered_on)
        return (
            f"{self.state}: {self.tally.remaining} VMs evaluated ({powered_on} powered on), "
            f"{self.tally.excluded} excluded, {self.tally.total} total"
        )

    def describe_entity(self, entity: ComputeNode) -> str:
        return entity.describe()

    def filter_lines(self) -> list[str]:
        c = self.config
        t = self.tally
        lines = [
            f"* VMs (evaluated: {t.remaining}, excluded: {t.excluded}, total: {t.total})",
            f"* Powered off VMs evaluated: {c.evaluate_powered_off}",
            f"* VMs excluded by name: {t.excluded_by_name}, by resource pool: {t.excluded_by_container}, "
            f"by folder: {t.excluded_by_folder}, by power state: {t.excluded_by_power_state}",
        ]
        lines.extend(_criteria_lines("VM names", c.names))
        lines.extend(_criteria_lines("resource pools", c.resource_pools))
        lines.extend(_criteria_lines("folders", c.folders))
        return lines
