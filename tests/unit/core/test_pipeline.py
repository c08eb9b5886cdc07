import logging

import pytest

from scopeflow.constants import ExclusionReason
from scopeflow.exceptions import FilterError
from scopeflow.models import (
    AlertFilterConfiguration,
    ComputeNodeFilterConfiguration,
    DimensionCriteria,
)
from scopeflow.pipeline import FilterPipeline, apply_filters


def remaining_names(result) -> list[str]:
    return [alert.name for alert in result.included]


class TestAlertScenarios:
    """Reference scenarios over the five alert collection."""

    def test_include_compute_node_exclude_cpu(self, alerts):
        config = AlertFilterConfiguration(
            entity_types=DimensionCriteria(included=["ComputeNode"]),
            names=DimensionCriteria(excluded=["cpu usage"]),
        )
        result = apply_filters(alerts, config)

        assert result.tally.remaining == 1
        assert remaining_names(result) == ["Virtual machine memory usage"]

    def test_include_compute_node_exclude_cpu_and_memory(self, alerts):
        config = AlertFilterConfiguration(
            entity_types=DimensionCriteria(included=["ComputeNode"]),
            names=DimensionCriteria(excluded=["cpu usage", "memory usage"]),
        )
        result = apply_filters(alerts, config)

        assert result.tally.remaining == 0

    def test_exclude_datastore_usage(self, alerts):
        config = AlertFilterConfiguration(names=DimensionCriteria(excluded=["datastore usage on disk"]))
        result = apply_filters(alerts, config)

        assert result.tally.remaining == 2
        assert remaining_names(result) == ["Virtual machine CPU usage", "Virtual machine memory usage"]

    def test_include_unmatched_description(self, alerts):
        config = AlertFilterConfiguration(descriptions=DimensionCriteria(included=["tacos on sale"]))
        result = apply_filters(alerts, config)

        assert result.tally.remaining == 0
        assert result.tally.excluded == 5

    @pytest.mark.parametrize("evaluate_acknowledged,expected", [(False, 2), (True, 3)])
    def test_include_datastore_usage(self, alerts, evaluate_acknowledged, expected):
        config = AlertFilterConfiguration(
            names=DimensionCriteria(included=["datastore usage on disk"]),
            evaluate_acknowledged=evaluate_acknowledged,
        )
        result = apply_filters(alerts, config)

        assert result.tally.remaining == expected

    def test_inclusion_is_or_across_dimensions(self, alerts):
        """Failing the entity type inclusion is fine as long as the status inclusion matches."""
        config = AlertFilterConfiguration(
            entity_types=DimensionCriteria(included=["ComputeNode"]),
            names=DimensionCriteria(excluded=["CPU usage"]),
            statuses=DimensionCriteria(included=["yellow"]),
        )
        result = apply_filters(alerts, config)

        assert [a.key for a in result.included] == ["alarm-1", "alarm-5"]

    def test_include_resource_pool_or_status(self, alerts):
        config = AlertFilterConfiguration(
            entity_resource_pools=DimensionCriteria(included=["development"]),
            statuses=DimensionCriteria(included=["yellow"]),
        )
        result = apply_filters(alerts, config)

        assert [a.key for a in result.included] == ["alarm-1", "alarm-5"]

    def test_entity_name_is_substring_match(self, alerts):
        config = AlertFilterConfiguration(entity_names=DimensionCriteria(excluded=["ds-prod"]))
        result = apply_filters(alerts, config)

        assert [a.key for a in result.included] == ["alarm-4", "alarm-5"]


class TestPipelineProperties:
    def test_default_admission(self, alerts):
        """With no criteria only the absolute policies exclude anything."""
        result = apply_filters(alerts, AlertFilterConfiguration(evaluate_acknowledged=True))

        assert result.tally.excluded == 0
        assert result.tally.remaining == len(alerts)

    def test_exclusion_dominance(self, alerts):
        config = AlertFilterConfiguration(
            names=DimensionCriteria(included=["cpu usage"], excluded=["cpu usage"]),
        )
        result = apply_filters(alerts, config)

        cpu_alert = next(a for a in result.entities if a.key == "alarm-4")
        assert cpu_alert.excluded is True
        assert ExclusionReason.ALARM_NAME in cpu_alert.exclusion_reasons

    def test_idempotence(self, alerts):
        config = AlertFilterConfiguration(
            entity_types=DimensionCriteria(included=["ComputeNode"]),
            names=DimensionCriteria(excluded=["cpu usage"]),
        )
        pipeline = FilterPipeline(config)

        first = pipeline.apply(alerts)
        markers = [(a.excluded, set(a.exclusion_reasons)) for a in first.entities]
        second = pipeline.apply(first.entities)

        assert [(a.excluded, set(a.exclusion_reasons)) for a in second.entities] == markers
        assert second.tally == first.tally

    def test_stable_length_and_order(self, alerts):
        keys = [a.key for a in alerts]
        result = apply_filters(alerts, AlertFilterConfiguration(names=DimensionCriteria(excluded=["usage"])))

        assert [a.key for a in result.entities] == keys
        assert all(a.excluded for a in result.entities)

    def test_marker_is_one_way(self, alerts):
        excluding = AlertFilterConfiguration(names=DimensionCriteria(excluded=["cpu usage"]))
        admitting = AlertFilterConfiguration(evaluate_acknowledged=True)

        result = apply_filters(apply_filters(alerts, excluding).entities, admitting)

        cpu_alert = next(a for a in result.entities if a.key == "alarm-4")
        assert cpu_alert.excluded is True

    def test_entities_are_annotated_in_place(self, alerts):
        apply_filters(alerts, AlertFilterConfiguration(names=DimensionCriteria(excluded=["cpu usage"])))

        assert alerts[3].excluded is True

    def test_empty_collection(self):
        result = apply_filters([], AlertFilterConfiguration())

        assert result.entities == []
        assert result.tally.total == 0

    def test_kind_mismatch(self, alerts):
        with pytest.raises(FilterError):
            apply_filters(alerts, ComputeNodeFilterConfiguration())


class TestComputeNodePipeline:
    def test_tally_buckets(self, compute_nodes):
        config = ComputeNodeFilterConfiguration(
            names=DimensionCriteria(excluded=["app-01"]),
            resource_pools=DimensionCriteria(included=["Production"]),
        )
        result = apply_filters(compute_nodes, config)
        tally = result.tally

        assert tally.total == 5
        assert tally.remaining == 0
        assert tally.excluded == 5
        assert tally.excluded_by_name == 1
        assert tally.excluded_by_container == 3
        assert tally.excluded_by_power_state == 2
        # overlapping reasons: db-01 is off, test-01 is off and outside the pool
        assert tally.by_reason[ExclusionReason.OUTSIDE_RESOURCE_POOLS] == 3

    def test_logs_exclusions(self, compute_nodes, caplog):
        with caplog.at_level(logging.DEBUG, logger="scopeflow"):
            apply_filters(compute_nodes, ComputeNodeFilterConfiguration())

        assert "Excluded VM 'db-01' (poweredOff)" in caplog.text
        assert "Filtered 5 compute-node entities: 2 excluded, 3 remaining" in caplog.text
