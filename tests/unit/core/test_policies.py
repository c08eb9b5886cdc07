from types import SimpleNamespace

import pytest

from scopeflow.constants import AlarmStatus, Dimension, ExclusionReason
from scopeflow.dimensions import DimensionVerdict
from scopeflow.exceptions import FilterError
from scopeflow.models import (
    AlertFilterConfiguration,
    ComputeNode,
    ComputeNodeFilterConfiguration,
    DimensionCriteria,
)
from scopeflow.policies import AlertPolicy, ComputeNodePolicy, build_policy, combine


class TestCombine:
    def test_no_verdicts_admits(self):
        assert combine([]) == set()

    def test_exclusion_records_dimension_reason(self):
        verdicts = [DimensionVerdict(Dimension.ALARM_NAME, True, False, False)]
        assert combine(verdicts) == {ExclusionReason.ALARM_NAME}

    def test_inclusion_gate_is_or_across_dimensions(self):
        verdicts = [
            DimensionVerdict(Dimension.ENTITY_TYPE, False, True, False),
            DimensionVerdict(Dimension.ALARM_STATUS, False, True, True),
        ]
        assert combine(verdicts) == set()

    def test_inclusion_gate_without_any_match(self):
        verdicts = [
            DimensionVerdict(Dimension.ENTITY_TYPE, False, True, False),
            DimensionVerdict(Dimension.ALARM_STATUS, False, True, False),
        ]
        assert combine(verdicts) == {ExclusionReason.NOT_INCLUDED}

    def test_exclusion_beats_inclusion(self):
        verdicts = [
            DimensionVerdict(Dimension.ENTITY_TYPE, False, True, True),
            DimensionVerdict(Dimension.ALARM_NAME, True, False, False),
        ]
        assert combine(verdicts) == {ExclusionReason.ALARM_NAME}


class TestAlertPolicy:
    def test_only_active_dimensions_are_evaluated(self):
        policy = AlertPolicy(AlertFilterConfiguration(names=DimensionCriteria(excluded=["cpu"])))

        assert [f.dimension for f in policy.filters] == [Dimension.ALARM_NAME]

    def test_acknowledged_alert_excluded_by_default(self, alert_factory):
        alert = alert_factory("a", "Datastore usage on disk", "ds-01", "Datastore", AlarmStatus.YELLOW, acknowledged=True)

        assert AlertPolicy(AlertFilterConfiguration()).verdict(alert) == {ExclusionReason.ACKNOWLEDGED}

    def test_acknowledged_alert_kept_when_evaluated(self, alert_factory):
        alert = alert_factory("a", "Datastore usage on disk", "ds-01", "Datastore", AlarmStatus.YELLOW, acknowledged=True)
        policy = AlertPolicy(AlertFilterConfiguration(evaluate_acknowledged=True))

        assert policy.verdict(alert) == set()

    def test_absolute_policy_applies_to_explicitly_included(self, alert_factory):
        alert = alert_factory("a", "Datastore usage on disk", "ds-01", "Datastore", AlarmStatus.YELLOW, acknowledged=True)
        policy = AlertPolicy(AlertFilterConfiguration(entity_types=DimensionCriteria(included=["Datastore"])))

        assert policy.verdict(alert) == {ExclusionReason.ACKNOWLEDGED}

    def test_reasons_accumulate(self, alert_factory):
        alert = alert_factory("a", "Datastore usage on disk", "ds-01", "Datastore", AlarmStatus.YELLOW, acknowledged=True)
        policy = AlertPolicy(
            AlertFilterConfiguration(
                entity_types=DimensionCriteria(excluded=["datastore"]),
                statuses=DimensionCriteria(excluded=["yellow"]),
            )
        )

        assert policy.verdict(alert) == {
            ExclusionReason.ENTITY_TYPE,
            ExclusionReason.ALARM_STATUS,
            ExclusionReason.ACKNOWLEDGED,
        }

    def test_wrong_entity_kind(self):
        with pytest.raises(FilterError, match="ComputeNode"):
            AlertPolicy(AlertFilterConfiguration()).verdict(ComputeNode(name="app-01"))


class TestComputeNodePolicy:
    def test_powered_off_and_suspended_excluded_by_default(self, compute_nodes):
        policy = ComputeNodePolicy(ComputeNodeFilterConfiguration())
        verdicts = {node.name: policy.verdict(node) for node in compute_nodes}

        assert verdicts["db-01"] == {ExclusionReason.POWERED_OFF}
        assert verdicts["test-01"] == {ExclusionReason.POWERED_OFF}
        assert verdicts["app-01"] == set()
        assert verdicts["orphan-01"] == set()

    def test_powered_off_kept_when_evaluated(self, compute_nodes):
        policy = ComputeNodePolicy(ComputeNodeFilterConfiguration(evaluate_powered_off=True))

        assert all(policy.verdict(node) == set() for node in compute_nodes)

    def test_resource_pool_inclusion_is_absolute(self, compute_nodes):
        policy = ComputeNodePolicy(
            ComputeNodeFilterConfiguration(
                resource_pools=DimensionCriteria(included=["Production"]), evaluate_powered_off=True
            )
        )
        verdicts = {node.name: policy.verdict(node) for node in compute_nodes}

        assert verdicts["app-01"] == set()
        assert verdicts["db-01"] == set()
        assert verdicts["app-02"] == {ExclusionReason.OUTSIDE_RESOURCE_POOLS}
        assert verdicts["orphan-01"] == {ExclusionReason.OUTSIDE_RESOURCE_POOLS}

    def test_resource_pool_exclusion_only_removes_members(self, compute_nodes):
        policy = ComputeNodePolicy(
            ComputeNodeFilterConfiguration(
                resource_pools=DimensionCriteria(excluded=["development"]), evaluate_powered_off=True
            )
        )
        verdicts = {node.name: policy.verdict(node) for node in compute_nodes}

        assert verdicts["app-02"] == {ExclusionReason.ENTITY_RESOURCE_POOL}
        assert verdicts["test-01"] == {ExclusionReason.ENTITY_RESOURCE_POOL}
        assert verdicts["orphan-01"] == set()
        assert verdicts["app-01"] == set()

    def test_resource_pool_membership_does_not_pass_name_gate(self, compute_nodes):
        policy = ComputeNodePolicy(
            ComputeNodeFilterConfiguration(
                names=DimensionCriteria(included=["app-01"]),
                resource_pools=DimensionCriteria(included=["Production"]),
            )
        )
        app_01, _, db_01, *_ = compute_nodes

        assert policy.verdict(app_01) == set()
        assert policy.verdict(db_01) == {ExclusionReason.NOT_INCLUDED, ExclusionReason.POWERED_OFF}

    def test_folder_inclusion_is_absolute(self, compute_nodes):
        policy = ComputeNodePolicy(
            ComputeNodeFilterConfiguration(folders=DimensionCriteria(included=["web"]), evaluate_powered_off=True)
        )
        verdicts = {node.name: policy.verdict(node) for node in compute_nodes}

        assert verdicts["app-01"] == set()
        assert verdicts["orphan-01"] == set()
        assert verdicts["db-01"] == {ExclusionReason.OUTSIDE_FOLDERS}
        assert verdicts["test-01"] == {ExclusionReason.OUTSIDE_FOLDERS}

    def test_folder_exclusion_only_removes_members(self, compute_nodes):
        policy = ComputeNodePolicy(ComputeNodeFilterConfiguration(folders=DimensionCriteria(excluded=["Databases"])))
        verdicts = {node.name: policy.verdict(node) for node in compute_nodes}

        assert verdicts["db-01"] == {ExclusionReason.FOLDER, ExclusionReason.POWERED_OFF}
        assert verdicts["test-01"] == {ExclusionReason.POWERED_OFF}
        assert verdicts["app-01"] == set()

    def test_pool_and_folder_scopes_both_apply(self, compute_nodes):
        policy = ComputeNodePolicy(
            ComputeNodeFilterConfiguration(
                resource_pools=DimensionCriteria(included=["Production"]),
                folders=DimensionCriteria(excluded=["Web"]),
            )
        )
        app_01, app_02, *_ = compute_nodes

        assert policy.verdict(app_01) == {ExclusionReason.FOLDER}
        assert policy.verdict(app_02) == {ExclusionReason.FOLDER, ExclusionReason.OUTSIDE_RESOURCE_POOLS}

    def test_name_is_exact_match(self, compute_nodes):
        policy = ComputeNodePolicy(ComputeNodeFilterConfiguration(names=DimensionCriteria(excluded=["APP"])))

        assert all(ExclusionReason.ENTITY_NAME not in policy.verdict(node) for node in compute_nodes)


class TestBuildPolicy:
    def test_dispatch_by_entity_kind(self):
        assert isinstance(build_policy(AlertFilterConfiguration()), AlertPolicy)
        assert isinstance(build_policy(ComputeNodeFilterConfiguration()), ComputeNodePolicy)

    def test_unknown_entity_kind(self):
        with pytest.raises(FilterError, match="no policy registered"):
            build_policy(SimpleNamespace(entity_kind="datastore"))
