import pytest
import yaml

from scopeflow.constants import AlarmStatus, PowerState
from scopeflow.models import Alert, ComputeNode


def make_alert(key: str, name: str, entity_name: str, entity_type: str, status: str, **kwargs) -> Alert:
    """Build an Alert with sensible defaults for the fields a test does not care about."""
    return Alert(
        key=key,
        name=name,
        entity_name=entity_name,
        entity_type=entity_type,
        status=status,
        description=kwargs.pop("description", f"Default alarm to monitor {name.lower()}"),
        datacenter=kwargs.pop("datacenter", "Example"),
        **kwargs,
    )


@pytest.fixture
def alerts():
    """
    The reference alert collection.

    Two yellow datastore usage alarms (one of them acknowledged), one red
    datastore usage alarm and two red VM alarms for CPU and memory usage.
    """
    return [
        make_alert("alarm-1", "Datastore usage on disk", "ds-prod-01", "Datastore", AlarmStatus.YELLOW),
        make_alert(
            "alarm-2",
            "Datastore usage on disk",
            "ds-prod-02",
            "Datastore",
            AlarmStatus.YELLOW,
            acknowledged=True,
            acknowledged_by="EXAMPLE\\operator",
        ),
        make_alert("alarm-3", "Datastore usage on disk", "ds-prod-03", "Datastore", AlarmStatus.RED),
        make_alert(
            "alarm-4",
            "Virtual machine CPU usage",
            "app-01",
            "ComputeNode",
            AlarmStatus.RED,
            entity_resource_pools=["Production"],
        ),
        make_alert(
            "alarm-5",
            "Virtual machine memory usage",
            "app-02",
            "ComputeNode",
            AlarmStatus.RED,
            entity_resource_pools=["Development"],
        ),
    ]


@pytest.fixture
def compute_nodes():
    """VMs spread over two resource pools and two folders, one without a pool, one off and one suspended."""
    return [
        ComputeNode(name="app-01", resource_pool="Production", folder="Web", hardware_version=19),
        ComputeNode(name="app-02", resource_pool="Development", folder="Web", hardware_version=17),
        ComputeNode(name="db-01", resource_pool="Production", folder="Databases", power_state=PowerState.POWERED_OFF),
        ComputeNode(name="test-01", resource_pool="Development", power_state=PowerState.SUSPENDED),
        ComputeNode(name="orphan-01", resource_pool=None, folder="Web", hardware_version=13),
    ]


@pytest.fixture
def inventory_data():
    """Raw snapshot content, deliberately unsorted."""
    return {
        "alerts": [
            {
                "key": "alarm-5",
                "name": "Virtual machine memory usage",
                "entity_name": "app-02",
                "entity_type": "ComputeNode",
                "entity_resource_pools": ["Development"],
                "status": "red",
                "datacenter": "Example",
            },
            {
                "key": "alarm-1",
                "name": "Datastore usage on disk",
                "entity_name": "DS-prod-01",
                "entity_type": "Datastore",
                "entity_resource_pools": None,
                "status": "warning",
                "datacenter": "Example",
            },
            {
                "key": "alarm-2",
                "name": "Datastore usage on disk",
                "entity_name": "ds-prod-02",
                "entity_type": "Datastore",
                "status": "yellow",
                "acknowledged": True,
                "datacenter": "Example",
            },
        ],
        "compute_nodes": [
            {"name": "web-01", "resource_pool": "Production", "power_state": "poweredOn"},
            {"name": "app-01", "resource_pool": "Development", "power_state": "powered-off"},
        ],
    }


@pytest.fixture
def inventory_file(tmp_path, inventory_data):
    """Create a temporary inventory snapshot."""
    path = tmp_path / "inventory.yaml"
    path.write_text(yaml.dump(inventory_data))
    return path


@pytest.fixture
def settings_file(tmp_path, inventory_file):
    """Create a temporary settings file pointing at the inventory snapshot by relative path."""
    path = tmp_path / "scopeflow.yaml"
    path.write_text(
        yaml.dump(
            {
                "inventory_file": inventory_file.name,
                "log_dir": "logs",
                "alarms": {"exclude_names": ["memory usage"]},
            }
        )
    )
    return path


@pytest.fixture
def alert_factory():
    """Expose make_alert to tests needing one-off alerts."""
    return make_alert
