"""
Inventory snapshot loading.

A snapshot is a YAML (or JSON) document holding the raw listings a check
works on:

    alerts:
      - key: alarm-101.datastore-1
        name: Datastore usage on disk
        entity_name: ds-prod-01
        entity_type: Datastore
        status: yellow
    compute_nodes:
      - name: web-01
        power_state: poweredOn
        resource_pool: Production

Listings are sorted once here; the filter pipeline keeps whatever order it
is handed.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, ValidationError

from scopeflow.constants import SCOPEFLOW_SUPPORTED_INVENTORY_EXTENSIONS
from scopeflow.exceptions import ResourceError
from scopeflow.logger import logger
from scopeflow.models import Alert, ComputeNode, ScopeFlowBaseModel


class InventorySnapshot(ScopeFlowBaseModel):
    """Raw alert and compute node listings read from a snapshot file."""

    alerts: list[Alert] = Field(default_factory=list)
    compute_nodes: list[ComputeNode] = Field(default_factory=list)
    source: str | None = None

    def sort(self) -> "InventorySnapshot":
        """Sort alerts by affected entity name and compute nodes by name, ignoring case."""
        self.alerts.sort(key=lambda alert: alert.entity_name.casefold())
        self.compute_nodes.sort(key=lambda node: node.name.casefold())
        return self


def load_inventory(path: str | Path) -> InventorySnapshot:
    """
    Load an inventory snapshot from disk.

    Args:
        path: Path to a .yaml, .yml or .json snapshot.

    Returns:
        InventorySnapshot: Sorted listings with every entity still included.

    Raises:
        ResourceError: If the file is missing, unreadable, not a mapping or
            holds invalid entities.
    """
    inventory_path = Path(path)

    if inventory_path.suffix.lower() not in SCOPEFLOW_SUPPORTED_INVENTORY_EXTENSIONS:
        raise ResourceError(
            f"Unsupported file extension, expected one of {', '.join(SCOPEFLOW_SUPPORTED_INVENTORY_EXTENSIONS)}",
            resource_type="Inventory",
            resource_name=str(inventory_path),
        )

    if not inventory_path.is_file():
        raise ResourceError("File not found", resource_type="Inventory", resource_name=str(inventory_path))

    try:
        with inventory_path.open(encoding="utf-8") as f:
            data: Any = yaml.safe_load(f) or {}
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        raise ResourceError(
            f"Failed to read snapshot: {e}", resource_type="Inventory", resource_name=str(inventory_path)
        ) from e

    if not isinstance(data, dict):
        raise ResourceError(
            f"Snapshot must contain a mapping, got {type(data).__name__}",
            resource_type="Inventory",
            resource_name=str(inventory_path),
        )

    try:
        snapshot = InventorySnapshot(
            alerts=data.get("alerts") or [],
            compute_nodes=data.get("compute_nodes") or [],
            source=str(inventory_path),
        )
    except ValidationError as e:
        raise ResourceError(
            f"Invalid snapshot content:\n{e}", resource_type="Inventory", resource_name=str(inventory_path)
        ) from e

    unknown_sections = set(data) - {"alerts", "compute_nodes"}
    if unknown_sections:
        logger.warning(f"Ignoring unknown inventory sections: {', '.join(sorted(unknown_sections))}")

    logger.debug(
        f"Loaded {len(snapshot.alerts)} alerts and {len(snapshot.compute_nodes)} compute nodes "
        f"from {inventory_path}"
    )
    return snapshot.sort()
