from enum import StrEnum


class EntityKind(StrEnum):
    """Kinds of inventory objects the filter pipeline knows how to scope."""

    ALERT = "alert"
    COMPUTE_NODE = "compute-node"


class AlarmStatus(StrEnum):
    """
    Overall status of a triggered alarm.

    vSphere represents this status as a color with green meaning "OK" and
    red meaning "CRITICAL". The keywords accepted from operators also include
    the equivalent check-state labels, which are folded onto the color values.

    Attributes:
        RED: entity has a problem in need of remediation (critical).
        YELLOW: monitoring thresholds have been crossed (warning).
        GREEN: entity is OK. Alarms are never triggered for this status.
        GRAY: entity status is unknown.
    """

    RED = "red"
    YELLOW = "yellow"
    GREEN = "green"
    GRAY = "gray"

    @classmethod
    def _missing_(cls, value: object) -> "AlarmStatus | None":
        """Accept check-state aliases and any letter case."""
        if isinstance(value, str):
            normalized = value.strip().lower()
            normalized = ALARM_STATUS_ALIASES.get(normalized, normalized)
            for member in cls:
                if member.value == normalized:
                    return member
        return None


# Keywords accepted in place of the color values.
ALARM_STATUS_ALIASES = {
    "critical": "red",
    "warning": "yellow",
    "ok": "green",
    "unknown": "gray",
}

# Triggered alarms are never green, so "green"/"ok" are refused as filter keywords.
ALARM_STATUSES_NOT_FILTERABLE = (AlarmStatus.GREEN,)


class PowerState(StrEnum):
    """Power state of a compute node. Suspended nodes are treated as powered off."""

    POWERED_ON = "poweredOn"
    POWERED_OFF = "poweredOff"
    SUSPENDED = "suspended"

    @classmethod
    def _missing_(cls, value: object) -> "PowerState | None":
        """Handle case, underscore and hyphen variations (e.g. 'powered-off')."""
        if isinstance(value, str):
            normalized = value.lower().replace("_", "").replace("-", "")
            for member in cls:
                if member.value.lower() == normalized:
                    return member
        return None


class Dimension(StrEnum):
    """Filterable attributes of an entity."""

    ENTITY_TYPE = "entity-type"
    ENTITY_NAME = "entity-name"
    ENTITY_RESOURCE_POOL = "entity-resource-pool"
    ALARM_NAME = "alarm-name"
    ALARM_DESCRIPTION = "alarm-description"
    ALARM_STATUS = "alarm-status"
    FOLDER = "folder"


class ExclusionReason(StrEnum):
    """
    Why an entity ended up excluded.

    The first block mirrors Dimension values one to one: an entity explicitly
    excluded by a dimension records the reason of the same value. The rest are
    produced by the inclusion gate and by absolute policies.

    Reasons are not mutually exclusive. An entity may carry several of them.
    """

    ENTITY_TYPE = "entity-type"
    ENTITY_NAME = "entity-name"
    ENTITY_RESOURCE_POOL = "entity-resource-pool"
    ALARM_NAME = "alarm-name"
    ALARM_DESCRIPTION = "alarm-description"
    ALARM_STATUS = "alarm-status"
    FOLDER = "folder"

    NOT_INCLUDED = "not-included"
    ACKNOWLEDGED = "acknowledged"
    POWERED_OFF = "powered-off"
    OUTSIDE_RESOURCE_POOLS = "outside-resource-pools"
    OUTSIDE_FOLDERS = "outside-folders"


# Reason buckets used by the Tally convenience counters.
NAME_EXCLUSION_REASONS = (ExclusionReason.ENTITY_NAME, ExclusionReason.ALARM_NAME)
KIND_EXCLUSION_REASONS = (ExclusionReason.ENTITY_TYPE,)
CONTAINER_EXCLUSION_REASONS = (
    ExclusionReason.ENTITY_RESOURCE_POOL,
    ExclusionReason.OUTSIDE_RESOURCE_POOLS,
)
FOLDER_EXCLUSION_REASONS = (ExclusionReason.FOLDER, ExclusionReason.OUTSIDE_FOLDERS)


class HardwareVersionCheckMode(StrEnum):
    """
    Mutually exclusive ways of evaluating virtual hardware versions.

    Attributes:
        HOMOGENEOUS: all compute nodes are expected to share one version.
        DEFAULT_IS_MINIMUM: the host/cluster default version is the minimum.
        MINIMUM: an explicit minimum version is required.
        OUTDATED_BY: WARNING/CRITICAL when nodes lag the newest version by
            the given number of versions.
    """

    HOMOGENEOUS = "homogeneous"
    DEFAULT_IS_MINIMUM = "default-is-minimum"
    MINIMUM = "minimum"
    OUTDATED_BY = "outdated-by"


class CheckState(StrEnum):
    """Service check states, in the order monitoring systems rank them."""

    OK = "OK"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"
    UNKNOWN = "UNKNOWN"

    @property
    def exit_code(self) -> int:
        return CHECK_STATE_EXIT_CODES[self]


CHECK_STATE_EXIT_CODES = {
    CheckState.OK: 0,
    CheckState.WARNING: 1,
    CheckState.CRITICAL: 2,
    CheckState.UNKNOWN: 3,
}

ALARM_STATUS_CHECK_STATES = {
    AlarmStatus.GREEN: CheckState.OK,
    AlarmStatus.YELLOW: CheckState.WARNING,
    AlarmStatus.RED: CheckState.CRITICAL,
    AlarmStatus.GRAY: CheckState.UNKNOWN,
}

# ESX 2.x / GSX Server 3.x era. Anything lower is not a real hardware version.
MIN_HARDWARE_VERSION = 3

# used to track the mandatory kwargs for a ScopeFlowSettings object
SCOPEFLOW_SETTINGS_MANDATORY = ("inventory_file",)

SCOPEFLOW_DEFAULT_SETTINGS_FILE = "scopeflow.yaml"

SCOPEFLOW_DEFAULT_LOGGER = {
    "directory": ".scopeflow/logs",
    "level": "INFO",
}

# Supported inventory snapshot extensions (JSON is read through the YAML loader)
SCOPEFLOW_SUPPORTED_INVENTORY_EXTENSIONS = (".yaml", ".yml", ".json")

# Keywords in log messages whose values should be masked
PROTECTED_KEYWORDS = [
    "password",
    "passwd",
    "pwd",
    "secret",
    "token",
    "apikey",
    "api_key",
    "access_token",
    "auth_token",
    "authorization",
    "bearer",
    "sessionid",
    "session_id",
    "private_key",
    "client_secret",
    "credentials",
]
