import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, ClassVar

import yaml
from pydantic import ConfigDict, Field, PrivateAttr, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from scopeflow.constants import (
    SCOPEFLOW_DEFAULT_LOGGER,
    SCOPEFLOW_DEFAULT_SETTINGS_FILE,
    AlarmStatus,
    HardwareVersionCheckMode,
)
from scopeflow.exceptions import SettingsError
from scopeflow.models import (
    AlertFilterConfiguration,
    ComputeNodeFilterConfiguration,
    DimensionCriteria,
    FilterConfiguration,
    ScopeFlowBaseModel,
)
from scopeflow.validators import run_post_creation_validation


def split_values(value: Any) -> list[str]:
    """
    Normalize a YAML list or a comma-separated string into a list of values.

    Empty entries are dropped: an empty match value would match everything
    once compared as a substring.
    """
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    elif not isinstance(value, list | tuple | set):
        value = [value]
    return [str(item).strip() for item in value if str(item).strip()]


def normalize_statuses(keywords: list[str]) -> list[str]:
    """Fold status aliases onto their color values, keeping the first occurrence."""
    normalized: list[str] = []
    for keyword in keywords:
        status = AlarmStatus(keyword).value
        if status not in normalized:
            normalized.append(status)
    return normalized


class FilterSettingsSection(ScopeFlowBaseModel, ABC):
    """
    Base class for the filter sections of the settings file.

    Every `include_X`/`exclude_X` field pair maps onto one DimensionCriteria
    of the core filter configuration.
    """

    # dimensions for which inclusion and exclusion cannot be combined
    MUTUALLY_EXCLUSIVE: ClassVar[tuple[str, ...]] = ()

    @model_validator(mode="after")
    def run_validators(self) -> "FilterSettingsSection":
        run_post_creation_validation(self)
        self.normalize()
        return self

    def normalize(self) -> None:
        """Hook for canonicalizing values once every validator has passed."""

    def criteria(self, dimension: str) -> DimensionCriteria:
        return DimensionCriteria(
            included=getattr(self, f"include_{dimension}"),
            excluded=getattr(self, f"exclude_{dimension}"),
        )

    @abstractmethod
    def to_filter_configuration(self) -> FilterConfiguration:
        """Build the immutable core configuration for this section."""


class AlarmFilterSettings(FilterSettingsSection):
    """
    Filters for triggered alarms.

    Inclusion and exclusion cannot be combined for the same dimension.
    Status keywords accept the check-state aliases (critical, warning,
    unknown) and are stored as color values.
    """

    MUTUALLY_EXCLUSIVE: ClassVar[tuple[str, ...]] = (
        "entity_types",
        "entity_names",
        "entity_resource_pools",
        "names",
        "descriptions",
        "statuses",
    )

    include_entity_types: list[str] = Field(default_factory=list)
    exclude_entity_types: list[str] = Field(default_factory=list)
    include_entity_names: list[str] = Field(default_factory=list)
    exclude_entity_names: list[str] = Field(default_factory=list)
    include_entity_resource_pools: list[str] = Field(default_factory=list)
    exclude_entity_resource_pools: list[str] = Field(default_factory=list)
    include_names: list[str] = Field(default_factory=list)
    exclude_names: list[str] = Field(default_factory=list)
    include_descriptions: list[str] = Field(default_factory=list)
    exclude_descriptions: list[str] = Field(default_factory=list)
    include_statuses: list[str] = Field(default_factory=list)
    exclude_statuses: list[str] = Field(default_factory=list)
    evaluate_acknowledged: bool = Field(
        default=False, description="Keep previously acknowledged alarms in scope"
    )

    @field_validator(
        "include_entity_types",
        "exclude_entity_types",
        "include_entity_names",
        "exclude_entity_names",
        "include_entity_resource_pools",
        "exclude_entity_resource_pools",
        "include_names",
        "exclude_names",
        "include_descriptions",
        "exclude_descriptions",
        "include_statuses",
        "exclude_statuses",
        mode="before",
    )
    @classmethod
    def validate_lists(cls, v: Any) -> list[str]:
        return split_values(v)

    def normalize(self) -> None:
        self.include_statuses = normalize_statuses(self.include_statuses)
        self.exclude_statuses = normalize_statuses(self.exclude_statuses)

    def to_filter_configuration(self) -> AlertFilterConfiguration:
        return AlertFilterConfiguration(
            entity_types=self.criteria("entity_types"),
            entity_names=self.criteria("entity_names"),
            entity_resource_pools=self.criteria("entity_resource_pools"),
            names=self.criteria("names"),
            descriptions=self.criteria("descriptions"),
            statuses=self.criteria("statuses"),
            evaluate_acknowledged=self.evaluate_acknowledged,
        )


class ComputeNodeFilterSettings(FilterSettingsSection):
    """Filters for virtual machines."""

    MUTUALLY_EXCLUSIVE: ClassVar[tuple[str, ...]] = ("resource_pools", "folders")

    include_names: list[str] = Field(default_factory=list)
    exclude_names: list[str] = Field(default_factory=list)
    include_resource_pools: list[str] = Field(default_factory=list)
    exclude_resource_pools: list[str] = Field(default_factory=list)
    include_folders: list[str] = Field(default_factory=list)
    exclude_folders: list[str] = Field(default_factory=list)
    evaluate_powered_off: bool = Field(
        default=False, description="Keep powered off and suspended VMs in scope"
    )

    @field_validator(
        "include_names",
        "exclude_names",
        "include_resource_pools",
        "exclude_resource_pools",
        "include_folders",
        "exclude_folders",
        mode="before",
    )
    @classmethod
    def validate_lists(cls, v: Any) -> list[str]:
        return split_values(v)

    def to_filter_configuration(self) -> ComputeNodeFilterConfiguration:
        return ComputeNodeFilterConfiguration(
            names=self.criteria("names"),
            resource_pools=self.criteria("resource_pools"),
            folders=self.criteria("folders"),
            evaluate_powered_off=self.evaluate_powered_off,
        )


def resolve_hardware_version_mode(
    minimum_version: int | None,
    outdated_by_warning: int | None,
    outdated_by_critical: int | None,
    default_is_minimum: bool,
) -> HardwareVersionCheckMode:
    """
    Select the single hardware version check behaviour the options describe.

    Raises:
        SettingsError: If the options mix more than one behaviour or the
            outdated-by thresholds are incomplete or inverted.
    """
    outdated_by = outdated_by_warning is not None or outdated_by_critical is not None
    requested = [
        mode
        for mode, selected in (
            (HardwareVersionCheckMode.DEFAULT_IS_MINIMUM, default_is_minimum),
            (HardwareVersionCheckMode.MINIMUM, minimum_version is not None),
            (HardwareVersionCheckMode.OUTDATED_BY, outdated_by),
        )
        if selected
    ]

    if not requested:
        return HardwareVersionCheckMode.HOMOGENEOUS

    if len(requested) > 1:
        raise SettingsError(
            f"unsupported mode requested, only one of {', '.join(m.value for m in requested)} may be used",
            setting="hardware",
        )

    mode = requested[0]
    if mode == HardwareVersionCheckMode.OUTDATED_BY:
        if outdated_by_warning is None:
            raise SettingsError(
                "outdated by critical threshold specified, but not warning threshold; both critical "
                "and warning thresholds must be set if using outdated-by mode",
                setting="hardware",
            )
        if outdated_by_critical is None:
            raise SettingsError(
                "outdated by warning threshold specified, but not critical threshold; both critical "
                "and warning thresholds must be set if using outdated-by mode",
                setting="hardware",
            )
        if outdated_by_critical <= outdated_by_warning:
            raise SettingsError(
                "outdated by critical threshold set lower than or equal to warning threshold",
                setting="hardware",
            )
    return mode


class HardwareVersionSettings(ScopeFlowBaseModel):
    """
    Virtual hardware version check options.

    The options are mutually exclusive; the combination in use is resolved
    into `mode` while the settings are validated and never changes afterwards.
    The resolved mode is for display only: `as_dict` and `show --settings`
    read it, and no check consumes it.
    """

    minimum_version: int | None = None
    outdated_by_warning: int | None = None
    outdated_by_critical: int | None = None
    default_is_minimum: bool = False

    model_config = ConfigDict(extra="forbid", frozen=True)

    @model_validator(mode="after")
    def validate_mode(self) -> "HardwareVersionSettings":
        run_post_creation_validation(self)
        resolve_hardware_version_mode(
            self.minimum_version,
            self.outdated_by_warning,
            self.outdated_by_critical,
            self.default_is_minimum,
        )
        return self

    @property
    def mode(self) -> HardwareVersionCheckMode:
        return resolve_hardware_version_mode(
            self.minimum_version,
            self.outdated_by_warning,
            self.outdated_by_critical,
            self.default_is_minimum,
        )


class ScopeFlowSettings(BaseSettings):
    """
    ScopeFlow settings management using Pydantic.

    Settings are loaded with the following priority (highest to lowest):
    1. Programmatic overrides passed to load()
    2. Values from settings YAML file
    3. Environment variables (prefixed with SCOPEFLOW_SETTINGS_)
    4. Default values defined in the model

    Nested sections are merged, so an environment variable can supply a
    section field the YAML file leaves out.

    Environment variable examples:
    - SCOPEFLOW_SETTINGS_INVENTORY_FILE=/srv/snapshots/vc1.yaml
    - SCOPEFLOW_SETTINGS_LOG_LEVEL=DEBUG
    - SCOPEFLOW_SETTINGS_ALARMS__EVALUATE_ACKNOWLEDGED=true
    - SCOPEFLOW_SETTINGS_ALARMS__INCLUDE_STATUSES='["red"]'
    """

    model_config = SettingsConfigDict(
        env_prefix="SCOPEFLOW_SETTINGS_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="forbid",
    )

    inventory_file: str = Field(description="Path to the inventory snapshot (required)")
    log_dir: str = Field(
        default=SCOPEFLOW_DEFAULT_LOGGER["directory"], description="Directory for check log files"
    )
    log_level: str = Field(default=SCOPEFLOW_DEFAULT_LOGGER["level"], description="Log file level")

    alarms: AlarmFilterSettings = Field(default_factory=AlarmFilterSettings)
    vms: ComputeNodeFilterSettings = Field(default_factory=ComputeNodeFilterSettings)
    hardware: HardwareVersionSettings = Field(default_factory=HardwareVersionSettings)

    _base_dir: Path | None = PrivateAttr(default=None)
    _settings_file: str | None = PrivateAttr(default=None)

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: Any) -> str:
        """Accept any letter case for level names."""
        level = str(v).upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level: {v}")
        return level

    def resolve_relative_paths(self) -> "ScopeFlowSettings":
        """Resolve relative paths to absolute paths based on base directory."""
        base_dir = self.base_dir
        if not base_dir:
            return self

        for field_name in ("inventory_file", "log_dir"):
            path = Path(getattr(self, field_name))
            if not path.is_absolute():
                setattr(self, field_name, str(base_dir / path))

        return self

    @classmethod
    def load(
        cls, settings_file: str | None = None, base_dir: Path | None = None, **overrides: Any
    ) -> "ScopeFlowSettings":
        """
        Load settings from a YAML file with automatic resolution and overrides.

        Settings file resolution priority (highest to lowest):
        1. Explicit settings_file parameter
        2. SCOPEFLOW_SETTINGS environment variable
        3. Default "scopeflow.yaml" in current directory

        Args:
            settings_file: Path to settings YAML file.
            base_dir: Base directory for resolving relative paths. If None, uses the
                     directory containing the resolved settings file.
            **overrides: Settings overriding YAML values, e.g. alarms={"evaluate_acknowledged": True}.
                        Section overrides are merged into the section read from the file.

        Returns:
            ScopeFlowSettings instance with all paths resolved.

        Raises:
            SettingsError: If the settings file is missing, unreadable or invalid.
        """
        resolved_file = settings_file or os.getenv("SCOPEFLOW_SETTINGS") or SCOPEFLOW_DEFAULT_SETTINGS_FILE

        settings_path = Path(resolved_file).resolve()

        if not settings_path.exists():
            raise SettingsError(
                f"Settings file not found: {resolved_file}\n"
                f"Resolved to absolute path: {settings_path}\n"
                f"Current working directory: {Path.cwd()}"
            )

        if not base_dir:
            base_dir = settings_path.parent

        try:
            with settings_path.open(encoding="utf-8") as f:
                yaml_data = yaml.safe_load(f) or {}
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            raise SettingsError(f"Failed to load settings from {resolved_file}: {e}") from e

        if not isinstance(yaml_data, dict):
            raise SettingsError(
                f"Settings file must contain a YAML dictionary, got {type(yaml_data).__name__}"
            )

        settings_data = dict(yaml_data)
        for key, value in overrides.items():
            if isinstance(value, dict) and isinstance(settings_data.get(key), dict):
                settings_data[key] = {**settings_data[key], **value}
            else:
                settings_data[key] = value

        try:
            instance = cls(**settings_data)
        except ValidationError as e:
            raise SettingsError(f"Invalid settings in {resolved_file}:\n{e}") from e

        instance._base_dir = base_dir
        instance._settings_file = str(settings_path)

        return instance.resolve_relative_paths()

    @property
    def as_dict(self) -> dict[str, Any]:
        """Get settings as a dictionary."""
        data = self.model_dump()
        data["hardware"]["mode"] = self.hardware.mode.value
        return data

    @property
    def base_dir(self) -> Path | None:
        """Get the base directory for resolving relative paths if available."""
        if self._base_dir:
            return self._base_dir
        if self._settings_file:
            return Path(self._settings_file).parent
        return None

    @property
    def settings_file(self) -> str | None:
        return self._settings_file

    def __str__(self) -> str:
        return str(self.as_dict)
