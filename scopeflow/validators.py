"""
Post-creation validation for settings sections.

Validators are discovered by name, no registration required:

- `{field_name}_validator(section)` runs for every section that declares a
  field of that name.
- `universal_*_validator(section, dimension)` runs for every dimension a
  section lists in `MUTUALLY_EXCLUSIVE`.

Every validator must return a tuple (bool, str). If the first element is
False the second one is used as the error message.
"""

import sys

from pydantic import BaseModel

from scopeflow.constants import ALARM_STATUSES_NOT_FILTERABLE, MIN_HARDWARE_VERSION, AlarmStatus
from scopeflow.exceptions import SettingsError


def run_post_creation_validation(section: BaseModel) -> None:
    """
    Run every validator that applies to a settings section.

    Args:
        section: The settings section to validate.

    Raises:
        SettingsError: If any validator rejects the section.
    """
    current_module = sys.modules[__name__]

    for field_name in type(section).model_fields:
        validator_name = f"{field_name}_validator"
        if hasattr(current_module, validator_name):
            _check(current_module, validator_name, field_name, section)

    universal_validators = [
        name for name in dir(current_module) if name.startswith("universal_") and name.endswith("_validator")
    ]
    for dimension in getattr(section, "MUTUALLY_EXCLUSIVE", ()):
        for validator_name in universal_validators:
            _check(current_module, validator_name, dimension, section, dimension)


def _check(module, validator_name: str, setting: str, *args) -> None:
    validator_func = getattr(module, validator_name)
    try:
        result = validator_func(*args)
    except SettingsError:
        raise
    except Exception as e:
        raise SettingsError(f"Validator error: {e}", setting=setting) from e

    if not isinstance(result, tuple) or len(result) != 2:
        raise SettingsError(
            f"Validator '{validator_name}' must return a tuple (bool, str), got {type(result).__name__}",
            setting=setting,
        )

    is_valid, error_message = result
    if is_valid is False:
        raise SettingsError(error_message or f"rejected by '{validator_name}'", setting=setting)


def _invalid_status_keywords(keywords: list[str]) -> list[str]:
    invalid = []
    for keyword in keywords:
        try:
            status = AlarmStatus(keyword)
        except ValueError:
            invalid.append(keyword)
            continue
        if status in ALARM_STATUSES_NOT_FILTERABLE:
            invalid.append(keyword)
    return invalid


def include_statuses_validator(section) -> tuple[bool, str]:
    """
    Reject unknown status keywords and green/ok for inclusion.

    Alarms never trigger for the green status, so filtering on it is always
    an operator mistake.
    """
    invalid = _invalid_status_keywords(section.include_statuses)
    if invalid:
        return (False, f"invalid triggered alarm status for inclusion: {', '.join(repr(k) for k in invalid)}")
    return (True, "")


def exclude_statuses_validator(section) -> tuple[bool, str]:
    """Reject unknown status keywords and green/ok for exclusion."""
    invalid = _invalid_status_keywords(section.exclude_statuses)
    if invalid:
        return (False, f"invalid triggered alarm status for exclusion: {', '.join(repr(k) for k in invalid)}")
    return (True, "")


def minimum_version_validator(section) -> tuple[bool, str]:
    # ESX 2.x, GSX Server 3.x, Workstation 4.x & 5.x
    if section.minimum_version is not None and section.minimum_version < MIN_HARDWARE_VERSION:
        return (
            False,
            f"invalid value specified for minimum virtual hardware version: {section.minimum_version} "
            f"(lowest supported is {MIN_HARDWARE_VERSION})",
        )
    return (True, "")


def outdated_by_warning_validator(section) -> tuple[bool, str]:
    if section.outdated_by_warning is not None and section.outdated_by_warning < 1:
        return (False, "invalid value specified for outdated by warning threshold")
    return (True, "")


def outdated_by_critical_validator(section) -> tuple[bool, str]:
    if section.outdated_by_critical is not None and section.outdated_by_critical < 1:
        return (False, "invalid value specified for outdated by critical threshold")
    return (True, "")


def universal_mutually_exclusive_validator(section, dimension: str) -> tuple[bool, str]:
    """
    Inclusion and exclusion lists of the same dimension cannot be combined.

    Args:
        section: The settings section being validated.
        dimension: Base name of the pair (e.g. 'statuses' for include_statuses/exclude_statuses).
    """
    include_field = f"include_{dimension}"
    exclude_field = f"exclude_{dimension}"
    if getattr(section, include_field) and getattr(section, exclude_field):
        return (False, f"only one of '{include_field}' or '{exclude_field}' may be specified")
    return (True, "")
