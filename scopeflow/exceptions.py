"""
Exceptions raised by ScopeFlow.

Everything derives from ScopeFlowError, so callers embedding the package can
catch a single type. The CLI maps each family onto an exit code.
"""


###############################################################################
# ROOT EXCEPTION
###############################################################################


class ScopeFlowError(Exception):
    """Common ancestor of all ScopeFlow errors. Raise one of the subclasses."""


###############################################################################
# CORE EXCEPTIONS
###############################################################################


class CoreError(ScopeFlowError):
    """Errors of the filtering core, prefixed with the component that raised them."""

    def __init__(self, message: str = "", component: str = ""):
        prefix = f"{component}: " if component else ""
        super().__init__(f"{prefix}{message}")
        self.component = component


class FilterError(CoreError):
    """
    Raised when the filter pipeline is misused.

    The pipeline itself is total for valid input. This error only signals
    programming mistakes such as handing alerts to a compute-node pipeline.
    """

    def __init__(self, message: str = "", filter_name: str = ""):
        self.filter_name = filter_name
        prefix = f"Filter '{filter_name}': " if filter_name else ""
        super().__init__(f"{prefix}{message}", component="FilterPipeline")


###############################################################################
# SETTINGS EXCEPTIONS
###############################################################################


class SettingsError(ScopeFlowError):
    """
    Invalid settings, naming the offending setting when known.

    Every invalid operator configuration surfaces as one of these before any
    inventory is loaded.
    """

    def __init__(self, message: str = "", setting: str = ""):
        prefix = f"Setting '{setting}': " if setting else ""
        super().__init__(f"{prefix}{message}")
        self.setting = setting


###############################################################################
# RESOURCE EXCEPTIONS
###############################################################################


class ResourceError(ScopeFlowError):
    """Inventory snapshots or other files that cannot be read or parsed."""

    def __init__(self, message: str = "", resource_type: str = "", resource_name: str = ""):
        prefix = f"{resource_type} '{resource_name}': " if resource_type and resource_name else ""
        super().__init__(f"{prefix}{message}")
        self.resource_type = resource_type
        self.resource_name = resource_name
