import ast
import re
from pathlib import Path
from typing import Any

import typer

from scopeflow.cli.exceptions import CLICheckError
from scopeflow.constants import CheckState
from scopeflow.exceptions import ResourceError, ScopeFlowError, SettingsError
from scopeflow.inventory import load_inventory
from scopeflow.logger import logger
from scopeflow.pipeline import apply_filters
from scopeflow.report import AlertReport, CheckReport, ComputeNodeReport
from scopeflow.settings import ScopeFlowSettings

app = typer.Typer(help="Evaluate inventory snapshots as monitoring checks")

FILTERS_OPTION = typer.Option(
    None,
    "--filters",
    "-f",
    help=(
        "Override filter settings of the check, e.g. "
        "\"include_statuses=red,yellow\" or \"exclude_names=['cpu usage', 'memory usage']\""
    ),
)
INVENTORY_OPTION = typer.Option(
    None, "--inventory", "-i", help="Path to an inventory snapshot, overriding the settings file."
)
VERBOSE_OPTION = typer.Option(
    True, "--verbose/--brief", "-v/-b", help="Print the long output after the summary line."
)

# Splits on commas that are NOT inside any type of quotes or brackets
PAIR_SEPARATOR = re.compile(
    r"""
    ,                           # Match a comma
    (?=                         # Followed by (positive lookahead)
        (?:                     # Non-capturing group
            [^"'\[\]]*          # Any chars except quotes/brackets
            (?:                 # Non-capturing group
                "[^"]*"         # Double quoted content
                |'[^']*'        # OR single quoted content
                |\[[^\]]*\]     # OR square bracket content
            )
        )*                      # Zero or more times
        [^"'\[\]]*              # Any chars except quotes/brackets
        $                       # Until end of string
    )
    """,
    flags=re.VERBOSE,
)


def csv_to_list(value: str | list | None) -> list[str]:
    """
    Convert a comma-separated string or list into a list of stripped strings.

    Args:
        value: The input value to process.

    Returns:
        List of strings with whitespace stripped.
    """
    if not value:
        return []
    if isinstance(value, list):
        value = ",".join(value)
    return [x.strip() for x in value.split(",")]


def process_value(value_str: str) -> Any:
    """
    Process a string value into the appropriate Python type.

    Quoted values stay strings, lists and booleans are parsed as Python
    literals and anything else with commas is read as a CSV list.
    """
    if (value_str.startswith('"') and value_str.endswith('"')) or (
        value_str.startswith("'") and value_str.endswith("'")
    ):
        return value_str[1:-1]

    try:
        return ast.literal_eval(value_str)
    except (ValueError, SyntaxError):
        if "," in value_str and not value_str.startswith("["):
            return csv_to_list(value_str)
        return value_str


def parse_key_value_pairs(value: str | None, error_context: str) -> dict[str, Any]:
    """
    Parse a string of key=value pairs into a dictionary.

    Commas split pairs unless they sit inside quotes or brackets. A fragment
    without '=' continues the value of the previous key, so unquoted CSV
    values work as expected.

    Args:
        value: String containing key=value pairs, e.g. "include_statuses=red,yellow,evaluate_acknowledged=true".
        error_context: Context for error messages, e.g. "filters".

    Returns:
        Dictionary of parsed key-value pairs.

    Raises:
        CLICheckError: If parsing fails, with examples.

    Examples:
        - "exclude_names='cpu usage'" -> {"exclude_names": "cpu usage"}
        - "include_statuses=red,yellow" -> {"include_statuses": ["red", "yellow"]}
        - "exclude_names=['cpu usage', 'memory usage'],evaluate_acknowledged=True"
          -> {"exclude_names": ["cpu usage", "memory usage"], "evaluate_acknowledged": True}
    """
    if not value:
        return {}

    try:
        raw_pairs: list[list[str]] = []
        for fragment in PAIR_SEPARATOR.split(value):
            if "=" in fragment and not fragment.strip().startswith(("'", '"', "[")):
                k, v = fragment.split("=", 1)
                raw_pairs.append([k.strip().strip("'\""), v.strip()])
            elif raw_pairs:
                raw_pairs[-1][1] += f",{fragment.strip()}"
            else:
                raise ValueError(f"Invalid {error_context} format: {fragment}.")

        return {k: process_value(v) for k, v in raw_pairs}

    except Exception as e:
        raise CLICheckError(
            f"{error_context.capitalize()} format examples:\n"
            f"- Simple values: \"key='value'\"\n"
            f"- Lists: \"key=['value1', 'value2']\" or \"key=value1,value2,value3\"\n"
            f"- Toggles: \"evaluate_acknowledged=True\"\n"
            f"Error: {e!s}",
            hint="Check the syntax of the --filters option.",
        ) from e


def load_check_settings(
    ctx: typer.Context, section: str, filters: str | None, inventory: str | None
) -> ScopeFlowSettings:
    """Load settings with the CLI overrides merged into the check's section."""
    overrides: dict[str, Any] = {}

    section_overrides = parse_key_value_pairs(filters, "filters")
    if section_overrides:
        overrides[section] = section_overrides

    if inventory:
        # relative to where the CLI runs, not to the settings file
        overrides["inventory_file"] = str(Path(inventory).resolve())

    settings_file = ctx.obj.get("settings") if ctx.obj else None
    return ScopeFlowSettings.load(settings_file or None, **overrides)


def build_report(section: str, settings: ScopeFlowSettings) -> CheckReport:
    """Load the inventory, apply the filters of the section and build its report."""
    snapshot = load_inventory(settings.inventory_file)

    if section == "alarms":
        config = settings.alarms.to_filter_configuration()
        result = apply_filters(snapshot.alerts, config)
        return AlertReport(result.entities, result.tally, config)

    config = settings.vms.to_filter_configuration()
    result = apply_filters(snapshot.compute_nodes, config)
    return ComputeNodeReport(result.entities, result.tally, config)


def run_check(ctx: typer.Context, section: str, filters: str | None, inventory: str | None, verbose: bool) -> None:
    """Run one check end to end and exit with the code of its state."""
    try:
        settings = load_check_settings(ctx, section, filters, inventory)
        logger.set_execution_context(section, "check", settings.log_dir, settings.log_level)
        try:
            report = build_report(section, settings)
        finally:
            logger.clear_execution_context()

    except CLICheckError as e:
        e.show()
        raise typer.Exit(code=e.code) from None

    except SettingsError as e:
        CLICheckError(
            message=f"Invalid settings: {e}",
            hint="Check your scopeflow.yaml and the --filters option.",
            original_exception=e,
        ).show()
        raise typer.Exit(code=CheckState.UNKNOWN.exit_code) from None

    except ResourceError as e:
        CLICheckError(
            message=f"Could not load the inventory snapshot: {e}",
            hint="Check the 'inventory_file' setting or the --inventory option.",
            original_exception=e,
        ).show()
        raise typer.Exit(code=CheckState.UNKNOWN.exit_code) from None

    except ScopeFlowError as e:
        CLICheckError(
            message=f"ScopeFlow error: {e}",
            hint="Check your configuration and try again.",
            original_exception=e,
        ).show()
        raise typer.Exit(code=CheckState.UNKNOWN.exit_code) from None

    except (FileNotFoundError, PermissionError) as e:
        CLICheckError(
            message=f"File system error: {e}",
            hint="Check file permissions and make sure the 'log_dir' setting points to a writable directory.",
            original_exception=e,
        ).show()
        raise typer.Exit(code=CheckState.UNKNOWN.exit_code) from None

    typer.echo(report.render(verbose))
    raise typer.Exit(code=report.exit_code)


@app.command()
def alarms(
    ctx: typer.Context,
    filters: str | None = FILTERS_OPTION,
    inventory: str | None = INVENTORY_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """
    Evaluate triggered alarms, reporting the worst status left in scope.
    """
    run_check(ctx, "alarms", filters, inventory, verbose)


@app.command()
def vms(
    ctx: typer.Context,
    filters: str | None = FILTERS_OPTION,
    inventory: str | None = INVENTORY_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """
    List the VMs left in scope after filtering.
    """
    run_check(ctx, "vms", filters, inventory, verbose)
