import json
import textwrap
from typing import Any

import typer
from tabulate import tabulate
from termcolor import colored

from scopeflow.cli.constants import ENTITY_DESCRIPTION_WIDTH
from scopeflow.cli.exceptions import CLIShowError
from scopeflow.constants import AlarmStatus
from scopeflow.exceptions import ScopeFlowError
from scopeflow.inventory import InventorySnapshot, load_inventory
from scopeflow.models import Alert, ComputeNode
from scopeflow.pipeline import FilterResult, apply_filters
from scopeflow.settings import ScopeFlowSettings

STATUS_COLORS = {
    AlarmStatus.RED: "red",
    AlarmStatus.YELLOW: "yellow",
    AlarmStatus.GRAY: "light_grey",
    AlarmStatus.GREEN: "green",
}


def show(
    ctx: typer.Context,
    settings: bool = typer.Option(False, "--settings", "-s", help="Display current ScopeFlow Settings"),
    alarms: bool = typer.Option(
        False, "--alarms", "-a", help="Display triggered alarms and whether each one is in scope"
    ),
    vms: bool = typer.Option(False, "--vms", "-v", help="Display VMs and whether each one is in scope"),
    all: bool = typer.Option(False, "--all", help="Display all information"),
) -> None:
    """
    Displays settings and the filtered inventory of ScopeFlow.
    """
    if not any([settings, alarms, vms, all]):
        raise typer.BadParameter("You must provide at least one option: --settings, --alarms, --vms, or --all.")

    try:
        settings_file = ctx.obj.get("settings") if ctx.obj else None
        scopeflow_settings = ScopeFlowSettings.load(settings_file or None)

        if settings or all:
            show_scopeflow_settings(scopeflow_settings)

        if alarms or vms or all:
            snapshot = load_inventory(scopeflow_settings.inventory_file)
            if alarms or all:
                show_alarms(scopeflow_settings, snapshot)
            if vms or all:
                show_vms(scopeflow_settings, snapshot)

    except ScopeFlowError as e:
        CLIShowError(
            message=f"ScopeFlow configuration error: {e}",
            hint="Check your ScopeFlow settings and verify that the inventory snapshot is available.",
            original_exception=e,
        ).show()
        raise typer.Exit(code=2) from None

    except (FileNotFoundError, PermissionError) as e:
        CLIShowError(
            message=f"File system error: {e}",
            hint="Check file permissions and ensure all referenced files exist.",
            original_exception=e,
        ).show()
        raise typer.Exit(code=2) from None


def show_scopeflow_settings(settings: ScopeFlowSettings) -> None:
    """Display the ScopeFlow settings."""
    show_formatted_table("SCOPEFLOW SETTINGS", render_table_data(settings.as_dict), ["Setting", "Value"])


def show_alarms(settings: ScopeFlowSettings, snapshot: InventorySnapshot) -> None:
    """Display triggered alarms after filtering."""
    result = apply_filters(snapshot.alerts, settings.alarms.to_filter_configuration())
    show_formatted_table(
        "TRIGGERED ALARMS",
        render_alarms_table_data(result),
        ["Entity", "Type", "Alarm", "Status", "Acknowledged", "Scope"],
    )
    show_tally(result)


def show_vms(settings: ScopeFlowSettings, snapshot: InventorySnapshot) -> None:
    """Display VMs after filtering."""
    result = apply_filters(snapshot.compute_nodes, settings.vms.to_filter_configuration())
    show_formatted_table(
        "VMS",
        render_vms_table_data(result),
        ["Name", "Power State", "Resource Pool", "Hardware Version", "Folder", "Scope"],
    )
    show_tally(result)


def show_tally(result: FilterResult) -> None:
    tally = result.tally
    typer.echo(
        colored(
            f"{tally.remaining} in scope, {tally.excluded} excluded, {tally.total} total",
            "light_green",
            attrs=["bold"],
        )
    )


def show_formatted_table(banner_text: str, table_data: list[list[str]], headers: list[str]) -> None:
    """Display information in a formatted table.

    Args:
        banner_text: The text to display in the banner.
        table_data: The rows of the table.
        headers: The headers for the table.
    """
    if not table_data:
        display_banner(banner_text, "")
        typer.echo(colored("Nothing to display", "yellow"))
        return

    colored_headers = get_colored_headers(headers, "blue")
    table = tabulate(table_data, headers=colored_headers, tablefmt="rounded_grid")
    display_banner(banner_text, table)
    typer.echo(table)


def render_scope(entity: Alert | ComputeNode) -> str:
    """Colored scope verdict along with the reasons of an exclusion."""
    if not entity.excluded:
        return colored("included", "green")
    reasons = ", ".join(sorted(reason.value for reason in entity.exclusion_reasons))
    return colored(f"excluded ({reasons})", "red")


def render_alarms_table_data(result: FilterResult) -> list[list[str]]:
    """Render triggered alarms as a list of lists.

    Args:
        result: The filtered alarms.

    Returns:
        The table data.
    """
    table_data = []
    for alert in result.entities:
        table_data.append(
            [
                colored(alert.entity_name, "cyan", attrs=["bold"]),
                alert.entity_type,
                textwrap.fill(alert.name, width=ENTITY_DESCRIPTION_WIDTH),
                colored(alert.status.value, STATUS_COLORS[alert.status]),
                "yes" if alert.acknowledged else "no",
                render_scope(alert),
            ]
        )
    return table_data


def render_vms_table_data(result: FilterResult) -> list[list[str]]:
    """Render VMs as a list of lists."""
    table_data = []
    for node in result.entities:
        table_data.append(
            [
                colored(node.name, "cyan", attrs=["bold"]),
                node.power_state.value,
                node.resource_pool or "-",
                str(node.hardware_version) if node.hardware_version is not None else "-",
                node.folder or "-",
                render_scope(node),
            ]
        )
    return table_data


def render_table_data(
    data: dict[str, Any], key_color: str = "cyan", value_color: str = "yellow"
) -> list[list[str]]:
    """Render a dictionary as a list of lists.

    Args:
        data: The dictionary to render.
        key_color: The color for the keys.
        value_color: The color for the values.

    Returns:
        The table data.
    """
    table_data = []
    for key, value in data.items():
        colored_key = colored(key, key_color, attrs=["bold"])
        formatted_value = format_value(value, value_color)
        table_data.append([colored_key, formatted_value])
    return table_data


def format_value(value: Any, color: str = "yellow") -> str:
    """Format the value for display in the table.

    Args:
        value: The value to format.
        color: The color to use for the formatted value.

    Returns:
        The formatted value.
    """
    if isinstance(value, dict):
        value_str = json.dumps(value, indent=2)
        value_str = value_str[1:-1].strip()
    else:
        value_str = str(value)
    return colored(value_str, color)


def get_colored_headers(headers: list[str], color: str) -> list[str]:
    return [colored(header, color, attrs=["bold"]) for header in headers]


def display_banner(banner_text: str, table: str) -> None:
    """Create a banner with the given text and display it above the table.

    Args:
        banner_text: The text to display in the banner.
        table: The table string to determine the width for centering the banner.
    """
    banner = colored(banner_text, "magenta", attrs=["bold", "underline"])

    table_width = len(table.split("\n")[0])
    centered_banner = banner.center(table_width + 5)

    typer.echo("\n\n" + centered_banner)
