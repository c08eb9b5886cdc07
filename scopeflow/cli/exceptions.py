"""
Errors raised by the ScopeFlow command line.

They carry a hint for the operator and the exit code the command ends with,
and render themselves as a rich panel on stderr.
"""

import traceback

from rich.console import Console
from rich.panel import Panel

from scopeflow.constants import CheckState
from scopeflow.exceptions import ScopeFlowError

console = Console(stderr=True)


class ScopeFlowCLIError(ScopeFlowError):
    """
    Base class of command line errors.

    Exit with UNKNOWN unless told otherwise: a check that could not run must
    never look like a passing one to the monitoring system.
    """

    def __init__(
        self,
        message: str,
        hint: str | None = None,
        code: int = CheckState.UNKNOWN.exit_code,
        original_exception: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.code = code
        self.original_exception = original_exception

    def format_rich(self, show_traceback: bool = False) -> str:
        """Rich markup for the panel body."""
        lines = [f"[red bold]Error:[/] {self.message}"]
        if self.hint:
            lines.append(f"[yellow]Hint:[/] {self.hint}")

        cause = self.original_exception
        if cause is not None:
            lines += ["", f"[dim]Caused by {type(cause).__name__}: {cause!s}[/]"]
            if show_traceback and cause.__traceback__ is not None:
                lines.append(f"[dim]{''.join(traceback.format_tb(cause.__traceback__))}[/]")

        return "\n".join(lines)

    def show(self, show_traceback: bool = False) -> None:
        console.print(
            Panel(self.format_rich(show_traceback), title="[red]ScopeFlow CLI Error[/]", border_style="red")
        )


class CLIShowError(ScopeFlowCLIError):
    """The 'show' command could not display what was asked."""


class CLICheckError(ScopeFlowCLIError):
    """A check could not be evaluated."""
