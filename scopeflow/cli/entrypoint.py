import typer

from scopeflow.cli import check, show

app = typer.Typer(
    name="scopeflow",
    help="Decide which alarms and VMs of an inventory snapshot are in scope for monitoring.",
    add_completion=False,
    no_args_is_help=True,
)
app.add_typer(check.app, name="check")
app.command(name="show")(show.show)


@app.callback()
def main(
    ctx: typer.Context,
    settings: str = typer.Option(
        "",
        "--settings",
        "-s",
        help="Settings file. Falls back to $SCOPEFLOW_SETTINGS, then ./scopeflow.yaml.",
    ),
) -> None:
    # resolution of the fallbacks happens in ScopeFlowSettings.load
    ctx.obj = {"settings": settings}
