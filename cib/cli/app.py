from __future__ import annotations

import typer

from cib.cli.context import build_context, build_orchestrator
from cib.core.result import Err
from cib.output.errors import stage_error_exit_code

app = typer.Typer(
    add_completion=False,
    no_args_is_help=False,
    rich_markup_mode="rich",
)


@app.command()
def build(
    push: bool = typer.Option(False, "--push", help="Log in to the registries and push the images."),
) -> None:
    """Build (and test) the images described by build.yaml."""
    ctx = build_context(push=push)
    orchestrator = build_orchestrator(ctx)

    result = orchestrator.run(ctx.manifest)
    if isinstance(result, Err):
        typer.echo(f"error: {result.error}", err=True)
        raise typer.Exit(code=stage_error_exit_code(result.error))

    action = "built and pushed" if push else "built"
    ctx.console.success(f"{result.value} image(s) {action}")


def main() -> None:
    app()
