"""
Main CLI entry point.
"""

import typer

from ftpfetch import __version__
from ftpfetch.cli import jobs, run, secrets


def version_callback(value: bool):
    """Callback to display version and exit."""
    if value:
        typer.echo(f"ftpfetch version {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="ftpfetch",
    help="ftpfetch - scheduled FTP/SFTP download jobs",
    add_completion=False,
)

app.command("run")(run.run)
app.command("jobs")(jobs.jobs)
app.command("encrypt")(secrets.encrypt)
app.command("generate-key")(secrets.generate)


@app.callback(invoke_without_command=True)
def entrypoint(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
):
    """
    ftpfetch - scheduled FTP/SFTP download jobs.

    Run 'ftpfetch <command> --help' for help on a specific command.
    """
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def main():
    """Main CLI entry point."""
    app()


if __name__ == "__main__":
    main()
