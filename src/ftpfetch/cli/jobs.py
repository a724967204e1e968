"""
ftpfetch jobs - List configured download jobs.
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from ftpfetch.config.loader import load_config
from ftpfetch.exceptions import ConfigurationError
from ftpfetch.jobs.parameters import CUT_OFF, FILE_EXTENSIONS, FTP_HOST, LOCAL_DIRECTORY_PATH, SERVER_PORT

console = Console()


def jobs(
    env: str | None = typer.Option(None, help="Environment"),
    project_dir: Path = typer.Option(Path.cwd(), "--project-dir", "-d", help="Directory holding config.yaml"),
) -> None:
    """
    Show the jobs defined in config.yaml. Credentials are never printed.
    """
    try:
        config = load_config(project_dir, env=env)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e.message}")
        raise typer.Exit(2) from e

    if not config.jobs:
        console.print("[yellow]No jobs configured[/yellow]")
        return

    table = Table(title=f"Jobs ({len(config.jobs)})", show_header=True)
    table.add_column("Name", style="cyan")
    table.add_column("Host", style="green")
    table.add_column("Extensions", style="magenta")
    table.add_column("Cut-off", style="yellow")
    table.add_column("Local directory", style="dim")

    for name in sorted(config.jobs):
        params = (config.jobs[name] or {}).get("parameters", {}) or {}
        host = str(params.get(FTP_HOST, "-"))
        if params.get(SERVER_PORT):
            host = f"{host}:{params[SERVER_PORT]}"
        table.add_row(
            name,
            host,
            str(params.get(FILE_EXTENSIONS, "-")),
            str(params.get(CUT_OFF, "1.00:00:00")),
            str(params.get(LOCAL_DIRECTORY_PATH, "-")),
        )

    console.print(table)
