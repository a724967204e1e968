"""
ftpfetch run - Execute one configured download job once.
"""

from pathlib import Path

import typer
from rich.console import Console

from ftpfetch.config.loader import load_config
from ftpfetch.exceptions import ConfigurationError
from ftpfetch.jobs.context import JobExecutionContext
from ftpfetch.jobs.download_job import FtpDownloadJob
from ftpfetch.utils.logging import get_logger, setup_logging_from_config

logger = get_logger("ftpfetch.cli.run")

console = Console(stderr=True)

EXIT_TRANSFER_ERROR = 1
EXIT_CONFIGURATION_ERROR = 2


def _parse_overrides(values: list[str] | None) -> dict[str, str]:
    overrides: dict[str, str] = {}
    for item in values or []:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"expected KEY=VALUE, got '{item}'", param_hint="--set")
        overrides[key.strip()] = value
    return overrides


def run(
    job: str = typer.Argument(..., help="Job name under 'jobs:' in config.yaml"),
    env: str | None = typer.Option(None, help="Environment (dev, staging, prod)"),
    project_dir: Path = typer.Option(Path.cwd(), "--project-dir", "-d", help="Directory holding config.yaml"),
    overrides: list[str] | None = typer.Option(
        None, "--set", "-s", help="Override a job parameter for this run (KEY=VALUE, repeatable)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """
    Execute a download job once.

    Exit code 0 on success, 1 on a connection/transfer failure (worth
    retrying), 2 on a configuration error.
    """
    trigger_data = _parse_overrides(overrides)

    try:
        config = load_config(project_dir, env=env)
        if verbose:
            config.data["logging"] = {**(config.data.get("logging") or {}), "level": "DEBUG"}
        setup_logging_from_config(config.data, project_dir=project_dir)
        job_data = config.job_parameters(job)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e.message}")
        raise typer.Exit(EXIT_CONFIGURATION_ERROR) from e

    logger.info(f"Running job {job}")
    result = FtpDownloadJob.from_config(config).execute(
        JobExecutionContext(job_name=job, job_data=job_data, trigger_data=trigger_data)
    )

    if result.success:
        console.print(f"[green]{job}[/green]: downloaded {result.files_downloaded} file(s)")
        return

    if result.retryable:
        console.print(f"[red]{job} failed[/red] ({result.failed_at.value}, retryable): {result.message}")
        raise typer.Exit(EXIT_TRANSFER_ERROR)

    console.print(f"[red]{job} failed[/red] (configuration): {result.message}")
    raise typer.Exit(EXIT_CONFIGURATION_ERROR)
