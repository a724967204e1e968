"""
Run every job of the demo project once.
"""

from __future__ import annotations

from pathlib import Path

from ftpfetch.config.loader import load_config
from ftpfetch.jobs.context import JobExecutionContext
from ftpfetch.jobs.download_job import FtpDownloadJob
from ftpfetch.utils.logging import setup_logging_from_config


def main() -> None:
    project_dir = Path(__file__).parent
    config = load_config(project_dir, env=None)
    setup_logging_from_config(config.data, project_dir=project_dir)

    if not config.jobs:
        raise SystemExit("No jobs configured")

    job = FtpDownloadJob.from_config(config)
    for name in config.jobs:
        result = job.execute(JobExecutionContext(job_name=name, job_data=config.job_parameters(name)))
        print(f"{name}: {result.message} ({result.files_downloaded} file(s))")


if __name__ == "__main__":
    main()
