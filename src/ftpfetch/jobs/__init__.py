"""
Download job: parameter resolution, credential decryption, orchestration.
"""

from ftpfetch.jobs.context import JobExecutionContext, JobResult, JobState
from ftpfetch.jobs.credentials import Credentials, decrypt_credentials
from ftpfetch.jobs.download_job import FtpDownloadJob
from ftpfetch.jobs.parameters import JobParameters, resolve_parameters

__all__ = [
    "FtpDownloadJob",
    "JobExecutionContext",
    "JobResult",
    "JobState",
    "JobParameters",
    "resolve_parameters",
    "Credentials",
    "decrypt_credentials",
]
