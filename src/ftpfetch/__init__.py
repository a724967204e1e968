"""
ftpfetch - scheduled FTP/SFTP download jobs.

Downloads files of given extensions, modified within a cut-off window, from a
remote FTP or SFTP directory into a local directory.
"""

__version__ = "0.1.0"

from ftpfetch.config.loader import Config, load_config

# Exceptions
from ftpfetch.exceptions import (
    ConfigurationError,
    CredentialDecryptionWarning,
    FtpFetchError,
    JobExecutionError,
    TransferConnectionError,
    TransferError,
)
from ftpfetch.jobs.context import JobExecutionContext, JobResult, JobState
from ftpfetch.jobs.download_job import FtpDownloadJob
from ftpfetch.jobs.parameters import JobParameters, resolve_parameters
from ftpfetch.transfer.base import RemoteFile, TransferClient, select_files
from ftpfetch.transfer.factory import TransferClientFactory

# Logging utilities
from ftpfetch.utils.logging import get_logger, setup_logging, setup_logging_from_config

__all__ = [
    # Job
    "FtpDownloadJob",
    "JobExecutionContext",
    "JobResult",
    "JobState",
    "JobParameters",
    "resolve_parameters",
    # Transfer
    "TransferClient",
    "TransferClientFactory",
    "RemoteFile",
    "select_files",
    # Config
    "Config",
    "load_config",
    # Logging
    "setup_logging",
    "setup_logging_from_config",
    "get_logger",
    # Exceptions
    "FtpFetchError",
    "ConfigurationError",
    "TransferConnectionError",
    "TransferError",
    "JobExecutionError",
    "CredentialDecryptionWarning",
]
