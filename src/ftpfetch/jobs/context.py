"""
Execution context handed to a job, and the result it hands back.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from ftpfetch.exceptions import CredentialDecryptionWarning, FtpFetchError, JobExecutionError


class JobState(str, Enum):
    """Download orchestrator states; each execution passes through them once."""

    INIT = "init"
    PARAMETERS_RESOLVED = "parameters_resolved"
    CREDENTIALS_READY = "credentials_ready"
    CONNECTED = "connected"
    TRANSFER_COMPLETE = "transfer_complete"
    FAILED = "failed"


@dataclass(frozen=True)
class JobExecutionContext:
    """
    One execution of a job.

    ``merged_data`` overlays trigger data on the job's own data, so a trigger
    can override any stored parameter for its firing.
    """

    job_name: str
    job_data: Mapping[str, Any] = field(default_factory=dict)
    trigger_data: Mapping[str, Any] = field(default_factory=dict)

    @property
    def merged_data(self) -> Mapping[str, Any]:
        return MappingProxyType({**self.job_data, **self.trigger_data})


@dataclass
class JobResult:
    job_name: str
    success: bool
    error: FtpFetchError | None = None
    files_downloaded: int = 0
    warnings: list[CredentialDecryptionWarning] = field(default_factory=list)
    # Last state reached (FAILED on any error)
    state: JobState = JobState.INIT
    # State the execution was in when it failed
    failed_at: JobState | None = None

    @property
    def retryable(self) -> bool:
        """Whether the scheduler may refire this execution (False on success)."""
        return self.error is not None and self.error.retryable

    @property
    def message(self) -> str:
        return self.error.message if self.error is not None else "ok"

    def raise_for_status(self) -> None:
        """Raise JobExecutionError for a failed execution; no-op on success."""
        if self.error is None:
            return
        raise JobExecutionError(self.error.message, refire=self.error.retryable, cause=self.error)

    @classmethod
    def ok(cls, job_name: str, files_downloaded: int, warnings: list | None = None) -> JobResult:
        return cls(
            job_name=job_name,
            success=True,
            files_downloaded=files_downloaded,
            warnings=warnings or [],
            state=JobState.TRANSFER_COMPLETE,
        )

    @classmethod
    def failed(
        cls,
        job_name: str,
        error: FtpFetchError,
        failed_at: JobState,
        warnings: list | None = None,
    ) -> JobResult:
        return cls(
            job_name=job_name,
            success=False,
            error=error,
            warnings=warnings or [],
            state=JobState.FAILED,
            failed_at=failed_at,
        )
