"""
ftpfetch exception hierarchy.

All job failures inherit from FtpFetchError so a host scheduler can catch any
of them with a single base class, while still branching on the kind of
failure to decide whether a retry makes sense.

Hierarchy::

    FtpFetchError
    ├── ConfigurationError        - missing/invalid job parameter (never retried)
    ├── TransferConnectionError   - cannot reach or authenticate to the server
    ├── TransferError             - listing/download failed after connecting
    └── JobExecutionError         - failure surfaced to the scheduler (refire flag)

    CredentialDecryptionWarning   - logged, never raised by the job
"""

from __future__ import annotations


class FtpFetchError(Exception):
    """Base exception for all ftpfetch errors."""

    def __init__(self, message: str, *, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    # Retry eligibility as seen by the host scheduler
    retryable: bool = True


# --- Configuration -----------------------------------------------------------


class ConfigurationError(FtpFetchError):
    """Raised when a job parameter is missing, empty, or fails to parse."""

    retryable = False

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        job_name: str | None = None,
        reason: str = "missing",
    ) -> None:
        super().__init__(message, details={"field": field, "job_name": job_name, "reason": reason})
        self.field = field
        self.job_name = job_name
        self.reason = reason


# --- Transfer ----------------------------------------------------------------


class TransferConnectionError(FtpFetchError):
    """Raised when the remote server cannot be reached or authentication fails.

    Named to avoid shadowing the builtin ``ConnectionError``; ``ConnectionError_``
    is kept as a short alias.
    """


ConnectionError_ = TransferConnectionError


class TransferError(FtpFetchError):
    """Raised when listing or downloading fails on an established session."""


# --- Scheduler boundary ------------------------------------------------------


class JobExecutionError(FtpFetchError):
    """Failure handed back to the host scheduler.

    ``refire`` tells the scheduler whether this execution may be retried later.
    """

    def __init__(self, message: str, *, refire: bool, cause: BaseException | None = None) -> None:
        super().__init__(message, details={"refire": refire})
        self.refire = refire
        self.retryable = refire
        if cause is not None:
            self.__cause__ = cause


# --- Warnings ----------------------------------------------------------------


class CredentialDecryptionWarning(UserWarning):
    """A credential could not be decrypted; the raw value is used instead."""

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(f"Could not decrypt {field}: {reason}")
        self.field = field
        self.reason = reason
