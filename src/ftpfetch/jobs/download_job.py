"""
FTP/SFTP download job.

Downloads every file with one of the configured extensions, no older than the
cut-off window, from a remote directory into a local directory.

One execution is a single linear pass::

    INIT -> PARAMETERS_RESOLVED -> CREDENTIALS_READY -> CONNECTED -> TRANSFER_COMPLETE

and any state may move to FAILED.

Configuration problems come back as non-retryable failures; connection and
transfer problems as retryable ones. The transfer client is always closed
exactly once before the result is returned.
"""

from __future__ import annotations

from typing import Any

from ftpfetch.config.loader import Config
from ftpfetch.config.settings import encryption_settings, transfer_settings
from ftpfetch.exceptions import (
    ConfigurationError,
    CredentialDecryptionWarning,
    FtpFetchError,
    TransferConnectionError,
    TransferError,
)
from ftpfetch.jobs.context import JobExecutionContext, JobResult, JobState
from ftpfetch.jobs.credentials import Credentials, decrypt_credentials
from ftpfetch.jobs.parameters import JobParameters, resolve_parameters
from ftpfetch.transfer.base import TransferClient
from ftpfetch.transfer.factory import ClientFactory, TransferClientFactory
from ftpfetch.utils.logging import get_logger

logger = get_logger("ftpfetch.jobs.download_job")


class FtpDownloadJob:
    """
    Scheduled FTP/SFTP download job.

    The job holds only read-only settings, so one instance can serve
    concurrent executions.

    Args:
        client_factory: Returns a fresh TransferClient for
            ``(protocol, port, private_key_path)``
        encryption_enabled: Decrypt credential parameters before connecting
        encryption_key: Process-wide symmetric key (base64 text or bytes)
        strict_decryption: Fail the execution instead of using raw values
            when a credential cannot be decrypted
    """

    def __init__(
        self,
        client_factory: ClientFactory | None = None,
        *,
        encryption_enabled: bool = False,
        encryption_key: bytes | str | None = None,
        strict_decryption: bool = False,
    ):
        self.client_factory = client_factory or TransferClientFactory()
        self.encryption_enabled = encryption_enabled
        self.encryption_key = encryption_key
        self.strict_decryption = strict_decryption

    @classmethod
    def from_config(cls, config: Config) -> FtpDownloadJob:
        """Build a job wired to the ``encryption`` and ``transfer`` config sections."""
        encryption = encryption_settings(config)
        transfer = transfer_settings(config)
        return cls(
            TransferClientFactory(protocol=transfer.protocol, timeout_s=transfer.timeout_s, use_tls=transfer.use_tls),
            encryption_enabled=encryption.enabled,
            encryption_key=encryption.key,
            strict_decryption=encryption.strict,
        )

    def execute(self, context: JobExecutionContext) -> JobResult:
        """Run one execution and report the outcome."""
        job_name = context.job_name
        warnings: list[CredentialDecryptionWarning] = []
        logger.debug(f"Executing FtpDownloadJob ({job_name})")

        state = JobState.INIT
        try:
            params = resolve_parameters(context.merged_data, job_name)
            state = JobState.PARAMETERS_RESOLVED

            credentials = self._credentials(params, job_name, warnings)
            state = JobState.CREDENTIALS_READY
        except ConfigurationError as e:
            # Already logged with the job name by the resolver/decryptor
            return JobResult.failed(job_name, e, state, warnings)

        client: TransferClient | None = None
        try:
            client = self._create_client(params)
            self._connect(client, params, credentials)
            state = JobState.CONNECTED

            count = self._fetch(client, params)
        except FtpFetchError as e:
            logger.error(f"Error in FtpDownloadJob ({job_name}): {e.message}")
            return JobResult.failed(job_name, e, state, warnings)
        finally:
            if client is not None:
                self._release(client, job_name)

        logger.info(
            f"FtpDownloadJob ({job_name}) downloaded {count} file(s) from {params.host} "
            f"into {params.local_directory_path}"
        )
        return JobResult.ok(job_name, count, warnings)

    def __call__(self, context: JobExecutionContext) -> None:
        """Exception-style entry point: raise JobExecutionError on failure."""
        self.execute(context).raise_for_status()

    def _credentials(
        self,
        params: JobParameters,
        job_name: str,
        warnings: list[CredentialDecryptionWarning],
    ) -> Credentials:
        raw = Credentials(
            user_name=params.user_name,
            password=params.password,
            key_passphrase=params.ssh_private_key_password,
        )
        return decrypt_credentials(
            raw,
            enabled=self.encryption_enabled,
            key=self.encryption_key,
            strict=self.strict_decryption,
            job_name=job_name,
            issues=warnings,
        )

    def _create_client(self, params: JobParameters) -> TransferClient:
        try:
            return self.client_factory(params.protocol, params.port, params.ssh_private_key_path)
        except Exception as e:
            raise TransferConnectionError(f"Cannot create transfer client for {params.host}: {e}") from e

    def _connect(self, client: TransferClient, params: JobParameters, credentials: Credentials) -> None:
        try:
            client.connect(
                params.host,
                params.port,
                credentials.user_name,
                credentials.password,
                params.ssh_private_key_path,
                credentials.key_passphrase,
            )
        except FtpFetchError:
            raise
        except Exception as e:
            raise TransferConnectionError(
                f"Connection to {params.host}:{params.port} failed: {e}",
                details={"host": params.host, "port": params.port},
            ) from e

    def _fetch(self, client: TransferClient, params: JobParameters) -> int:
        try:
            return client.fetch_matching(
                params.remote_directory_path,
                params.local_directory_path,
                params.file_extensions,
                params.cut_off,
            )
        except TransferError:
            raise
        except Exception as e:
            raise TransferError(f"Transfer from {params.host} failed: {e}") from e

    def _release(self, client: Any, job_name: str) -> None:
        try:
            client.close()
        except Exception as e:
            logger.warning(f"FtpDownloadJob ({job_name}): error closing transfer client: {e}")
