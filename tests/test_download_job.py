"""
Tests for the download job orchestrator.
"""

from datetime import timedelta
from unittest.mock import MagicMock

import pytest
from conftest import NOW

from ftpfetch.config.loader import Config
from ftpfetch.exceptions import (
    ConfigurationError,
    JobExecutionError,
    TransferConnectionError,
    TransferError,
)
from ftpfetch.jobs.context import JobExecutionContext, JobResult, JobState
from ftpfetch.jobs.credentials import encrypt_value, generate_key
from ftpfetch.jobs.download_job import FtpDownloadJob
from ftpfetch.transfer.factory import TransferClientFactory


class RecordingFactory:
    """Hands out one prepared client and remembers how it was asked for."""

    def __init__(self, client):
        self.client = client
        self.calls: list[tuple] = []

    def __call__(self, protocol, port, private_key_path):
        self.calls.append((protocol, port, private_key_path))
        return self.client


@pytest.fixture
def factory(fake_client) -> RecordingFactory:
    return RecordingFactory(fake_client)


def _context(params, name="nightly", **trigger):
    return JobExecutionContext(job_name=name, job_data=params, trigger_data=trigger)


class TestSuccess:
    def test_end_to_end(self, factory, fake_client, tmp_path):
        params = {"ftpHost": "ftp.example.com", "localDirectoryPath": str(tmp_path / "data"), "fileExtensions": "csv,txt"}
        result = FtpDownloadJob(factory).execute(_context(params, "e2e"))

        assert result.success is True
        assert result.error is None
        assert result.retryable is False
        assert result.state is JobState.TRANSFER_COMPLETE
        assert result.files_downloaded == 2
        assert fake_client.connect_calls == [("ftp.example.com", 21, None, None, None, None)]
        assert factory.calls == [(None, 21, None)]
        assert sorted(p.name for p in (tmp_path / "data").iterdir()) == ["fresh.csv", "notes.txt"]
        assert fake_client.close_calls == 1

    def test_raise_for_status_noop_on_success(self, factory, base_params):
        result = FtpDownloadJob(factory).execute(_context(base_params))
        result.raise_for_status()

    def test_trigger_data_overrides_job_data(self, factory, fake_client, base_params):
        FtpDownloadJob(factory).execute(_context(base_params, serverPort="2121"))
        assert fake_client.connect_calls[0][1] == 2121

    def test_callable_entry_point(self, factory, base_params):
        FtpDownloadJob(factory)(_context(base_params))


class TestConfigurationFailures:
    @pytest.mark.parametrize("field", ["ftpHost", "localDirectoryPath", "fileExtensions"])
    def test_missing_field_makes_no_connection(self, factory, fake_client, base_params, field):
        del base_params[field]
        result = FtpDownloadJob(factory).execute(_context(base_params))

        assert result.success is False
        assert isinstance(result.error, ConfigurationError)
        assert result.error.field == field
        assert result.retryable is False
        assert result.failed_at is JobState.INIT
        assert factory.calls == []
        assert fake_client.connect_calls == []

    def test_invalid_cut_off_never_falls_back(self, factory, fake_client, base_params):
        base_params["cutOffTimeSpan"] = "not-a-timespan"
        result = FtpDownloadJob(factory).execute(_context(base_params))

        assert isinstance(result.error, ConfigurationError)
        assert result.error.field == "cutOffTimeSpan"
        assert fake_client.connect_calls == []

    @pytest.mark.parametrize("value", ["99999999999", "99999999999d", "999999999999h"])
    def test_out_of_range_cut_off_is_reported(self, factory, fake_client, base_params, value):
        base_params["cutOffTimeSpan"] = value
        result = FtpDownloadJob(factory).execute(_context(base_params))

        assert isinstance(result.error, ConfigurationError)
        assert result.retryable is False
        assert fake_client.connect_calls == []

    def test_raise_for_status_is_not_refired(self, factory, base_params):
        del base_params["ftpHost"]
        result = FtpDownloadJob(factory).execute(_context(base_params))
        with pytest.raises(JobExecutionError) as exc_info:
            result.raise_for_status()
        assert exc_info.value.refire is False
        assert isinstance(exc_info.value.__cause__, ConfigurationError)

    def test_strict_decryption_fails_before_connecting(self, factory, fake_client, base_params):
        base_params["password"] = "not-encrypted"
        job = FtpDownloadJob(factory, encryption_enabled=True, encryption_key=generate_key(), strict_decryption=True)
        result = job.execute(_context(base_params))

        assert isinstance(result.error, ConfigurationError)
        assert result.failed_at is JobState.PARAMETERS_RESOLVED
        assert fake_client.connect_calls == []


class TestCredentials:
    def test_key_auth_parameters_passed_with_password(self, factory, fake_client, base_params):
        base_params.update(
            {
                "userName": "svc",
                "password": "pw",
                "sshPrivateKeyPath": "/keys/id_rsa",
                "sshPrivateKeyPassword": "phrase",
            }
        )
        FtpDownloadJob(factory).execute(_context(base_params))

        assert factory.calls == [(None, 21, "/keys/id_rsa")]
        host, port, user, password, key_path, key_password = fake_client.connect_calls[0]
        assert key_path == "/keys/id_rsa"
        assert key_password == "phrase"

    def test_encryption_disabled_passes_raw_values(self, factory, fake_client, base_params):
        key = generate_key()
        raw_user = encrypt_value("svc", key)
        raw_password = encrypt_value("pw", key)
        base_params.update({"userName": raw_user, "password": raw_password, "sshPrivateKeyPassword": "phrase"})

        FtpDownloadJob(factory, encryption_enabled=False, encryption_key=key).execute(_context(base_params))

        assert fake_client.connect_calls[0][2:4] == (raw_user, raw_password)
        assert fake_client.connect_calls[0][5] == "phrase"

    def test_encryption_enabled_decrypts(self, factory, fake_client, base_params):
        key = generate_key()
        base_params.update({"userName": encrypt_value("svc", key), "password": encrypt_value("pw", key)})

        result = FtpDownloadJob(factory, encryption_enabled=True, encryption_key=key).execute(_context(base_params))

        assert result.success is True
        assert fake_client.connect_calls[0][2:4] == ("svc", "pw")

    def test_failed_password_decryption_still_connects(self, factory, fake_client, base_params):
        key = generate_key()
        base_params.update({"userName": encrypt_value("svc", key), "password": "garbled"})

        result = FtpDownloadJob(factory, encryption_enabled=True, encryption_key=key).execute(_context(base_params))

        assert result.success is True
        assert fake_client.connect_calls[0][2:4] == ("svc", "garbled")
        assert [w.field for w in result.warnings] == ["password"]


class TestRuntimeFailures:
    def test_connect_failure_is_retryable_and_releases(self, factory, fake_client, base_params):
        fake_client.connect_error = TransferConnectionError("530 Login incorrect")
        result = FtpDownloadJob(factory).execute(_context(base_params))

        assert isinstance(result.error, TransferConnectionError)
        assert result.retryable is True
        assert result.state is JobState.FAILED
        assert result.failed_at is JobState.CREDENTIALS_READY
        assert fake_client.close_calls == 1

    def test_unexpected_connect_exception_wrapped(self, factory, fake_client, base_params):
        fake_client.connect_error = OSError("connection refused")
        result = FtpDownloadJob(factory).execute(_context(base_params))

        assert isinstance(result.error, TransferConnectionError)
        assert isinstance(result.error.__cause__, OSError)
        assert fake_client.close_calls == 1

    def test_fetch_failure_is_retryable_and_releases(self, factory, fake_client, base_params):
        fake_client.list_error = OSError("listing failed")
        result = FtpDownloadJob(factory).execute(_context(base_params))

        assert isinstance(result.error, TransferError)
        assert result.retryable is True
        assert result.failed_at is JobState.CONNECTED
        assert fake_client.close_calls == 1

    def test_raise_for_status_refires(self, factory, fake_client, base_params):
        fake_client.list_error = OSError("listing failed")
        with pytest.raises(JobExecutionError) as exc_info:
            FtpDownloadJob(factory)(_context(base_params))
        assert exc_info.value.refire is True

    def test_mock_client_released_exactly_once(self, base_params):
        client = MagicMock()
        client.fetch_matching.side_effect = RuntimeError("boom")
        result = FtpDownloadJob(lambda *args: client).execute(_context(base_params))

        assert isinstance(result.error, TransferError)
        client.connect.assert_called_once()
        client.close.assert_called_once()

    def test_close_error_does_not_mask_result(self, base_params):
        client = MagicMock()
        client.fetch_matching.return_value = 3
        client.close.side_effect = OSError("already closed")
        result = FtpDownloadJob(lambda *args: client).execute(_context(base_params))

        assert result.success is True
        assert result.files_downloaded == 3

    def test_factory_failure(self, base_params):
        def broken_factory(*args):
            raise ValueError("Unsupported transfer protocol: gopher")

        result = FtpDownloadJob(broken_factory).execute(_context(base_params))
        assert isinstance(result.error, TransferConnectionError)
        assert result.retryable is True

    def test_failure_logged_with_job_name(self, factory, fake_client, base_params, caplog):
        fake_client.connect_error = TransferConnectionError("host unreachable")
        with caplog.at_level("ERROR", logger="ftpfetch"):
            FtpDownloadJob(factory).execute(_context(base_params, "nightly"))
        assert "Error in FtpDownloadJob (nightly): host unreachable" in caplog.text


class TestFromConfig:
    def test_wires_settings(self):
        config = Config(
            {
                "encryption": {"enabled": True, "key": "a2V5", "strict": "true"},
                "transfer": {"timeout_s": 5, "protocol": "SFTP"},
            }
        )
        job = FtpDownloadJob.from_config(config)

        assert job.encryption_enabled is True
        assert job.encryption_key == "a2V5"
        assert job.strict_decryption is True
        assert isinstance(job.client_factory, TransferClientFactory)
        assert job.client_factory.timeout_s == 5.0
        assert job.client_factory.protocol == "sftp"


class TestJobResult:
    def test_message(self):
        assert JobResult.ok("j", 0).message == "ok"
        failed = JobResult.failed("j", TransferError("down"), JobState.CONNECTED)
        assert failed.message == "down"

    def test_merged_data_is_read_only(self):
        ctx = JobExecutionContext("j", {"a": "1"}, {"b": "2"})
        assert dict(ctx.merged_data) == {"a": "1", "b": "2"}
        with pytest.raises(TypeError):
            ctx.merged_data["a"] = "x"  # type: ignore[index]


def test_selection_matches_reference_scenario(fake_client, tmp_path):
    fake_client.connect("ftp.example.com", 21, None, None)
    count = fake_client.fetch_matching(None, str(tmp_path), {"csv"}, timedelta(hours=24), now=NOW)
    assert count == 1
    assert [p.name for p in tmp_path.iterdir()] == ["fresh.csv"]
