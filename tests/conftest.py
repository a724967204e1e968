"""
Shared fixtures: an in-memory transfer client and common parameter maps.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from ftpfetch.transfer.base import RemoteFile, TransferClient

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


class FakeTransferClient(TransferClient):
    """TransferClient serving files from a dict; records every call."""

    protocol = "fake"

    def __init__(self, files: dict[str, tuple[datetime, bytes]] | None = None, now: datetime | None = None):
        super().__init__()
        self.files = files or {}
        self.now = now
        self.connected = False
        self.connect_calls: list[tuple] = []
        self.close_calls = 0
        self.connect_error: Exception | None = None
        self.list_error: Exception | None = None

    @property
    def is_connected(self) -> bool:
        return self.connected

    def connect(self, host, port, user_name, password, private_key_path=None, private_key_password=None):
        self.connect_calls.append((host, port, user_name, password, private_key_path, private_key_password))
        if self.connect_error is not None:
            raise self.connect_error
        self.host = host
        self.connected = True

    def list_files(self, remote_dir):
        if self.list_error is not None:
            raise self.list_error
        prefix = f"{remote_dir.rstrip('/')}/" if remote_dir else ""
        return [
            RemoteFile(name=name, path=f"{prefix}{name}", modified=modified, size=len(data))
            for name, (modified, data) in self.files.items()
        ]

    def download(self, remote_file, local_path: Path):
        local_path.write_bytes(self.files[remote_file.name][1])

    def fetch_matching(self, remote_dir, local_dir, extensions, cut_off, now=None):
        return super().fetch_matching(remote_dir, local_dir, extensions, cut_off, now=now or self.now)

    def close(self):
        self.close_calls += 1
        self.connected = False


@pytest.fixture
def remote_files() -> dict[str, tuple[datetime, bytes]]:
    return {
        "fresh.csv": (NOW - timedelta(hours=2), b"a,b\n1,2\n"),
        "stale.csv": (NOW - timedelta(hours=30), b"old"),
        "notes.txt": (NOW - timedelta(hours=1), b"hello"),
    }


@pytest.fixture
def fake_client(remote_files) -> FakeTransferClient:
    return FakeTransferClient(remote_files, now=NOW)


@pytest.fixture
def base_params(tmp_path) -> dict[str, str]:
    return {
        "ftpHost": "ftp.example.com",
        "localDirectoryPath": str(tmp_path / "in"),
        "fileExtensions": "csv",
    }
