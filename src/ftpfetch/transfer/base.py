"""
Transfer client contract.

A TransferClient owns one remote session for the duration of a job execution:
connect, fetch the files that pass the extension + cut-off policy, close.
Concrete clients implement listing and single-file download; the selection
policy and the download loop live here so every protocol applies them the
same way.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from collections.abc import Collection, Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from ftpfetch.exceptions import FtpFetchError, TransferError
from ftpfetch.utils.logging import get_logger

logger = get_logger("ftpfetch.transfer.base")


@dataclass(frozen=True)
class RemoteFile:
    name: str
    path: str
    modified: datetime
    size: int = 0

    @property
    def extension(self) -> str:
        return file_extension(self.name)


def file_extension(name: str) -> str:
    """Lower-cased extension without the dot (``"a.CSV"`` -> ``"csv"``)."""
    suffix = os.path.splitext(name)[1]
    return suffix[1:].lower() if suffix else ""


def select_files(
    files: Iterable[RemoteFile],
    extensions: Collection[str],
    cut_off: timedelta,
    now: datetime | None = None,
) -> list[RemoteFile]:
    """
    Apply the selection policy.

    A file is kept when its extension (case-insensitive) is in ``extensions``
    and ``now - modified <= cut_off``. Results are ordered newest first.
    """
    now = now or datetime.now(timezone.utc)
    wanted = {e.lower().lstrip(".") for e in extensions}
    selected = [f for f in files if f.extension in wanted and now - f.modified <= cut_off]
    selected.sort(key=lambda f: (f.modified, f.name), reverse=True)
    return selected


class TransferClient(ABC):
    """
    Base class for FTP/SFTP transfer clients.

    Usable as a context manager; ``close()`` is idempotent so the owner can
    release the session unconditionally.
    """

    protocol: str = ""

    def __init__(self, timeout_s: float = 30.0):
        self.timeout_s = timeout_s
        self.host: str | None = None

    @abstractmethod
    def connect(
        self,
        host: str,
        port: int,
        user_name: str | None,
        password: str | None,
        private_key_path: str | None = None,
        private_key_password: str | None = None,
    ) -> None:
        """
        Open and authenticate the session.

        Key-based authentication is used when ``private_key_path`` is given.

        Raises:
            TransferConnectionError: Host unreachable or authentication failed.
        """

    @abstractmethod
    def list_files(self, remote_dir: str | None) -> list[RemoteFile]:
        """List regular files in ``remote_dir`` (session default when None)."""

    @abstractmethod
    def download(self, remote_file: RemoteFile, local_path: Path) -> None:
        """Download one file to ``local_path``."""

    @abstractmethod
    def close(self) -> None:
        """Release the session. Safe to call more than once."""

    @property
    @abstractmethod
    def is_connected(self) -> bool: ...

    def fetch_matching(
        self,
        remote_dir: str | None,
        local_dir: str,
        extensions: Collection[str],
        cut_off: timedelta,
        now: datetime | None = None,
    ) -> int:
        """
        Download every file in ``remote_dir`` that passes the selection policy.

        Existing local files with the same name are overwritten.

        Returns:
            Number of files downloaded

        Raises:
            TransferError: Listing or any download failed.
        """
        if not self.is_connected:
            raise TransferError(f"{self.protocol} session is not connected")

        try:
            remote_files = self.list_files(remote_dir)
        except FtpFetchError:
            raise
        except Exception as e:
            raise TransferError(
                f"Failed to list {remote_dir or 'default directory'} on {self.host}: {e}",
                details={"remote_dir": remote_dir},
            ) from e

        selected = select_files(remote_files, extensions, cut_off, now)
        logger.info(
            f"{self.protocol}://{self.host}/{(remote_dir or '').lstrip('/')}: "
            f"{len(selected)} of {len(remote_files)} files match"
        )

        target_dir = Path(local_dir)
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise TransferError(f"Cannot create local directory {local_dir}: {e}") from e

        for remote_file in selected:
            local_path = target_dir / remote_file.name
            try:
                self.download(remote_file, local_path)
            except Exception as e:
                raise TransferError(
                    f"Failed to download {remote_file.path}: {e}",
                    details={"remote_path": remote_file.path},
                ) from e
            logger.debug(f"Downloaded {remote_file.path} -> {local_path}")

        return len(selected)

    def __enter__(self) -> TransferClient:
        return self

    def __exit__(self, exc_type: type[BaseException] | None, exc: BaseException | None, tb: Any) -> None:
        try:
            self.close()
        except Exception as e:
            # Don't override the original exception if one occurred
            if exc_type is None:
                raise
            logger.warning(f"Error closing {self.protocol} session to {self.host} during context exit: {e}")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(host='{self.host}')"


def part_path(local_path: Path) -> Path:
    """Temporary path a download is written to before the atomic rename."""
    return local_path.with_name(local_path.name + ".part")


def discard_partial(tmp_path: Path) -> None:
    try:
        tmp_path.unlink()
    except FileNotFoundError:
        pass
