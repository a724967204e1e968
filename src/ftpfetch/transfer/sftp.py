"""
SFTP transfer client (paramiko).
"""

from __future__ import annotations

import os
import posixpath
import socket
import stat
from datetime import datetime, timezone
from pathlib import Path

import paramiko

from ftpfetch.exceptions import TransferConnectionError, TransferError
from ftpfetch.transfer.base import RemoteFile, TransferClient, discard_partial, part_path
from ftpfetch.utils.logging import get_logger

logger = get_logger("ftpfetch.transfer.sftp")

# Tried in order; paramiko raises SSHException when the file is another type
KEY_TYPES: tuple[type[paramiko.PKey], ...] = (paramiko.RSAKey, paramiko.Ed25519Key, paramiko.ECDSAKey)


def load_private_key(path: str, passphrase: str | None) -> paramiko.PKey:
    """
    Load an SSH private key of any supported type.

    Raises:
        paramiko.SSHException: The key cannot be read with any supported type.
        OSError: The key file cannot be opened.
    """
    path = os.path.expanduser(path)
    last_error: Exception | None = None
    for key_type in KEY_TYPES:
        try:
            return key_type.from_private_key_file(path, password=passphrase)
        except paramiko.PasswordRequiredException:
            raise
        except paramiko.SSHException as e:
            last_error = e
    raise paramiko.SSHException(f"Unsupported or unreadable private key {path}: {last_error}")


class SFTPTransferClient(TransferClient):
    """SFTP session over a paramiko Transport."""

    protocol = "sftp"

    def __init__(self, timeout_s: float = 30.0):
        super().__init__(timeout_s=timeout_s)
        self._transport: paramiko.Transport | None = None
        self._client: paramiko.SFTPClient | None = None

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    def connect(
        self,
        host: str,
        port: int,
        user_name: str | None,
        password: str | None,
        private_key_path: str | None = None,
        private_key_password: str | None = None,
    ) -> None:
        if self._client is not None:
            return
        if not host:
            raise TransferConnectionError("SFTP connection missing host")
        self.host = host

        sock = None
        transport = None
        try:
            pkey = None
            if private_key_path:
                pkey = load_private_key(private_key_path, private_key_password)
                # Key takes precedence over any configured password
                password = None

            sock = socket.create_connection((host, port), timeout=self.timeout_s)
            transport = paramiko.Transport(sock)
            transport.banner_timeout = self.timeout_s
            transport.auth_timeout = self.timeout_s

            transport.connect(username=user_name, password=password, pkey=pkey)

            client = paramiko.SFTPClient.from_transport(transport)
            if client is None:
                raise paramiko.SSHException("SFTP subsystem unavailable")
            client.get_channel().settimeout(self.timeout_s)
        except (paramiko.SSHException, OSError) as e:
            _discard(transport, sock)
            auth = "key" if private_key_path else "password"
            raise TransferConnectionError(
                f"SFTP connection to {host}:{port} failed ({auth} auth): {e}",
                details={"host": host, "port": port},
            ) from e
        except Exception:
            _discard(transport, sock)
            raise

        self._transport = transport
        self._client = client
        logger.info(f"Connected to sftp://{host}:{port} as {user_name or '<anonymous>'}")

    def list_files(self, remote_dir: str | None) -> list[RemoteFile]:
        client = self._require_client()
        base = remote_dir or client.normalize(".")
        files = []
        for attr in client.listdir_attr(base):
            if attr.st_mode is not None and stat.S_ISDIR(attr.st_mode):
                continue
            files.append(
                RemoteFile(
                    name=attr.filename,
                    path=posixpath.join(base, attr.filename),
                    modified=datetime.fromtimestamp(int(attr.st_mtime or 0), tz=timezone.utc),
                    size=int(attr.st_size or 0),
                )
            )
        return files

    def download(self, remote_file: RemoteFile, local_path: Path) -> None:
        client = self._require_client()
        tmp_path = part_path(local_path)
        try:
            client.get(remote_file.path, str(tmp_path))
            os.replace(tmp_path, local_path)
        except BaseException:
            discard_partial(tmp_path)
            raise

    def close(self) -> None:
        """Close SFTP client + underlying transport."""
        try:
            if self._client is not None:
                self._client.close()
        finally:
            self._client = None
        try:
            if self._transport is not None:
                self._transport.close()
        finally:
            self._transport = None

    def _require_client(self) -> paramiko.SFTPClient:
        if self._client is None:
            raise TransferError("SFTP session is not connected")
        return self._client


def _discard(transport: paramiko.Transport | None, sock: socket.socket | None) -> None:
    """Close a half-open session; the transport owns the socket once created."""
    if transport is not None:
        transport.close()
    elif sock is not None:
        sock.close()
