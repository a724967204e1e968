"""
Transfer client factory.

The download job receives a factory at construction and asks it for a fresh
client per execution; nothing is looked up from global state.
"""

from __future__ import annotations

from collections.abc import Callable

from ftpfetch.transfer.base import TransferClient
from ftpfetch.transfer.ftp import FTPTransferClient
from ftpfetch.transfer.sftp import SFTPTransferClient
from ftpfetch.utils.logging import get_logger

logger = get_logger("ftpfetch.transfer.factory")

SSH_PORT = 22
FTP_PORT = 21

# (protocol, port, private_key_path) -> client
ClientFactory = Callable[[str | None, int, str | None], TransferClient]


def choose_protocol(protocol: str | None, port: int, private_key_path: str | None) -> str:
    """
    Pick the wire protocol for a job.

    An explicit protocol wins; otherwise an SSH key or port 22 means SFTP,
    anything else plain FTP.
    """
    if protocol:
        return protocol.lower()
    if private_key_path or port == SSH_PORT:
        return "sftp"
    return "ftp"


class TransferClientFactory:
    """Build FTP, FTPS or SFTP clients sharing one timeout/TLS policy."""

    def __init__(self, protocol: str | None = None, timeout_s: float = 30.0, use_tls: bool = False):
        self.protocol = protocol
        self.timeout_s = timeout_s
        self.use_tls = use_tls

    def __call__(self, protocol: str | None, port: int, private_key_path: str | None) -> TransferClient:
        chosen = choose_protocol(protocol or self.protocol, port, private_key_path)
        if chosen == "sftp":
            if port == FTP_PORT:
                logger.warning(
                    f"SFTP selected but serverPort is {FTP_PORT} (the FTP default); "
                    f"set serverPort: {SSH_PORT} unless the SSH server really listens there"
                )
            return SFTPTransferClient(timeout_s=self.timeout_s)
        if chosen == "ftps":
            return FTPTransferClient(timeout_s=self.timeout_s, use_tls=True)
        if chosen == "ftp":
            return FTPTransferClient(timeout_s=self.timeout_s, use_tls=self.use_tls)
        raise ValueError(f"Unsupported transfer protocol: {chosen}")
