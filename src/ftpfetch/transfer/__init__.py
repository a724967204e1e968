"""
Transfer clients (FTP, FTPS, SFTP) behind a common contract.
"""

from ftpfetch.transfer.base import RemoteFile, TransferClient, select_files
from ftpfetch.transfer.factory import TransferClientFactory, choose_protocol
from ftpfetch.transfer.ftp import FTPTransferClient
from ftpfetch.transfer.sftp import SFTPTransferClient

__all__ = [
    "TransferClient",
    "RemoteFile",
    "select_files",
    "TransferClientFactory",
    "choose_protocol",
    "FTPTransferClient",
    "SFTPTransferClient",
]
